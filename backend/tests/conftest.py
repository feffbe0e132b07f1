import os

# Must be set before nextscene modules read their configuration.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from nextscene.database import Base, get_db
from nextscene.main import app


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
        future=True,
    )
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    def _signup(full_name="Ada Lovelace", email="ada@example.com", password="Secret#123"):
        res = client.post(
            "/api/auth/signup",
            json={"fullName": full_name, "email": email, "password": password},
        )
        assert res.status_code == 201, res.text
        return res.json()

    return _signup


@pytest.fixture
def add_movie(client):
    def _add_movie(**overrides):
        body = {
            "title": "Inception",
            "director": "Christopher Nolan",
            "releaseYear": "2010",
            "genre": "Action, Sci-Fi",
            "description": "A thief who steals corporate secrets through dreams.",
            "runtime": 148,
            "rating": 8.8,
        }
        body.update(overrides)
        res = client.post("/api/admin/movies", json=body)
        assert res.status_code == 201, res.text
        return res.json()

    return _add_movie
