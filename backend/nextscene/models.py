import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    String,
    Text,
    Date,
    DateTime,
    Boolean,
    ForeignKey,
    Integer,
    Float,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base

ROLES = ("user", "admin")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    full_name = Column(String(255), nullable=False)
    first_name = Column(String(255))
    last_name = Column(String(255))
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    dob = Column(Date)
    profile_picture = Column(Text)
    role = Column(String(16), nullable=False, default="user")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    watchlist = relationship(
        "WatchlistEntry", back_populates="user", cascade="all, delete-orphan"
    )


class Movie(Base):
    __tablename__ = "movies"

    id = Column(String(32), primary_key=True, default=new_id)
    title = Column(String, index=True)
    director = Column(String)
    release_year = Column(String(16))
    runtime = Column(Integer)
    genre = Column(String)
    rating = Column(Float)
    poster = Column(Text)
    trailer_url = Column(String)
    description = Column(Text)
    main_cast = Column(String)
    source = Column(String(32))
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    watchlist_entries = relationship(
        "WatchlistEntry", back_populates="movie", cascade="all, delete-orphan"
    )


class WatchlistEntry(Base):
    __tablename__ = "watchlist_entries"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(
        String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    movie_id = Column(
        String(32), ForeignKey("movies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    added_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    watched = Column(Boolean, nullable=False, default=False)
    watched_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("user_id", "movie_id", name="uq_watchlist_user_movie"),
    )

    user = relationship("User", back_populates="watchlist")
    movie = relationship("Movie", back_populates="watchlist_entries")
