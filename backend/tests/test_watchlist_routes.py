import pytest

from nextscene import models


@pytest.fixture
def ada(signup):
    return signup()


@pytest.fixture
def inception(add_movie):
    return add_movie()


def add(client, user_id, movie_id):
    return client.post("/api/watchlist", json={"userId": user_id, "movieId": movie_id})


def test_add_returns_resolved_entry(client, ada, inception):
    res = add(client, ada["id"], inception["id"])
    assert res.status_code == 201
    entry = res.json()
    assert entry["userId"] == ada["id"]
    assert entry["movieId"] == inception["id"]
    assert entry["movie"]["title"] == "Inception"
    assert entry["watched"] is False
    assert entry["watchedAt"] is None
    assert entry["addedAt"]


def test_adding_same_pair_twice_is_rejected(client, db, ada, inception):
    assert add(client, ada["id"], inception["id"]).status_code == 201

    res = add(client, ada["id"], inception["id"])
    assert res.status_code == 400
    assert res.json() == {"message": "Movie already in watchlist"}
    assert db.query(models.WatchlistEntry).count() == 1


def test_add_requires_both_ids(client, ada):
    res = client.post("/api/watchlist", json={"userId": ada["id"]})
    assert res.status_code == 400
    assert res.json() == {"message": "User ID and Movie ID required"}


def test_add_unknown_movie_or_user(client, ada, inception):
    assert add(client, ada["id"], "missing").status_code == 404
    assert add(client, "missing", inception["id"]).status_code == 404


def test_get_watchlist_requires_user_id(client):
    res = client.get("/api/watchlist")
    assert res.status_code == 401
    assert res.json() == {"message": "User ID required"}


def test_get_watchlist_newest_first(client, ada, add_movie):
    first = add_movie(title="First")
    second = add_movie(title="Second")
    add(client, ada["id"], first["id"])
    add(client, ada["id"], second["id"])

    res = client.get("/api/watchlist", params={"userId": ada["id"]})
    assert res.status_code == 200
    assert [e["movie"]["title"] for e in res.json()] == ["Second", "First"]


def test_watchlists_are_per_user(client, signup, inception):
    ada = signup(email="ada@example.com")
    grace = signup(email="grace@example.com")
    add(client, ada["id"], inception["id"])

    assert len(client.get("/api/watchlist", params={"userId": ada["id"]}).json()) == 1
    assert client.get("/api/watchlist", params={"userId": grace["id"]}).json() == []
    # a different user may save the same movie
    assert add(client, grace["id"], inception["id"]).status_code == 201


def test_remove(client, ada, inception):
    add(client, ada["id"], inception["id"])
    body = {"userId": ada["id"], "movieId": inception["id"]}

    res = client.request("DELETE", "/api/watchlist/remove", json=body)
    assert res.status_code == 200
    assert res.json() == {"message": "Removed from watchlist"}

    res = client.request("DELETE", "/api/watchlist/remove", json=body)
    assert res.status_code == 404

    res = client.request("DELETE", "/api/watchlist/remove", json={"userId": ada["id"]})
    assert res.status_code == 400


def test_mark_watched_sets_flag_and_timestamp(client, ada, inception):
    add(client, ada["id"], inception["id"])

    res = client.patch(
        "/api/watchlist/watched", json={"userId": ada["id"], "movieId": inception["id"]}
    )
    assert res.status_code == 200
    entry = res.json()
    assert entry["watched"] is True
    assert entry["watchedAt"] is not None
    assert entry["movie"]["id"] == inception["id"]
    assert entry["movie"]["director"] == "Christopher Nolan"


def test_mark_unwatched_clears_timestamp(client, ada, inception):
    add(client, ada["id"], inception["id"])
    pair = {"userId": ada["id"], "movieId": inception["id"]}
    client.patch("/api/watchlist/watched", json=pair)

    res = client.patch("/api/watchlist/watched", json={**pair, "watched": False})
    assert res.status_code == 200
    assert res.json()["watched"] is False
    assert res.json()["watchedAt"] is None


def test_mark_watched_missing_entry(client, ada, inception):
    res = client.patch(
        "/api/watchlist/watched", json={"userId": ada["id"], "movieId": inception["id"]}
    )
    assert res.status_code == 404
    res = client.patch("/api/watchlist/watched", json={"movieId": inception["id"]})
    assert res.status_code == 400


def test_search_by_title_and_year(client, ada, add_movie):
    add(client, ada["id"], add_movie(title="The Dark Knight", releaseYear="2008")["id"])
    add(client, ada["id"], add_movie(title="Dune", releaseYear="2021")["id"])

    def search(query):
        res = client.get(
            "/api/watchlist/search", params={"userId": ada["id"], "query": query}
        )
        assert res.status_code == 200
        return [e["movie"]["title"] for e in res.json()]

    assert search("dark") == ["The Dark Knight"]
    assert search("2021") == ["Dune"]
    assert search("20") == ["Dune", "The Dark Knight"]
    assert search("matrix") == []
    assert sorted(search("")) == ["Dune", "The Dark Knight"]


def test_search_requires_user_id(client):
    assert client.get("/api/watchlist/search", params={"query": "x"}).status_code == 401


def test_deleting_user_cascades_to_watchlist(client, db, signup, add_movie):
    ada = signup(email="ada@example.com")
    grace = signup(email="grace@example.com")
    movies = [add_movie(title=f"M{i}") for i in range(3)]
    for m in movies:
        add(client, ada["id"], m["id"])
    add(client, grace["id"], movies[0]["id"])

    res = client.delete(f"/api/admin/users/{ada['id']}")
    assert res.status_code == 200
    assert res.json() == {"message": "User deleted successfully"}

    entries = db.query(models.WatchlistEntry).all()
    assert [e.user_id for e in entries] == [grace["id"]]
    assert client.get("/api/watchlist", params={"userId": ada["id"]}).json() == []
