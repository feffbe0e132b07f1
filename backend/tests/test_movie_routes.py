from datetime import datetime, timedelta, timezone

from nextscene import models


def seed_movies(db, count):
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    movies = []
    for i in range(count):
        movie = models.Movie(
            title=f"Movie {i}",
            director="Someone",
            release_year=str(2000 + i),
            genre="Drama",
            description="...",
            created_at=base + timedelta(days=i),
        )
        db.add(movie)
        movies.append(movie)
    db.commit()
    return movies


def test_list_movies_newest_first_with_limit(client, db):
    seed_movies(db, 5)

    res = client.get("/api/movies", params={"limit": 3})
    assert res.status_code == 200
    titles = [m["title"] for m in res.json()]
    assert titles == ["Movie 4", "Movie 3", "Movie 2"]

    all_titles = [m["title"] for m in client.get("/api/movies").json()]
    assert all_titles == ["Movie 4", "Movie 3", "Movie 2", "Movie 1", "Movie 0"]


def test_list_movies_ignores_bad_limit(client, db):
    seed_movies(db, 4)
    assert len(client.get("/api/movies", params={"limit": "abc"}).json()) == 4
    assert len(client.get("/api/movies", params={"limit": 0}).json()) == 4
    assert len(client.get("/api/movies", params={"limit": -2}).json()) == 4


def test_get_movie(client, add_movie):
    movie = add_movie()
    res = client.get(f"/api/movies/{movie['id']}")
    assert res.status_code == 200
    assert res.json()["title"] == "Inception"
    assert res.json()["releaseYear"] == "2010"


def test_get_movie_not_found(client):
    res = client.get("/api/movies/doesnotexist")
    assert res.status_code == 404
    assert res.json() == {"message": "Movie not found"}


def test_search_movies(client, add_movie):
    add_movie(title="Inception")
    add_movie(title="Up", director="Pete Docter", genre="Animation", description="Balloons.")

    titles = [m["title"] for m in client.get("/api/movies/search", params={"q": "nolan"}).json()]
    assert titles == ["Inception"]

    titles = [m["title"] for m in client.get("/api/movies/search", params={"q": "ANIMATION"}).json()]
    assert titles == ["Up"]

    assert client.get("/api/movies/search", params={"q": "  "}).json() == []
    assert client.get("/api/movies/search").json() == []


def test_admin_create_movie_trims_and_tags_source(client):
    res = client.post(
        "/api/admin/movies",
        json={
            "title": "  Dune  ",
            "director": "Denis Villeneuve",
            "releaseYear": 2021,
            "genre": "Sci-Fi",
            "description": "Spice.",
            "runtime": "155",
            "rating": "8.0",
            "trailerUrl": "",
        },
    )
    assert res.status_code == 201
    body = res.json()
    assert body["title"] == "Dune"
    assert body["releaseYear"] == "2021"
    assert body["runtime"] == 155
    assert body["rating"] == 8.0
    assert body["trailerUrl"] is None
    assert body["source"] == "local"


def test_admin_create_movie_missing_fields(client):
    res = client.post("/api/admin/movies", json={"title": "Only a title"})
    assert res.status_code == 400
    assert res.json() == {"message": "Missing required fields"}


def test_admin_update_movie_is_partial(client, add_movie):
    movie = add_movie()
    res = client.put(
        f"/api/admin/movies/{movie['id']}",
        json={"rating": 9.1, "mainCast": " Leonardo DiCaprio, Elliot Page "},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["rating"] == 9.1
    assert body["mainCast"] == "Leonardo DiCaprio, Elliot Page"
    assert body["title"] == "Inception"
    assert body["director"] == "Christopher Nolan"


def test_admin_update_movie_not_found(client):
    res = client.put("/api/admin/movies/missing", json={"title": "x"})
    assert res.status_code == 404


def test_admin_delete_movie_cascades_to_watchlist(client, db, signup, add_movie):
    movie = add_movie()
    other = add_movie(title="Memento")
    users = [signup(email=f"user{i}@example.com") for i in range(3)]
    for user in users:
        client.post("/api/watchlist", json={"userId": user["id"], "movieId": movie["id"]})
        client.post("/api/watchlist", json={"userId": user["id"], "movieId": other["id"]})

    res = client.delete(f"/api/admin/movies/{movie['id']}")
    assert res.status_code == 200
    assert res.json() == {"message": "Movie deleted successfully"}

    remaining = db.query(models.WatchlistEntry).all()
    assert len(remaining) == 3
    assert all(e.movie_id == other["id"] for e in remaining)
    assert client.get(f"/api/movies/{movie['id']}").status_code == 404


def test_admin_delete_movie_not_found(client):
    assert client.delete("/api/admin/movies/missing").status_code == 404
