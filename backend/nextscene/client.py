import logging
from typing import Any, List, Optional

import requests

from .store import ClientState

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:4000"


class APIError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class NextSceneClient:
    """
    Thin wrapper over the JSON API that keeps ``ClientState`` in sync.

    ``session`` is anything with ``request(method, url, params=, json=)``
    returning a response with ``status_code`` and ``json()``: a
    ``requests.Session`` by default, or FastAPI's ``TestClient`` in tests.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        session=None,
        state: Optional[ClientState] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.state = state or ClientState()

    def _request(self, method: str, path: str, params=None, json=None) -> Any:
        response = self.session.request(
            method, f"{self.base_url}{path}", params=params, json=json
        )
        if response.status_code >= 400:
            try:
                message = response.json().get("message", "Request failed")
            except ValueError:
                message = "Request failed"
            logger.warning("%s %s -> %s %s", method, path, response.status_code, message)
            raise APIError(response.status_code, message)
        return response.json()

    def _require_user_id(self) -> str:
        if not self.state.user_id:
            raise APIError(401, "Not signed in")
        return self.state.user_id

    # Auth
    def sign_up(self, full_name: str, email: str, password: str) -> dict:
        user = self._request(
            "POST",
            "/api/auth/signup",
            json={"fullName": full_name, "email": email, "password": password},
        )
        self.state.set_user(user)
        return user

    def sign_in(self, email: str, password: str) -> dict:
        user = self._request(
            "POST", "/api/auth/signin", json={"email": email, "password": password}
        )
        self.state.set_user(user)
        self.fetch_watchlist()
        return user

    def sign_out(self) -> None:
        self._request("POST", "/api/auth/signout")
        self.state.sign_out()

    def update_profile(self, **fields) -> dict:
        body = {"userId": self._require_user_id(), **fields}
        user = self._request("PUT", "/api/auth/profile", json=body)
        self.state.set_user(user)
        return user

    def change_password(self, current_password: str, new_password: str) -> dict:
        return self._request(
            "PUT",
            "/api/auth/password",
            json={
                "userId": self._require_user_id(),
                "currentPassword": current_password,
                "newPassword": new_password,
            },
        )

    # Movies
    def list_movies(self, limit: Optional[int] = None) -> List[dict]:
        params = {"limit": limit} if limit else None
        movies = self._request("GET", "/api/movies", params=params)
        if limit is None:
            self.state.set_movies(movies)
        return movies

    def get_movie(self, movie_id: str) -> dict:
        return self._request("GET", f"/api/movies/{movie_id}")

    def search_movies(self, query: str) -> List[dict]:
        return self._request("GET", "/api/movies/search", params={"q": query})

    # Watchlist
    def fetch_watchlist(self) -> List[dict]:
        entries = self._request(
            "GET", "/api/watchlist", params={"userId": self._require_user_id()}
        )
        self.state.set_watchlist(entries)
        return entries

    def add_to_watchlist(self, movie_id: str) -> dict:
        entry = self._request(
            "POST",
            "/api/watchlist",
            json={"userId": self._require_user_id(), "movieId": movie_id},
        )
        self.fetch_watchlist()
        return entry

    def remove_from_watchlist(self, movie_id: str) -> dict:
        result = self._request(
            "DELETE",
            "/api/watchlist/remove",
            json={"userId": self._require_user_id(), "movieId": movie_id},
        )
        self.fetch_watchlist()
        return result

    def mark_watched(self, movie_id: str, watched: bool = True) -> dict:
        entry = self._request(
            "PATCH",
            "/api/watchlist/watched",
            json={
                "userId": self._require_user_id(),
                "movieId": movie_id,
                "watched": watched,
            },
        )
        self.fetch_watchlist()
        return entry

    def toggle_watched(self, movie_id: str) -> dict:
        return self.mark_watched(movie_id, not self.state.is_watched(movie_id))

    def search_watchlist(self, query: str) -> List[dict]:
        return self._request(
            "GET",
            "/api/watchlist/search",
            params={"userId": self._require_user_id(), "query": query},
        )

    # Admin
    def admin_stats(self) -> dict:
        return self._request("GET", "/api/admin/stats")

    def admin_users(self) -> List[dict]:
        return self._request("GET", "/api/admin/users")

    def most_watchlisted(self, limit: Optional[int] = None) -> List[dict]:
        params = {"limit": limit} if limit else None
        return self._request("GET", "/api/admin/most-watchlisted", params=params)

    def genre_stats(self) -> List[dict]:
        return self._request("GET", "/api/admin/genre-stats")

    def user_growth(self) -> List[dict]:
        return self._request("GET", "/api/admin/user-growth")

    def user_activity(self) -> dict:
        return self._request("GET", "/api/admin/user-activity")

    def set_role(self, user_id: str, role: str) -> dict:
        return self._request("PATCH", f"/api/admin/users/{user_id}/role", json={"role": role})

    def delete_user(self, user_id: str) -> dict:
        return self._request("DELETE", f"/api/admin/users/{user_id}")

    def add_movie(self, **fields) -> dict:
        return self._request("POST", "/api/admin/movies", json=fields)

    def update_movie(self, movie_id: str, **fields) -> dict:
        return self._request("PUT", f"/api/admin/movies/{movie_id}", json=fields)

    def delete_movie(self, movie_id: str) -> dict:
        return self._request("DELETE", f"/api/admin/movies/{movie_id}")
