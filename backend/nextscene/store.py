"""
Client state and its persistence.

``ClientState`` holds what the UI needs between calls (signed-in user, theme,
cached catalog, watchlist split into to-watch and watched). Anything that must
survive a restart goes through a ``StateStore`` so tests can use
``MemoryStore`` and a desktop or CLI client can use ``JSONFileStore``.
"""

import json
import os
from typing import Any, List, Optional

THEMES = ("light", "dark")


class StateStore:
    def load(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def save(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def clear(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore(StateStore):
    def __init__(self, initial: Optional[dict] = None):
        self._data = dict(initial or {})

    def load(self, key, default=None):
        return self._data.get(key, default)

    def save(self, key, value):
        self._data[key] = value

    def clear(self, key):
        self._data.pop(key, None)


class JSONFileStore(StateStore):
    """Keeps every key in one JSON document on disk."""

    def __init__(self, path: str):
        self.path = path

    def _read(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, encoding="utf-8") as f:
            return json.load(f)

    def _write(self, data: dict) -> None:
        tmp = f"{self.path}.tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp, self.path)

    def load(self, key, default=None):
        return self._read().get(key, default)

    def save(self, key, value):
        data = self._read()
        data[key] = value
        self._write(data)

    def clear(self, key):
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


def entry_movie_id(entry: dict) -> Optional[str]:
    movie = entry.get("movie") or {}
    return movie.get("id") or entry.get("movieId")


class ClientState:
    def __init__(self, store: Optional[StateStore] = None):
        self.store = store or MemoryStore()
        self.user: Optional[dict] = self.store.load("user")
        self.theme: str = self.store.load("theme", "light")
        self.movies: List[dict] = self.store.load("movies", [])
        self.to_watch: List[dict] = []
        self.watched: List[dict] = []

    @property
    def user_id(self) -> Optional[str]:
        return self.user["id"] if self.user else None

    @property
    def is_admin(self) -> bool:
        return bool(self.user) and self.user.get("role") == "admin"

    def set_user(self, user: dict) -> None:
        self.user = user
        self.store.save("user", user)

    def sign_out(self) -> None:
        self.user = None
        self.to_watch = []
        self.watched = []
        self.store.clear("user")

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme: {theme}")
        self.theme = theme
        self.store.save("theme", theme)

    def toggle_theme(self) -> str:
        self.set_theme("dark" if self.theme == "light" else "light")
        return self.theme

    def set_movies(self, movies: List[dict]) -> None:
        self.movies = movies
        self.store.save("movies", movies)

    def set_watchlist(self, entries: List[dict]) -> None:
        self.to_watch = [e for e in entries if not e.get("watched")]
        self.watched = [e for e in entries if e.get("watched")]

    def is_in_watchlist(self, movie_id: str) -> bool:
        return any(entry_movie_id(e) == movie_id for e in self.to_watch + self.watched)

    def is_watched(self, movie_id: str) -> bool:
        return any(entry_movie_id(e) == movie_id for e in self.watched)
