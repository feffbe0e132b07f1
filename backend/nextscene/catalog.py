"""
Client-side browsing helpers.

The movie list endpoint has no server-side filtering; clients fetch the full
catalog once and narrow it down locally. Movies here are the JSON dicts the API
returns (camelCase keys).
"""

import re
from typing import Iterable, List, Optional

SORT_ORDERS = ("popularity", "rating", "rating-asc", "year", "year-asc", "title")

_YEAR = re.compile(r"\d{4}")


def movie_year(movie: dict) -> int:
    """Leading four-digit year of ``releaseYear`` ("2008–2013" -> 2008), else 0."""
    match = _YEAR.search(str(movie.get("releaseYear") or ""))
    return int(match.group()) if match else 0


def split_genres(genre: Optional[str]) -> List[str]:
    if not genre:
        return []
    return [g.strip() for g in genre.split(",") if g.strip()]


def _contains(haystack: Optional[str], needle: str) -> bool:
    return needle in (haystack or "").lower()


def filter_movies(
    movies: Iterable[dict],
    search: Optional[str] = None,
    genre: Optional[str] = None,
    year: Optional[str] = None,
    min_rating: Optional[float] = None,
) -> List[dict]:
    result = list(movies)

    if search:
        needle = search.lower()
        result = [
            m for m in result
            if _contains(m.get("title"), needle)
            or _contains(m.get("description"), needle)
            or _contains(m.get("genre"), needle)
        ]

    if genre:
        needle = genre.lower()
        result = [m for m in result if _contains(m.get("genre"), needle)]

    if year:
        result = [m for m in result if str(m.get("releaseYear") or "") == str(year)]

    if min_rating is not None:
        result = [m for m in result if (m.get("rating") or 0) >= float(min_rating)]

    return result


def sort_movies(movies: Iterable[dict], order: str = "popularity") -> List[dict]:
    """Sort a movie list; "popularity" keeps the server's order."""
    result = list(movies)
    if order == "rating":
        result.sort(key=lambda m: m.get("rating") or 0, reverse=True)
    elif order == "rating-asc":
        result.sort(key=lambda m: m.get("rating") or 0)
    elif order == "year":
        result.sort(key=movie_year, reverse=True)
    elif order == "year-asc":
        result.sort(key=movie_year)
    elif order == "title":
        result.sort(key=lambda m: (m.get("title") or "").casefold())
    elif order != "popularity":
        raise ValueError(f"Unknown sort order: {order}")
    return result


def all_genres(movies: Iterable[dict]) -> List[str]:
    genres = set()
    for m in movies:
        genres.update(split_genres(m.get("genre")))
    return sorted(genres)


def all_years(movies: Iterable[dict]) -> List[str]:
    years = {str(m["releaseYear"]) for m in movies if m.get("releaseYear")}
    return sorted(years, reverse=True)
