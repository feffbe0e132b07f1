from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, field_validator
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict


class CamelModel(BaseModel):
    """JSON uses camelCase; Python attributes stay snake_case."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    return value


# Users
class UserOut(CamelModel):
    id: str
    full_name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: str
    dob: Optional[date] = None
    profile_picture: Optional[str] = None
    role: str
    created_at: datetime


class AdminUserOut(CamelModel):
    id: str
    full_name: str
    email: str
    role: str
    created_at: datetime
    watchlist_count: int = 0


class SignUpIn(CamelModel):
    # Required fields are checked by the handler so that a missing one
    # answers 400 with a readable message.
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None

    @field_validator("full_name", "email", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)


class SignInIn(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdateIn(CamelModel):
    user_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    dob: Optional[date] = None
    profile_picture: Optional[str] = None
    email: Optional[EmailStr] = None

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value):
        return value.strip() if isinstance(value, str) else value


class PasswordChangeIn(CamelModel):
    user_id: Optional[str] = None
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class RoleUpdateIn(CamelModel):
    role: Optional[str] = None


# Movies
class MovieOut(CamelModel):
    id: str
    title: Optional[str] = None
    director: Optional[str] = None
    release_year: Optional[str] = None
    runtime: Optional[int] = None
    genre: Optional[str] = None
    rating: Optional[float] = None
    poster: Optional[str] = None
    trailer_url: Optional[str] = None
    description: Optional[str] = None
    main_cast: Optional[str] = None
    source: Optional[str] = None
    created_at: datetime


class MovieIn(CamelModel):
    title: Optional[str] = None
    director: Optional[str] = None
    release_year: Optional[str] = None
    runtime: Optional[int] = None
    genre: Optional[str] = None
    rating: Optional[float] = None
    poster: Optional[str] = None
    trailer_url: Optional[str] = None
    description: Optional[str] = None
    main_cast: Optional[str] = None

    @field_validator(
        "title",
        "director",
        "genre",
        "runtime",
        "rating",
        "poster",
        "trailer_url",
        "description",
        "main_cast",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)

    @field_validator("release_year", mode="before")
    @classmethod
    def year_as_text(cls, value):
        if value is None:
            return None
        return _blank_to_none(str(value))


# Watchlist
class WatchlistEntryOut(CamelModel):
    id: str
    user_id: str
    movie_id: str
    movie: Optional[MovieOut] = None
    added_at: datetime
    watched: bool
    watched_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class WatchlistPairIn(CamelModel):
    user_id: Optional[str] = None
    movie_id: Optional[str] = None


class WatchedIn(WatchlistPairIn):
    watched: bool = True


# Admin
class StatsOut(CamelModel):
    total_users: int
    total_movies: int
    total_watchlists: int
    admin_users: int


class MostWatchlistedOut(CamelModel):
    id: str
    title: Optional[str] = None
    poster: Optional[str] = None
    release_year: Optional[str] = None
    rating: Optional[float] = None
    count: int


class GenreCountOut(BaseModel):
    genre: str
    count: int


class GrowthPointOut(BaseModel):
    label: str
    count: int


class DailyActivityOut(BaseModel):
    date: str
    count: int


class ActivityOut(CamelModel):
    last_24_hours: int
    last_7_days: int
    last_30_days: int
    daily: List[DailyActivityOut]


class MessageOut(BaseModel):
    message: str
