import calendar
import logging
from collections import Counter
from datetime import datetime, time, timedelta, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy import extract, func
from sqlalchemy.orm import Session

from .. import auth, models, schemas
from ..database import get_db
from ..errors import NotFound, ValidationError
from .movie_routes import create_movie, delete_movie, parse_limit, update_movie

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(auth.require_admin)],
)

DEFAULT_MOST_WATCHLISTED = 4
TOP_GENRES = 5
ACTIVITY_DAYS = 7


def count_rows(db: Session, column, *criteria) -> int:
    return db.query(func.count(column)).filter(*criteria).scalar() or 0


def tally_genres(genre_fields, top: int = TOP_GENRES):
    """Split comma-separated genre strings and count each trimmed token.

    Ties keep the order in which genres were first seen.
    """
    counts = Counter()
    for field in genre_fields:
        if not field:
            continue
        for token in field.split(","):
            token = token.strip()
            if token:
                counts[token] += 1
    return [{"genre": genre, "count": n} for genre, n in counts.most_common(top)]


def daily_buckets(timestamps, today, days: int = ACTIVITY_DAYS):
    """Count timestamps per calendar day for the ``days`` days ending ``today``."""
    per_day = Counter(ts.date() for ts in timestamps)
    out = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        out.append({"date": day.isoformat(), "count": per_day.get(day, 0)})
    return out


def get_user_or_404(db: Session, user_id: str) -> models.User:
    user = db.get(models.User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


@router.get("/stats", response_model=schemas.StatsOut)
def admin_stats(db: Session = Depends(get_db)):
    return {
        "total_users": count_rows(db, models.User.id),
        "total_movies": count_rows(db, models.Movie.id),
        "total_watchlists": count_rows(db, models.WatchlistEntry.id),
        "admin_users": count_rows(db, models.User.id, models.User.role == "admin"),
    }


@router.get("/users", response_model=List[schemas.AdminUserOut])
def list_users(db: Session = Depends(get_db)):
    counts = dict(
        db.query(models.WatchlistEntry.user_id, func.count(models.WatchlistEntry.id))
        .group_by(models.WatchlistEntry.user_id)
        .all()
    )
    users = db.query(models.User).order_by(models.User.created_at.desc()).all()
    return [
        {
            "id": u.id,
            "full_name": u.full_name,
            "email": u.email,
            "role": u.role,
            "created_at": u.created_at,
            "watchlist_count": counts.get(u.id, 0),
        }
        for u in users
    ]


@router.get("/most-watchlisted", response_model=List[schemas.MostWatchlistedOut])
def most_watchlisted(
    limit: Optional[str] = None,
    db: Session = Depends(get_db),
):
    n = parse_limit(limit) or DEFAULT_MOST_WATCHLISTED
    counts = (
        db.query(
            models.WatchlistEntry.movie_id.label("movie_id"),
            func.count(models.WatchlistEntry.id).label("count"),
        )
        .group_by(models.WatchlistEntry.movie_id)
        .subquery()
    )
    rows = (
        db.query(models.Movie, counts.c.count)
        .join(counts, counts.c.movie_id == models.Movie.id)
        .order_by(counts.c.count.desc(), models.Movie.title.asc())
        .limit(n)
        .all()
    )
    return [
        {
            "id": movie.id,
            "title": movie.title,
            "poster": movie.poster,
            "release_year": movie.release_year,
            "rating": movie.rating,
            "count": count,
        }
        for movie, count in rows
    ]


@router.get("/genre-stats", response_model=List[schemas.GenreCountOut])
def genre_stats(db: Session = Depends(get_db)):
    genres = [g for (g,) in db.query(models.Movie.genre).order_by(models.Movie.created_at).all()]
    return tally_genres(genres)


@router.get("/user-growth", response_model=List[schemas.GrowthPointOut])
def user_growth(db: Session = Depends(get_db)):
    year = extract("year", models.User.created_at)
    month = extract("month", models.User.created_at)
    rows = (
        db.query(year.label("year"), month.label("month"), func.count(models.User.id))
        .group_by(year, month)
        .order_by(year, month)
        .all()
    )
    return [
        {"label": f"{calendar.month_abbr[int(m)]} {int(y)}", "count": count}
        for y, m, count in rows
    ]


@router.get("/user-activity", response_model=schemas.ActivityOut)
def user_activity(db: Session = Depends(get_db)):
    # updatedAt stands in for activity; there is no login event log
    now = datetime.now(timezone.utc)
    updated = models.User.updated_at

    window_start = datetime.combine(
        (now - timedelta(days=ACTIVITY_DAYS - 1)).date(), time.min, tzinfo=timezone.utc
    )
    recent = [ts for (ts,) in db.query(updated).filter(updated >= window_start).all()]

    return {
        "last_24_hours": count_rows(db, models.User.id, updated >= now - timedelta(hours=24)),
        "last_7_days": count_rows(db, models.User.id, updated >= now - timedelta(days=7)),
        "last_30_days": count_rows(db, models.User.id, updated >= now - timedelta(days=30)),
        "daily": daily_buckets(recent, now.date()),
    }


@router.patch("/users/{user_id}/role", response_model=schemas.UserOut)
def update_user_role(
    user_id: str,
    role_in: schemas.RoleUpdateIn,
    db: Session = Depends(get_db),
):
    if role_in.role not in models.ROLES:
        raise ValidationError("Invalid role")

    user = get_user_or_404(db, user_id)
    user.role = role_in.role
    db.commit()
    db.refresh(user)
    logger.info("User %s role set to %s", user.id, user.role)
    return user


@router.delete("/users/{user_id}", response_model=schemas.MessageOut)
def delete_user(user_id: str, db: Session = Depends(get_db)):
    user = get_user_or_404(db, user_id)
    # cascades to the user's watchlist entries in the same commit
    db.delete(user)
    db.commit()
    logger.info("User deleted: %s", user_id)
    return {"message": "User deleted successfully"}


@router.post(
    "/movies",
    response_model=schemas.MovieOut,
    status_code=status.HTTP_201_CREATED,
)
def add_movie(movie_in: schemas.MovieIn, db: Session = Depends(get_db)):
    return create_movie(db, movie_in)


@router.put("/movies/{movie_id}", response_model=schemas.MovieOut)
def edit_movie(
    movie_id: str,
    movie_in: schemas.MovieIn,
    db: Session = Depends(get_db),
):
    return update_movie(db, movie_id, movie_in)


@router.delete("/movies/{movie_id}", response_model=schemas.MessageOut)
def remove_movie(movie_id: str, db: Session = Depends(get_db)):
    delete_movie(db, movie_id)
    return {"message": "Movie deleted successfully"}
