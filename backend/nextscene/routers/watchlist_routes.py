import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from .. import models, schemas
from ..database import get_db
from ..errors import DuplicateEntry, NotFound, Unauthorized, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/watchlist", tags=["watchlist"])


def require_user_id(user_id: Optional[str]) -> str:
    if not user_id:
        raise Unauthorized("User ID required")
    return user_id


def require_pair(pair: schemas.WatchlistPairIn) -> None:
    if not pair.user_id or not pair.movie_id:
        raise ValidationError("User ID and Movie ID required")


def fetch_watchlist(db: Session, user_id: str) -> List[models.WatchlistEntry]:
    """All of a user's entries with the movie loaded, newest first."""
    return (
        db.query(models.WatchlistEntry)
        .options(joinedload(models.WatchlistEntry.movie))
        .filter(models.WatchlistEntry.user_id == user_id)
        .order_by(models.WatchlistEntry.added_at.desc())
        .all()
    )


def find_entry(db: Session, user_id: str, movie_id: str) -> models.WatchlistEntry:
    entry = (
        db.query(models.WatchlistEntry)
        .options(joinedload(models.WatchlistEntry.movie))
        .filter(
            models.WatchlistEntry.user_id == user_id,
            models.WatchlistEntry.movie_id == movie_id,
        )
        .first()
    )
    if not entry:
        raise NotFound("Watchlist item not found")
    return entry


def matches_query(entry: models.WatchlistEntry, query: str) -> bool:
    movie = entry.movie
    if movie is None:
        return False
    title_match = query.lower() in (movie.title or "").lower()
    year_match = query in (movie.release_year or "")
    return title_match or year_match


@router.get("", response_model=List[schemas.WatchlistEntryOut])
def get_watchlist(
    user_id: Optional[str] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
):
    return fetch_watchlist(db, require_user_id(user_id))


@router.post(
    "",
    response_model=schemas.WatchlistEntryOut,
    status_code=status.HTTP_201_CREATED,
)
def add_to_watchlist(
    pair: schemas.WatchlistPairIn,
    db: Session = Depends(get_db),
):
    require_pair(pair)

    user = db.get(models.User, pair.user_id)
    if not user:
        raise NotFound("User not found")
    movie = db.get(models.Movie, pair.movie_id)
    if not movie:
        raise NotFound("Movie not found")

    entry = models.WatchlistEntry(user=user, movie=movie)
    db.add(entry)
    try:
        db.commit()
    except IntegrityError:
        # the (user_id, movie_id) unique constraint is the duplicate check
        db.rollback()
        raise DuplicateEntry("Movie already in watchlist")

    logger.info("User %s added movie %s to watchlist", user.id, movie.id)
    return entry


@router.delete("/remove", response_model=schemas.MessageOut)
def remove_from_watchlist(
    pair: schemas.WatchlistPairIn,
    db: Session = Depends(get_db),
):
    require_pair(pair)
    entry = find_entry(db, pair.user_id, pair.movie_id)
    db.delete(entry)
    db.commit()
    return {"message": "Removed from watchlist"}


@router.patch("/watched", response_model=schemas.WatchlistEntryOut)
def mark_watched(
    watched_in: schemas.WatchedIn,
    db: Session = Depends(get_db),
):
    require_pair(watched_in)
    entry = find_entry(db, watched_in.user_id, watched_in.movie_id)

    entry.watched = watched_in.watched
    entry.watched_at = models.utcnow() if watched_in.watched else None
    db.commit()
    return entry


@router.get("/search", response_model=List[schemas.WatchlistEntryOut])
def search_watchlist(
    user_id: Optional[str] = Query(None, alias="userId"),
    query: Optional[str] = None,
    db: Session = Depends(get_db),
):
    entries = fetch_watchlist(db, require_user_id(user_id))
    if not query:
        return entries
    return [e for e in entries if matches_query(e, query)]
