import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..errors import NotFound, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/movies", tags=["movies"])

REQUIRED_MOVIE_FIELDS = ("title", "director", "release_year", "genre", "description")


def parse_limit(raw: Optional[str]) -> Optional[int]:
    """Positive integer limit, or None for anything else."""
    if raw is None:
        return None
    try:
        limit = int(raw)
    except ValueError:
        return None
    return limit if limit > 0 else None


def get_movie_or_404(db: Session, movie_id: str) -> models.Movie:
    movie = db.get(models.Movie, movie_id)
    if not movie:
        raise NotFound("Movie not found")
    return movie


def create_movie(db: Session, movie_in: schemas.MovieIn) -> models.Movie:
    missing = [f for f in REQUIRED_MOVIE_FIELDS if not getattr(movie_in, f)]
    if missing:
        raise ValidationError("Missing required fields")

    movie = models.Movie(**movie_in.model_dump(), source="local")
    db.add(movie)
    db.commit()
    db.refresh(movie)
    logger.info("Movie created: %s (%s)", movie.id, movie.title)
    return movie


def update_movie(db: Session, movie_id: str, movie_in: schemas.MovieIn) -> models.Movie:
    movie = get_movie_or_404(db, movie_id)

    for field, value in movie_in.model_dump(exclude_unset=True).items():
        if value is None and field in REQUIRED_MOVIE_FIELDS:
            continue
        setattr(movie, field, value)

    db.commit()
    db.refresh(movie)
    logger.info("Movie updated: %s", movie.id)
    return movie


def delete_movie(db: Session, movie_id: str) -> None:
    movie = get_movie_or_404(db, movie_id)
    # watchlist entries go with the movie in the same commit
    db.delete(movie)
    db.commit()
    logger.info("Movie deleted: %s", movie_id)


@router.get("", response_model=List[schemas.MovieOut])
def list_movies(
    limit: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(models.Movie).order_by(models.Movie.created_at.desc())
    n = parse_limit(limit)
    if n is not None:
        query = query.limit(n)
    return query.all()


@router.get("/search", response_model=List[schemas.MovieOut])
def search_movies(
    q: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    if not q or not q.strip():
        return []

    needle = q.strip().lower()
    columns = (
        models.Movie.title,
        models.Movie.director,
        models.Movie.genre,
        models.Movie.description,
    )
    return (
        db.query(models.Movie)
        .filter(or_(*[func.lower(c).contains(needle, autoescape=True) for c in columns]))
        .order_by(models.Movie.created_at.desc())
        .all()
    )


@router.get("/{movie_id}", response_model=schemas.MovieOut)
def get_movie(movie_id: str, db: Session = Depends(get_db)):
    return get_movie_or_404(db, movie_id)
