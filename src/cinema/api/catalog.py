"""
Catalog API endpoints - read-only browsing of movies, showtimes and seats
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.core.database import get_db
from cinema.middleware.rate_limiter import limiter
from cinema.schemas import MovieListResponse, MovieResponse, SeatMapResponse, ShowtimeResponse
from cinema.services import CatalogService

router = APIRouter()


@router.get("/movies", response_model=MovieListResponse)
@limiter.limit("60/minute")
async def list_movies(
    request: Request,
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(10, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, max_length=200, description="Title contains"),
    genre: Optional[str] = Query(None, max_length=100, description="Filter by genre"),
    db: AsyncSession = Depends(get_db),
):
    """
    List active movies with pagination and filtering

    - **page**: Page number (default: 1)
    - **page_size**: Items per page (default: 10, max: 100)
    - **search**: Case-insensitive title search (optional)
    - **genre**: Filter by genre (optional)
    """
    movies, total = await CatalogService.list_movies(
        db=db,
        page=page,
        page_size=page_size,
        search=search,
        genre=genre,
    )
    return MovieListResponse(
        movies=[MovieResponse.model_validate(movie) for movie in movies],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/movies/{movie_id}", response_model=MovieResponse)
@limiter.limit("60/minute")
async def get_movie(request: Request, movie_id: int, db: AsyncSession = Depends(get_db)):
    return await CatalogService.get_movie_data(db, movie_id)


@router.get("/movies/{movie_id}/showtimes", response_model=list[ShowtimeResponse])
@limiter.limit("60/minute")
async def list_movie_showtimes(
    request: Request,
    movie_id: int,
    include_past: bool = Query(False, description="Include showtimes that already started"),
    db: AsyncSession = Depends(get_db),
):
    await CatalogService.get_movie(db, movie_id)
    showtimes = await CatalogService.list_showtimes(db, movie_id, upcoming_only=not include_past)
    return [ShowtimeResponse.model_validate(showtime) for showtime in showtimes]


@router.get("/showtimes/{showtime_id}", response_model=ShowtimeResponse)
@limiter.limit("60/minute")
async def get_showtime(request: Request, showtime_id: int, db: AsyncSession = Depends(get_db)):
    return await CatalogService.get_showtime(db, showtime_id)


@router.get("/showtimes/{showtime_id}/seats", response_model=SeatMapResponse)
@limiter.limit("120/minute")
async def get_seat_map(request: Request, showtime_id: int, db: AsyncSession = Depends(get_db)):
    """
    Seat map of a showtime, grouped by row

    Lapsed holds are reclaimed before the map is built. Cached for a few
    seconds and invalidated on every seat change.
    """
    return await CatalogService.get_seat_map(db, showtime_id)
