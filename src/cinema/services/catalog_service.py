"""
Catalog Service - movies, cinema halls, showtimes and seat maps

Creating a showtime generates its seats from the hall geometry; that seat
set is fixed for the life of the showtime.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.core import clock
from cinema.core.database import atomic
from cinema.models import ROW_LABELS, VIEW_TYPES, CinemaHall, Movie, Seat, SeatStatus, Showtime, Ticket
from cinema.schemas.movie import MovieResponse
from cinema.schemas.seat import SeatMapResponse, SeatResponse
from cinema.services.cache_service import CacheService
from cinema.services.errors import CatalogError, NotFoundError
from cinema.services.expiry_worker import ExpirySweeper
from cinema.services.seat_inventory import SeatInventoryStore

logger = logging.getLogger(__name__)

# Fields whose change would reprice or reshape held/booked inventory
INVENTORY_FIELDS = ("price", "cinema_hall_id")


def generate_seats(showtime_id: int, hall: CinemaHall) -> List[Seat]:
    """Seats A-1..P-n for a hall; the first seat of row A is wheelchair accessible"""
    seats = []
    for row in ROW_LABELS[: hall.total_rows]:
        for number in range(1, hall.seats_per_row + 1):
            seats.append(
                Seat(
                    showtime_id=showtime_id,
                    row=row,
                    number=number,
                    is_wheelchair_accessible=(row == ROW_LABELS[0] and number == 1),
                    is_vip=False,
                    status=SeatStatus.AVAILABLE,
                    version=0,
                )
            )
    return seats


class CatalogService:
    """Service for catalog reads and back-office edits"""

    # ==================== Movies ====================

    @staticmethod
    async def list_movies(
        db: AsyncSession,
        page: int = 1,
        page_size: int = 10,
        search: Optional[str] = None,
        genre: Optional[str] = None,
        include_inactive: bool = False,
    ) -> Tuple[List[Movie], int]:
        """List movies with pagination and filters"""
        query = select(Movie)
        if not include_inactive:
            query = query.where(Movie.is_active == True)  # noqa: E712
        if search:
            query = query.where(Movie.title.ilike(f"%{search}%"))
        if genre:
            query = query.where(Movie.genre.ilike(f"%{genre}%"))

        count_query = select(func.count()).select_from(query.subquery())
        total = (await db.execute(count_query)).scalar()

        query = query.order_by(Movie.release_date.desc(), Movie.id)
        query = query.offset((page - 1) * page_size).limit(page_size)
        result = await db.execute(query)
        return list(result.scalars().all()), total

    @staticmethod
    async def get_movie(db: AsyncSession, movie_id: int, include_inactive: bool = False) -> Movie:
        movie = await db.get(Movie, movie_id)
        if not movie or (not movie.is_active and not include_inactive):
            raise NotFoundError(f"Movie {movie_id} not found")
        return movie

    @staticmethod
    async def get_movie_data(db: AsyncSession, movie_id: int) -> Dict[str, Any]:
        """Public movie payload with caching"""
        cached = await CacheService.get_movie(movie_id)
        if cached:
            return cached

        movie = await CatalogService.get_movie(db, movie_id)
        data = MovieResponse.model_validate(movie).model_dump(mode="json")
        await CacheService.set_movie(movie_id, data)
        return data

    @staticmethod
    async def create_movie(db: AsyncSession, data: Dict[str, Any]) -> Movie:
        async with atomic(db):
            movie = Movie(**data)
            db.add(movie)
        logger.info(f"Movie {movie.id} created: {movie.title}")
        return movie

    @staticmethod
    async def update_movie(db: AsyncSession, movie_id: int, changes: Dict[str, Any]) -> Movie:
        movie = await CatalogService.get_movie(db, movie_id, include_inactive=True)
        async with atomic(db):
            for field, value in changes.items():
                setattr(movie, field, value)
            movie.updated_at = clock.utcnow()
        await CacheService.invalidate_movie(movie_id)
        return movie

    @staticmethod
    async def deactivate_movie(db: AsyncSession, movie_id: int) -> Movie:
        return await CatalogService.update_movie(db, movie_id, {"is_active": False})

    # ==================== Halls ====================

    @staticmethod
    async def list_halls(db: AsyncSession, include_inactive: bool = False) -> List[CinemaHall]:
        query = select(CinemaHall).order_by(CinemaHall.name)
        if not include_inactive:
            query = query.where(CinemaHall.is_active == True)  # noqa: E712
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_hall(db: AsyncSession, hall_id: int) -> CinemaHall:
        hall = await db.get(CinemaHall, hall_id)
        if not hall:
            raise NotFoundError(f"Cinema hall {hall_id} not found")
        return hall

    @staticmethod
    async def create_hall(db: AsyncSession, data: Dict[str, Any]) -> CinemaHall:
        if data["total_rows"] > len(ROW_LABELS):
            raise CatalogError(f"A hall has at most {len(ROW_LABELS)} rows")
        async with atomic(db):
            hall = CinemaHall(**data)
            db.add(hall)
        return hall

    @staticmethod
    async def update_hall(db: AsyncSession, hall_id: int, changes: Dict[str, Any]) -> CinemaHall:
        """Name, location and active flag only; geometry is fixed once seats exist"""
        hall = await CatalogService.get_hall(db, hall_id)
        async with atomic(db):
            for field, value in changes.items():
                setattr(hall, field, value)
        return hall

    # ==================== Showtimes ====================

    @staticmethod
    async def list_showtimes(
        db: AsyncSession,
        movie_id: int,
        upcoming_only: bool = True,
    ) -> List[Showtime]:
        """Active showtimes of a movie ordered by start time"""
        query = select(Showtime).where(
            Showtime.movie_id == movie_id,
            Showtime.is_active == True,  # noqa: E712
        )
        if upcoming_only:
            query = query.where(Showtime.starts_at > clock.utcnow())
        query = query.order_by(Showtime.starts_at.asc())
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_showtime(db: AsyncSession, showtime_id: int, include_inactive: bool = False) -> Showtime:
        showtime = await db.get(Showtime, showtime_id)
        if not showtime or (not showtime.is_active and not include_inactive):
            raise NotFoundError(f"Showtime {showtime_id} not found")
        return showtime

    @staticmethod
    async def create_showtime(db: AsyncSession, data: Dict[str, Any]) -> Showtime:
        """Create a showtime and generate its seats in one transaction"""
        if data.get("view_type", "2D") not in VIEW_TYPES:
            raise CatalogError(f"Unknown view type {data['view_type']}")

        async with atomic(db):
            movie = await db.get(Movie, data["movie_id"])
            if not movie or not movie.is_active:
                raise NotFoundError(f"Movie {data['movie_id']} not found")
            hall = await db.get(CinemaHall, data["cinema_hall_id"])
            if not hall or not hall.is_active:
                raise NotFoundError(f"Cinema hall {data['cinema_hall_id']} not found")

            showtime = Showtime(**data)
            db.add(showtime)
            await db.flush()
            db.add_all(generate_seats(showtime.id, hall))

        logger.info(
            f"Showtime {showtime.id} created with {hall.capacity} seats",
            extra={"showtime_id": showtime.id},
        )
        return showtime

    @staticmethod
    async def update_showtime(db: AsyncSession, showtime_id: int, changes: Dict[str, Any]) -> Showtime:
        """
        Edit a showtime.

        Price and hall are frozen once any seat is held or booked; a hall
        change regenerates the seat set.
        """
        showtime = await CatalogService.get_showtime(db, showtime_id, include_inactive=True)
        changes = {field: value for field, value in changes.items() if getattr(showtime, field) != value}
        inventory_changes = [field for field in INVENTORY_FIELDS if field in changes]

        async with atomic(db):
            if inventory_changes:
                taken_query = select(func.count(Seat.id)).where(
                    Seat.showtime_id == showtime_id,
                    Seat.status != SeatStatus.AVAILABLE,
                )
                if (await db.execute(taken_query)).scalar():
                    raise CatalogError(
                        f"Cannot change {', '.join(inventory_changes)} after seats were held or booked"
                    )

            new_hall = None
            if "cinema_hall_id" in changes:
                tickets_query = select(func.count(Ticket.id)).where(Ticket.showtime_id == showtime_id)
                if (await db.execute(tickets_query)).scalar():
                    raise CatalogError("Cannot change the hall of a showtime with issued tickets")
                new_hall = await db.get(CinemaHall, changes["cinema_hall_id"])
                if not new_hall or not new_hall.is_active:
                    raise NotFoundError(f"Cinema hall {changes['cinema_hall_id']} not found")

            for field, value in changes.items():
                setattr(showtime, field, value)

            if new_hall is not None:
                await db.execute(delete(Seat).where(Seat.showtime_id == showtime_id))
                db.add_all(generate_seats(showtime_id, new_hall))

        await CacheService.invalidate_showtime_seats(showtime_id)
        return showtime

    @staticmethod
    async def deactivate_showtime(db: AsyncSession, showtime_id: int) -> Showtime:
        return await CatalogService.update_showtime(db, showtime_id, {"is_active": False})

    # ==================== Seat map ====================

    @staticmethod
    async def get_seat_map(db: AsyncSession, showtime_id: int) -> SeatMapResponse:
        """
        Seat map with caching

        Cache key: showtime:{showtime_id}:seats
        TTL: REDIS_SEATS_TTL (volatile data, invalidated on every seat change)
        """
        await CatalogService.get_showtime(db, showtime_id)

        # Reclaim lapsed holds first so the map never shows stale HELD seats
        await ExpirySweeper.sweep_showtime(db, showtime_id)

        cached = await CacheService.get_showtime_seats(showtime_id)
        if cached:
            return SeatMapResponse(**{**cached, "cached": True})

        seats = await SeatInventoryStore.get_seats(db, showtime_id)
        seat_responses = [SeatResponse.model_validate(seat) for seat in seats]

        rows: Dict[str, List[SeatResponse]] = {}
        for seat in seat_responses:
            rows.setdefault(seat.row, []).append(seat)

        counts = {status: 0 for status in SeatStatus}
        for seat in seat_responses:
            counts[seat.status] += 1

        seat_map = SeatMapResponse(
            showtime_id=showtime_id,
            seats=seat_responses,
            total_seats=len(seat_responses),
            available_seats=counts[SeatStatus.AVAILABLE],
            held_seats=counts[SeatStatus.HELD],
            booked_seats=counts[SeatStatus.BOOKED],
            rows=rows,
        )
        await CacheService.set_showtime_seats(showtime_id, seat_map.model_dump(mode="json"))
        return seat_map
