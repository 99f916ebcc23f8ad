"""
Seed script to populate database with sample data

Usage:
    python -m cinema.scripts.seed_data
"""
import asyncio
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import select

from cinema.core import clock
from cinema.core.database import AsyncSessionLocal, init_db
from cinema.models import CinemaHall, Movie, Showtime, UserRole
from cinema.services import CatalogService, UserService

USERS = [
    {"email": "admin@example.com", "full_name": "Box Office Admin", "password": "admin12345", "role": UserRole.ADMIN},
    {"email": "john@example.com", "full_name": "John Doe", "password": "password123", "role": UserRole.USER},
    {"email": "jane@example.com", "full_name": "Jane Smith", "password": "password123", "role": UserRole.USER},
]

HALLS = [
    {"name": "Hall 1", "location": "Ground floor", "total_rows": 10, "seats_per_row": 14},
    {"name": "Hall 2", "location": "First floor", "total_rows": 8, "seats_per_row": 12},
    {"name": "IMAX", "location": "First floor", "total_rows": 16, "seats_per_row": 20},
]

MOVIES = [
    {
        "title": "The Long Night",
        "description": "A lighthouse keeper and a storm that will not end.",
        "genre": "Thriller",
        "duration_minutes": 118,
        "release_date": date(2026, 9, 4),
        "director": "Mara Lind",
        "actors": "Ola Berg, Ida Sand",
        "distributor": "Northlight Pictures",
    },
    {
        "title": "Paper Planets",
        "description": "Two kids build a space program out of cardboard.",
        "genre": "Family",
        "duration_minutes": 96,
        "release_date": date(2026, 8, 21),
        "director": "Tomas Rey",
        "actors": "Lea Kim, Sam Ortiz",
        "distributor": "Bright Fox",
    },
    {
        "title": "Deep Field",
        "description": "An astronomer finds a signal in the noise.",
        "genre": "Science Fiction",
        "duration_minutes": 141,
        "release_date": date(2026, 10, 2),
        "director": "Ana Ruiz",
        "actors": "Noor Haddad, Erik Vos",
        "distributor": "Northlight Pictures",
    },
]

# (movie index, hall index, days from now, hour, view type, price)
SHOWTIMES = [
    (0, 0, 1, 18, "2D", Decimal("11.50")),
    (0, 0, 1, 21, "2D", Decimal("11.50")),
    (1, 1, 2, 14, "2D", Decimal("9.00")),
    (1, 1, 3, 14, "3D", Decimal("12.00")),
    (2, 2, 1, 20, "IMAX", Decimal("17.50")),
    (2, 2, 4, 20, "IMAX", Decimal("17.50")),
]


async def create_users(db):
    for user_data in USERS:
        if await UserService.get_by_email(db, user_data["email"]):
            print(f"User {user_data['email']} already exists, skipping...")
            continue
        user = await UserService.register(db, **user_data)
        print(f"Created user: {user.email} ({user.role.value})")


async def create_catalog(db):
    halls = []
    for hall_data in HALLS:
        result = await db.execute(select(CinemaHall).where(CinemaHall.name == hall_data["name"]))
        hall = result.scalar_one_or_none()
        if hall is None:
            hall = await CatalogService.create_hall(db, hall_data)
            print(f"Created hall: {hall.name} ({hall.capacity} seats)")
        halls.append(hall)

    movies = []
    for movie_data in MOVIES:
        result = await db.execute(select(Movie).where(Movie.title == movie_data["title"]))
        movie = result.scalar_one_or_none()
        if movie is None:
            movie = await CatalogService.create_movie(db, movie_data)
            print(f"Created movie: {movie.title}")
        movies.append(movie)

    today = clock.utcnow().replace(minute=0, second=0, microsecond=0)
    for movie_index, hall_index, days, hour, view_type, price in SHOWTIMES:
        starts_at = today.replace(hour=hour) + timedelta(days=days)
        result = await db.execute(
            select(Showtime).where(
                Showtime.movie_id == movies[movie_index].id,
                Showtime.starts_at == starts_at,
            )
        )
        if result.scalar_one_or_none():
            continue
        showtime = await CatalogService.create_showtime(
            db,
            {
                "movie_id": movies[movie_index].id,
                "cinema_hall_id": halls[hall_index].id,
                "starts_at": starts_at,
                "view_type": view_type,
                "price": price,
            },
        )
        print(f"Created showtime {showtime.id}: {movies[movie_index].title} at {starts_at:%Y-%m-%d %H:%M}")


async def main():
    print("Initializing database...")
    await init_db()

    async with AsyncSessionLocal() as db:
        await create_users(db)
        await create_catalog(db)

    print("Seeding complete")


if __name__ == "__main__":
    asyncio.run(main())
