"""
Demo Data Seeder
Version: 1.0

Creates the schema and a small demo fleet: one admin, one staff member,
two customers (each with a fresh bearer token), vehicles, bookings and
maintenance history. Tokens are printed once; only their hashes are stored.

Usage:
    python -m scripts.seed_demo_data
"""

import asyncio
import logging
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import func, select

from database import AsyncSessionLocal, close_db, init_db
from models import Booking, MaintenanceRecord, User, Vehicle
from security import generate_api_token, hash_token
from services import booking_lifecycle as lifecycle

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

USERS = [
    ("System Admin", "admin@vehiclerental.com", "admin"),
    ("John Staff", "staff@vehiclerental.com", "staff"),
    ("Jane Customer", "customer@example.com", "customer"),
    ("Mike Johnson", "mike@example.com", "customer"),
]

VEHICLES = [
    ("Toyota", "Camry", 2023, "Sedan", "45.00", "ABC-1234", "White", "Hybrid", "Automatic", 5),
    ("Honda", "CR-V", 2023, "SUV", "65.00", "DEF-5678", "Black", "Gasoline", "Automatic", 7),
    ("Ford", "Mustang", 2022, "Sports", "85.00", "GHI-9012", "Red", "Gasoline", "Manual", 4),
    ("Tesla", "Model 3", 2023, "Electric", "75.00", "JKL-3456", "Blue", "Electric", "Automatic", 5),
    ("Volkswagen", "Golf", 2021, "Hatchback", "40.00", "MNO-7890", "Grey", "Diesel", "Manual", 5),
]


async def seed() -> None:
    await init_db()

    async with AsyncSessionLocal() as db:
        if (await db.execute(select(func.count(User.id)))).scalar_one():
            logger.warning("Database already has users, skipping seed")
            return

        tokens = {}
        users = []
        for name, email, role in USERS:
            token = generate_api_token()
            tokens[email] = token
            users.append(User(name=name, email=email, role=role, api_token_hash=hash_token(token)))
        db.add_all(users)

        vehicles = [
            Vehicle(
                make=make, model=model, year=year, type=vtype, rental_price=Decimal(price),
                license_plate=plate, color=color, fuel_type=fuel, transmission=gearbox, seats=seats,
            )
            for make, model, year, vtype, price, plate, color, fuel, gearbox, seats in VEHICLES
        ]
        db.add_all(vehicles)
        await db.flush()

        today = date.today()
        jane, mike = users[2], users[3]
        plans = [
            (jane, vehicles[0], today - timedelta(days=20), today - timedelta(days=17), lifecycle.COMPLETED),
            (mike, vehicles[1], today - timedelta(days=2), today + timedelta(days=3), lifecycle.ACTIVE),
            (jane, vehicles[2], today + timedelta(days=7), today + timedelta(days=9), lifecycle.APPROVED),
            (mike, vehicles[3], today + timedelta(days=14), today + timedelta(days=16), lifecycle.PENDING),
        ]
        for customer, vehicle, start, end, status in plans:
            db.add(Booking(
                customer=customer,
                vehicle=vehicle,
                start_date=start,
                end_date=end,
                total_amount=lifecycle.quote_total(start, end, vehicle.rental_price),
                status=status,
            ))
            if status == lifecycle.ACTIVE:
                vehicle.status = "rented"

        db.add(MaintenanceRecord(
            vehicle=vehicles[4],
            date=today - timedelta(days=30),
            type="Oil Change",
            description="Regular oil change and filter replacement",
            cost=Decimal("89.99"),
            performed_by="AutoCare Service Center",
        ))

        await db.commit()

    logger.info(f"Seeded {len(USERS)} users and {len(VEHICLES)} vehicles")
    for email, token in tokens.items():
        print(f"{email:<28} Bearer {token}")


async def main() -> None:
    try:
        await seed()
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
