"""Seed the database with sample areas, special prices and bookings.

Dates are relative to today so the package periods and bookings are always
in the future.  Every booking is priced and validated by the special-price
engine, exactly as the API would do it.

Run inside Docker:
    docker compose exec backend python -m scripts.seed_data
"""

import asyncio
import sys
import uuid
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

# Add backend to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import delete, select

from areahub.database import session_scope
from areahub.models.area import Area
from areahub.models.booking import Booking
from areahub.services.pricing_service import evaluate_area_booking

# ---------------------------------------------------------------------------
# Seed data definitions
# ---------------------------------------------------------------------------

SEED_TAG = "[seed]"


def _next_weekday(today: date, sunday_based: int) -> date:
    """First date after ``today`` falling on the given weekday (0 = Sunday)."""
    offset = (sunday_based - today.isoweekday() % 7) % 7 or 7
    return today + timedelta(days=offset)


def _build_areas(today: date) -> list[dict]:
    carnival_start = today + timedelta(days=60)
    festival_start = today + timedelta(days=90)
    return [
        {
            "name": f"Chácara Recanto Verde {SEED_TAG}",
            "description": "Country house with pool, barbecue area and a football pitch.",
            "address": "Estrada do Sertão, km 12",
            "base_price": Decimal("450.00"),
            "max_guests": 30,
            "amenities": ["pool", "barbecue", "wifi", "parking"],
            "special_prices": [
                {
                    "id": uuid.uuid4().hex,
                    "type": "day_of_week",
                    "name": "Weekend",
                    "price": "650.00",
                    "days_of_week": [0, 6],
                    "active": True,
                },
                {
                    "id": uuid.uuid4().hex,
                    "type": "date_range",
                    "name": "Carnival package",
                    "price": "3200.00",
                    "start_date": carnival_start.isoformat(),
                    "end_date": (carnival_start + timedelta(days=4)).isoformat(),
                    "is_package": True,
                    "active": True,
                },
            ],
        },
        {
            "name": f"Salão Jardim das Flores {SEED_TAG}",
            "description": "Party hall with garden, kitchen and sound system.",
            "address": "Rua das Acácias, 210",
            "base_price": Decimal("300.00"),
            "max_guests": 120,
            "amenities": ["kitchen", "sound_system", "garden"],
            "special_prices": [
                {
                    "id": uuid.uuid4().hex,
                    "type": "date_range",
                    "name": "Winter festival",
                    "price": "380.00",
                    "start_date": festival_start.isoformat(),
                    "end_date": (festival_start + timedelta(days=20)).isoformat(),
                    "is_package": False,
                    "active": True,
                },
                {
                    "id": uuid.uuid4().hex,
                    "type": "holiday",
                    "name": "Christmas",
                    "price": "900.00",
                    "holiday_date": "12-25",
                    "active": True,
                },
            ],
        },
    ]


def _build_bookings(areas: list[Area], today: date) -> list[dict]:
    country_house, hall = areas
    carnival = next(sp for sp in country_house.special_prices if sp.get("is_package"))
    saturday = _next_weekday(today, 6)
    return [
        {
            "area": country_house,
            "guest_name": "Mariana Souza",
            "guest_phone": "11987654321",
            "check_in": saturday,
            "check_out": saturday + timedelta(days=1),
            "num_guests": 20,
            "status": "confirmed",
        },
        {
            "area": country_house,
            "guest_name": "Rafael Lima",
            "guest_phone": "11912345678",
            "check_in": date.fromisoformat(carnival["start_date"]),
            "check_out": date.fromisoformat(carnival["end_date"]),
            "num_guests": 25,
            "status": "pending",
        },
        {
            "area": hall,
            "guest_name": "Beatriz Costa",
            "guest_phone": None,
            "check_in": today + timedelta(days=14),
            "check_out": today + timedelta(days=15),
            "num_guests": 80,
            "status": "confirmed",
        },
    ]


async def seed() -> None:
    """Populate the database with sample data.

    Idempotent: areas tagged ``[seed]`` (and their bookings) are removed
    first.
    """
    async with session_scope() as session:
        result = await session.execute(select(Area.id).where(Area.name.like(f"%{SEED_TAG}")))
        stale_ids = list(result.scalars().all())
        if stale_ids:
            print(f"⚠️  Removing {len(stale_ids)} previously seeded areas...")
            await session.execute(delete(Booking).where(Booking.area_id.in_(stale_ids)))
            await session.execute(delete(Area).where(Area.id.in_(stale_ids)))
            await session.flush()

        today = date.today()

        # ------------------------------------------------------------------
        # 1. Create areas
        # ------------------------------------------------------------------
        created_areas: list[Area] = []
        for area_data in _build_areas(today):
            area = Area(**area_data)
            session.add(area)
            await session.flush()
            created_areas.append(area)
            print(f"   🏡 {area.name} — R$ {area.base_price}/day, {len(area.special_prices)} special prices")

        # ------------------------------------------------------------------
        # 2. Create bookings (priced and validated by the engine)
        # ------------------------------------------------------------------
        booking_count = 0
        for bdata in _build_bookings(created_areas, today):
            area: Area = bdata.pop("area")
            verdict = await evaluate_area_booking(session, area, bdata["check_in"], bdata["check_out"])
            if not verdict.accepted:
                print(f"   ⏭️  Skipped {bdata['guest_name']}: {verdict.reason.value}")
                continue
            session.add(Booking(area_id=area.id, total_price=verdict.quote.total, **bdata))
            await session.flush()
            booking_count += 1

        print(f"✅ Created {len(created_areas)} areas and {booking_count} bookings")


if __name__ == "__main__":
    asyncio.run(seed())
