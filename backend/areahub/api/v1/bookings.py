"""Bookings API router.

Every reservation goes through the special-price engine before it is
stored: package periods must be booked whole, and a stay may not overlap a
non-cancelled booking of the same area.  Doing this here rather than only in
the client keeps direct API calls from bypassing the rules.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from areahub.api.deps import fetch_area, get_db
from areahub.models.area import Area
from areahub.models.booking import Booking
from areahub.pricing.engine import CANCELLED_STATUS, BookingVerdict, VerdictReason
from areahub.schemas.booking import (
    BookingCreate,
    BookingDetailResponse,
    BookingListResponse,
    BookingResponse,
    BookingStatusUpdate,
)
from areahub.schemas.common import MessageResponse
from areahub.services.pricing_service import describe_verdict, evaluate_area_booking

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _get_booking(booking_id: uuid.UUID, db: AsyncSession) -> Booking:
    """Fetch a booking or raise ``HTTPException 404``."""
    result = await db.execute(select(Booking).where(Booking.id == booking_id))
    booking = result.scalar_one_or_none()

    if booking is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found",
        )
    return booking


def _enforce_verdict(verdict: BookingVerdict, area: Area, check_in: date, check_out: date) -> None:
    """Raise unless the engine accepted the stay.

    A partial package is a request the area can never satisfy (422); a
    clash with an existing booking is a state conflict (409).
    """
    if verdict.accepted:
        return

    logger.info(
        "Rejected booking for area %s (%s..%s): %s",
        area.id,
        check_in,
        check_out,
        verdict.reason.value,
    )
    status_code = (
        status.HTTP_422_UNPROCESSABLE_ENTITY
        if verdict.reason is VerdictReason.PACKAGE_PARTIAL
        else status.HTTP_409_CONFLICT
    )
    raise HTTPException(status_code=status_code, detail=describe_verdict(verdict))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new booking",
)
async def create_booking(
    body: BookingCreate,
    db: AsyncSession = Depends(get_db),
) -> Booking:
    """Create a booking.

    Validates that:
    - The area exists and is active.
    - The guest count fits the area.
    - The stay respects package periods and existing bookings.

    When ``total_price`` is omitted it is taken from the quote: the flat
    package price for an exact package, otherwise the sum of the days.
    """
    area = await fetch_area(db, body.area_id)
    if not area.active:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Area is not accepting bookings",
        )
    if body.num_guests > area.max_guests:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"num_guests cannot exceed {area.max_guests}",
        )

    verdict = await evaluate_area_booking(db, area, body.check_in, body.check_out)
    _enforce_verdict(verdict, area, body.check_in, body.check_out)

    booking = Booking(
        **body.model_dump(exclude={"total_price"}),
        total_price=body.total_price if body.total_price is not None else verdict.quote.total,
    )
    db.add(booking)
    await db.flush()
    await db.refresh(booking)
    logger.info(
        "Created booking %s for area %s (%s..%s, total=%s)",
        booking.id,
        area.id,
        booking.check_in,
        booking.check_out,
        booking.total_price,
    )
    return booking


@router.get(
    "",
    response_model=BookingListResponse,
    summary="List bookings",
)
async def list_bookings(
    area_id: uuid.UUID | None = Query(None, description="Filter by area"),
    status_filter: str | None = Query(None, alias="status", description="Filter by booking status"),
    check_in_from: date | None = Query(None, description="Bookings with check_in >= this date"),
    check_in_to: date | None = Query(None, description="Bookings with check_in <= this date"),
    skip: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(20, ge=1, le=100, description="Pagination limit"),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Return a paginated list of bookings."""
    filters = []
    if area_id is not None:
        filters.append(Booking.area_id == area_id)
    if status_filter is not None:
        filters.append(Booking.status == status_filter)
    if check_in_from is not None:
        filters.append(Booking.check_in >= check_in_from)
    if check_in_to is not None:
        filters.append(Booking.check_in <= check_in_to)

    total_result = await db.execute(select(func.count()).select_from(Booking).where(*filters))
    total = total_result.scalar_one()

    items_query = select(Booking).where(*filters).order_by(Booking.check_in.desc()).offset(skip).limit(limit)
    result = await db.execute(items_query)
    items = list(result.scalars().all())

    return {"items": items, "total": total}


@router.get(
    "/{booking_id}",
    response_model=BookingDetailResponse,
    summary="Get booking detail with nested area",
)
async def get_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> Booking:
    result = await db.execute(
        select(Booking).options(selectinload(Booking.area)).where(Booking.id == booking_id)
    )
    booking = result.scalar_one_or_none()

    if booking is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found",
        )
    return booking


@router.patch(
    "/{booking_id}/status",
    response_model=BookingResponse,
    summary="Change a booking's status",
)
async def update_booking_status(
    booking_id: uuid.UUID,
    body: BookingStatusUpdate,
    db: AsyncSession = Depends(get_db),
) -> Booking:
    """Set the status of a booking.

    Reviving a cancelled booking re-runs the package and conflict checks,
    since its dates may have been taken in the meantime.
    """
    booking = await _get_booking(booking_id, db)

    if booking.status == CANCELLED_STATUS and body.status != CANCELLED_STATUS:
        area = await fetch_area(db, booking.area_id)
        verdict = await evaluate_area_booking(
            db,
            area,
            booking.check_in,
            booking.check_out,
            exclude_booking_id=booking.id,
        )
        _enforce_verdict(verdict, area, booking.check_in, booking.check_out)

    previous = booking.status
    booking.status = body.status
    db.add(booking)
    await db.flush()
    await db.refresh(booking)
    logger.info("Booking %s status %s -> %s", booking.id, previous, booking.status)
    return booking


@router.patch(
    "/{booking_id}/cancel",
    response_model=BookingResponse,
    summary="Cancel a booking",
)
async def cancel_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> Booking:
    booking = await _get_booking(booking_id, db)
    if booking.status != CANCELLED_STATUS:
        booking.status = CANCELLED_STATUS
        db.add(booking)
        await db.flush()
        await db.refresh(booking)
        logger.info("Cancelled booking %s", booking.id)
    return booking


@router.delete(
    "/{booking_id}",
    response_model=MessageResponse,
    summary="Delete a booking",
)
async def delete_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> dict:
    booking = await _get_booking(booking_id, db)

    await db.delete(booking)
    await db.flush()
    return {"message": "Booking deleted"}
