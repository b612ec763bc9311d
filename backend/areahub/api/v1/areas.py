"""Areas API routes — CRUD, availability checks and price quotes."""

import logging
from collections import defaultdict
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from areahub.api.deps import get_area_or_404, get_db
from areahub.config import settings
from areahub.models.area import Area
from areahub.schemas.area import AreaCreate, AreaListResponse, AreaResponse, AreaUpdate
from areahub.schemas.common import MessageResponse
from areahub.schemas.pricing import (
    AvailabilityResponse,
    AvailableArea,
    AvailableAreaListResponse,
    PriceDay,
    QuoteResponse,
)
from areahub.services.pricing_service import (
    area_pricing,
    describe_verdict,
    evaluate_area_booking,
    get_engine,
    get_overlapping_bookings,
    package_info,
    prepare_special_prices,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/areas", tags=["areas"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _require_valid_range(check_in: date, check_out: date) -> None:
    """Raise 422 unless check_out is strictly after check_in."""
    if check_out <= check_in:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="check_out must be after check_in",
        )


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=AreaResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new area",
)
async def create_area(
    body: AreaCreate,
    db: AsyncSession = Depends(get_db),
) -> AreaResponse:
    """Create an area, optionally with its special prices."""
    try:
        special_prices = prepare_special_prices(body.special_prices, existing=None)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    area = Area(
        **body.model_dump(exclude={"special_prices"}),
        special_prices=special_prices,
    )
    db.add(area)
    await db.flush()
    await db.refresh(area)
    logger.info("Created area %s (%s) with %d special prices", area.id, area.name, len(special_prices))
    return AreaResponse.model_validate(area)


@router.get(
    "",
    response_model=AreaListResponse,
    summary="List areas",
)
async def list_areas(
    active: bool | None = Query(None, description="Filter by active flag"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> AreaListResponse:
    """Return a paginated list of areas."""
    filters = []
    if active is not None:
        filters.append(Area.active == active)

    count_query = select(func.count()).select_from(Area).where(*filters)
    total_result = await db.execute(count_query)
    total = total_result.scalar_one()

    items_query = select(Area).where(*filters).order_by(Area.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(items_query)
    items = list(result.scalars().all())

    return AreaListResponse(
        items=[AreaResponse.model_validate(a) for a in items],
        total=total,
    )


@router.get(
    "/available",
    response_model=AvailableAreaListResponse,
    summary="List active areas bookable for a date range",
)
async def list_available_areas(
    check_in: date = Query(..., description="First day of the stay"),
    check_out: date = Query(..., description="Last day of the stay"),
    guests: int | None = Query(None, ge=1, description="Minimum guest capacity"),
    db: AsyncSession = Depends(get_db),
) -> AvailableAreaListResponse:
    """Check every active area against the range in one pass.

    Bookings for all candidate areas are fetched with a single query, then
    each area is run through the engine independently.
    """
    _require_valid_range(check_in, check_out)

    query = select(Area).where(Area.active.is_(True))
    if guests is not None:
        query = query.where(Area.max_guests >= guests)
    result = await db.execute(query.order_by(Area.name))
    areas = list(result.scalars().all())

    bookings = await get_overlapping_bookings(db, [a.id for a in areas], check_in, check_out)
    bookings_by_area = defaultdict(list)
    for booking in bookings:
        bookings_by_area[booking.area_id].append(booking)

    engine = get_engine()
    items: list[AvailableArea] = []
    for area in areas:
        verdict = engine.evaluate_booking(check_in, check_out, area_pricing(area), bookings_by_area[area.id])
        if not verdict.accepted:
            continue
        items.append(
            AvailableArea(
                area=AreaResponse.model_validate(area),
                day_count=verdict.quote.day_count,
                total=verdict.quote.total,
                package=package_info(verdict.package),
            )
        )

    return AvailableAreaListResponse(check_in=check_in, check_out=check_out, items=items, total=len(items))


@router.get(
    "/{area_id}",
    response_model=AreaResponse,
    summary="Get an area by ID",
)
async def get_area(area: Area = Depends(get_area_or_404)) -> AreaResponse:
    """Retrieve a single area. Returns 404 if not found."""
    return AreaResponse.model_validate(area)


@router.put(
    "/{area_id}",
    response_model=AreaResponse,
    summary="Update an area",
)
async def update_area(
    body: AreaUpdate,
    area: Area = Depends(get_area_or_404),
    db: AsyncSession = Depends(get_db),
) -> AreaResponse:
    """Partially update an area. Only explicitly set fields are changed.

    A ``special_prices`` list replaces the stored one; rules sent back with
    their ``id`` keep it.
    """
    update_data = body.model_dump(exclude_unset=True, exclude={"special_prices"})
    if body.special_prices is not None:
        try:
            update_data["special_prices"] = prepare_special_prices(body.special_prices, area.special_prices)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    for field, value in update_data.items():
        setattr(area, field, value)

    db.add(area)
    await db.flush()
    await db.refresh(area)
    return AreaResponse.model_validate(area)


@router.delete(
    "/{area_id}",
    response_model=MessageResponse,
    summary="Delete an area",
)
async def delete_area(
    area: Area = Depends(get_area_or_404),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete an area and cascade-delete its bookings."""
    await db.delete(area)
    await db.flush()
    logger.info("Deleted area %s", area.id)
    return MessageResponse(message="Area deleted")


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------


@router.get(
    "/{area_id}/availability",
    response_model=AvailabilityResponse,
    summary="Check whether an area can be booked for a date range",
)
async def check_availability(
    check_in: date = Query(...),
    check_out: date = Query(...),
    area: Area = Depends(get_area_or_404),
    db: AsyncSession = Depends(get_db),
) -> AvailabilityResponse:
    _require_valid_range(check_in, check_out)
    verdict = await evaluate_area_booking(db, area, check_in, check_out)
    return AvailabilityResponse(
        area_id=area.id,
        check_in=check_in,
        check_out=check_out,
        available=verdict.accepted,
        reason=verdict.reason,
        message=describe_verdict(verdict),
        package=package_info(verdict.package),
    )


@router.get(
    "/{area_id}/quote",
    response_model=QuoteResponse,
    summary="Price a stay day by day",
)
async def quote_stay(
    check_in: date = Query(...),
    check_out: date = Query(...),
    area: Area = Depends(get_area_or_404),
    db: AsyncSession = Depends(get_db),
) -> QuoteResponse:
    """Return the per-day breakdown, total and booking verdict for a stay.

    An exact package match is priced at the package's flat price rather than
    the sum of the days.
    """
    _require_valid_range(check_in, check_out)
    verdict = await evaluate_area_booking(db, area, check_in, check_out)
    quote = verdict.quote
    return QuoteResponse(
        area_id=area.id,
        check_in=check_in,
        check_out=check_out,
        available=verdict.accepted,
        reason=verdict.reason,
        message=describe_verdict(verdict),
        package=package_info(verdict.package),
        day_counting=settings.day_counting,
        day_count=quote.day_count,
        days=[PriceDay(date=d.date, price=d.price, rule_name=d.rule_name) for d in quote.days],
        total=quote.total,
        currency=settings.currency,
    )
