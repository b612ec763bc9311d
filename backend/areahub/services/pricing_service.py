"""Pricing service — runs the special-price engine against stored areas and bookings."""

import logging
import uuid
from collections.abc import Sequence
from datetime import date

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from areahub.config import settings
from areahub.models.area import Area
from areahub.models.booking import Booking
from areahub.pricing.engine import (
    CANCELLED_STATUS,
    AreaPricing,
    BookingVerdict,
    PackageClassification,
    SpecialPriceEngine,
    VerdictReason,
)
from areahub.schemas.pricing import PackageInfo
from areahub.schemas.special_price import (
    DateRangePrice,
    DayOfWeekPrice,
    HolidayPrice,
    special_price_adapter,
)

logger = logging.getLogger(__name__)


def get_engine() -> SpecialPriceEngine:
    """Engine configured from settings (day counting, holiday tier)."""
    return SpecialPriceEngine(
        day_counting=settings.day_counting,
        holiday_pricing=settings.holiday_pricing_enabled,
    )


def area_pricing(area: Area) -> AreaPricing:
    """Immutable pricing snapshot of a stored area."""
    return AreaPricing.from_records(area.base_price, area.special_prices, area_id=area.id)


async def get_overlapping_bookings(
    db: AsyncSession,
    area_ids: Sequence[uuid.UUID],
    check_in: date,
    check_out: date,
    exclude_booking_id: uuid.UUID | None = None,
) -> list[Booking]:
    """Fetch non-cancelled bookings of the given areas that overlap the range."""
    if not area_ids:
        return []
    query = select(Booking).where(
        Booking.area_id.in_(area_ids),
        Booking.status != CANCELLED_STATUS,
        Booking.check_in < check_out,
        Booking.check_out > check_in,
    )
    if exclude_booking_id is not None:
        query = query.where(Booking.id != exclude_booking_id)

    result = await db.execute(query)
    return list(result.scalars().all())


async def evaluate_area_booking(
    db: AsyncSession,
    area: Area,
    check_in: date,
    check_out: date,
    exclude_booking_id: uuid.UUID | None = None,
) -> BookingVerdict:
    """Price the stay and apply the package/conflict acceptance policy."""
    bookings = await get_overlapping_bookings(db, [area.id], check_in, check_out, exclude_booking_id)
    return get_engine().evaluate_booking(
        check_in,
        check_out,
        area_pricing(area),
        bookings,
        exclude_booking_id=exclude_booking_id,
    )


def describe_verdict(verdict: BookingVerdict) -> str | None:
    """Human-readable reason for a rejected verdict; None when accepted."""
    if verdict.reason is VerdictReason.PACKAGE_PARTIAL and verdict.package is not None:
        rule = verdict.package.matched_rule
        return (
            f"This period is sold only as a complete package: '{rule.name}' "
            f"from {rule.start_date} to {rule.end_date}."
        )
    if verdict.reason is VerdictReason.PACKAGE_BOOKED:
        return "This period is already booked. Packages do not allow multiple bookings."
    if verdict.reason is VerdictReason.CONFLICT:
        return "Dates conflict with an existing booking"
    return None


def package_info(classification: PackageClassification | None) -> PackageInfo | None:
    if classification is None:
        return None
    rule = classification.matched_rule
    return PackageInfo(
        rule_id=rule.id,
        name=rule.name,
        price=rule.price,
        start_date=rule.start,
        end_date=rule.end,
        is_exact_match=classification.is_exact_match,
    )


def check_special_price_dates(
    new: DateRangePrice | DayOfWeekPrice | HolidayPrice,
    previous: DateRangePrice | DayOfWeekPrice | HolidayPrice | None = None,
    today: date | None = None,
) -> None:
    """Reject date-range rules that rewrite the past.

    Raises ``ValueError`` when a new (or re-dated) period ends before today,
    or when the dates of a period that already ended are changed.  Disabled
    by ``ALLOW_RETROACTIVE_SPECIAL_PRICES``.
    """
    if settings.allow_retroactive_special_prices:
        return
    if not isinstance(new, DateRangePrice):
        return
    today = today or date.today()

    if isinstance(previous, DateRangePrice):
        if (new.start_date, new.end_date) == (previous.start_date, previous.end_date):
            return
        if previous.end < today:
            raise ValueError("Cannot change the dates of a period that has already ended")
    if new.end < today:
        raise ValueError("Cannot create special prices for periods that have already ended")


def parse_stored_special_price(record: dict) -> DateRangePrice | DayOfWeekPrice | HolidayPrice | None:
    """Validate a stored rule record; None if it no longer passes validation."""
    try:
        return special_price_adapter.validate_python(record)
    except ValidationError:
        logger.warning("Stored special price %r failed validation", record.get("id"))
        return None


def prepare_special_prices(
    incoming: Sequence[DateRangePrice | DayOfWeekPrice | HolidayPrice],
    existing: Sequence[dict] | None,
    today: date | None = None,
) -> list[dict]:
    """Turn a validated rule list into stored records, replacing ``existing``.

    Rules keep their ``id`` when it matches an existing record and get a new
    one otherwise.  Raises ``ValueError`` if a rule rewrites the past (see
    :func:`check_special_price_dates`).
    """
    previous_by_id = {record.get("id"): record for record in existing or () if isinstance(record, dict)}
    records: list[dict] = []
    for rule in incoming:
        previous = None
        if rule.id and rule.id in previous_by_id:
            previous = parse_stored_special_price(previous_by_id[rule.id])
        else:
            rule = rule.model_copy(update={"id": uuid.uuid4().hex})
        check_special_price_dates(rule, previous, today)
        records.append(rule.model_dump(mode="json"))
    return records
