"""Special-price engine — per-day price resolution and booking validation.

Pure and synchronous: callers hand in an :class:`AreaPricing` snapshot and
the existing bookings, the engine returns derived values and never touches
the database.  The same engine backs the quote endpoints and the booking
creation path, so a reservation is checked server-side before it is stored.

Usage::

    engine = SpecialPriceEngine()
    quote = engine.quote(date(2024, 6, 10), date(2024, 6, 12), area)
    verdict = engine.evaluate_booking(check_in, check_out, area, bookings)
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any

from areahub.pricing.rules import (
    DateRangeRule,
    DayOfWeekRule,
    HolidayRule,
    SpecialPriceRule,
    load_rules,
)

logger = logging.getLogger(__name__)

CANCELLED_STATUS = "cancelled"


class DayCounting(str, Enum):
    """How a check-in/check-out span is turned into billable days."""

    INCLUSIVE = "inclusive"  # check-out day is billed
    NIGHTLY = "nightly"  # legacy: check-out day is not billed


class VerdictReason(str, Enum):
    OK = "ok"
    PACKAGE_PARTIAL = "package_partial"
    PACKAGE_BOOKED = "package_booked"
    CONFLICT = "conflict"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AreaPricing:
    """Immutable pricing snapshot of an area."""

    base_price: Decimal
    special_prices: tuple[SpecialPriceRule, ...] = ()
    area_id: Any = None

    @classmethod
    def from_records(
        cls,
        base_price: Decimal | int | str,
        records: Iterable[dict] | None,
        area_id: Any = None,
    ) -> "AreaPricing":
        """Build a snapshot from stored rule dicts (see :func:`load_rules`)."""
        return cls(base_price=Decimal(str(base_price)), special_prices=load_rules(records), area_id=area_id)

    @property
    def active_rules(self) -> tuple[SpecialPriceRule, ...]:
        return tuple(rule for rule in self.special_prices if rule.active)


@dataclass(frozen=True)
class BookedPeriod:
    """An existing reservation as seen by the conflict check.

    The ORM ``Booking`` exposes the same attribute names, so either can be
    passed to :meth:`SpecialPriceEngine.has_conflict`.
    """

    area_id: Any
    check_in: date
    check_out: date
    status: str = "confirmed"
    id: Any = None


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PriceDayEntry:
    date: date
    price: Decimal
    rule_name: str | None = None


@dataclass(frozen=True)
class PackageClassification:
    matched_rule: DateRangeRule
    is_exact_match: bool


@dataclass(frozen=True)
class PriceQuote:
    """Per-day breakdown and total for a candidate stay.

    For an exact package match ``total`` is the package's flat price; in
    every other case it is the sum of the per-day prices.
    """

    check_in: date
    check_out: date
    days: list[PriceDayEntry]
    total: Decimal
    package: PackageClassification | None = None

    @property
    def day_count(self) -> int:
        return len(self.days)


@dataclass(frozen=True)
class BookingVerdict:
    accepted: bool
    reason: VerdictReason
    quote: PriceQuote
    package: PackageClassification | None = field(default=None)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class SpecialPriceEngine:
    """Resolves nightly prices and validates candidate bookings for an area."""

    def __init__(
        self,
        day_counting: DayCounting | str = DayCounting.INCLUSIVE,
        holiday_pricing: bool = False,
    ) -> None:
        self.day_counting = DayCounting(day_counting)
        self.holiday_pricing = holiday_pricing

    def __repr__(self) -> str:
        return f"<SpecialPriceEngine(day_counting={self.day_counting.value}, holiday_pricing={self.holiday_pricing})>"

    # -- Resolver -----------------------------------------------------------

    def resolve_price(self, day: date, area: AreaPricing) -> PriceDayEntry:
        """Return the price for ``day``.

        Priority: non-package date range, then holiday (when enabled), then
        day of week, then the base price.  Within a tier the first active
        rule in list order wins.
        """
        rules = area.active_rules
        if not rules:
            return PriceDayEntry(date=day, price=area.base_price)

        iso_day = day.isoformat()
        for rule in rules:
            if isinstance(rule, DateRangeRule) and not rule.is_package and rule.covers(iso_day):
                return PriceDayEntry(date=day, price=rule.price, rule_name=rule.name)

        if self.holiday_pricing:
            for rule in rules:
                if isinstance(rule, HolidayRule) and rule.covers(day):
                    return PriceDayEntry(date=day, price=rule.price, rule_name=rule.name)

        for rule in rules:
            if isinstance(rule, DayOfWeekRule) and rule.covers(day):
                return PriceDayEntry(date=day, price=rule.price, rule_name=rule.name)

        return PriceDayEntry(date=day, price=area.base_price)

    def iter_days(self, check_in: date, check_out: date) -> Iterator[date]:
        """Yield the billable days of a stay under the configured counting mode.

        Precondition: ``check_out > check_in``.
        """
        last = check_out if self.day_counting is DayCounting.INCLUSIVE else check_out - timedelta(days=1)
        current = check_in
        while current <= last:
            yield current
            current += timedelta(days=1)

    def day_count(self, check_in: date, check_out: date) -> int:
        nights = (check_out - check_in).days
        return nights + 1 if self.day_counting is DayCounting.INCLUSIVE else nights

    def price_breakdown(self, check_in: date, check_out: date, area: AreaPricing) -> list[PriceDayEntry]:
        return [self.resolve_price(day, area) for day in self.iter_days(check_in, check_out)]

    # -- Validator ----------------------------------------------------------

    def classify_package(self, check_in: date, check_out: date, area: AreaPricing) -> PackageClassification | None:
        """Find the first active package period overlapping the stay.

        Returns None when no package constrains the range.  Package rules
        whose dates cannot be parsed are ignored.
        """
        for rule in area.active_rules:
            if not isinstance(rule, DateRangeRule) or not rule.is_package:
                continue
            start, end = rule.start, rule.end
            if start is None or end is None:
                continue
            if check_in <= end and check_out >= start:
                return PackageClassification(
                    matched_rule=rule,
                    is_exact_match=check_in == start and check_out == end,
                )
        return None

    @staticmethod
    def has_conflict(
        check_in: date,
        check_out: date,
        area_id: Any,
        bookings: Iterable[Any],
        exclude_booking_id: Any = None,
    ) -> bool:
        """True if a non-cancelled booking of the same area overlaps ``[check_in, check_out)``.

        Half-open overlap: a stay ending on the day another starts is not a
        conflict.  With ``area_id=None`` every supplied booking is checked,
        whatever area it belongs to.
        """
        for booking in bookings:
            if booking.status == CANCELLED_STATUS:
                continue
            if area_id is not None and booking.area_id != area_id:
                continue
            if exclude_booking_id is not None and getattr(booking, "id", None) == exclude_booking_id:
                continue
            if booking.check_in < check_out and check_in < booking.check_out:
                return True
        return False

    # -- Composition --------------------------------------------------------

    def quote(self, check_in: date, check_out: date, area: AreaPricing) -> PriceQuote:
        days = self.price_breakdown(check_in, check_out, area)
        package = self.classify_package(check_in, check_out, area)
        if package is not None and package.is_exact_match:
            total = package.matched_rule.price
        else:
            total = sum((entry.price for entry in days), Decimal("0"))
        return PriceQuote(check_in=check_in, check_out=check_out, days=days, total=total, package=package)

    def evaluate_booking(
        self,
        check_in: date,
        check_out: date,
        area: AreaPricing,
        bookings: Iterable[Any],
        exclude_booking_id: Any = None,
    ) -> BookingVerdict:
        """Apply the booking acceptance policy to a candidate stay."""
        quote = self.quote(check_in, check_out, area)
        package = quote.package
        conflict = self.has_conflict(check_in, check_out, area.area_id, bookings, exclude_booking_id)

        if package is not None and not package.is_exact_match:
            reason = VerdictReason.PACKAGE_PARTIAL
        elif package is not None and conflict:
            reason = VerdictReason.PACKAGE_BOOKED
        elif conflict:
            reason = VerdictReason.CONFLICT
        else:
            reason = VerdictReason.OK

        logger.debug(
            "Evaluated %s..%s for area %s: %s (total=%s)",
            check_in,
            check_out,
            area.area_id,
            reason.value,
            quote.total,
        )
        return BookingVerdict(accepted=reason is VerdictReason.OK, reason=reason, quote=quote, package=package)


# Module-level helpers bound to an engine with the default settings.
default_engine = SpecialPriceEngine()

resolve_price = default_engine.resolve_price
price_breakdown = default_engine.price_breakdown
classify_package = default_engine.classify_package
has_conflict = SpecialPriceEngine.has_conflict
evaluate_booking = default_engine.evaluate_booking
