"""Special-price rule variants and a tolerant loader for stored rule records.

A rule is one of three shapes (:class:`DateRangeRule`, :class:`DayOfWeekRule`,
:class:`HolidayRule`).  Rules are stored on the area as plain JSON dicts; the
loader turns them into frozen dataclasses and silently drops records it
cannot make sense of, so a bad record never breaks price resolution.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation

logger = logging.getLogger(__name__)

RULE_TYPE_DATE_RANGE = "date_range"
RULE_TYPE_DAY_OF_WEEK = "day_of_week"
RULE_TYPE_HOLIDAY = "holiday"

RULE_TYPES: set[str] = {RULE_TYPE_DATE_RANGE, RULE_TYPE_DAY_OF_WEEK, RULE_TYPE_HOLIDAY}


def parse_iso_date(value: str | None) -> date | None:
    """Parse a ``YYYY-MM-DD`` string. Returns None for anything else."""
    if not isinstance(value, str) or len(value) != 10:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def sunday_based_weekday(day: date) -> int:
    """Weekday number with 0 = Sunday ... 6 = Saturday."""
    return day.isoweekday() % 7


@dataclass(frozen=True)
class DateRangeRule:
    """Price override for an inclusive calendar period.

    ``start_date``/``end_date`` keep their ISO string form: the per-day
    resolver compares them lexicographically, which is safe for the fixed
    ``YYYY-MM-DD`` width.  A package rule must be booked as a whole.
    """

    name: str
    price: Decimal
    start_date: str | None
    end_date: str | None
    is_package: bool = False
    active: bool = True
    id: str | None = None

    @property
    def start(self) -> date | None:
        return parse_iso_date(self.start_date)

    @property
    def end(self) -> date | None:
        return parse_iso_date(self.end_date)

    def covers(self, iso_day: str) -> bool:
        """Inclusive string comparison against an ISO day."""
        if not self.start_date or not self.end_date:
            return False
        return self.start_date <= iso_day <= self.end_date


@dataclass(frozen=True)
class DayOfWeekRule:
    """Price override for a set of weekdays (0 = Sunday ... 6 = Saturday)."""

    name: str
    price: Decimal
    days_of_week: frozenset[int]
    active: bool = True
    id: str | None = None

    def covers(self, day: date) -> bool:
        return sunday_based_weekday(day) in self.days_of_week


@dataclass(frozen=True)
class HolidayRule:
    """Price override for a recurring annual ``MM-DD`` date."""

    name: str
    price: Decimal
    holiday_date: str | None
    active: bool = True
    id: str | None = None

    def covers(self, day: date) -> bool:
        return self.holiday_date is not None and self.holiday_date == day.strftime("%m-%d")


SpecialPriceRule = DateRangeRule | DayOfWeekRule | HolidayRule


# ---------------------------------------------------------------------------
# Loading stored records
# ---------------------------------------------------------------------------


def _to_decimal(value: object) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite() or price <= 0:
        return None
    return price


def _to_weekdays(value: object) -> frozenset[int]:
    if not isinstance(value, (list, tuple, set, frozenset)):
        return frozenset()
    return frozenset(d for d in value if isinstance(d, int) and not isinstance(d, bool) and 0 <= d <= 6)


def _optional_str(value: object) -> str | None:
    return value if isinstance(value, str) and value else None


def rule_from_dict(data: dict) -> SpecialPriceRule | None:
    """Build a rule from a stored record, or return None if it is unusable.

    Missing type-specific fields do not reject the record: they leave a rule
    that simply never matches.  An unknown ``type`` or a non-positive price
    drops the record.  A record without ``active`` counts as inactive.
    """
    if not isinstance(data, dict):
        return None

    price = _to_decimal(data.get("price"))
    if price is None:
        return None

    name = str(data.get("name") or "")
    active = data.get("active") is True
    rule_id = _optional_str(data.get("id"))
    rule_type = data.get("type")

    if rule_type == RULE_TYPE_DATE_RANGE:
        return DateRangeRule(
            name=name,
            price=price,
            start_date=_optional_str(data.get("start_date")),
            end_date=_optional_str(data.get("end_date")),
            is_package=data.get("is_package") is True,
            active=active,
            id=rule_id,
        )
    if rule_type == RULE_TYPE_DAY_OF_WEEK:
        return DayOfWeekRule(
            name=name,
            price=price,
            days_of_week=_to_weekdays(data.get("days_of_week")),
            active=active,
            id=rule_id,
        )
    if rule_type == RULE_TYPE_HOLIDAY:
        return HolidayRule(
            name=name,
            price=price,
            holiday_date=_optional_str(data.get("holiday_date")),
            active=active,
            id=rule_id,
        )
    return None


def load_rules(records: Iterable[dict] | None) -> tuple[SpecialPriceRule, ...]:
    """Load stored rule records in order, skipping unusable ones."""
    rules: list[SpecialPriceRule] = []
    for record in records or ():
        rule = rule_from_dict(record)
        if rule is None:
            logger.debug("Skipping unusable special price record: %r", record)
            continue
        rules.append(rule)
    return tuple(rules)
