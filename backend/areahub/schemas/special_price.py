"""Pydantic v2 schemas for special-price rules.

The three rule shapes form a discriminated union on ``type`` so an
impossible combination (a date range carrying weekdays, say) cannot be
expressed.  Records are stored on the area exactly as ``model_dump(mode="json")``
produces them, which is the format ``areahub.pricing.rules`` loads.
"""

import logging
from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    RootModel,
    StrictInt,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

logger = logging.getLogger(__name__)

_ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
_HOLIDAY_PATTERN = r"^\d{2}-\d{2}$"

# ---------------------------------------------------------------------------
# Rule variants
# ---------------------------------------------------------------------------


class _SpecialPriceBase(BaseModel):
    id: str | None = None
    name: str = Field(..., min_length=1, max_length=120)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    active: bool = True

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class DateRangePrice(_SpecialPriceBase):
    """Inclusive period override; ``is_package`` makes it indivisible."""

    type: Literal["date_range"] = "date_range"
    start_date: str = Field(..., pattern=_ISO_DATE_PATTERN)
    end_date: str = Field(..., pattern=_ISO_DATE_PATTERN)
    is_package: bool = False

    @model_validator(mode="after")
    def check_period(self) -> "DateRangePrice":
        """Dates must be real calendar days and end strictly after start."""
        try:
            start = date.fromisoformat(self.start_date)
            end = date.fromisoformat(self.end_date)
        except ValueError:
            raise ValueError("start_date and end_date must be valid dates") from None
        if start >= end:
            raise ValueError("end_date must be after start_date")
        return self

    @property
    def start(self) -> date:
        return date.fromisoformat(self.start_date)

    @property
    def end(self) -> date:
        return date.fromisoformat(self.end_date)


class DayOfWeekPrice(_SpecialPriceBase):
    """Weekday override, 0 = Sunday ... 6 = Saturday."""

    type: Literal["day_of_week"] = "day_of_week"
    days_of_week: list[Annotated[StrictInt, Field(ge=0, le=6)]] = Field(..., min_length=1)

    @field_validator("days_of_week")
    @classmethod
    def _normalise_days(cls, value: list[int]) -> list[int]:
        return sorted(set(value))


class HolidayPrice(_SpecialPriceBase):
    """Recurring annual ``MM-DD`` override."""

    type: Literal["holiday"] = "holiday"
    holiday_date: str = Field(..., pattern=_HOLIDAY_PATTERN)

    @field_validator("holiday_date")
    @classmethod
    def _check_month_day(cls, value: str) -> str:
        # Not checked against real month lengths: 02-30 is accepted.
        month, day = (int(part) for part in value.split("-"))
        if not 1 <= month <= 12 or not 1 <= day <= 31:
            raise ValueError("holiday_date must be a valid MM-DD date")
        return value


SpecialPrice = Annotated[DateRangePrice | DayOfWeekPrice | HolidayPrice, Field(discriminator="type")]

special_price_adapter: TypeAdapter[DateRangePrice | DayOfWeekPrice | HolidayPrice] = TypeAdapter(SpecialPrice)


def valid_stored_special_prices(records: Iterable | None) -> list[DateRangePrice | DayOfWeekPrice | HolidayPrice]:
    """Validate stored rule records for display, dropping the ones that fail."""
    rules = []
    for record in records or ():
        try:
            rules.append(special_price_adapter.validate_python(record))
        except ValidationError:
            rule_id = record.get("id") if isinstance(record, dict) else None
            logger.warning("Skipping stored special price %r that failed validation", rule_id)
    return rules


# ---------------------------------------------------------------------------
# Request / response schemas
# ---------------------------------------------------------------------------


class SpecialPriceUpdate(BaseModel):
    """Partial update; merged over the stored record and re-validated."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["date_range", "day_of_week", "holiday"] | None = None
    name: str | None = None
    price: Decimal | None = None
    active: bool | None = None
    start_date: str | None = None
    end_date: str | None = None
    is_package: bool | None = None
    days_of_week: list[int] | None = None
    holiday_date: str | None = None


class SpecialPriceListResponse(BaseModel):
    """All special prices of an area, in evaluation order."""

    items: list[SpecialPrice]
    total: int


class SpecialPriceBody(RootModel[SpecialPrice]):
    """A single special price of any type, as a request or response body."""
