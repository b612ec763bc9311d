"""Pydantic v2 response schemas for quotes and availability checks."""

import uuid
from datetime import date
from decimal import Decimal

from pydantic import BaseModel

from areahub.pricing.engine import DayCounting, VerdictReason
from areahub.schemas.area import AreaResponse


class PackageInfo(BaseModel):
    """The package period a requested stay falls into."""

    rule_id: str | None = None
    name: str
    price: Decimal
    start_date: date
    end_date: date
    is_exact_match: bool


class PriceDay(BaseModel):
    date: date
    price: Decimal
    rule_name: str | None = None


class AvailabilityResponse(BaseModel):
    """Whether an area can be booked for a range, and why not."""

    area_id: uuid.UUID
    check_in: date
    check_out: date
    available: bool
    reason: VerdictReason
    message: str | None = None
    package: PackageInfo | None = None


class QuoteResponse(AvailabilityResponse):
    """Availability plus the per-day price breakdown."""

    day_counting: DayCounting
    day_count: int
    days: list[PriceDay]
    total: Decimal
    currency: str


class AvailableArea(BaseModel):
    area: AreaResponse
    day_count: int
    total: Decimal
    package: PackageInfo | None = None


class AvailableAreaListResponse(BaseModel):
    """Active areas that can be booked for the requested range."""

    check_in: date
    check_out: date
    items: list[AvailableArea]
    total: int
