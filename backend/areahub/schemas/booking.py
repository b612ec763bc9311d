"""Pydantic v2 request/response schemas for booking endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from areahub.schemas.area import AreaResponse

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class BookingCreate(BaseModel):
    """Schema for creating a new booking.

    ``total_price`` is optional: when omitted the server prices the stay
    from the area's special prices.
    """

    area_id: uuid.UUID
    guest_name: str = Field(..., min_length=2, max_length=100)
    guest_phone: str | None = Field(None, max_length=20)
    check_in: date
    check_out: date
    num_guests: int = Field(1, ge=1)
    status: str = Field("pending", pattern="^(pending|confirmed)$")
    total_price: Decimal | None = Field(None, gt=0)
    notes: str | None = None

    @field_validator("guest_name")
    @classmethod
    def _strip_guest_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("guest_name must have at least 2 characters")
        return value

    @model_validator(mode="after")
    def check_dates(self) -> "BookingCreate":
        """Validate that check_out is strictly after check_in and check_in is not in the past."""
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        if self.check_in < date.today():
            raise ValueError("check_in cannot be in the past")
        return self


class BookingStatusUpdate(BaseModel):
    """Schema for changing a booking's status."""

    status: str = Field(..., pattern="^(pending|confirmed|cancelled|completed)$")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BookingResponse(BaseModel):
    """Standard booking response returned from CRUD operations."""

    id: uuid.UUID
    area_id: uuid.UUID
    guest_name: str
    guest_phone: str | None = None
    check_in: date
    check_out: date
    num_guests: int
    status: str
    total_price: Decimal
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingDetailResponse(BookingResponse):
    """Booking response with the nested area."""

    area: AreaResponse | None = None


class BookingListResponse(BaseModel):
    """Paginated list of bookings."""

    items: list[BookingResponse]
    total: int
