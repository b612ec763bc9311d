"""Pydantic v2 request/response schemas for area endpoints."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from areahub.schemas.special_price import SpecialPrice, valid_stored_special_prices

_REQUIRED_AREA_FIELDS = ("name", "base_price", "max_guests", "active")

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class AreaCreate(BaseModel):
    """Schema for creating a new area."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    address: str | None = Field(None, max_length=255)
    base_price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    max_guests: int = Field(1, ge=1)
    amenities: list[str] | None = None
    special_prices: list[SpecialPrice] = Field(default_factory=list)
    active: bool = True


class AreaUpdate(BaseModel):
    """Schema for partially updating an area. All fields optional.

    ``special_prices`` replaces the whole list when present.
    """

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    address: str | None = Field(None, max_length=255)
    base_price: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    max_guests: int | None = Field(None, ge=1)
    amenities: list[str] | None = None
    special_prices: list[SpecialPrice] | None = None
    active: bool | None = None

    @model_validator(mode="after")
    def _reject_null_required_fields(self) -> "AreaUpdate":
        """Omitting a field leaves it unchanged; sending null for a required one is an error."""
        for field in _REQUIRED_AREA_FIELDS:
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class AreaResponse(BaseModel):
    """Public area information returned from the API."""

    id: uuid.UUID
    name: str
    description: str | None = None
    address: str | None = None
    base_price: Decimal
    max_guests: int
    amenities: list | None = None
    special_prices: list[SpecialPrice] = []
    active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("special_prices", mode="before")
    @classmethod
    def _drop_invalid_special_prices(cls, value: Any) -> list:
        return valid_stored_special_prices(value)


class AreaListResponse(BaseModel):
    """Paginated list of areas."""

    items: list[AreaResponse]
    total: int
