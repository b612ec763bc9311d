"""Special-price API routes — manage the pricing rules of one area.

Rules live on the area as an ordered list; order matters because the first
matching rule of a tier wins.  New rules are appended.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from areahub.api.deps import get_area_or_404, get_db
from areahub.models.area import Area
from areahub.schemas.common import MessageResponse
from areahub.schemas.special_price import (
    SpecialPriceBody,
    SpecialPriceListResponse,
    SpecialPriceUpdate,
    special_price_adapter,
    valid_stored_special_prices,
)
from areahub.services.pricing_service import check_special_price_dates, parse_stored_special_price

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/areas/{area_id}/special-prices", tags=["special-prices"])


def _find_rule_index(area: Area, price_id: str) -> int:
    """Position of the rule with ``price_id`` or raise 404."""
    for index, record in enumerate(area.special_prices or []):
        if isinstance(record, dict) and record.get("id") == price_id:
            return index
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Special price not found",
    )


def _unprocessable(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


@router.get(
    "",
    response_model=SpecialPriceListResponse,
    summary="List an area's special prices",
)
async def list_special_prices(area: Area = Depends(get_area_or_404)) -> SpecialPriceListResponse:
    items = valid_stored_special_prices(area.special_prices)
    return SpecialPriceListResponse(items=items, total=len(items))


@router.post(
    "",
    response_model=SpecialPriceBody,
    status_code=status.HTTP_201_CREATED,
    summary="Add a special price",
)
async def create_special_price(
    body: SpecialPriceBody,
    area: Area = Depends(get_area_or_404),
    db: AsyncSession = Depends(get_db),
) -> SpecialPriceBody:
    """Append a rule to the area. Any client-supplied ``id`` is replaced."""
    rule = body.root.model_copy(update={"id": uuid.uuid4().hex})
    try:
        check_special_price_dates(rule)
    except ValueError as exc:
        raise _unprocessable(str(exc)) from exc

    area.special_prices = [*(area.special_prices or []), rule.model_dump(mode="json")]
    await db.flush()
    logger.info("Added %s special price %s to area %s", rule.type, rule.id, area.id)
    return SpecialPriceBody(rule)


@router.put(
    "/{price_id}",
    response_model=SpecialPriceBody,
    summary="Update a special price",
)
async def update_special_price(
    price_id: str,
    body: SpecialPriceUpdate,
    area: Area = Depends(get_area_or_404),
    db: AsyncSession = Depends(get_db),
) -> SpecialPriceBody:
    """Merge the sent fields over the stored rule and re-validate the result."""
    index = _find_rule_index(area, price_id)
    stored = area.special_prices[index]

    merged = {**stored, **body.model_dump(exclude_unset=True), "id": price_id}
    try:
        rule = special_price_adapter.validate_python(merged)
    except ValidationError as exc:
        raise _unprocessable("; ".join(error["msg"] for error in exc.errors())) from exc

    try:
        check_special_price_dates(rule, parse_stored_special_price(stored))
    except ValueError as exc:
        raise _unprocessable(str(exc)) from exc

    records = list(area.special_prices)
    records[index] = rule.model_dump(mode="json")
    area.special_prices = records
    await db.flush()
    logger.info("Updated special price %s of area %s", price_id, area.id)
    return SpecialPriceBody(rule)


@router.delete(
    "/{price_id}",
    response_model=MessageResponse,
    summary="Delete a special price",
)
async def delete_special_price(
    price_id: str,
    area: Area = Depends(get_area_or_404),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    index = _find_rule_index(area, price_id)
    area.special_prices = [record for i, record in enumerate(area.special_prices) if i != index]
    await db.flush()
    logger.info("Deleted special price %s of area %s", price_id, area.id)
    return MessageResponse(message="Special price deleted")
