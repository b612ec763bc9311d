"""Shared API dependencies — single import point for all routers.

Re-exports the database session dependency and provides lookups shared by
several routers::

    from areahub.api.deps import get_area_or_404, get_db
"""

import uuid

from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from areahub.database import get_db
from areahub.models.area import Area


async def fetch_area(db: AsyncSession, area_id: uuid.UUID) -> Area:
    """Load an area by id or raise ``HTTPException 404``."""
    result = await db.execute(select(Area).where(Area.id == area_id))
    area = result.scalar_one_or_none()
    if area is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Area not found",
        )
    return area


async def get_area_or_404(
    area_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> Area:
    """Path dependency resolving ``{area_id}`` to an :class:`Area`."""
    return await fetch_area(db, area_id)


__all__ = [
    "get_db",
    "fetch_area",
    "get_area_or_404",
]
