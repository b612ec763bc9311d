"""SQLAlchemy models for AreaHub.

All models are imported here so that Alembic's autogenerate can discover
them via Base.metadata. If you add a new model, import it in this file.
"""

from areahub.models.area import Area
from areahub.models.booking import Booking

__all__ = [
    "Area",
    "Booking",
]
