"""Area model — a rentable venue with its base price and special prices."""

from decimal import Decimal

from sqlalchemy import JSON, Boolean, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from areahub.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Area(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A listing guests can book by the day.

    ``special_prices`` holds the ordered rule records (see
    ``areahub.pricing.rules``).  Always assign a new list when changing it;
    in-place mutation of the JSON value is not tracked.
    """

    __tablename__ = "areas"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    address: Mapped[str | None] = mapped_column(String(255), default=None)
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    max_guests: Mapped[int] = mapped_column(default=1)
    amenities: Mapped[list | None] = mapped_column(JSON, server_default="[]")
    special_prices: Mapped[list] = mapped_column(JSON, default=list, server_default="[]")
    active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    # Relationships
    bookings: Mapped[list["Booking"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        back_populates="area", lazy="selectin", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Area(id={self.id}, name={self.name!r}, active={self.active})>"
