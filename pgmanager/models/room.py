"""Room ORM model."""

from decimal import Decimal
from enum import Enum

from sqlalchemy import ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pgmanager.models import Base, BaseModel


class RoomStatus(str, Enum):
    """Room availability status."""

    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"
    RESERVED = "reserved"


class Room(Base, BaseModel):
    """Model representing a rentable room.

    Occupancy invariant maintained by the room allocator:
    tenant_id is set <=> status is OCCUPIED <=> current_occupancy >= 1.
    """

    __tablename__ = "rooms"

    room_number: Mapped[str] = mapped_column(String(50), nullable=False)
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("owners.id"),
        nullable=False,
        index=True,
    )
    tenant_id: Mapped[int | None] = mapped_column(
        ForeignKey("tenants.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
        comment="Occupying tenant; at most one room per tenant",
    )
    floor: Mapped[int | None] = mapped_column(Integer, nullable=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    current_occupancy: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rent_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[RoomStatus] = mapped_column(
        SQLEnum(RoomStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=RoomStatus.AVAILABLE,
    )
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Relationships
    owner: Mapped["Owner"] = relationship("Owner", back_populates="rooms")  # noqa: F821
    tenant: Mapped["Tenant | None"] = relationship(  # noqa: F821
        "Tenant",
        back_populates="room",
    )

    __table_args__ = (UniqueConstraint("owner_id", "room_number", name="uq_room_owner_number"),)

    @property
    def is_available(self) -> bool:
        """Whether a new tenant can be assigned to this room."""
        return (
            self.status == RoomStatus.AVAILABLE
            and (self.current_occupancy or 0) < (self.capacity or 1)
            and self.tenant_id is None
        )

    def __repr__(self) -> str:
        return f"<Room(id={self.id}, number={self.room_number!r}, status={self.status})>"


__all__ = ["Room", "RoomStatus"]
