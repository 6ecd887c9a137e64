"""Owner and Tenant ORM models."""

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, ForeignKey, Index, Numeric, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pgmanager.models import Base, BaseModel


class TenantStatus(str, Enum):
    """Tenancy status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    LEFT = "left"


class Owner(Base, BaseModel):
    """Account managing one property's rooms and tenants."""

    __tablename__ = "owners"

    fullname: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True, comment="Lower-cased login email"
    )
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    pg_name: Mapped[str | None] = mapped_column(
        String(255), nullable=True, comment="Display name of the paying-guest property"
    )

    tenants: Mapped[list["Tenant"]] = relationship(
        "Tenant",
        back_populates="owner",
    )
    rooms: Mapped[list["Room"]] = relationship(  # noqa: F821
        "Room",
        back_populates="owner",
    )

    def __repr__(self) -> str:
        return f"<Owner(id={self.id}, email={self.email!r})>"


class Tenant(Base, BaseModel):
    """Renter scoped to one owner.

    The assigned room is not stored here; it is the Room whose tenant_id
    points at this row. Deleting a tenant nulls the tenant reference on its
    payments, settlements and complaints so the history survives.
    """

    __tablename__ = "tenants"

    fullname: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, comment="Lower-cased login email"
    )
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("owners.id"),
        nullable=False,
        index=True,
    )
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Emergency contact
    emergency_contact_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    emergency_contact_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    emergency_contact_relation: Mapped[str | None] = mapped_column(String(100), nullable=True)

    rent_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Current monthly rent; new payment records snapshot this value",
    )
    security_deposit: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0"),
    )
    join_date: Mapped[date] = mapped_column(Date, nullable=False)
    leave_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[TenantStatus] = mapped_column(
        SQLEnum(TenantStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TenantStatus.ACTIVE,
    )

    # Relationships
    owner: Mapped["Owner"] = relationship("Owner", back_populates="tenants")
    room: Mapped["Room | None"] = relationship(  # noqa: F821
        "Room",
        back_populates="tenant",
        uselist=False,
    )
    payments: Mapped[list["Payment"]] = relationship(  # noqa: F821
        "Payment",
        back_populates="tenant",
    )
    settlements: Mapped[list["Settlement"]] = relationship(  # noqa: F821
        "Settlement",
        back_populates="tenant",
    )
    complaints: Mapped[list["Complaint"]] = relationship(  # noqa: F821
        "Complaint",
        back_populates="tenant",
    )

    __table_args__ = (Index("idx_tenant_owner_status", "owner_id", "status"),)

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, email={self.email!r}, status={self.status})>"


__all__ = ["Owner", "Tenant", "TenantStatus"]
