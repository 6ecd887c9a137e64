"""Settlement ORM model for move-out deposit reconciliation."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pgmanager.models import Base, BaseModel
from pgmanager.models.payment import PaymentMethod


class SettlementStatus(str, Enum):
    """Settlement lifecycle: initiated -> approved -> paid -> closed."""

    INITIATED = "initiated"
    APPROVED = "approved"
    PAID = "paid"
    CLOSED = "closed"


class CleanupStatus(str, Enum):
    """State of the room release + tenant deletion that follows payout."""

    NOT_REQUIRED = "not_required"
    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"


class Settlement(Base, BaseModel):
    """Move-out settlement of a tenant's security deposit.

    tenant_name, tenant_email and room_number are snapshots taken at
    initiation so the record stays displayable after the tenant is deleted.
    """

    __tablename__ = "settlements"

    tenant_id: Mapped[int | None] = mapped_column(
        ForeignKey("tenants.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    owner_id: Mapped[int] = mapped_column(ForeignKey("owners.id"), nullable=False, index=True)
    room_id: Mapped[int | None] = mapped_column(
        ForeignKey("rooms.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Snapshots
    tenant_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    tenant_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    room_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    deposit_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )

    # Itemized deductions
    unpaid_due: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    damages: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    cleaning: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    notice_penalty: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )
    other: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Computed outcome
    refundable_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )
    balance_due_from_tenant: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )

    status: Mapped[SettlementStatus] = mapped_column(
        SQLEnum(SettlementStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=SettlementStatus.INITIATED,
    )
    payment_method: Mapped[PaymentMethod | None] = mapped_column(
        SQLEnum(PaymentMethod, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=True,
    )
    transaction_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    processed_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    processed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Payout cleanup tracking
    cleanup_status: Mapped[CleanupStatus] = mapped_column(
        SQLEnum(CleanupStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=CleanupStatus.NOT_REQUIRED,
    )
    cleanup_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    tenant: Mapped["Tenant | None"] = relationship(  # noqa: F821
        "Tenant",
        back_populates="settlements",
    )

    __table_args__ = (Index("idx_settlement_owner_status", "owner_id", "status"),)

    DEDUCTION_FIELDS = ("unpaid_due", "damages", "cleaning", "notice_penalty", "other")

    @property
    def total_deductions(self) -> Decimal:
        """Sum of all monetary deduction fields."""
        return sum(
            (Decimal(getattr(self, field) or 0) for field in self.DEDUCTION_FIELDS),
            Decimal("0"),
        )

    def __repr__(self) -> str:
        return (
            f"<Settlement(id={self.id}, tenant_id={self.tenant_id}, status={self.status}, "
            f"refundable={self.refundable_amount}, due={self.balance_due_from_tenant})>"
        )


__all__ = ["CleanupStatus", "Settlement", "SettlementStatus"]
