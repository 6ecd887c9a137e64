"""Monthly rent Payment ORM model."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, DateTime, ForeignKey, Index, Numeric, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pgmanager.models import Base, BaseModel


class PaymentStatus(str, Enum):
    """Rent payment status."""

    PENDING = "pending"
    OVERDUE = "overdue"
    PARTIAL = "partial"
    PAID = "paid"


class PaymentMethod(str, Enum):
    """How money changed hands (shared by payments and settlements)."""

    CASH = "cash"
    UPI = "upi"
    BANK_TRANSFER = "bank_transfer"
    CARD = "card"
    OTHER = "other"


class Payment(Base, BaseModel):
    """One month of rent owed by a tenant.

    At most one record per (tenant_id, month); the generator checks for an
    existing row before inserting instead of relying on a unique constraint.
    """

    __tablename__ = "payments"

    tenant_id: Mapped[int | None] = mapped_column(
        ForeignKey("tenants.id", ondelete="SET NULL"),
        nullable=True,
        comment="Nulled when the tenant is deleted after move-out",
    )
    owner_id: Mapped[int] = mapped_column(ForeignKey("owners.id"), nullable=False)
    room_id: Mapped[int | None] = mapped_column(
        ForeignKey("rooms.id", ondelete="SET NULL"),
        nullable=True,
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    month: Mapped[str] = mapped_column(String(7), nullable=False, comment="Month key YYYY-MM")
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    paid_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SQLEnum(PaymentMethod, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=PaymentMethod.CASH,
    )
    transaction_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    remarks: Mapped[str | None] = mapped_column(String(500), nullable=True)
    late_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))

    # Relationships
    tenant: Mapped["Tenant | None"] = relationship(  # noqa: F821
        "Tenant",
        back_populates="payments",
    )
    room: Mapped["Room | None"] = relationship("Room")  # noqa: F821

    __table_args__ = (
        Index("idx_payment_tenant_month", "tenant_id", "month"),
        Index("idx_payment_owner_status", "owner_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Payment(id={self.id}, tenant_id={self.tenant_id}, month={self.month}, "
            f"amount={self.amount}, status={self.status})>"
        )


__all__ = ["Payment", "PaymentMethod", "PaymentStatus"]
