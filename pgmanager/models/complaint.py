"""Maintenance complaint ORM model."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pgmanager.models import Base, BaseModel


class ComplaintCategory(str, Enum):
    ELECTRICAL = "electrical"
    PLUMBING = "plumbing"
    CLEANING = "cleaning"
    MAINTENANCE = "maintenance"
    SECURITY = "security"
    OTHER = "other"


class ComplaintPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ComplaintStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class Complaint(Base, BaseModel):
    """Complaint filed by a tenant and handled by the owner."""

    __tablename__ = "complaints"

    tenant_id: Mapped[int | None] = mapped_column(
        ForeignKey("tenants.id", ondelete="SET NULL"),
        nullable=True,
    )
    owner_id: Mapped[int] = mapped_column(ForeignKey("owners.id"), nullable=False)
    room_id: Mapped[int | None] = mapped_column(
        ForeignKey("rooms.id", ondelete="SET NULL"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    complaint: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[ComplaintCategory] = mapped_column(
        SQLEnum(ComplaintCategory, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ComplaintCategory.OTHER,
    )
    priority: Mapped[ComplaintPriority] = mapped_column(
        SQLEnum(ComplaintPriority, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ComplaintPriority.MEDIUM,
    )
    status: Mapped[ComplaintStatus] = mapped_column(
        SQLEnum(ComplaintStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ComplaintStatus.PENDING,
    )
    resolved_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    tenant: Mapped["Tenant | None"] = relationship(  # noqa: F821
        "Tenant",
        back_populates="complaints",
    )

    __table_args__ = (
        Index("idx_complaint_tenant_status", "tenant_id", "status"),
        Index("idx_complaint_owner_status", "owner_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Complaint(id={self.id}, title={self.title!r}, status={self.status})>"


__all__ = ["Complaint", "ComplaintCategory", "ComplaintPriority", "ComplaintStatus"]
