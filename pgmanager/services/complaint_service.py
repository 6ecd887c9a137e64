"""Complaint service for tenant-filed maintenance complaints."""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from pgmanager.models import (
    Complaint,
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
    Room,
    Tenant,
)
from pgmanager.services.billing_calendar import utc_now
from pgmanager.services.errors import ForbiddenError, NotFoundError, ValidationError
from pgmanager.services.parsers import parse_enum

logger = logging.getLogger(__name__)


class ComplaintService:
    """Service for complaint filing and owner-side handling."""

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def file_complaint(
        self,
        tenant_id: int,
        title: str,
        complaint: str,
        category: Optional[str] = None,
        priority: Optional[str] = None,
    ) -> Complaint:
        """File a complaint; owner and room are taken from the tenant.

        Raises:
            NotFoundError: If tenant not found
            ValidationError: If title or text missing, or category/priority invalid
        """
        tenant = self.db.get(Tenant, tenant_id)
        if not tenant:
            raise NotFoundError(f"Tenant {tenant_id} not found")

        title = (title or "").strip()
        text = (complaint or "").strip()
        if not title:
            raise ValidationError("title is required")
        if not text:
            raise ValidationError("complaint is required")

        room = self.db.query(Room).filter(Room.tenant_id == tenant.id).first()
        record = Complaint(
            tenant_id=tenant.id,
            owner_id=tenant.owner_id,
            room_id=room.id if room else None,
            title=title,
            complaint=text,
            category=parse_enum(category, ComplaintCategory, "category") if category else ComplaintCategory.OTHER,
            priority=parse_enum(priority, ComplaintPriority, "priority") if priority else ComplaintPriority.MEDIUM,
            status=ComplaintStatus.PENDING,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        logger.info("Tenant %d filed complaint %d (%s)", tenant.id, record.id, record.category.value)
        return record

    def list_for_tenant(self, tenant_id: int) -> List[Complaint]:
        """List a tenant's own complaints newest first."""
        return (
            self.db.query(Complaint)
            .filter(Complaint.tenant_id == tenant_id)
            .order_by(Complaint.created_at.desc(), Complaint.id.desc())
            .all()
        )

    def list_for_owner(self, owner_id: int, status: Optional[str] = None) -> List[Complaint]:
        """List complaints against an owner's property newest first."""
        query = self.db.query(Complaint).filter(Complaint.owner_id == owner_id)
        if status:
            query = query.filter(Complaint.status == parse_enum(status, ComplaintStatus, "status"))
        return query.order_by(Complaint.created_at.desc(), Complaint.id.desc()).all()

    def update_complaint(
        self,
        owner_id: int,
        complaint_id: int,
        status: str,
        remarks: Optional[str] = None,
        resolved_by: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Complaint:
        """Change a complaint's status; resolving stamps resolved_date.

        Raises:
            NotFoundError: If complaint not found
            ForbiddenError: If complaint belongs to another owner
        """
        record = self.db.get(Complaint, complaint_id)
        if not record:
            raise NotFoundError(f"Complaint {complaint_id} not found")
        if record.owner_id != owner_id:
            raise ForbiddenError("Complaint does not belong to this owner")

        new_status = parse_enum(status, ComplaintStatus, "status")
        record.status = new_status
        if new_status == ComplaintStatus.RESOLVED:
            record.resolved_date = now or utc_now()
            record.resolved_by = resolved_by
        if remarks is not None:
            record.remarks = remarks

        self.db.commit()
        self.db.refresh(record)
        logger.info("Complaint %d set to %s by owner %d", record.id, new_status.value, owner_id)
        return record


__all__ = ["ComplaintService"]
