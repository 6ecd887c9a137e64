"""Room allocation service: room creation, tenant assignment and release.

Keeps the occupancy invariant on every write:
tenant_id is set <=> status is OCCUPIED <=> current_occupancy >= 1.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pgmanager.models import Room, RoomStatus, Tenant, TenantStatus
from pgmanager.services.audit_service import AuditService
from pgmanager.services.billing_calendar import billing_date
from pgmanager.services.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from pgmanager.services.parsers import (
    parse_amount,
    parse_enum,
    parse_join_date,
    parse_optional_amount,
)

logger = logging.getLogger(__name__)


@dataclass
class TenantPayload:
    """Fields for a tenant being assigned to a room."""

    fullname: str
    email: str
    rent_amount: Any
    security_deposit: Any = None
    join_date: Optional[date] = None
    phone: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    emergency_contact_relation: Optional[str] = None


class RoomService:
    """Service for room and occupancy operations.

    Used by the HTTP layer and the settlement engine; never commits a
    tenant without the matching room occupation.
    """

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def get_room_by_number(self, owner_id: int, room_number: str) -> Room | None:
        """Get an owner's room by its number."""
        return (
            self.db.query(Room)
            .filter(Room.owner_id == owner_id, Room.room_number == room_number)
            .first()
        )

    def get_room_for_tenant(self, tenant_id: int) -> Room | None:
        """Get the room currently occupied by a tenant."""
        return self.db.query(Room).filter(Room.tenant_id == tenant_id).first()

    def list_rooms(self, owner_id: int) -> List[Room]:
        """List an owner's rooms ordered by room number."""
        return (
            self.db.query(Room)
            .filter(Room.owner_id == owner_id)
            .order_by(Room.room_number)
            .all()
        )

    def create_room(
        self,
        owner_id: int,
        room_number: str,
        rent_amount,
        capacity: int = 1,
        floor: Optional[int] = None,
        description: Optional[str] = None,
    ) -> Room:
        """Create an available room.

        Raises:
            ValidationError: If room number missing, rent not positive or capacity < 1
            ConflictError: If the owner already has a room with this number
        """
        room_number = (room_number or "").strip()
        if not room_number:
            raise ValidationError("room_number is required")
        amount = parse_amount(rent_amount, "rent_amount", allow_zero=False)
        if capacity is None or int(capacity) < 1:
            raise ValidationError("capacity must be at least 1")

        if self.get_room_by_number(owner_id, room_number):
            raise ConflictError(f"Room {room_number} already exists")

        room = Room(
            owner_id=owner_id,
            room_number=room_number,
            rent_amount=amount,
            capacity=int(capacity),
            current_occupancy=0,
            floor=floor,
            description=description,
            status=RoomStatus.AVAILABLE,
        )
        self.db.add(room)
        self.db.commit()
        self.db.refresh(room)
        logger.info("Created room %s (id=%d) for owner %d", room_number, room.id, owner_id)
        return room

    def assign_tenant(self, owner_id: int, room_number: str, payload: TenantPayload) -> Tenant:
        """Create a tenant and occupy the given room in one transaction.

        A missing room is created as available first. An existing room must
        be available with no tenant; it is never silently reassigned.

        Args:
            owner_id: Owner adding the tenant
            room_number: Room to occupy
            payload: Tenant fields

        Returns:
            Created Tenant

        Raises:
            ValidationError: If required tenant fields are missing or invalid
            ConflictError: If the room is not available or the email is taken
        """
        room_number = (room_number or "").strip()
        if not room_number:
            raise ValidationError("room_number is required")
        fullname = (payload.fullname or "").strip()
        email = (payload.email or "").strip().lower()
        if not fullname:
            raise ValidationError("fullname is required")
        if not email or "@" not in email:
            raise ValidationError("A valid email is required")
        rent_amount = parse_amount(payload.rent_amount, "rent_amount", allow_zero=False)
        security_deposit = parse_optional_amount(payload.security_deposit, "security_deposit")
        join_date = parse_join_date(payload.join_date) if payload.join_date else billing_date()

        if self.db.query(Tenant).filter(Tenant.email == email).first():
            raise ConflictError(f"Email {email} is already registered")

        room = self.get_room_by_number(owner_id, room_number)
        if room is not None and not room.is_available:
            logger.warning(
                "Rejected assignment to room %s for owner %d: status=%s tenant_id=%s",
                room_number,
                owner_id,
                room.status,
                room.tenant_id,
            )
            raise ConflictError(f"Room {room_number} is not available")

        try:
            if room is None:
                room = Room(
                    owner_id=owner_id,
                    room_number=room_number,
                    rent_amount=rent_amount,
                    capacity=1,
                    current_occupancy=0,
                    status=RoomStatus.AVAILABLE,
                )
                self.db.add(room)

            tenant = Tenant(
                owner_id=owner_id,
                fullname=fullname,
                email=email,
                phone=payload.phone,
                emergency_contact_name=payload.emergency_contact_name,
                emergency_contact_phone=payload.emergency_contact_phone,
                emergency_contact_relation=payload.emergency_contact_relation,
                rent_amount=rent_amount,
                security_deposit=security_deposit,
                join_date=join_date,
                status=TenantStatus.ACTIVE,
            )
            self.db.add(tenant)
            self.db.flush()

            room.tenant_id = tenant.id
            room.status = RoomStatus.OCCUPIED
            room.current_occupancy = 1

            AuditService.log(
                self.db, "tenant", tenant.id, "assign", owner_id, {"room_number": room_number}
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        self.db.refresh(tenant)
        logger.info("Assigned tenant %d (%s) to room %s", tenant.id, email, room_number)
        return tenant

    def release_room(self, room: Room) -> Room:
        """Clear a room's occupancy. Does not commit; callers compose it with other writes."""
        room.tenant_id = None
        room.status = RoomStatus.AVAILABLE
        room.current_occupancy = 0
        return room

    def release_and_delete_tenant(self, tenant: Tenant) -> Room | None:
        """Release the tenant's room and delete the tenant. Does not commit.

        Returns:
            The released room, or None if the tenant had none
        """
        room = self.get_room_for_tenant(tenant.id)
        if room is not None:
            self.release_room(room)
            # Release must hit the database before the tenant row goes away
            self.db.flush()
        self.db.delete(tenant)
        self.db.flush()
        return room

    def remove_tenant(self, owner_id: int, tenant_id: int) -> None:
        """Release the tenant's room and delete the tenant atomically.

        Raises:
            NotFoundError: If tenant not found
            ForbiddenError: If tenant belongs to another owner
            SQLAlchemyError: If the store fails; nothing is changed in that case
        """
        tenant = self.db.get(Tenant, tenant_id)
        if not tenant:
            raise NotFoundError(f"Tenant {tenant_id} not found")
        if tenant.owner_id != owner_id:
            raise ForbiddenError("Tenant does not belong to this owner")

        try:
            room = self.release_and_delete_tenant(tenant)
            AuditService.log(
                self.db,
                "tenant",
                tenant_id,
                "remove",
                owner_id,
                {"room_number": room.room_number if room else None},
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error("Failed to remove tenant %d; room and tenant left unchanged", tenant_id)
            raise

        logger.info("Removed tenant %d and released their room", tenant_id)

    def update_room_status(self, owner_id: int, room_id: int, status: str) -> Room:
        """Move an unoccupied room between available, maintenance and reserved.

        Raises:
            ConflictError: If the room is occupied or OCCUPIED is requested directly
        """
        room = self.db.get(Room, room_id)
        if not room:
            raise NotFoundError(f"Room {room_id} not found")
        if room.owner_id != owner_id:
            raise ForbiddenError("Room does not belong to this owner")

        new_status = parse_enum(status, RoomStatus, "status")
        if new_status == RoomStatus.OCCUPIED:
            raise ConflictError("Rooms become occupied only through tenant assignment")
        if room.tenant_id is not None:
            raise ConflictError(f"Room {room.room_number} is occupied")

        room.status = new_status
        self.db.commit()
        self.db.refresh(room)
        return room


__all__ = ["RoomService", "TenantPayload"]
