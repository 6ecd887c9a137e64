"""Settlement engine for move-out deposit reconciliation.

Lifecycle: initiated -> approved -> paid -> closed.

- initiate: snapshot tenant/room, derive unpaid dues from live payments
- approve: merge deduction overrides and recompute from stored values
- pay: record payout, then release the room and delete the tenant
- close: archive a paid settlement once cleanup has completed

Refund and balance are clamped so exactly one of them can be non-zero:
    refundable = max(0, deposit - total_deductions)
    balance_due = max(0, total_deductions - deposit)
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pgmanager.models import (
    CleanupStatus,
    Owner,
    PaymentMethod,
    Settlement,
    SettlementStatus,
    Tenant,
)
from pgmanager.services.audit_service import AuditService
from pgmanager.services.billing_calendar import utc_now
from pgmanager.services.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from pgmanager.services.parsers import parse_enum, parse_optional_amount
from pgmanager.services.payment_service import PaymentService
from pgmanager.services.room_service import RoomService

logger = logging.getLogger(__name__)

# Deductions an owner may enter; unpaid_due is derived at initiation
MANUAL_DEDUCTIONS = ("damages", "cleaning", "notice_penalty", "other")
OVERRIDABLE_FIELDS = ("unpaid_due",) + MANUAL_DEDUCTIONS + ("notes",)
OPEN_STATUSES = (SettlementStatus.INITIATED, SettlementStatus.APPROVED)


@dataclass(frozen=True)
class SettlementTotals:
    """Computed settlement outcome."""

    total_deductions: Decimal
    refundable_amount: Decimal
    balance_due_from_tenant: Decimal


def compute_settlement(deposit_amount: Decimal, deductions: Mapping[str, Any]) -> SettlementTotals:
    """Compute refund and balance due from a deposit and itemized deductions.

    Missing deduction fields count as 0. Non-monetary keys (notes) are ignored.

    Args:
        deposit_amount: Security deposit held
        deductions: Mapping with any of unpaid_due, damages, cleaning, notice_penalty, other

    Returns:
        SettlementTotals where refundable - balance_due == deposit - total_deductions
    """
    deposit = Decimal(deposit_amount or 0)
    total = sum(
        (Decimal(deductions.get(field) or 0) for field in Settlement.DEDUCTION_FIELDS),
        Decimal("0"),
    )
    return SettlementTotals(
        total_deductions=total,
        refundable_amount=max(Decimal("0"), deposit - total),
        balance_due_from_tenant=max(Decimal("0"), total - deposit),
    )


def _parse_deductions(
    overrides: Optional[Mapping[str, Any]], allowed: tuple
) -> Dict[str, Any]:
    """Validate deduction overrides: known keys only, non-negative amounts."""
    if not overrides:
        return {}

    unknown = set(overrides) - set(allowed)
    if unknown:
        raise ValidationError(f"Unknown deduction fields: {', '.join(sorted(unknown))}")

    parsed: Dict[str, Any] = {}
    for key, value in overrides.items():
        if key == "notes":
            parsed[key] = value
        else:
            parsed[key] = parse_optional_amount(value, key)
    return parsed


class SettlementService:
    """Service for settlement state transitions.

    Every operation is scoped to the calling owner: a settlement or tenant
    that does not exist is NotFound, one owned by someone else is Forbidden.
    """

    def __init__(
        self,
        db: Session,
        payment_service: Optional[PaymentService] = None,
        room_service: Optional[RoomService] = None,
    ):
        """Initialize with database session and collaborating services."""
        self.db = db
        self.payments = payment_service or PaymentService(db)
        self.rooms = room_service or RoomService(db)

    def get_settlement(self, owner_id: int, settlement_id: int) -> Settlement:
        """Get a settlement owned by owner_id.

        Raises:
            NotFoundError: If settlement not found
            ForbiddenError: If settlement belongs to another owner
        """
        settlement = self.db.get(Settlement, settlement_id)
        if not settlement:
            raise NotFoundError(f"Settlement {settlement_id} not found")
        if settlement.owner_id != owner_id:
            logger.warning("Owner %d attempted to access settlement %d", owner_id, settlement_id)
            raise ForbiddenError("Settlement does not belong to this owner")
        return settlement

    def list_settlements(self, owner_id: int, tenant_id: Optional[int] = None) -> List[Settlement]:
        """List an owner's settlements newest first, optionally for one tenant."""
        query = self.db.query(Settlement).filter(Settlement.owner_id == owner_id)
        if tenant_id is not None:
            query = query.filter(Settlement.tenant_id == tenant_id)
        return query.order_by(Settlement.created_at.desc(), Settlement.id.desc()).all()

    def initiate(
        self,
        owner_id: int,
        tenant_id: int,
        deductions: Optional[Mapping[str, Any]] = None,
    ) -> Settlement:
        """Start a move-out settlement for a tenant.

        unpaid_due is the sum of all the tenant's non-paid payments at this
        moment. Tenant name, email and room number are snapshotted.

        Args:
            owner_id: Owner initiating
            tenant_id: Tenant moving out
            deductions: Optional damages, cleaning, notice_penalty, other, notes

        Returns:
            Settlement in INITIATED status

        Raises:
            NotFoundError: If tenant not found
            ForbiddenError: If tenant belongs to another owner
            ConflictError: If the tenant already has an open settlement
            ValidationError: If deductions are invalid
        """
        tenant = self.db.get(Tenant, tenant_id)
        if not tenant:
            raise NotFoundError(f"Tenant {tenant_id} not found")
        if tenant.owner_id != owner_id:
            logger.warning("Owner %d attempted to settle tenant %d", owner_id, tenant_id)
            raise ForbiddenError("Tenant does not belong to this owner")

        manual = _parse_deductions(deductions, MANUAL_DEDUCTIONS + ("notes",))

        open_settlement = (
            self.db.query(Settlement)
            .filter(Settlement.tenant_id == tenant.id, Settlement.status.in_(OPEN_STATUSES))
            .first()
        )
        if open_settlement:
            raise ConflictError(
                f"Tenant {tenant_id} already has an open settlement ({open_settlement.id})"
            )

        room = self.rooms.get_room_for_tenant(tenant.id)
        breakdown: Dict[str, Any] = {field: Decimal("0") for field in MANUAL_DEDUCTIONS}
        breakdown.update(manual)
        breakdown["unpaid_due"] = self.payments.unpaid_due(tenant.id)

        deposit = Decimal(tenant.security_deposit or 0)
        totals = compute_settlement(deposit, breakdown)

        settlement = Settlement(
            tenant_id=tenant.id,
            owner_id=owner_id,
            room_id=room.id if room else None,
            tenant_name=tenant.fullname,
            tenant_email=tenant.email,
            room_number=room.room_number if room else None,
            deposit_amount=deposit,
            unpaid_due=breakdown["unpaid_due"],
            damages=breakdown["damages"],
            cleaning=breakdown["cleaning"],
            notice_penalty=breakdown["notice_penalty"],
            other=breakdown["other"],
            notes=breakdown.get("notes"),
            refundable_amount=totals.refundable_amount,
            balance_due_from_tenant=totals.balance_due_from_tenant,
            status=SettlementStatus.INITIATED,
            cleanup_status=CleanupStatus.NOT_REQUIRED,
        )
        self.db.add(settlement)
        self.db.flush()
        AuditService.log(
            self.db,
            "settlement",
            settlement.id,
            "initiate",
            owner_id,
            {
                "tenant_id": tenant.id,
                "deposit_amount": str(deposit),
                "total_deductions": str(totals.total_deductions),
            },
        )
        self.db.commit()
        self.db.refresh(settlement)

        logger.info(
            "Initiated settlement %d for tenant %d: deposit=%s deductions=%s refundable=%s due=%s",
            settlement.id,
            tenant.id,
            deposit,
            totals.total_deductions,
            totals.refundable_amount,
            totals.balance_due_from_tenant,
        )
        return settlement

    def approve(
        self,
        owner_id: int,
        settlement_id: int,
        deductions: Optional[Mapping[str, Any]] = None,
    ) -> Settlement:
        """Approve a settlement, optionally overriding deduction fields.

        Overrides replace only the keys provided. unpaid_due is not re-derived
        from live payments; totals are recomputed from the stored, merged
        values. The deposit amount is never recomputed.

        Raises:
            ConflictError: If the settlement is already paid or closed
            ValidationError: If overrides are invalid
        """
        settlement = self.get_settlement(owner_id, settlement_id)
        if settlement.status not in OPEN_STATUSES:
            raise ConflictError(f"Cannot approve a settlement in status {settlement.status.value}")

        overrides = _parse_deductions(deductions, OVERRIDABLE_FIELDS)
        for key, value in overrides.items():
            setattr(settlement, key, value)

        merged = {field: getattr(settlement, field) for field in Settlement.DEDUCTION_FIELDS}
        totals = compute_settlement(settlement.deposit_amount, merged)
        settlement.refundable_amount = totals.refundable_amount
        settlement.balance_due_from_tenant = totals.balance_due_from_tenant
        settlement.status = SettlementStatus.APPROVED

        AuditService.log(
            self.db,
            "settlement",
            settlement.id,
            "approve",
            owner_id,
            {key: str(value) for key, value in overrides.items()} or None,
        )
        self.db.commit()
        self.db.refresh(settlement)

        logger.info(
            "Approved settlement %d: refundable=%s due=%s",
            settlement.id,
            settlement.refundable_amount,
            settlement.balance_due_from_tenant,
        )
        return settlement

    def pay(
        self,
        owner_id: int,
        settlement_id: int,
        payment_method: Optional[str] = None,
        transaction_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Settlement:
        """Record the payout and run move-out cleanup.

        The PAID status is committed first and is never rolled back. Room
        release and tenant deletion then run as one transaction; if it fails
        the settlement is flagged with cleanup_status FAILED for retry_cleanup.

        Args:
            owner_id: Owner paying out
            settlement_id: Settlement to pay
            payment_method: cash, upi, bank_transfer, card or other (default: cash)
            transaction_id: External reference (optional)
            now: Reference time for processed_date (default: current UTC time)

        Returns:
            Settlement in PAID status

        Raises:
            ConflictError: If the settlement is not approved
        """
        settlement = self.get_settlement(owner_id, settlement_id)
        if settlement.status != SettlementStatus.APPROVED:
            raise ConflictError(
                f"Only approved settlements can be paid (status: {settlement.status.value})"
            )

        owner = self.db.get(Owner, owner_id)
        if payment_method:
            settlement.payment_method = parse_enum(payment_method, PaymentMethod, "payment_method")
        elif settlement.payment_method is None:
            settlement.payment_method = PaymentMethod.CASH
        if transaction_id:
            settlement.transaction_id = transaction_id
        settlement.processed_date = now or utc_now()
        settlement.processed_by = (owner.fullname or owner.email) if owner else str(owner_id)
        settlement.status = SettlementStatus.PAID
        settlement.cleanup_status = CleanupStatus.PENDING

        AuditService.log(
            self.db,
            "settlement",
            settlement.id,
            "pay",
            owner_id,
            {
                "payment_method": settlement.payment_method.value,
                "refundable_amount": str(settlement.refundable_amount),
                "balance_due_from_tenant": str(settlement.balance_due_from_tenant),
            },
        )
        self.db.commit()
        logger.info("Settlement %d marked paid by owner %d", settlement.id, owner_id)

        self._run_cleanup(settlement, owner_id)
        self.db.refresh(settlement)
        return settlement

    def retry_cleanup(self, owner_id: int, settlement_id: int) -> Settlement:
        """Re-run room release and tenant deletion for a paid settlement.

        Raises:
            ConflictError: If the settlement is not paid or cleanup already done
        """
        settlement = self.get_settlement(owner_id, settlement_id)
        if settlement.status != SettlementStatus.PAID:
            raise ConflictError("Cleanup only applies to paid settlements")
        if settlement.cleanup_status == CleanupStatus.DONE:
            raise ConflictError(f"Cleanup for settlement {settlement_id} already completed")

        self._run_cleanup(settlement, owner_id)
        self.db.refresh(settlement)
        return settlement

    def close(self, owner_id: int, settlement_id: int) -> Settlement:
        """Archive a paid settlement whose cleanup has completed.

        Raises:
            ConflictError: If the settlement is not paid or cleanup is incomplete
        """
        settlement = self.get_settlement(owner_id, settlement_id)
        if settlement.status != SettlementStatus.PAID:
            raise ConflictError(
                f"Only paid settlements can be closed (status: {settlement.status.value})"
            )
        if settlement.cleanup_status != CleanupStatus.DONE:
            raise ConflictError("Cannot close settlement while move-out cleanup is incomplete")

        settlement.status = SettlementStatus.CLOSED
        AuditService.log(self.db, "settlement", settlement.id, "close", owner_id)
        self.db.commit()
        self.db.refresh(settlement)
        logger.info("Closed settlement %d", settlement.id)
        return settlement

    def _run_cleanup(self, settlement: Settlement, owner_id: int) -> bool:
        """Release the tenant's room and delete the tenant in one transaction.

        Returns:
            True if cleanup completed, False if it failed and was flagged
        """
        settlement_id = settlement.id
        tenant_id = settlement.tenant_id
        tenant = self.db.get(Tenant, tenant_id) if tenant_id is not None else None

        if tenant is not None and tenant.owner_id != owner_id:
            # Settlement and tenant disagree on owner; never delete another owner's tenant
            tenant = None

        try:
            if tenant is not None:
                self.rooms.release_and_delete_tenant(tenant)
            settlement.cleanup_status = CleanupStatus.DONE
            settlement.cleanup_error = None
            AuditService.log(
                self.db,
                "settlement",
                settlement_id,
                "cleanup",
                owner_id,
                {"tenant_id": tenant_id, "tenant_deleted": tenant is not None},
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                "Move-out cleanup failed for settlement %d (tenant %s); room/tenant left in place",
                settlement_id,
                tenant_id,
                exc_info=True,
            )
            settlement = self.db.get(Settlement, settlement_id)
            settlement.cleanup_status = CleanupStatus.FAILED
            settlement.cleanup_error = str(e)
            AuditService.log(
                self.db,
                "settlement",
                settlement_id,
                "cleanup_failed",
                owner_id,
                {"tenant_id": tenant_id, "error": str(e)},
            )
            self.db.commit()
            return False

        logger.info("Move-out cleanup done for settlement %d (tenant %s)", settlement_id, tenant_id)
        return True


__all__ = [
    "SettlementService",
    "SettlementTotals",
    "compute_settlement",
]
