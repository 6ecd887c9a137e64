"""Rent ledger service: monthly payment generation, overdue sweeping and updates.

Provides methods for:
- Generating one Payment per month from a tenant's join date to now
- Batch generation for every active tenant of an owner
- Reclassifying stale pending payments as overdue
- Listing payments for owners and tenants (sweeping first)
- Recording payment status changes and rent changes
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pgmanager.models import (
    Payment,
    PaymentMethod,
    PaymentStatus,
    Room,
    Tenant,
    TenantStatus,
)
from pgmanager.services.billing_calendar import (
    billing_date,
    due_date_for,
    is_past_due,
    iter_months,
    month_key,
    parse_month_key,
    utc_now,
)
from pgmanager.services.config import DEFAULT_RENT_DUE_DAY
from pgmanager.services.errors import (
    ConflictError,
    ForbiddenError,
    LedgerError,
    NotFoundError,
)
from pgmanager.services.parsers import parse_amount, parse_enum, parse_month

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Outcome of payment generation for one tenant in a batch run."""

    tenant_id: int
    tenant_name: str
    records_created: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PaymentService:
    """Rent ledger operations service."""

    def __init__(self, db: Session, due_day: int = DEFAULT_RENT_DUE_DAY):
        """Initialize payment service.

        Args:
            db: SQLAlchemy database session
            due_day: Day of month on which rent falls due
        """
        self.db = db
        self.due_day = due_day

    def _get_tenant(self, tenant_id: int, owner_id: Optional[int] = None) -> Tenant:
        """Load a tenant, optionally checking it belongs to owner_id.

        Raises:
            NotFoundError: If tenant does not exist
            ForbiddenError: If tenant belongs to another owner
        """
        tenant = self.db.get(Tenant, tenant_id)
        if not tenant:
            raise NotFoundError(f"Tenant {tenant_id} not found")
        if owner_id is not None and tenant.owner_id != owner_id:
            logger.warning("Owner %s attempted to access tenant %s", owner_id, tenant_id)
            raise ForbiddenError("Tenant does not belong to this owner")
        return tenant

    def _get_payment(self, payment_id: int, owner_id: int) -> Payment:
        payment = self.db.get(Payment, payment_id)
        if not payment:
            raise NotFoundError(f"Payment {payment_id} not found")
        if payment.owner_id != owner_id:
            raise ForbiddenError("Payment does not belong to this owner")
        return payment

    def generate_for_tenant(
        self,
        tenant_id: int,
        now: Optional[datetime] = None,
        owner_id: Optional[int] = None,
    ) -> List[Payment]:
        """Create the missing monthly payments for a tenant.

        One Payment per calendar month from the month of join_date through
        the current month. Months that already have a record are skipped, so
        calling twice creates nothing the second time.

        Args:
            tenant_id: Tenant to generate for
            now: Reference time (default: current UTC time)
            owner_id: When given, the tenant must belong to this owner

        Returns:
            List of created Payment objects (empty when up to date)

        Raises:
            NotFoundError: If tenant not found
            ConflictError: If tenant has no assigned room
        """
        now = now or utc_now()
        tenant = self._get_tenant(tenant_id, owner_id)

        room = self.db.query(Room).filter(Room.tenant_id == tenant.id).first()
        if not room:
            raise ConflictError(f"Tenant {tenant_id} has no assigned room")

        existing_months = {
            month for (month,) in self.db.query(Payment.month).filter(Payment.tenant_id == tenant.id)
        }

        created: List[Payment] = []
        for month_start in iter_months(tenant.join_date, billing_date(now)):
            key = month_key(month_start)
            if key in existing_months:
                continue

            due_date = due_date_for(month_start, self.due_day)
            payment = Payment(
                tenant_id=tenant.id,
                owner_id=tenant.owner_id,
                room_id=room.id,
                amount=tenant.rent_amount,
                month=key,
                due_date=due_date,
                status=PaymentStatus.OVERDUE if is_past_due(due_date, now) else PaymentStatus.PENDING,
            )
            self.db.add(payment)
            created.append(payment)

        if created:
            self.db.commit()
            logger.info(
                "Generated %d payment records for tenant %d (%s to %s)",
                len(created),
                tenant.id,
                created[0].month,
                created[-1].month,
            )
        else:
            logger.debug("Payment records for tenant %d already up to date", tenant.id)

        return created

    def generate_for_owner(
        self, owner_id: int, now: Optional[datetime] = None
    ) -> List[GenerationResult]:
        """Run generation for every active tenant of an owner.

        A failing tenant is reported in its result and does not stop the
        loop; tenants have no cross-dependencies.

        Args:
            owner_id: Owner whose active tenants are processed
            now: Reference time (default: current UTC time)

        Returns:
            One GenerationResult per active tenant, ordered by tenant id
        """
        now = now or utc_now()
        tenants = (
            self.db.query(Tenant)
            .filter(Tenant.owner_id == owner_id, Tenant.status == TenantStatus.ACTIVE)
            .order_by(Tenant.id)
            .all()
        )

        results: List[GenerationResult] = []
        for tenant in tenants:
            result = GenerationResult(tenant_id=tenant.id, tenant_name=tenant.fullname)
            try:
                result.records_created = len(self.generate_for_tenant(tenant.id, now=now))
            except LedgerError as e:
                logger.warning("Skipping payment generation for tenant %d: %s", tenant.id, e.message)
                result.error = e.message
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(
                    "Payment generation failed for tenant %d", tenant.id, exc_info=True
                )
                result.error = str(e)
            results.append(result)

        logger.info(
            "Batch payment generation for owner %d: %d tenants, %d records, %d failures",
            owner_id,
            len(results),
            sum(r.records_created for r in results),
            sum(1 for r in results if not r.ok),
        )
        return results

    def sweep_overdue(self, now: Optional[datetime] = None, owner_id: Optional[int] = None) -> int:
        """Reclassify pending payments whose due date has passed as overdue.

        Idempotent: a second run finds nothing left to change.

        Args:
            now: Reference time (default: current UTC time)
            owner_id: Restrict the sweep to one owner's payments (optional)

        Returns:
            Number of payments reclassified
        """
        today = billing_date(now)
        stmt = update(Payment).where(
            Payment.status == PaymentStatus.PENDING,
            Payment.due_date < today,
        )
        if owner_id is not None:
            stmt = stmt.where(Payment.owner_id == owner_id)

        result = self.db.execute(
            stmt.values(status=PaymentStatus.OVERDUE).execution_options(
                synchronize_session="fetch"
            )
        )
        self.db.commit()

        count = result.rowcount or 0
        if count:
            logger.info("Marked %d pending payments overdue (as of %s)", count, today)
        return count

    def list_owner_payments(
        self,
        owner_id: int,
        status: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[Payment]:
        """List an owner's payments newest month first, sweeping overdue first.

        Args:
            owner_id: Owner ID
            status: Optional status filter
            now: Reference time for the sweep

        Returns:
            List of Payment objects
        """
        self.sweep_overdue(now=now, owner_id=owner_id)

        query = self.db.query(Payment).filter(Payment.owner_id == owner_id)
        if status:
            query = query.filter(Payment.status == parse_enum(status, PaymentStatus, "status"))
        return query.order_by(Payment.month.desc(), Payment.id.desc()).all()

    def list_tenant_payments(self, tenant_id: int, now: Optional[datetime] = None) -> List[Payment]:
        """List a tenant's own payments newest month first, sweeping overdue first."""
        tenant = self._get_tenant(tenant_id)
        self.sweep_overdue(now=now, owner_id=tenant.owner_id)
        return (
            self.db.query(Payment)
            .filter(Payment.tenant_id == tenant.id)
            .order_by(Payment.month.desc())
            .all()
        )

    def unpaid_due(self, tenant_id: int) -> Decimal:
        """Sum of amounts over the tenant's payments not in PAID status.

        Pending, overdue and partial payments each contribute their full amount.
        """
        payments = (
            self.db.query(Payment)
            .filter(Payment.tenant_id == tenant_id, Payment.status != PaymentStatus.PAID)
            .all()
        )
        return sum((Decimal(p.amount or 0) for p in payments), Decimal("0"))

    def create_payment(
        self,
        owner_id: int,
        tenant_id: int,
        amount,
        month: str,
        status: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Payment:
        """Manually record a payment for one month.

        Raises:
            ConflictError: If the tenant already has a record for that month
        """
        now = now or utc_now()
        tenant = self._get_tenant(tenant_id, owner_id)
        month = parse_month(month)
        amount = parse_amount(amount, "amount", allow_zero=False)

        existing = (
            self.db.query(Payment)
            .filter(Payment.tenant_id == tenant.id, Payment.month == month)
            .first()
        )
        if existing:
            raise ConflictError(f"Payment for {month} already exists for tenant {tenant_id}")

        due_date = due_date_for(parse_month_key(month), self.due_day)
        if status:
            payment_status = parse_enum(status, PaymentStatus, "status")
        else:
            payment_status = PaymentStatus.OVERDUE if is_past_due(due_date, now) else PaymentStatus.PENDING

        room = self.db.query(Room).filter(Room.tenant_id == tenant.id).first()
        payment = Payment(
            tenant_id=tenant.id,
            owner_id=owner_id,
            room_id=room.id if room else None,
            amount=amount,
            month=month,
            due_date=due_date,
            status=payment_status,
            paid_date=now if payment_status == PaymentStatus.PAID else None,
        )
        self.db.add(payment)
        self.db.commit()
        self.db.refresh(payment)
        logger.info("Created payment %d for tenant %d month %s", payment.id, tenant.id, month)
        return payment

    def record_payment(
        self,
        owner_id: int,
        payment_id: int,
        status: str,
        paid_date: Optional[datetime] = None,
        payment_method: Optional[str] = None,
        transaction_id: Optional[str] = None,
        remarks: Optional[str] = None,
        late_fee=None,
        now: Optional[datetime] = None,
    ) -> Payment:
        """Update a payment's status; marking it paid stamps paid_date if not given.

        Args:
            owner_id: Owner performing the update
            payment_id: Payment to update
            status: New status value
            paid_date: Explicit paid date (optional)
            payment_method: cash, upi, bank_transfer, card or other (optional)
            transaction_id: External reference (optional)
            remarks: Free-text note (optional)
            late_fee: Late fee amount (optional)
            now: Reference time (default: current UTC time)

        Returns:
            Updated Payment object
        """
        payment = self._get_payment(payment_id, owner_id)
        new_status = parse_enum(status, PaymentStatus, "status")

        payment.status = new_status
        if paid_date is not None:
            payment.paid_date = paid_date
        elif new_status == PaymentStatus.PAID:
            payment.paid_date = now or utc_now()

        if payment_method is not None:
            payment.payment_method = parse_enum(payment_method, PaymentMethod, "payment_method")
        if transaction_id is not None:
            payment.transaction_id = transaction_id
        if remarks is not None:
            payment.remarks = remarks
        if late_fee is not None:
            payment.late_fee = parse_amount(late_fee, "late_fee")

        self.db.commit()
        self.db.refresh(payment)
        logger.info("Payment %d (%s) set to %s by owner %d", payment.id, payment.month, new_status.value, owner_id)
        return payment

    def change_rent(
        self,
        owner_id: int,
        tenant_id: int,
        new_amount,
        effective_from: Optional[str] = None,
    ) -> int:
        """Change a tenant's rent.

        Already generated months keep their amount unless effective_from is
        given, in which case the tenant's non-paid payments for that month
        and later are re-priced.

        Args:
            owner_id: Owner performing the change
            tenant_id: Tenant whose rent changes
            new_amount: New monthly rent
            effective_from: First month ("YYYY-MM") to re-price (optional)

        Returns:
            Number of existing payments re-priced
        """
        tenant = self._get_tenant(tenant_id, owner_id)
        amount = parse_amount(new_amount, "rent_amount", allow_zero=False)
        previous = tenant.rent_amount
        tenant.rent_amount = amount

        repriced = 0
        if effective_from:
            effective_from = parse_month(effective_from, "effective_from")
            result = self.db.execute(
                update(Payment)
                .where(
                    Payment.tenant_id == tenant.id,
                    Payment.month >= effective_from,
                    Payment.status != PaymentStatus.PAID,
                )
                .values(amount=amount)
                .execution_options(synchronize_session="fetch")
            )
            repriced = result.rowcount or 0

        self.db.commit()
        logger.info(
            "Rent for tenant %d changed %s -> %s (effective_from=%s, repriced=%d)",
            tenant.id,
            previous,
            amount,
            effective_from,
            repriced,
        )
        return repriced


__all__ = ["PaymentService", "GenerationResult"]
