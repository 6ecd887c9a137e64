"""Integration tests for monthly payment generation and overdue sweeping."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from pgmanager.models import Payment, PaymentMethod, PaymentStatus, Tenant, TenantStatus
from pgmanager.services.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from pgmanager.services.payment_service import PaymentService

APRIL_1 = datetime(2024, 4, 1, 9, 0, tzinfo=timezone.utc)
APRIL_5 = datetime(2024, 4, 5, 18, 0, tzinfo=timezone.utc)
APRIL_6 = datetime(2024, 4, 6, 0, 30, tzinfo=timezone.utc)


def _roomless_tenant(db_session, owner, email="noroom@example.com"):
    tenant = Tenant(
        owner_id=owner.id,
        fullname="No Room",
        email=email,
        rent_amount=Decimal("4000"),
        join_date=date(2024, 3, 1),
        status=TenantStatus.ACTIVE,
    )
    db_session.add(tenant)
    db_session.commit()
    return tenant


class TestGenerateForTenant:
    """Tests for per-tenant monthly generation."""

    def test_backfills_from_join_month(self, payment_service, tenant):
        created = payment_service.generate_for_tenant(tenant.id, now=APRIL_1)

        assert [p.month for p in created] == ["2024-01", "2024-02", "2024-03", "2024-04"]
        assert [p.status for p in created] == [
            PaymentStatus.OVERDUE,
            PaymentStatus.OVERDUE,
            PaymentStatus.OVERDUE,
            PaymentStatus.PENDING,
        ]
        assert all(p.amount == Decimal("5000") for p in created)
        assert created[-1].due_date == date(2024, 4, 5)

    def test_records_snapshot_owner_and_room(self, payment_service, room_service, tenant, owner):
        created = payment_service.generate_for_tenant(tenant.id, now=APRIL_1)
        room = room_service.get_room_for_tenant(tenant.id)

        assert {p.owner_id for p in created} == {owner.id}
        assert {p.room_id for p in created} == {room.id}

    def test_second_run_creates_nothing(self, payment_service, db_session, tenant):
        payment_service.generate_for_tenant(tenant.id, now=APRIL_1)
        assert payment_service.generate_for_tenant(tenant.id, now=APRIL_1) == []
        assert db_session.query(Payment).filter(Payment.tenant_id == tenant.id).count() == 4

    def test_only_missing_months_are_filled(self, payment_service, db_session, tenant):
        payment_service.generate_for_tenant(tenant.id, now=APRIL_1)
        db_session.query(Payment).filter(Payment.month == "2024-02").delete()
        db_session.commit()

        created = payment_service.generate_for_tenant(tenant.id, now=datetime(2024, 5, 2, tzinfo=timezone.utc))

        assert [p.month for p in created] == ["2024-02", "2024-05"]
        assert db_session.query(Payment).filter(Payment.tenant_id == tenant.id).count() == 5

    def test_due_day_is_configurable(self, db_session, tenant):
        created = PaymentService(db_session, due_day=1).generate_for_tenant(tenant.id, now=APRIL_1)
        # Due on the 1st: today is not past due yet
        assert created[-1].due_date == date(2024, 4, 1)
        assert created[-1].status == PaymentStatus.PENDING

    def test_tenant_without_room_is_conflict(self, payment_service, db_session, owner):
        tenant = _roomless_tenant(db_session, owner)
        with pytest.raises(ConflictError, match="no assigned room"):
            payment_service.generate_for_tenant(tenant.id, now=APRIL_1)
        assert db_session.query(Payment).count() == 0

    def test_unknown_tenant(self, payment_service):
        with pytest.raises(NotFoundError):
            payment_service.generate_for_tenant(9999, now=APRIL_1)

    def test_other_owner_is_forbidden(self, payment_service, tenant, other_owner):
        with pytest.raises(ForbiddenError):
            payment_service.generate_for_tenant(tenant.id, now=APRIL_1, owner_id=other_owner.id)


class TestGenerateForOwner:
    """Tests for batch generation across an owner's tenants."""

    def test_failures_do_not_stop_the_batch(self, payment_service, db_session, owner, make_tenant):
        first = make_tenant()
        roomless = _roomless_tenant(db_session, owner)
        last = make_tenant(room_number="102", email="ravi@example.com", fullname="Ravi K")

        results = payment_service.generate_for_owner(owner.id, now=APRIL_1)

        by_tenant = {r.tenant_id: r for r in results}
        assert [r.tenant_id for r in results] == sorted(by_tenant)
        assert by_tenant[first.id].records_created == 4 and by_tenant[first.id].ok
        assert by_tenant[last.id].records_created == 4
        assert not by_tenant[roomless.id].ok
        assert "no assigned room" in by_tenant[roomless.id].error

    def test_inactive_tenants_are_skipped(self, payment_service, db_session, owner, tenant):
        tenant.status = TenantStatus.INACTIVE
        db_session.commit()

        assert payment_service.generate_for_owner(owner.id, now=APRIL_1) == []


class TestSweepOverdue:
    """Tests for overdue reclassification."""

    def test_sweep_is_idempotent(self, payment_service, tenant):
        payment_service.generate_for_tenant(tenant.id, now=APRIL_1)

        assert payment_service.sweep_overdue(now=APRIL_6) == 1
        assert payment_service.sweep_overdue(now=APRIL_6) == 0

    def test_nothing_changes_on_due_day(self, payment_service, tenant):
        payment_service.generate_for_tenant(tenant.id, now=APRIL_1)
        assert payment_service.sweep_overdue(now=APRIL_5) == 0

    def test_paid_and_partial_are_untouched(self, payment_service, db_session, owner, tenant):
        created = payment_service.generate_for_tenant(tenant.id, now=APRIL_1)
        april = created[-1]
        payment_service.record_payment(owner.id, april.id, "partial", now=APRIL_5)

        assert payment_service.sweep_overdue(now=APRIL_6) == 0
        assert db_session.get(Payment, april.id).status == PaymentStatus.PARTIAL

    def test_sweep_scoped_to_owner(self, payment_service, db_session, tenant, other_owner):
        payment_service.generate_for_tenant(tenant.id, now=APRIL_1)

        assert payment_service.sweep_overdue(now=APRIL_6, owner_id=other_owner.id) == 0
        assert db_session.query(Payment).filter(Payment.status == PaymentStatus.PENDING).count() == 1

    def test_listing_sweeps_first(self, payment_service, owner, tenant):
        payment_service.generate_for_tenant(tenant.id, now=APRIL_1)

        payments = payment_service.list_owner_payments(owner.id, now=APRIL_6)

        assert [p.month for p in payments] == ["2024-04", "2024-03", "2024-02", "2024-01"]
        assert all(p.status == PaymentStatus.OVERDUE for p in payments)

    def test_tenant_listing_sweeps_first(self, payment_service, tenant):
        payment_service.generate_for_tenant(tenant.id, now=APRIL_1)

        payments = payment_service.list_tenant_payments(tenant.id, now=APRIL_6)

        assert payments[0].month == "2024-04"
        assert payments[0].status == PaymentStatus.OVERDUE

    def test_listing_filters_by_status(self, payment_service, owner, tenant):
        payment_service.generate_for_tenant(tenant.id, now=APRIL_1)

        pending = payment_service.list_owner_payments(owner.id, status="pending", now=APRIL_1)

        assert [p.month for p in pending] == ["2024-04"]

    def test_listing_rejects_unknown_status(self, payment_service, owner):
        with pytest.raises(ValidationError):
            payment_service.list_owner_payments(owner.id, status="late", now=APRIL_1)


class TestPaymentUpdates:
    """Tests for recording payments, manual records and rent changes."""

    def test_mark_paid_stamps_date_and_method(self, payment_service, owner, tenant):
        payment = payment_service.generate_for_tenant(tenant.id, now=APRIL_1)[0]

        updated = payment_service.record_payment(
            owner.id, payment.id, "paid", payment_method="upi", transaction_id="UPI-991", now=APRIL_5
        )

        assert updated.status == PaymentStatus.PAID
        assert updated.payment_method == PaymentMethod.UPI
        assert updated.transaction_id == "UPI-991"
        assert updated.paid_date is not None

    def test_record_payment_other_owner(self, payment_service, tenant, other_owner):
        payment = payment_service.generate_for_tenant(tenant.id, now=APRIL_1)[0]
        with pytest.raises(ForbiddenError):
            payment_service.record_payment(other_owner.id, payment.id, "paid")

    def test_record_payment_rejects_negative_late_fee(self, payment_service, owner, tenant):
        payment = payment_service.generate_for_tenant(tenant.id, now=APRIL_1)[0]
        with pytest.raises(ValidationError):
            payment_service.record_payment(owner.id, payment.id, "paid", late_fee="-10")

    def test_manual_record_classified_by_due_date(self, payment_service, owner, tenant):
        payment = payment_service.create_payment(owner.id, tenant.id, "5000", "2023-12", now=APRIL_1)

        assert payment.status == PaymentStatus.OVERDUE
        assert payment.due_date == date(2023, 12, 5)

    def test_manual_record_duplicate_month(self, payment_service, owner, tenant):
        payment_service.generate_for_tenant(tenant.id, now=APRIL_1)
        with pytest.raises(ConflictError, match="2024-02"):
            payment_service.create_payment(owner.id, tenant.id, "5000", "2024-02", now=APRIL_1)

    def test_manual_record_bad_month(self, payment_service, owner, tenant):
        with pytest.raises(ValidationError):
            payment_service.create_payment(owner.id, tenant.id, "5000", "2024-2", now=APRIL_1)

    def test_rent_change_keeps_existing_amounts(self, payment_service, db_session, owner, tenant):
        payment_service.generate_for_tenant(tenant.id, now=APRIL_1)

        assert payment_service.change_rent(owner.id, tenant.id, "6000") == 0

        amounts = {p.amount for p in db_session.query(Payment).filter(Payment.tenant_id == tenant.id)}
        assert amounts == {Decimal("5000")}
        created = payment_service.generate_for_tenant(tenant.id, now=datetime(2024, 5, 1, tzinfo=timezone.utc))
        assert created[0].amount == Decimal("6000")

    def test_rent_change_effective_from_reprices_unpaid(self, payment_service, db_session, owner, tenant):
        created = payment_service.generate_for_tenant(tenant.id, now=APRIL_1)
        march = next(p for p in created if p.month == "2024-03")
        payment_service.record_payment(owner.id, march.id, "paid", now=APRIL_1)

        repriced = payment_service.change_rent(owner.id, tenant.id, "6000", effective_from="2024-03")

        assert repriced == 1
        amounts = {
            p.month: p.amount
            for p in db_session.query(Payment).filter(Payment.tenant_id == tenant.id)
        }
        assert amounts == {
            "2024-01": Decimal("5000"),
            "2024-02": Decimal("5000"),
            "2024-03": Decimal("5000"),
            "2024-04": Decimal("6000"),
        }

    def test_unpaid_due_counts_every_non_paid_status(self, payment_service, owner, tenant):
        created = payment_service.generate_for_tenant(tenant.id, now=APRIL_1)
        payment_service.record_payment(owner.id, created[0].id, "paid", now=APRIL_1)
        payment_service.record_payment(owner.id, created[1].id, "partial", now=APRIL_1)

        assert payment_service.unpaid_due(tenant.id) == Decimal("15000")
