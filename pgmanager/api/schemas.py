"""Request and response schemas for the HTTP API."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from pgmanager.models import (
    CleanupStatus,
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
    PaymentMethod,
    PaymentStatus,
    RoomStatus,
    SettlementStatus,
    TenantStatus,
)


# Rooms and tenants
class RoomCreateRequest(BaseModel):
    room_number: str
    rent_amount: Decimal
    capacity: int = 1
    floor: int | None = None
    description: str | None = None


class RoomStatusRequest(BaseModel):
    status: str


class RoomResponse(BaseModel):
    id: int
    room_number: str
    status: RoomStatus
    capacity: int
    current_occupancy: int
    tenant_id: int | None = None
    rent_amount: Decimal
    is_available: bool

    model_config = ConfigDict(from_attributes=True)


class TenantCreateRequest(BaseModel):
    """Tenant payload plus the room to occupy."""

    room_number: str
    fullname: str
    email: str
    rent_amount: Decimal
    security_deposit: Decimal | None = None
    join_date: date | None = None
    phone: str | None = None
    emergency_contact_name: str | None = None
    emergency_contact_phone: str | None = None
    emergency_contact_relation: str | None = None


class TenantResponse(BaseModel):
    id: int
    fullname: str
    email: str
    rent_amount: Decimal
    security_deposit: Decimal
    join_date: date
    status: TenantStatus

    model_config = ConfigDict(from_attributes=True)


class RentChangeRequest(BaseModel):
    rent_amount: Decimal
    effective_from: str | None = Field(default=None, description="First month (YYYY-MM) to re-price")


class RentChangeResponse(BaseModel):
    tenant_id: int
    rent_amount: Decimal
    repriced_payments: int


# Payments
class PaymentResponse(BaseModel):
    id: int
    tenant_id: int | None = None
    room_id: int | None = None
    amount: Decimal
    month: str
    due_date: date
    paid_date: datetime | None = None
    status: PaymentStatus
    payment_method: PaymentMethod
    transaction_id: str | None = None
    remarks: str | None = None
    late_fee: Decimal

    model_config = ConfigDict(from_attributes=True)


class PaymentCreateRequest(BaseModel):
    tenant_id: int
    amount: Decimal
    month: str
    status: str | None = None


class PaymentUpdateRequest(BaseModel):
    status: str
    paid_date: datetime | None = None
    payment_method: str | None = None
    transaction_id: str | None = None
    remarks: str | None = None
    late_fee: Decimal | None = None


class GenerationResultResponse(BaseModel):
    tenant_id: int
    tenant_name: str
    records_created: int
    error: str | None = None

    model_config = ConfigDict(from_attributes=True)


class SweepResponse(BaseModel):
    updated: int


# Settlements
class DeductionsRequest(BaseModel):
    """Deduction fields; omitted fields are left as they are."""

    unpaid_due: Decimal | None = None
    damages: Decimal | None = None
    cleaning: Decimal | None = None
    notice_penalty: Decimal | None = None
    other: Decimal | None = None
    notes: str | None = None

    model_config = ConfigDict(extra="forbid")

    def provided(self) -> dict:
        return self.model_dump(exclude_unset=True)


class SettlementInitiateRequest(BaseModel):
    tenant_id: int
    damages: Decimal | None = None
    cleaning: Decimal | None = None
    notice_penalty: Decimal | None = None
    other: Decimal | None = None
    notes: str | None = None

    def deductions(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude={"tenant_id"})


class SettlementApproveRequest(BaseModel):
    deductions: DeductionsRequest | None = None


class SettlementPayRequest(BaseModel):
    payment_method: str | None = None
    transaction_id: str | None = None


class SettlementResponse(BaseModel):
    id: int
    tenant_id: int | None = None
    room_id: int | None = None
    tenant_name: str | None = None
    tenant_email: str | None = None
    room_number: str | None = None
    deposit_amount: Decimal
    unpaid_due: Decimal
    damages: Decimal
    cleaning: Decimal
    notice_penalty: Decimal
    other: Decimal
    notes: str | None = None
    total_deductions: Decimal
    refundable_amount: Decimal
    balance_due_from_tenant: Decimal
    status: SettlementStatus
    payment_method: PaymentMethod | None = None
    transaction_id: str | None = None
    processed_date: datetime | None = None
    processed_by: str | None = None
    cleanup_status: CleanupStatus
    cleanup_error: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Complaints
class ComplaintCreateRequest(BaseModel):
    title: str
    complaint: str
    category: str | None = None
    priority: str | None = None


class ComplaintUpdateRequest(BaseModel):
    status: str
    remarks: str | None = None
    resolved_by: str | None = None


class ComplaintResponse(BaseModel):
    id: int
    tenant_id: int | None = None
    room_id: int | None = None
    title: str
    complaint: str
    category: ComplaintCategory
    priority: ComplaintPriority
    status: ComplaintStatus
    resolved_date: datetime | None = None
    resolved_by: str | None = None
    remarks: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
