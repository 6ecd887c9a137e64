"""Rent ledger endpoints: generation, sweeping, listing and updates."""


from fastapi import APIRouter, Depends

from pgmanager.api.deps import get_owner, get_payment_service, get_tenant
from pgmanager.api.schemas import (
    GenerationResultResponse,
    PaymentCreateRequest,
    PaymentResponse,
    PaymentUpdateRequest,
    RentChangeRequest,
    RentChangeResponse,
    SweepResponse,
)
from pgmanager.services.auth_service import Principal
from pgmanager.services.payment_service import PaymentService


router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.get("", response_model=list[PaymentResponse])
def list_payments(
    status: str | None = None,
    owner: Principal = Depends(get_owner),
    service: PaymentService = Depends(get_payment_service),
):
    """List the owner's payments; stale pending payments are swept first."""
    return service.list_owner_payments(owner.user_id, status=status)


@router.get("/my-payments", response_model=list[PaymentResponse])
def my_payments(
    tenant: Principal = Depends(get_tenant),
    service: PaymentService = Depends(get_payment_service),
):
    return service.list_tenant_payments(tenant.user_id)


@router.post("", response_model=PaymentResponse, status_code=201)
def create_payment(
    request: PaymentCreateRequest,
    owner: Principal = Depends(get_owner),
    service: PaymentService = Depends(get_payment_service),
):
    return service.create_payment(
        owner.user_id,
        request.tenant_id,
        request.amount,
        request.month,
        status=request.status,
    )


@router.patch("/{payment_id}", response_model=PaymentResponse)
def update_payment(
    payment_id: int,
    request: PaymentUpdateRequest,
    owner: Principal = Depends(get_owner),
    service: PaymentService = Depends(get_payment_service),
):
    return service.record_payment(
        owner.user_id,
        payment_id,
        request.status,
        paid_date=request.paid_date,
        payment_method=request.payment_method,
        transaction_id=request.transaction_id,
        remarks=request.remarks,
        late_fee=request.late_fee,
    )


@router.post("/generate", response_model=list[GenerationResultResponse])
def generate_all(
    owner: Principal = Depends(get_owner),
    service: PaymentService = Depends(get_payment_service),
):
    """Generate missing monthly records for every active tenant."""
    return service.generate_for_owner(owner.user_id)


@router.post("/generate/{tenant_id}", response_model=list[PaymentResponse], status_code=201)
def generate_for_tenant(
    tenant_id: int,
    owner: Principal = Depends(get_owner),
    service: PaymentService = Depends(get_payment_service),
):
    return service.generate_for_tenant(tenant_id, owner_id=owner.user_id)


@router.post("/sweep", response_model=SweepResponse)
def sweep(
    owner: Principal = Depends(get_owner),
    service: PaymentService = Depends(get_payment_service),
):
    return SweepResponse(updated=service.sweep_overdue(owner_id=owner.user_id))


@router.put("/rent/{tenant_id}", response_model=RentChangeResponse)
def change_rent(
    tenant_id: int,
    request: RentChangeRequest,
    owner: Principal = Depends(get_owner),
    service: PaymentService = Depends(get_payment_service),
):
    repriced = service.change_rent(
        owner.user_id, tenant_id, request.rent_amount, effective_from=request.effective_from
    )
    return RentChangeResponse(
        tenant_id=tenant_id, rent_amount=request.rent_amount, repriced_payments=repriced
    )
