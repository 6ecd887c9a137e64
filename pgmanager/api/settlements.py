"""Move-out settlement endpoints (owner only)."""

from fastapi import APIRouter, Depends

from pgmanager.api.deps import get_owner, get_settlement_service
from pgmanager.api.schemas import (
    SettlementApproveRequest,
    SettlementInitiateRequest,
    SettlementPayRequest,
    SettlementResponse,
)
from pgmanager.services.auth_service import Principal
from pgmanager.services.settlement_service import SettlementService

router = APIRouter(prefix="/api/settlements", tags=["settlements"])


@router.get("", response_model=list[SettlementResponse])
def list_settlements(
    tenant_id: int | None = None,
    owner: Principal = Depends(get_owner),
    service: SettlementService = Depends(get_settlement_service),
):
    return service.list_settlements(owner.user_id, tenant_id=tenant_id)


@router.get("/{settlement_id}", response_model=SettlementResponse)
def get_settlement(
    settlement_id: int,
    owner: Principal = Depends(get_owner),
    service: SettlementService = Depends(get_settlement_service),
):
    return service.get_settlement(owner.user_id, settlement_id)


@router.post("/initiate", response_model=SettlementResponse, status_code=201)
def initiate(
    request: SettlementInitiateRequest,
    owner: Principal = Depends(get_owner),
    service: SettlementService = Depends(get_settlement_service),
):
    return service.initiate(owner.user_id, request.tenant_id, request.deductions())


@router.patch("/{settlement_id}/approve", response_model=SettlementResponse)
def approve(
    settlement_id: int,
    request: SettlementApproveRequest | None = None,
    owner: Principal = Depends(get_owner),
    service: SettlementService = Depends(get_settlement_service),
):
    overrides = request.deductions.provided() if request and request.deductions else None
    return service.approve(owner.user_id, settlement_id, overrides)


@router.patch("/{settlement_id}/pay", response_model=SettlementResponse)
def pay(
    settlement_id: int,
    request: SettlementPayRequest | None = None,
    owner: Principal = Depends(get_owner),
    service: SettlementService = Depends(get_settlement_service),
):
    """Pay out; the tenant is deleted and the room released afterwards."""
    request = request or SettlementPayRequest()
    return service.pay(
        owner.user_id,
        settlement_id,
        payment_method=request.payment_method,
        transaction_id=request.transaction_id,
    )


@router.post("/{settlement_id}/retry-cleanup", response_model=SettlementResponse)
def retry_cleanup(
    settlement_id: int,
    owner: Principal = Depends(get_owner),
    service: SettlementService = Depends(get_settlement_service),
):
    return service.retry_cleanup(owner.user_id, settlement_id)


@router.patch("/{settlement_id}/close", response_model=SettlementResponse)
def close(
    settlement_id: int,
    owner: Principal = Depends(get_owner),
    service: SettlementService = Depends(get_settlement_service),
):
    return service.close(owner.user_id, settlement_id)
