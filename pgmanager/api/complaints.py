"""Complaint endpoints: tenants file, owners resolve."""

from fastapi import APIRouter, Depends

from pgmanager.api.deps import get_complaint_service, get_owner, get_tenant
from pgmanager.api.schemas import (
    ComplaintCreateRequest,
    ComplaintResponse,
    ComplaintUpdateRequest,
)
from pgmanager.services.auth_service import Principal
from pgmanager.services.complaint_service import ComplaintService

router = APIRouter(prefix="/api/complaints", tags=["complaints"])


@router.post("", response_model=ComplaintResponse, status_code=201)
def file_complaint(
    request: ComplaintCreateRequest,
    tenant: Principal = Depends(get_tenant),
    service: ComplaintService = Depends(get_complaint_service),
):
    return service.file_complaint(
        tenant.user_id,
        request.title,
        request.complaint,
        category=request.category,
        priority=request.priority,
    )


@router.get("/my-complaints", response_model=list[ComplaintResponse])
def my_complaints(
    tenant: Principal = Depends(get_tenant),
    service: ComplaintService = Depends(get_complaint_service),
):
    return service.list_for_tenant(tenant.user_id)


@router.get("", response_model=list[ComplaintResponse])
def list_complaints(
    status: str | None = None,
    owner: Principal = Depends(get_owner),
    service: ComplaintService = Depends(get_complaint_service),
):
    return service.list_for_owner(owner.user_id, status=status)


@router.patch("/{complaint_id}", response_model=ComplaintResponse)
def update_complaint(
    complaint_id: int,
    request: ComplaintUpdateRequest,
    owner: Principal = Depends(get_owner),
    service: ComplaintService = Depends(get_complaint_service),
):
    return service.update_complaint(
        owner.user_id,
        complaint_id,
        request.status,
        remarks=request.remarks,
        resolved_by=request.resolved_by,
    )
