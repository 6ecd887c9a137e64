"""Room and tenant-assignment endpoints."""

from fastapi import APIRouter, Depends, Response

from pgmanager.api.deps import get_owner, get_room_service
from pgmanager.api.schemas import (
    RoomCreateRequest,
    RoomResponse,
    RoomStatusRequest,
    TenantCreateRequest,
    TenantResponse,
)
from pgmanager.services.auth_service import Principal
from pgmanager.services.room_service import RoomService, TenantPayload

router = APIRouter(prefix="/api", tags=["rooms"])


@router.get("/rooms", response_model=list[RoomResponse])
def list_rooms(
    owner: Principal = Depends(get_owner),
    service: RoomService = Depends(get_room_service),
):
    return service.list_rooms(owner.user_id)


@router.post("/rooms", response_model=RoomResponse, status_code=201)
def create_room(
    request: RoomCreateRequest,
    owner: Principal = Depends(get_owner),
    service: RoomService = Depends(get_room_service),
):
    return service.create_room(
        owner.user_id,
        request.room_number,
        request.rent_amount,
        capacity=request.capacity,
        floor=request.floor,
        description=request.description,
    )


@router.patch("/rooms/{room_id}", response_model=RoomResponse)
def update_room_status(
    room_id: int,
    request: RoomStatusRequest,
    owner: Principal = Depends(get_owner),
    service: RoomService = Depends(get_room_service),
):
    return service.update_room_status(owner.user_id, room_id, request.status)


@router.post("/tenants", response_model=TenantResponse, status_code=201)
def add_tenant(
    request: TenantCreateRequest,
    owner: Principal = Depends(get_owner),
    service: RoomService = Depends(get_room_service),
):
    """Create a tenant and occupy the requested room."""
    payload = TenantPayload(**request.model_dump(exclude={"room_number"}))
    return service.assign_tenant(owner.user_id, request.room_number, payload)


@router.delete("/tenants/{tenant_id}", status_code=204)
def remove_tenant(
    tenant_id: int,
    owner: Principal = Depends(get_owner),
    service: RoomService = Depends(get_room_service),
):
    service.remove_tenant(owner.user_id, tenant_id)
    return Response(status_code=204)
