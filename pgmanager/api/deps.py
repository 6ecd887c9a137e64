"""FastAPI dependencies: configuration, sessions, principals and services."""

from functools import lru_cache

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from pgmanager.services import get_db
from pgmanager.services.auth_service import (
    AuthenticationError,
    Principal,
    Role,
    extract_bearer,
    require_role,
    verify_token,
)
from pgmanager.services.complaint_service import ComplaintService
from pgmanager.services.config import AppConfig, load_config
from pgmanager.services.payment_service import PaymentService
from pgmanager.services.room_service import RoomService
from pgmanager.services.settlement_service import SettlementService


@lru_cache
def get_config() -> AppConfig:
    """Load configuration once per process."""
    return load_config()


def get_principal(
    authorization: str | None = Header(default=None),
    config: AppConfig = Depends(get_config),
) -> Principal:
    """Verify the bearer token carried by the request."""
    token = extract_bearer(authorization)
    if not token:
        raise AuthenticationError("Missing bearer token")
    return verify_token(token, config.token_secret)


def get_owner(principal: Principal = Depends(get_principal)) -> Principal:
    return require_role(principal, Role.OWNER)


def get_tenant(principal: Principal = Depends(get_principal)) -> Principal:
    return require_role(principal, Role.TENANT)


def get_payment_service(
    db: Session = Depends(get_db),
    config: AppConfig = Depends(get_config),
) -> PaymentService:
    return PaymentService(db, due_day=config.rent_due_day)


def get_room_service(db: Session = Depends(get_db)) -> RoomService:
    return RoomService(db)


def get_settlement_service(
    db: Session = Depends(get_db),
    payments: PaymentService = Depends(get_payment_service),
    rooms: RoomService = Depends(get_room_service),
) -> SettlementService:
    return SettlementService(db, payment_service=payments, room_service=rooms)


def get_complaint_service(db: Session = Depends(get_db)) -> ComplaintService:
    return ComplaintService(db)
