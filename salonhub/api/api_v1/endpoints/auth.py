from datetime import datetime
from typing import Any
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from salonhub.api.deps import get_now, to_http_exception
from salonhub.core.auth import ROLE_ADMIN, ROLE_SUPER_ADMIN, create_salon_token, create_super_admin_token
from salonhub.core.exceptions import SalonHubError
from salonhub.db.gateway import PersistenceGateway
from salonhub.db.provider import get_gateway
from salonhub.schemas.salon import SalonLogin, SalonSignup
from salonhub.schemas.token import Token
from salonhub.services import salon_service

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/signup", response_model=Token, status_code=status.HTTP_201_CREATED)
async def signup(
    signup_in: SalonSignup,
    gateway: PersistenceGateway = Depends(get_gateway),
    now: datetime = Depends(get_now),
) -> Any:
    """Register a salon owner; the salon starts on a free trial."""
    try:
        salon = await salon_service.signup_salon(gateway, signup_in, now)
    except SalonHubError as e:
        raise to_http_exception(e)

    return {
        "access_token": create_salon_token(salon["id"]),
        "token_type": "bearer",
        "role": ROLE_ADMIN,
        "salon_id": salon["id"],
    }

@router.post("/login", response_model=Token)
async def login(
    login_in: SalonLogin,
    gateway: PersistenceGateway = Depends(get_gateway),
    now: datetime = Depends(get_now),
) -> Any:
    """Log in as a salon owner or as the super admin.

    Owners whose subscription is blocked or expired get 403 with a message
    pointing them to support.
    """
    if salon_service.is_super_admin_login(login_in.email, login_in.password):
        logger.info("Super admin logged in")
        return {
            "access_token": create_super_admin_token(),
            "token_type": "bearer",
            "role": ROLE_SUPER_ADMIN,
            "salon_id": None,
        }

    try:
        salon = await salon_service.authenticate_salon(gateway, login_in.email, login_in.password, now)
    except SalonHubError as e:
        raise to_http_exception(e)

    if not salon:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {
        "access_token": create_salon_token(salon["id"]),
        "token_type": "bearer",
        "role": ROLE_ADMIN,
        "salon_id": salon["id"],
    }
