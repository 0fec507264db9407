from datetime import datetime, timedelta
from typing import Any, Dict, Optional
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from salonhub.core.config import settings

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super_admin"
SUPER_ADMIN_SUBJECT = "super-admin"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hashed password."""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)

def create_access_token(
    data: Dict[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """Create JWT access token."""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(
        to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM
    )

    return encoded_jwt

def create_salon_token(salon_id: str) -> str:
    return create_access_token({"sub": salon_id, "role": ROLE_ADMIN})

def create_super_admin_token() -> str:
    return create_access_token({"sub": SUPER_ADMIN_SUBJECT, "role": ROLE_SUPER_ADMIN})

async def get_current_principal(token: str = Depends(oauth2_scheme)) -> Dict[str, Any]:
    """Decode the bearer token.

    Two token shapes are issued:
    - Salon owner tokens: { sub: <salons id>, role: "admin" }
    - Super admin tokens: { sub: "super-admin", role: "super_admin" }

    Returns a dict with ``role`` and, for salon owners, ``salon_id``.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
    except JWTError as jwt_error:
        logger.info(f"JWT decode error: {jwt_error}")
        raise credentials_exception

    subject: Optional[str] = payload.get("sub")
    role: Optional[str] = payload.get("role")
    if subject is None or role not in (ROLE_ADMIN, ROLE_SUPER_ADMIN):
        raise credentials_exception

    if role == ROLE_SUPER_ADMIN:
        return {"role": role, "salon_id": None}
    return {"role": role, "salon_id": subject}

async def require_super_admin(principal: Dict[str, Any] = Depends(get_current_principal)) -> Dict[str, Any]:
    if principal["role"] != ROLE_SUPER_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Super admin access required"
        )
    return principal
