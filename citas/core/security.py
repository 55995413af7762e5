from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from fastapi.security import HTTPBearer
from pydantic import BaseModel
from enum import Enum

from .config import settings

# Bearer credentials; a missing header is reported by the authorizer as 401
security = HTTPBearer(auto_error=False)

class UserRole(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"
    CUSTOMER = "customer"

# Stored profile roles as written by the identity provider
STORED_ROLE_MAP = {
    "admin": UserRole.ADMIN,
    "staff": UserRole.STAFF,
    "employee": UserRole.STAFF,
    "customer": UserRole.CUSTOMER,
    "user": UserRole.CUSTOMER,
}

STAFF_ROLES = (UserRole.STAFF, UserRole.ADMIN)

class TokenPayload(BaseModel):
    sub: Optional[str] = None
    email: Optional[str] = None
    exp: Optional[int] = None
    token_type: Optional[str] = None  # "access" or "refresh"

class Caller(BaseModel):
    """Identity of the authenticated caller for one request."""
    id: int
    role: UserRole

    model_config = {"frozen": True}

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

def role_from_profile(stored_role: Optional[str]) -> UserRole:
    """Map a stored profile role to a UserRole, defaulting to customer."""
    if not stored_role:
        return UserRole.CUSTOMER
    return STORED_ROLE_MAP.get(stored_role.strip().lower(), UserRole.CUSTOMER)

# JWT utilities
def create_access_token(
    user_id: int,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create JWT access token for an identity id."""
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode = {
        "sub": str(user_id),
        "exp": expire,
        "token_type": "access"
    }
    if email:
        to_encode["email"] = email

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )

def verify_token(token: str) -> Optional[TokenPayload]:
    """Verify and decode JWT token."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )

        return TokenPayload(**payload)

    except JWTError:
        return None
