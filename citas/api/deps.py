from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional, List

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.exceptions import AuthenticationError, AuthorizationError
from ..core.security import (
    security, verify_token, Caller, UserRole, TokenPayload
)
from ..models.profile import Profile

def decode_credential(credential: Optional[str]) -> TokenPayload:
    """Verify a bearer credential and return its access-token payload."""
    if not credential:
        raise AuthenticationError("Unauthorized")

    token_payload = verify_token(credential)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")

    # Check if token is access token
    if token_payload.token_type != "access":
        raise AuthenticationError("Invalid token type")

    if not token_payload.sub:
        raise AuthenticationError("Invalid token payload")

    return token_payload

def resolve_caller(credential: Optional[str], db: Session) -> Caller:
    """Resolve the identity and role behind a bearer credential.

    The role comes from the caller's profile on every request; a missing
    profile or an unknown role resolves to customer.
    """
    token_payload = decode_credential(credential)

    try:
        caller_id = int(token_payload.sub)
    except ValueError:
        raise AuthenticationError("Invalid token subject")

    profile = db.query(Profile).filter(Profile.id == caller_id).first()
    if profile is not None and profile.is_active is False:
        raise AuthenticationError("User account is deactivated")

    role = profile.user_role if profile else UserRole.CUSTOMER
    return Caller(id=caller_id, role=role)

async def get_current_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Caller:
    """Get the authenticated caller for this request."""
    return resolve_caller(credentials.credentials if credentials else None, db)

# Role-based access control dependencies
def require_role(allowed_roles: List[UserRole]):
    """Create a dependency that requires specific caller roles."""
    async def role_checker(
        caller: Caller = Depends(get_current_caller)
    ) -> Caller:
        if caller.role not in allowed_roles:
            raise AuthorizationError(
                f"Access denied. Required roles: {[role.value for role in allowed_roles]}"
            )
        return caller

    return role_checker

async def get_staff_caller(
    caller: Caller = Depends(require_role([UserRole.STAFF, UserRole.ADMIN]))
) -> Caller:
    """Require staff or admin role."""
    return caller

# Rate limiting dependency
async def booking_rate_limit(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Limit how many bookings one client address can submit per window."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:booking:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, settings.BOOKING_RATE_WINDOW_SECONDS, 1)
    else:
        if int(current_requests) >= settings.BOOKING_RATE_LIMIT:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )
        redis_client.incr(key)
