"""
FastAPI identity and access dependencies.

Tokens are issued elsewhere; this module only verifies them and resolves the
User row they name.
"""
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from theory_backend.models import get_db, User, UserType
from .datetime_utils import ensure_timezone_aware, utc_now
from .exceptions import SubscriptionRequired
from .error_responses import ErrorMessages, raise_forbidden, raise_unauthorized
from .security import decode_token, verify_token_type

# HTTP Bearer token scheme
security = HTTPBearer()

# Account types that never need a subscription
UNRESTRICTED_USER_TYPES = frozenset({UserType.ORGANISATION, UserType.ADMIN})


def _decode_and_validate_token(token: str) -> int:
    """
    Decode and validate an access token, returning the user_id.

    Raises:
        HTTPException: 401 if token is invalid, wrong type, or missing user_id
    """
    payload = decode_token(token)
    if payload is None:
        raise_unauthorized(ErrorMessages.INVALID_TOKEN)

    if not verify_token_type(payload, "access"):
        raise_unauthorized(ErrorMessages.INVALID_TOKEN_TYPE)

    user_id = payload.get("user_id")
    if user_id is None:
        raise_unauthorized(ErrorMessages.INVALID_TOKEN_PAYLOAD)

    return user_id


def _get_user_or_401(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise_unauthorized(ErrorMessages.USER_NOT_FOUND_AUTH)
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Get the current authenticated user from the bearer token.

    Raises:
        HTTPException: 401 if token is invalid or user not found
    """
    user_id = _decode_and_validate_token(credentials.credentials)
    return _get_user_or_401(db, user_id)


def has_active_subscription(user: User, now=None) -> bool:
    """Organisation and admin accounts always pass; others need a future expiry."""
    if user.user_type in UNRESTRICTED_USER_TYPES:
        return True
    if user.expiry is None:
        return False
    return ensure_timezone_aware(user.expiry) > (now or utc_now())


def require_active_subscription(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Dependency for endpoints that start or answer tests.

    Raises:
        SubscriptionRequired: mapped to 403 by the application
    """
    if not has_active_subscription(current_user):
        raise SubscriptionRequired(current_user.id)
    return current_user


def require_organisation(
    current_user: User = Depends(get_current_user),
) -> User:
    """Dependency for endpoints only organisation and admin accounts may use."""
    if current_user.user_type not in UNRESTRICTED_USER_TYPES:
        raise_forbidden(ErrorMessages.ORGANISATION_REQUIRED)
    return current_user
