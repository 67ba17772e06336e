from datetime import datetime, timezone
from typing import Any, Optional

import jwt

from admin_portal.models.auth import TokenClaims

DEFAULT_ROLE = "Staff"

ROLE_CLAIMS = (
    "role",
    "roles",
    "http://schemas.microsoft.com/ws/2008/06/identity/claims/role",
)
USER_ID_CLAIMS = ("uid", "userId", "user_id")


def _first_role(value: Any) -> Optional[str]:
    # Older AuthServer builds send a single string, newer ones an array
    if isinstance(value, str):
        return value or None
    if isinstance(value, (list, tuple)):
        for item in value:
            if isinstance(item, str) and item:
                return item
    return None


def _expiry(value: Any) -> Optional[datetime]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def decode_token(token: Optional[str], default_role: str = DEFAULT_ROLE) -> TokenClaims:
    """
    Read the claims of an access token without verifying it.

    The portal is not the token's audience; AuthServer and AdminAPI verify the
    signature. A malformed or empty token gives `TokenClaims(is_valid=False)`.
    """
    if not token:
        return TokenClaims()

    try:
        payload = jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False, "verify_aud": False},
        )
    except jwt.InvalidTokenError:
        return TokenClaims()

    if not isinstance(payload, dict):
        return TokenClaims()

    role = None
    for claim in ROLE_CLAIMS:
        role = _first_role(payload.get(claim))
        if role:
            break

    user_id = next((str(payload[c]) for c in USER_ID_CLAIMS if payload.get(c)), None)
    subject = payload.get("sub")

    return TokenClaims(
        is_valid=True,
        subject=str(subject) if subject else None,
        role=role or default_role,
        user_id=user_id,
        expires_at=_expiry(payload.get("exp")),
    )
