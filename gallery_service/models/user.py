"""
User Models
Document shape, lifetimes and projections for user records
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional


class UserRole(str, Enum):
    """User role enumeration"""
    USER = "user"
    ADMIN = "admin"


REFRESH_TOKEN_LIFETIME = timedelta(days=7)
PASSWORD_RESET_LIFETIME = timedelta(minutes=10)
EMAIL_VERIFICATION_LIFETIME = timedelta(hours=24)

# Never leave the service
PRIVATE_FIELDS = (
    "password_hash",
    "refresh_tokens",
    "password_reset_token",
    "password_reset_expires",
    "email_verification_token",
    "email_verification_expires",
)

# Owner / liker identity embedded in image responses
PUBLIC_PROFILE_FIELDS = ("username", "first_name", "last_name", "avatar")


def new_user_document(
    username: str,
    email: str,
    password_hash: str,
    first_name: str,
    last_name: str,
    role: UserRole = UserRole.USER,
    is_email_verified: bool = False
) -> Dict[str, Any]:
    """Build a user document ready for insertion"""
    now = datetime.now(timezone.utc)
    return {
        "username": username,
        "email": email.lower(),
        "password_hash": password_hash,
        "first_name": first_name,
        "last_name": last_name,
        "avatar": None,
        "role": role.value,
        "is_email_verified": is_email_verified,
        "refresh_tokens": [],
        "password_reset_token": None,
        "password_reset_expires": None,
        "email_verification_token": None,
        "email_verification_expires": None,
        "last_login": None,
        "is_active": True,
        "created_at": now,
        "updated_at": now,
    }


def sanitize_user(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Strip credentials and token bookkeeping; expose the id as a string"""
    if user is None:
        return None
    data = {k: v for k, v in user.items() if k not in PRIVATE_FIELDS and k != "_id"}
    data["id"] = str(user["_id"])
    return data


def public_profile(user: Dict[str, Any]) -> Dict[str, Any]:
    """Minimal identity shown next to images"""
    data = {field: user.get(field) for field in PUBLIC_PROFILE_FIELDS}
    data["id"] = str(user["_id"])
    return data


def summarize_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """Login/registration summary"""
    return {
        "id": str(user["_id"]),
        "username": user["username"],
        "email": user["email"],
        "first_name": user["first_name"],
        "last_name": user["last_name"],
        "role": user.get("role", UserRole.USER.value),
        "is_email_verified": user.get("is_email_verified", False),
    }
