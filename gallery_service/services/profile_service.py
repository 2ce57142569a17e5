"""
Profile Service
User profile reads and edits, admin listing and deactivation, per-user statistics
"""

import logging
from typing import Any, Dict, Optional

from gallery_service.models.user import sanitize_user
from gallery_service.services.catalog_service import CatalogService, build_pagination
from gallery_service.services.credential_store import CredentialStore
from gallery_service.utils.exceptions import NotFoundError
from gallery_service.utils.logger import get_audit_logger
from gallery_service.utils.media_client import MediaClient

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("first_name", "last_name", "avatar")
NULLABLE_FIELDS = ("avatar",)


class ProfileService:
    """User profile management"""

    def __init__(
        self,
        credential_store: CredentialStore,
        catalog_service: CatalogService,
        media_client: MediaClient
    ):
        self.credentials = credential_store
        self.catalog = catalog_service
        self.media = media_client
        self.audit = get_audit_logger()

    async def get_user_profile(self, user_id: str) -> Dict[str, Any]:
        user = await self.credentials.get_safe(user_id)
        if not user:
            raise NotFoundError("User not found")
        return sanitize_user(user)

    async def update_profile(self, user_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        """
        Partial update of first_name, last_name and avatar

        Fields left out of the patch are unchanged; an explicit None clears the
        avatar. avatar_public_id names an uploaded media asset and replaces the
        avatar with its face-cropped URL.
        """
        changes = {
            k: v for k, v in patch.items()
            if k in PROFILE_FIELDS and (v is not None or k in NULLABLE_FIELDS)
        }
        if patch.get("avatar_public_id"):
            changes["avatar"] = self.avatar_url_for(patch["avatar_public_id"])

        if not changes:
            return await self.get_user_profile(user_id)

        user = await self.credentials.update_fields(user_id, changes)
        if not user:
            raise NotFoundError("User not found")

        logger.info(f"Profile updated for user: {user_id}")
        return sanitize_user(user)

    async def get_all_users(self, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        users, total = await self.credentials.list_active(page, limit)
        return {
            "users": [sanitize_user(user) for user in users],
            "pagination": build_pagination(total, page, limit),
        }

    async def deactivate_user(self, user_id: str, admin_id: Optional[str] = None) -> Dict[str, str]:
        if not await self.credentials.deactivate(user_id):
            raise NotFoundError("User not found")

        self.audit.log_user_action(admin_id or "system", "deactivate", "user", user_id)
        return {"message": "User deactivated successfully"}

    async def get_user_stats(self, user_id: str) -> Dict[str, Any]:
        """Public profile plus totals across the user's images"""
        user = await self.credentials.get_safe(user_id)
        if not user:
            raise NotFoundError("User not found")

        stats = await self.catalog.owner_totals(user["_id"])
        return {
            "user": {
                "id": str(user["_id"]),
                "username": user["username"],
                "first_name": user["first_name"],
                "last_name": user["last_name"],
                "avatar": user.get("avatar"),
                "created_at": user.get("created_at"),
            },
            "stats": stats,
        }

    def avatar_url_for(self, public_id: str, size: int = 200) -> str:
        """Square face-cropped avatar URL for an uploaded media asset"""
        return self.media.url_for(
            public_id,
            width=size,
            height=size,
            crop="fill",
            gravity="face"
        )
