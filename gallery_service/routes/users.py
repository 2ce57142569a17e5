"""
User Management Routes
Profile management, public statistics and admin administration
"""

from fastapi import APIRouter, Query
import logging

from gallery_service.schemas.user import ProfileUpdateSchema
from gallery_service.utils.dependencies import AdminUser, CurrentUser, Services

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/profile", response_model=dict)
async def get_profile(current_user: CurrentUser, services: Services):
    return await services.profiles.get_user_profile(current_user["id"])


@router.patch("/profile", response_model=dict)
async def update_profile(
    profile_data: ProfileUpdateSchema,
    current_user: CurrentUser,
    services: Services
):
    """Update first name, last name or avatar"""
    return await services.profiles.update_profile(
        current_user["id"],
        profile_data.model_dump(exclude_unset=True)
    )


@router.get("/stats/{user_id}", response_model=dict)
async def get_user_stats(user_id: str, services: Services):
    """Public profile with image, like, download and view totals"""
    return await services.profiles.get_user_stats(user_id)


@router.get("", response_model=dict)
async def list_users(
    admin: AdminUser,
    services: Services,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100)
):
    """Active users (admin only)"""
    return await services.profiles.get_all_users(page, limit)


@router.patch("/deactivate/{user_id}", response_model=dict)
async def deactivate_user(user_id: str, admin: AdminUser, services: Services):
    """Deactivate a user account (admin only); data is kept"""
    return await services.profiles.deactivate_user(user_id, admin_id=admin["id"])
