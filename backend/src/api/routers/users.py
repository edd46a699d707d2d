"""Current-user profile endpoints."""
import logging
from functools import partial

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    AuthenticatedUser,
    get_async_session,
    get_current_user,
    get_profile_cache,
)
from core.profile_cache import ProfileCache
from schemas.envelope import ApiResponse
from schemas.user import ProfilePayload, ProfileUpdate, UserProfile
from services import user_service
from services.exceptions import DuplicateUserError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/profile", response_model=ApiResponse[ProfilePayload])
async def get_profile(
    current_user: AuthenticatedUser = Depends(get_current_user),
    cache: ProfileCache = Depends(get_profile_cache),
    db: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ProfilePayload]:
    """Get the current user's profile, tagged with where it was served from."""
    profile, source = await cache.get_or_load(
        current_user.id, partial(user_service.get_profile, db),
    )
    if profile is None:
        raise HTTPException(status_code=404, detail="User not found")
    return ApiResponse(data=ProfilePayload(user=profile, source=source))


@router.put("/profile", response_model=ApiResponse[ProfilePayload])
async def update_profile(
    data: ProfileUpdate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    cache: ProfileCache = Depends(get_profile_cache),
    db: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ProfilePayload]:
    """
    Update the current user's profile and invalidate the cached copy.

    The cached entry is removed before anything is written. If it cannot be
    removed the update is refused with 503 and nothing changes, so the old
    profile is never left cached next to a newer row. A second invalidate
    after commit clears any entry a concurrent read repopulated in between.
    """
    if not await cache.invalidate(current_user.id):
        logger.error(
            "profile_update_refused",
            extra={"user_id": current_user.id, "reason": "cache_invalidate_failed"},
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Profile cache unavailable, try again later",
        )

    try:
        user = await user_service.update_profile(db, current_user.id, data)
    except DuplicateUserError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    profile = UserProfile.model_validate(user)
    await db.commit()
    if not await cache.invalidate(current_user.id):
        logger.error("profile_cache_invalidate_failed", extra={"user_id": current_user.id})

    return ApiResponse(
        message="Profile updated successfully",
        data=ProfilePayload(user=profile),
    )
