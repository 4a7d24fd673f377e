"""用户资料路由

GET    /api/profile           查询资料（尚无记录时返回空资料）
PUT    /api/profile/picture   设置头像 URL
DELETE /api/profile/picture   清空头像 URL
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from smarttask.core.models import Profile

from ..deps import AuthContext, get_auth_context, get_profile_service
from ..services.profile_service import ProfileService

router = APIRouter()


class ProfilePictureRequest(BaseModel):
    """头像设置请求体"""

    url: str = Field(description="托管存储中的公开 URL")


class ProfileResponse(BaseModel):
    user_id: str
    profile_picture_url: str | None
    updated_at: str | None


def _to_response(profile: Profile) -> ProfileResponse:
    return ProfileResponse(
        user_id=profile.user_id,
        profile_picture_url=profile.profile_picture_url,
        updated_at=profile.updated_at.isoformat() if profile.updated_at else None,
    )


@router.get("/api/profile", response_model=ProfileResponse)
async def get_profile(
    auth: AuthContext = Depends(get_auth_context),
    service: ProfileService = Depends(get_profile_service),
):
    return _to_response(await service.get_profile(auth.user_id))


@router.put("/api/profile/picture", response_model=ProfileResponse)
async def set_profile_picture(
    body: ProfilePictureRequest,
    auth: AuthContext = Depends(get_auth_context),
    service: ProfileService = Depends(get_profile_service),
):
    return _to_response(await service.set_profile_picture(auth.user_id, body.url))


@router.delete("/api/profile/picture", response_model=ProfileResponse)
async def remove_profile_picture(
    auth: AuthContext = Depends(get_auth_context),
    service: ProfileService = Depends(get_profile_service),
):
    return _to_response(await service.remove_profile_picture(auth.user_id))
