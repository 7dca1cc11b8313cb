"""사용자 프로필 API 엔드포인트."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db
from core.security import CurrentUser, get_current_user
from schemas import (
    ProfileEnvelope,
    ProfileResponse,
    ProfileUpdate,
    ProfileUpdateResponse,
    SessionUser,
)
from services import ProfileService

router = APIRouter()


@router.get("/profile", response_model=ProfileEnvelope)
def get_profile(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """세션 사용자와 프로필 조회. 프로필 행이 없으면 profile은 null."""
    profile = ProfileService(db).get(user.id)
    return ProfileEnvelope(
        email=user.email,
        profile=ProfileResponse.model_validate(profile) if profile else None,
        user=SessionUser(id=user.id, email=user.email),
    )


@router.put("/profile", response_model=ProfileUpdateResponse)
def update_profile(
    data: ProfileUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    profile = ProfileService(db).upsert(user, data)
    return ProfileUpdateResponse(profile=ProfileResponse.model_validate(profile))
