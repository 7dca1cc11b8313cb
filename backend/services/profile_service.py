"""사용자 프로필 조회/수정."""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import RepositoryError
from core.security import CurrentUser
from models import Profile
from schemas import ProfileUpdate

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[Profile]:
        return self.db.get(Profile, user_id)

    def upsert(self, user: CurrentUser, data: ProfileUpdate) -> Profile:
        """프로필 수정. 행이 없으면 세션 정보로 생성한다.

        요청에 포함된 필드만 반영하며, null을 명시하면 해당 값을 비운다.
        """
        profile = self.get(user.id)
        if profile is None:
            profile = Profile(id=user.id, email=user.email)
            self.db.add(profile)
            logger.info(f"Profile created: {user.id}")
        elif user.email and profile.email != user.email:
            profile.email = user.email

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(profile, field, value)

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(
                f"Failed to update profile: {e}",
                operation="update_profile",
                user_id=user.id,
            )
        self.db.refresh(profile)
        return profile
