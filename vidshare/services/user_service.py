from typing import Optional
from sqlmodel import Session
from vidshare.models.user import User
from vidshare.schemas.user import UserOut, UserSummary


def to_user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        email=user.email,
        username=user.username,
        avatar_url=user.avatar_url,
        is_active=user.is_active,
        role=user.role,
    )


def get_user_summary(session: Session, user_id: Optional[str]) -> Optional[UserSummary]:
    if not user_id:
        return None
    user = session.get(User, user_id)
    if not user:
        return None
    return UserSummary(id=user.id, username=user.username, avatar_url=user.avatar_url)
