from typing import Optional
from sqlmodel import Field, SQLModel
from vidshare.models.base import IDModel, TimestampModel
from vidshare.models.enums import UserRole, enum_column


class User(IDModel, TimestampModel, SQLModel, table=True):
    __tablename__ = 'users'

    email: str = Field(index=True, unique=True)
    username: Optional[str] = Field(default=None, index=True, unique=True)
    hashed_password: str
    avatar_url: Optional[str] = None
    is_active: bool = True
    role: UserRole = Field(default=UserRole.USER, sa_column=enum_column(UserRole, 'user_role'))
