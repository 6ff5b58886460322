from typing import Optional
from pydantic import BaseModel, EmailStr
from vidshare.models.enums import UserRole


class UserOut(BaseModel):
    id: str
    email: EmailStr
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    is_active: bool
    role: UserRole


class UserSummary(BaseModel):
    id: str
    username: Optional[str] = None
    avatar_url: Optional[str] = None
