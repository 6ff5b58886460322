from typing import Any, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class AppCredentialsRequest(BaseModel):
    access_token: str
    refresh_token: str
    open_id: str
    scope: Optional[str] = None
    expires_in: Optional[int] = None


class AppCredentialsOut(BaseModel):
    id: str
    message: str = 'TikTok app credentials stored'


class TokenStatusOut(BaseModel):
    configured: bool
    has_active_token: bool
    is_expired: Optional[bool] = None
    minutes_until_expiry: Optional[int] = None
    age_minutes: Optional[int] = None
    open_id: Optional[str] = None
    scope: Optional[str] = None
    token_created_at: Optional[datetime] = None
    last_refreshed_at: Optional[datetime] = None


class RefreshOut(BaseModel):
    token_id: str
    expires_in: int
    refreshed_at: datetime
    refresh_token_rotated: bool


class FetchRequest(BaseModel):
    cursor: Optional[Any] = None
    max_count: int = Field(default=20, ge=1, le=20, alias='maxCount')

    model_config = {'populate_by_name': True}


class SyncRequest(FetchRequest):
    save_to_db: bool = Field(default=True, alias='saveToDb')


class RemoteVideoPage(BaseModel):
    videos: list[dict[str, Any]]
    cursor: Optional[Any] = None
    has_more: bool = False


class FetchResponse(BaseModel):
    success: bool = True
    source: str
    data: RemoteVideoPage


class SyncData(RemoteVideoPage):
    saved_videos: int = 0


class SyncResponse(BaseModel):
    success: bool = True
    source: str
    message: str
    data: SyncData
