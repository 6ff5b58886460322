from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field
from vidshare.core.config import settings
from vidshare.models.enums import TrendingTimeframe, VideoStatus
from vidshare.schemas.user import UserSummary


class VideoCreate(BaseModel):
    title: str = Field(min_length=1, max_length=settings.VIDEO_TITLE_MAX_LEN)
    video_url: str = Field(min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    thumbnail_url: Optional[str] = None
    tags: Optional[str] = Field(default=None, description='Comma-separated tags, e.g. "funny, music, dance"')
    visibility: VideoStatus = VideoStatus.PUBLIC
    allow_comments: bool = True
    allow_download: bool = False
    scheduled_at: Optional[datetime] = None


class VideoOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    video_url: str
    thumbnail_url: Optional[str] = None
    user_id: Optional[str] = None
    status: VideoStatus
    views: int
    allow_comments: bool
    allow_download: bool
    scheduled_at: Optional[datetime] = None
    tiktok_id: Optional[str] = None
    tiktok_likes: int = 0
    tiktok_comments: int = 0
    tiktok_shares: int = 0
    tiktok_create_time: Optional[datetime] = None
    is_app_content: bool = False
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class VideoViewsOut(BaseModel):
    id: str
    title: str
    views: int


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class VideoPage(BaseModel):
    videos: list[VideoOut]
    pagination: Pagination


class TrendingVideos(BaseModel):
    videos: list[VideoOut]
    timeframe: TrendingTimeframe
    total: int


class VideoDetail(VideoOut):
    user: Optional[UserSummary] = None


class ViewsIncremented(BaseModel):
    message: str = 'Views incremented successfully'
    video: VideoViewsOut


class VideoPageResponse(BaseModel):
    success: bool = True
    data: VideoPage


class TrendingResponse(BaseModel):
    success: bool = True
    data: TrendingVideos
