from typing import Optional
from datetime import datetime
import sqlalchemy as sa
from sqlmodel import Field, SQLModel
from vidshare.models.base import IDModel, TimestampModel, tz_datetime
from vidshare.models.enums import VideoStatus, enum_column


class Video(IDModel, TimestampModel, SQLModel, table=True):
    __tablename__ = 'videos'

    title: str
    description: Optional[str] = Field(default=None, sa_column=sa.Column(sa.Text()))
    category: Optional[str] = Field(default=None, index=True)
    video_url: str
    thumbnail_url: Optional[str] = None
    user_id: Optional[str] = Field(default=None, index=True)
    status: VideoStatus = Field(
        default=VideoStatus.PUBLIC,
        sa_column=enum_column(VideoStatus, 'video_status'),
    )
    views: int = 0
    allow_comments: bool = True
    allow_download: bool = False
    scheduled_at: Optional[datetime] = Field(default=None, sa_type=tz_datetime())

    tiktok_id: Optional[str] = Field(default=None, index=True, unique=True)
    tiktok_likes: int = 0
    tiktok_comments: int = 0
    tiktok_shares: int = 0
    tiktok_create_time: Optional[datetime] = Field(default=None, sa_type=tz_datetime(), index=True)
    is_app_content: bool = False
