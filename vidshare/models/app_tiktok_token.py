from datetime import datetime
import sqlalchemy as sa
from sqlmodel import Field, SQLModel
from vidshare.models.base import IDModel, TimestampModel, tz_datetime, utc_now


class AppTikTokToken(IDModel, TimestampModel, SQLModel, table=True):
    """App-level TikTok credential used for guest access.

    At most one row is active; superseded rows stay with ``is_active=False``.
    """

    __tablename__ = 'app_tiktok_tokens'

    access_token: str = Field(sa_column=sa.Column(sa.Text(), nullable=False))
    refresh_token: str = Field(sa_column=sa.Column(sa.Text(), nullable=False))
    open_id: str
    scope: str
    expires_in: int
    token_created_at: datetime = Field(default_factory=utc_now, sa_type=tz_datetime())
    last_refreshed_at: datetime = Field(default_factory=utc_now, sa_type=tz_datetime())
    is_active: bool = Field(default=True, index=True)
