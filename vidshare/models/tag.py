import sqlalchemy as sa
from sqlmodel import Field, SQLModel
from vidshare.models.base import IDModel, TimestampModel


class Tag(IDModel, TimestampModel, SQLModel, table=True):
    __tablename__ = 'tags'

    name: str = Field(index=True, unique=True)


class VideoTag(IDModel, SQLModel, table=True):
    __tablename__ = 'video_tags'
    __table_args__ = (sa.UniqueConstraint('video_id', 'tag_id'),)

    video_id: str = Field(index=True)
    tag_id: str = Field(index=True)
