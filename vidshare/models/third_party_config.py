import sqlalchemy as sa
from sqlmodel import Field, SQLModel
from vidshare.models.base import IDModel, TimestampModel


class ThirdPartyConfig(IDModel, TimestampModel, SQLModel, table=True):
    __tablename__ = 'third_party_configs'
    __table_args__ = (sa.UniqueConstraint('user_id', 'provider'),)

    user_id: str = Field(index=True)
    provider: str
    config: str = Field(default='{}', sa_column=sa.Column(sa.Text(), nullable=False))
