from sqlmodel import SQLModel
from vidshare.db.session import engine
from vidshare.core.config import settings
from vidshare.models import (  # noqa: F401
    user,
    video,
    tag,
    app_tiktok_token,
    third_party_config,
)


def init_db(drop_all: bool = False) -> None:
    if drop_all:
        SQLModel.metadata.drop_all(engine)
    if settings.DATABASE_URL.startswith('sqlite') or settings.ENV != 'production' or settings.AUTO_CREATE_TABLES:
        SQLModel.metadata.create_all(engine)
