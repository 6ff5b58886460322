from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from vidshare.api.v1.router import api_router
from vidshare.core.config import settings
from vidshare.core.logging import configure_logging
from vidshare.db.init_db import init_db

configure_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_db()
    if not settings.TIKTOK_CLIENT_KEY or not settings.TIKTOK_CLIENT_SECRET:
        logger.warning('TIKTOK_CLIENT_KEY/TIKTOK_CLIENT_SECRET not set; TikTok token exchange will fail')
    yield

app = FastAPI(title=settings.PROJECT_NAME, debug=settings.DEBUG, lifespan=lifespan)

allow_origins = settings.CORS_ORIGINS
allow_credentials = '*' not in allow_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=allow_credentials,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.include_router(api_router)


@app.get('/', include_in_schema=False)
def root() -> dict:
    return {'message': f'{settings.PROJECT_NAME} is running'}
