from fastapi import APIRouter
from vidshare.api.v1 import health, auth, users, tiktok, videos
from vidshare.core.config import settings

api_router = APIRouter(prefix=settings.API_V1_PREFIX)

api_router.include_router(health.router, tags=['health'])
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(tiktok.oauth_router)
# /videos/tiktok/* must be matched before /videos/{video_id}
api_router.include_router(tiktok.router)
api_router.include_router(videos.router)
