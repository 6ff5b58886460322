from typing import NoReturn
from fastapi import Depends, HTTPException, status
from loguru import logger
from vidshare.core.errors import (
    InvalidInputError,
    NoActiveCredentialError,
    StoreError,
    TikTokAPIError,
    VidshareError,
)
from vidshare.services.app_token_manager import AppTokenManager
from vidshare.services.tiktok_client import TikTokClient


def get_tiktok_client() -> TikTokClient:
    return TikTokClient()


def get_app_token_manager(client: TikTokClient = Depends(get_tiktok_client)) -> AppTokenManager:
    return AppTokenManager(client=client)


def raise_http_error(exc: VidshareError) -> NoReturn:
    if isinstance(exc, NoActiveCredentialError):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if isinstance(exc, TikTokAPIError):
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={'error': 'TikTok request failed', 'reason': exc.reason},
        ) from exc
    if isinstance(exc, InvalidInputError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if isinstance(exc, StoreError):
        logger.opt(exception=exc).error('Store failure')
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail='Storage error') from exc
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
