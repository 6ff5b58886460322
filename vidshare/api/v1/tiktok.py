import math
from dataclasses import asdict
import secrets
from typing import Optional
from fastapi import APIRouter, Cookie, Depends, HTTPException, status
from fastapi.responses import RedirectResponse
from sqlmodel import Session
from vidshare.api.v1.deps import get_app_token_manager, get_tiktok_client, raise_http_error
from vidshare.core.errors import VidshareError
from vidshare.db.session import get_session
from vidshare.models.enums import TrendingTimeframe
from vidshare.models.user import User
from vidshare.schemas.tiktok import (
    AppCredentialsOut,
    AppCredentialsRequest,
    FetchRequest,
    FetchResponse,
    RefreshOut,
    RemoteVideoPage,
    SyncData,
    SyncRequest,
    SyncResponse,
    TokenStatusOut,
)
from vidshare.schemas.video import Pagination, TrendingResponse, TrendingVideos, VideoPage, VideoPageResponse
from vidshare.services.app_token_manager import AppTokenManager
from vidshare.services.auth_service import get_current_user, get_optional_user, require_admin
from vidshare.services.tiktok_client import TikTokClient
from vidshare.services.user_tiktok_tokens import UserTikTokTokens
from vidshare.services.video_service import (
    list_tiktok_videos,
    sync_tiktok_videos,
    to_video_outs,
    trending_tiktok_videos,
)

CSRF_COOKIE = 'csrf_state'
APP_SOURCE = 'app_tiktok'
USER_SOURCE = 'user_tiktok'

oauth_router = APIRouter(prefix='/tiktok', tags=['tiktok'])
router = APIRouter(prefix='/videos/tiktok', tags=['tiktok'])


@oauth_router.get('/auth')
def tiktok_authorize(client: TikTokClient = Depends(get_tiktok_client)) -> RedirectResponse:
    state = secrets.token_urlsafe(16)
    response = RedirectResponse(client.authorize_url(state), status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    response.set_cookie(CSRF_COOKIE, state, max_age=60, httponly=True, secure=True)
    return response


@oauth_router.get('/auth/callback')
def tiktok_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    csrf_state: Optional[str] = Cookie(default=None),
    session: Session = Depends(get_session),
    user: Optional[User] = Depends(get_optional_user),
    client: TikTokClient = Depends(get_tiktok_client),
) -> dict:
    if not code or not state or not csrf_state or not secrets.compare_digest(state, csrf_state):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid state or missing code')
    try:
        token_payload = client.exchange_code(code)
    except VidshareError as exc:
        raise_http_error(exc)

    linked = False
    if user is not None:
        UserTikTokTokens(session, client).save(user.id, token_payload)
        linked = True
    return {
        'open_id': token_payload.get('open_id'),
        'scope': token_payload.get('scope'),
        'expires_in': token_payload.get('expires_in'),
        'linked': linked,
    }


@router.get('/admin/status', response_model=TokenStatusOut)
def app_token_status(manager: AppTokenManager = Depends(get_app_token_manager)) -> TokenStatusOut:
    try:
        report = manager.get_status()
    except VidshareError as exc:
        raise_http_error(exc)
    return TokenStatusOut(**asdict(report))


@router.post('/admin/credentials', response_model=AppCredentialsOut, status_code=status.HTTP_201_CREATED)
def set_app_credentials(
    payload: AppCredentialsRequest,
    manager: AppTokenManager = Depends(get_app_token_manager),
    _: User = Depends(require_admin),
) -> AppCredentialsOut:
    try:
        token_id = manager.set_credentials(
            payload.access_token,
            payload.refresh_token,
            payload.open_id,
            scope=payload.scope,
            expires_in=payload.expires_in,
        )
    except VidshareError as exc:
        raise_http_error(exc)
    return AppCredentialsOut(id=token_id)


@router.post('/admin/refresh', response_model=RefreshOut)
def refresh_app_token(
    manager: AppTokenManager = Depends(get_app_token_manager),
    _: User = Depends(require_admin),
) -> RefreshOut:
    try:
        result = manager.force_refresh()
    except VidshareError as exc:
        raise_http_error(exc)
    return RefreshOut(
        token_id=result.token_id,
        expires_in=result.expires_in,
        refreshed_at=result.refreshed_at,
        refresh_token_rotated=result.refresh_token_rotated,
    )


def _fetch_remote(client: TikTokClient, access_token: str, payload: FetchRequest) -> RemoteVideoPage:
    page = client.list_videos(access_token, cursor=payload.cursor, max_count=payload.max_count)
    return RemoteVideoPage(**page)


@router.post('/guest/fetch', response_model=FetchResponse)
def guest_fetch(
    payload: Optional[FetchRequest] = None,
    manager: AppTokenManager = Depends(get_app_token_manager),
    client: TikTokClient = Depends(get_tiktok_client),
) -> FetchResponse:
    payload = payload or FetchRequest()
    try:
        page = _fetch_remote(client, manager.get_valid_token(), payload)
    except VidshareError as exc:
        raise_http_error(exc)
    return FetchResponse(source=APP_SOURCE, data=page)


@router.post('/guest/sync', response_model=SyncResponse)
def guest_sync(
    payload: Optional[SyncRequest] = None,
    session: Session = Depends(get_session),
    manager: AppTokenManager = Depends(get_app_token_manager),
    client: TikTokClient = Depends(get_tiktok_client),
) -> SyncResponse:
    payload = payload or SyncRequest()
    try:
        page = _fetch_remote(client, manager.get_valid_token(), payload)
    except VidshareError as exc:
        raise_http_error(exc)

    if not payload.save_to_db:
        return SyncResponse(
            source=APP_SOURCE,
            message='Videos fetched successfully (not saved)',
            data=SyncData(**page.model_dump(), saved_videos=0),
        )
    saved = sync_tiktok_videos(session, page.videos, is_app_content=True)
    return SyncResponse(
        source=APP_SOURCE,
        message=f'Synced {saved} videos to database',
        data=SyncData(**page.model_dump(), saved_videos=saved),
    )


@router.get('/guest/all', response_model=VideoPageResponse)
def guest_all(
    page: int = 1,
    limit: int = 20,
    category: Optional[str] = None,
    search: Optional[str] = None,
    session: Session = Depends(get_session),
) -> VideoPageResponse:
    page = max(page, 1)
    limit = min(max(limit, 1), 100)
    videos, total = list_tiktok_videos(session, page=page, limit=limit, category=category, search=search)
    return VideoPageResponse(
        data=VideoPage(
            videos=to_video_outs(session, videos),
            pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
        )
    )


@router.get('/guest/trending', response_model=TrendingResponse)
def guest_trending(
    limit: int = 10,
    timeframe: TrendingTimeframe = TrendingTimeframe.WEEK,
    session: Session = Depends(get_session),
) -> TrendingResponse:
    limit = min(max(limit, 1), 100)
    videos = trending_tiktok_videos(session, limit=limit, timeframe=timeframe)
    return TrendingResponse(
        data=TrendingVideos(videos=to_video_outs(session, videos), timeframe=timeframe, total=len(videos))
    )


@router.post('/fetch', response_model=FetchResponse)
def user_fetch(
    payload: Optional[FetchRequest] = None,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
    client: TikTokClient = Depends(get_tiktok_client),
) -> FetchResponse:
    payload = payload or FetchRequest()
    try:
        access_token = UserTikTokTokens(session, client).get_valid_token(user.id)
        page = _fetch_remote(client, access_token, payload)
    except VidshareError as exc:
        raise_http_error(exc)
    return FetchResponse(source=USER_SOURCE, data=page)
