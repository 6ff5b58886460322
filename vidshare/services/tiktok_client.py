"""HTTP client for the TikTok Login Kit and Display APIs.

Covers the pieces of the OAuth 2.0 flow the backend drives itself
(authorize URL, code exchange, refresh-token exchange) and the video list
endpoint used to mirror content. Every call carries a bounded timeout and is
attempted once; retry policy belongs to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlencode

import httpx
from loguru import logger

from vidshare.core.config import settings
from vidshare.core.errors import RefreshFailedError, TikTokAPIError

TIKTOK_AUTHORIZE_URL = 'https://www.tiktok.com/v2/auth/authorize/'
TIKTOK_TOKEN_URL = 'https://open.tiktokapis.com/v2/oauth/token/'
TIKTOK_VIDEO_LIST_URL = 'https://open.tiktokapis.com/v2/video/list/'
TIKTOK_VIDEO_FIELDS = (
    'id,title,video_description,duration,cover_image_url,share_url,embed_link,'
    'create_time,view_count,like_count,comment_count,share_count'
)
TIKTOK_MAX_COUNT = 20


@dataclass(frozen=True)
class RefreshedToken:
    access_token: str
    refresh_token: Optional[str]
    expires_in: int


def _error_reason(payload: Any, default: str) -> str:
    if isinstance(payload, dict):
        error = payload.get('error')
        if isinstance(error, dict):
            message = error.get('message') or error.get('code')
            if message and message != 'ok':
                return str(message)
        elif isinstance(error, str) and error:
            return payload.get('error_description') or error
    return default


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class TikTokClient:
    def __init__(
        self,
        client_key: Optional[str] = None,
        client_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._client_key = client_key if client_key is not None else settings.TIKTOK_CLIENT_KEY
        self._client_secret = client_secret if client_secret is not None else settings.TIKTOK_CLIENT_SECRET
        self._redirect_uri = redirect_uri if redirect_uri is not None else settings.TIKTOK_REDIRECT_URI
        self._timeout = timeout if timeout is not None else settings.TIKTOK_HTTP_TIMEOUT_SECONDS
        self._transport = transport

    def _http(self) -> httpx.Client:
        return httpx.Client(timeout=self._timeout, transport=self._transport)

    def authorize_url(self, state: str, scope: str = 'user.info.basic') -> str:
        params = {
            'client_key': self._client_key,
            'response_type': 'code',
            'scope': scope,
            'redirect_uri': self._redirect_uri,
            'state': state,
        }
        return f"{TIKTOK_AUTHORIZE_URL}?{urlencode(params)}"

    def _post_token(self, form: dict[str, str]) -> httpx.Response:
        with self._http() as client:
            return client.post(
                TIKTOK_TOKEN_URL,
                data={'client_key': self._client_key, 'client_secret': self._client_secret, **form},
                headers={'Content-Type': 'application/x-www-form-urlencoded'},
            )

    def exchange_code(self, code: str) -> dict[str, Any]:
        try:
            response = self._post_token(
                {
                    'code': code,
                    'grant_type': 'authorization_code',
                    'redirect_uri': self._redirect_uri,
                }
            )
        except httpx.HTTPError as exc:
            raise TikTokAPIError(f'Token exchange failed: {exc}') from exc
        payload = _safe_json(response)
        if response.is_error or not isinstance(payload, dict) or not payload.get('access_token'):
            raise TikTokAPIError(_error_reason(payload, 'Token exchange failed'), payload)
        return payload

    def refresh(self, refresh_token: str) -> RefreshedToken:
        try:
            response = self._post_token({'grant_type': 'refresh_token', 'refresh_token': refresh_token})
        except httpx.TimeoutException as exc:
            raise RefreshFailedError('Token refresh timed out') from exc
        except httpx.HTTPError as exc:
            raise RefreshFailedError(f'Token refresh failed: {exc}') from exc

        payload = _safe_json(response)
        if response.is_error or not isinstance(payload, dict) or not payload.get('access_token'):
            reason = _error_reason(payload, f'Token refresh failed with status {response.status_code}')
            logger.warning('TikTok refresh rejected: {}', reason)
            raise RefreshFailedError(reason, payload)

        try:
            expires_in = int(payload.get('expires_in') or settings.TIKTOK_DEFAULT_EXPIRES_IN)
        except (TypeError, ValueError) as exc:
            raise RefreshFailedError('Invalid expires_in in refresh response', payload) from exc
        return RefreshedToken(
            access_token=payload['access_token'],
            refresh_token=payload.get('refresh_token') or None,
            expires_in=expires_in,
        )

    def list_videos(
        self,
        access_token: str,
        cursor: Optional[Any] = None,
        max_count: int = TIKTOK_MAX_COUNT,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {'max_count': max(1, min(max_count, TIKTOK_MAX_COUNT))}
        if cursor is not None:
            body['cursor'] = cursor
        try:
            with self._http() as client:
                response = client.post(
                    TIKTOK_VIDEO_LIST_URL,
                    params={'fields': TIKTOK_VIDEO_FIELDS},
                    json=body,
                    headers={'Authorization': f'Bearer {access_token}'},
                )
        except httpx.HTTPError as exc:
            raise TikTokAPIError(f'Video list request failed: {exc}') from exc

        payload = _safe_json(response)
        reason = _error_reason(payload, '')
        if response.is_error or not isinstance(payload, dict) or reason:
            raise TikTokAPIError(reason or f'Video list failed with status {response.status_code}', payload)

        data = payload.get('data') or {}
        return {
            'videos': list(data.get('videos') or []),
            'cursor': data.get('cursor'),
            'has_more': bool(data.get('has_more', False)),
        }
