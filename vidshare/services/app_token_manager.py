"""Lifecycle of the app-level TikTok credential used for guest access.

Exactly one token row is active at a time. Callers ask for a valid access
token; an expired one is exchanged for a fresh pair through the refresh
client and written back onto the same row. Refreshes are serialized by a
process-wide lock so concurrent callers holding the same expired token
trigger a single network exchange.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Protocol

from loguru import logger

from vidshare.core.config import settings
from vidshare.core.errors import InvalidInputError, NoActiveCredentialError
from vidshare.models.app_tiktok_token import AppTikTokToken
from vidshare.models.base import ensure_utc, utc_now
from vidshare.services.app_token_store import AppTokenStore
from vidshare.services.tiktok_client import RefreshedToken, TikTokClient

# one app-level credential exists, so one lock covers every refresh
_refresh_lock = threading.Lock()


class TokenStore(Protocol):
    def find_active(self) -> Optional[AppTikTokToken]: ...

    def deactivate_all_active(self) -> int: ...

    def insert(self, fields: dict) -> AppTikTokToken: ...

    def update_by_id(self, token_id: str, fields: dict) -> AppTikTokToken: ...

    def replace_active(self, fields: dict) -> tuple[AppTikTokToken, int]: ...


class RefreshClient(Protocol):
    def refresh(self, refresh_token: str) -> RefreshedToken: ...


@dataclass(frozen=True)
class TokenStatus:
    configured: bool
    has_active_token: bool
    is_expired: Optional[bool] = None
    minutes_until_expiry: Optional[int] = None
    age_minutes: Optional[int] = None
    open_id: Optional[str] = None
    scope: Optional[str] = None
    token_created_at: Optional[datetime] = None
    last_refreshed_at: Optional[datetime] = None


@dataclass(frozen=True)
class RefreshResult:
    token_id: str
    access_token: str
    expires_in: int
    refreshed_at: datetime
    refresh_token_rotated: bool


def token_age(record: AppTikTokToken, now: datetime) -> timedelta:
    return now - ensure_utc(record.token_created_at)


def is_expired(record: AppTikTokToken, now: datetime) -> bool:
    # a token is still valid at exactly expires_in seconds of age
    return token_age(record, now) > timedelta(seconds=record.expires_in)


class AppTokenManager:
    def __init__(
        self,
        store: Optional[TokenStore] = None,
        client: Optional[RefreshClient] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store if store is not None else AppTokenStore()
        self._client = client if client is not None else TikTokClient()
        self._clock = clock

    def _require_active(self) -> AppTikTokToken:
        record = self._store.find_active()
        if record is None:
            raise NoActiveCredentialError()
        return record

    def _refresh(self, record: AppTikTokToken) -> RefreshResult:
        refreshed = self._client.refresh(record.refresh_token)
        now = self._clock()
        refresh_token = refreshed.refresh_token or record.refresh_token
        updated = self._store.update_by_id(
            record.id,
            {
                'access_token': refreshed.access_token,
                'refresh_token': refresh_token,
                'expires_in': refreshed.expires_in,
                'token_created_at': now,
                'last_refreshed_at': now,
            },
        )
        logger.info(
            'Refreshed app TikTok token {} (expires_in={}s, rotated={})',
            updated.id,
            refreshed.expires_in,
            refresh_token != record.refresh_token,
        )
        return RefreshResult(
            token_id=updated.id,
            access_token=updated.access_token,
            expires_in=updated.expires_in,
            refreshed_at=now,
            refresh_token_rotated=refresh_token != record.refresh_token,
        )

    def get_valid_token(self) -> str:
        record = self._require_active()
        if not is_expired(record, self._clock()):
            return record.access_token

        with _refresh_lock:
            # another caller may have refreshed while this one waited
            record = self._require_active()
            if not is_expired(record, self._clock()):
                return record.access_token
            logger.info('App TikTok token {} expired, refreshing', record.id)
            return self._refresh(record).access_token

    def force_refresh(self) -> RefreshResult:
        with _refresh_lock:
            record = self._require_active()
            return self._refresh(record)

    def set_credentials(
        self,
        access_token: str,
        refresh_token: str,
        open_id: str,
        scope: Optional[str] = None,
        expires_in: Optional[int] = None,
    ) -> str:
        missing = [
            name
            for name, value in (
                ('access_token', access_token),
                ('refresh_token', refresh_token),
                ('open_id', open_id),
            )
            if not value or not str(value).strip()
        ]
        if missing:
            raise InvalidInputError(f"Missing required fields: {', '.join(missing)}")
        if expires_in is not None and expires_in <= 0:
            raise InvalidInputError('expires_in must be a positive number of seconds')

        with _refresh_lock:
            now = self._clock()
            record, deactivated = self._store.replace_active(
                {
                    'access_token': access_token,
                    'refresh_token': refresh_token,
                    'open_id': open_id,
                    'scope': scope or settings.TIKTOK_DEFAULT_SCOPE,
                    'expires_in': expires_in if expires_in is not None else settings.TIKTOK_DEFAULT_EXPIRES_IN,
                    'token_created_at': now,
                    'last_refreshed_at': now,
                }
            )
        logger.info('Stored app TikTok token {} (deactivated {} previous)', record.id, deactivated)
        return record.id

    def get_status(self) -> TokenStatus:
        record = self._store.find_active()
        if record is None:
            return TokenStatus(configured=False, has_active_token=False)

        now = self._clock()
        age = token_age(record, now)
        remaining = timedelta(seconds=record.expires_in) - age
        return TokenStatus(
            configured=True,
            has_active_token=True,
            is_expired=is_expired(record, now),
            minutes_until_expiry=max(0, int(remaining.total_seconds() // 60)),
            age_minutes=max(0, int(age.total_seconds() // 60)),
            open_id=record.open_id,
            scope=record.scope,
            token_created_at=ensure_utc(record.token_created_at),
            last_refreshed_at=ensure_utc(record.last_refreshed_at),
        )
