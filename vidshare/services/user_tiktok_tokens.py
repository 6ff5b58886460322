from __future__ import annotations

import json
import threading
import weakref
from datetime import datetime
from typing import Any, Callable, Optional

from loguru import logger
from sqlmodel import Session, select

from vidshare.core.config import settings
from vidshare.core.errors import NoActiveCredentialError, RefreshFailedError
from vidshare.models.base import utc_now
from vidshare.models.third_party_config import ThirdPartyConfig
from vidshare.services.app_token_manager import RefreshClient
from vidshare.services.tiktok_client import TikTokClient

TIKTOK_PROVIDER = 'tiktok'
_TOKEN_KEYS = ('access_token', 'refresh_token', 'open_id', 'scope', 'expires_in')

# entries drop out once no caller holds the lock
_user_locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
_user_locks_guard = threading.Lock()


def _lock_for(user_id: str) -> threading.Lock:
    with _user_locks_guard:
        lock = _user_locks.get(user_id)
        if lock is None:
            lock = threading.Lock()
            _user_locks[user_id] = lock
        return lock


def _load_config(record: ThirdPartyConfig) -> dict[str, Any]:
    try:
        value = json.loads(record.config or '{}')
    except json.JSONDecodeError:
        logger.warning('Discarding unreadable {} config for user {}', record.provider, record.user_id)
        return {}
    return value if isinstance(value, dict) else {}


def config_is_expired(config: dict[str, Any], now: datetime) -> bool:
    created = config.get('token_created_at')
    if created is None:
        # no issuance time recorded: the token cannot be proven fresh
        return True
    expires_in = int(config.get('expires_in') or settings.TIKTOK_DEFAULT_EXPIRES_IN)
    return now.timestamp() - float(created) > expires_in


class UserTikTokTokens:
    """Per-user TikTok credentials kept as a JSON blob in ``third_party_configs``."""

    def __init__(
        self,
        session: Session,
        client: Optional[RefreshClient] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._session = session
        self._client = client if client is not None else TikTokClient()
        self._clock = clock

    def _get_record(self, user_id: str) -> Optional[ThirdPartyConfig]:
        statement = select(ThirdPartyConfig).where(
            (ThirdPartyConfig.user_id == user_id) & (ThirdPartyConfig.provider == TIKTOK_PROVIDER)
        )
        return self._session.exec(statement).first()

    def _write(self, record: ThirdPartyConfig, config: dict[str, Any]) -> None:
        record.config = json.dumps(config)
        self._session.add(record)
        self._session.commit()
        self._session.refresh(record)

    def save(self, user_id: str, token_payload: dict[str, Any]) -> ThirdPartyConfig:
        record = self._get_record(user_id)
        if record is None:
            record = ThirdPartyConfig(user_id=user_id, provider=TIKTOK_PROVIDER)
            config: dict[str, Any] = {}
        else:
            config = _load_config(record)
        config.update({key: token_payload[key] for key in _TOKEN_KEYS if token_payload.get(key) is not None})
        config['token_created_at'] = self._clock().timestamp()
        self._write(record, config)
        logger.info('Stored TikTok credential for user {}', user_id)
        return record

    def get_valid_token(self, user_id: str) -> str:
        with _lock_for(user_id):
            record = self._get_record(user_id)
            config = _load_config(record) if record is not None else {}
            if record is None or not config.get('access_token'):
                raise NoActiveCredentialError('TikTok account not connected')

            now = self._clock()
            if not config_is_expired(config, now):
                return config['access_token']

            refresh_token = config.get('refresh_token')
            if not refresh_token:
                raise RefreshFailedError('No refresh token stored for this TikTok account')

            refreshed = self._client.refresh(refresh_token)
            config.update(
                {
                    'access_token': refreshed.access_token,
                    'refresh_token': refreshed.refresh_token or refresh_token,
                    'expires_in': refreshed.expires_in,
                    'token_created_at': now.timestamp(),
                }
            )
            self._write(record, config)
            logger.info('Refreshed TikTok credential for user {}', user_id)
            return refreshed.access_token
