import os
import tempfile
import threading
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

import pytest

TEST_DB_PATH = Path(tempfile.gettempdir()) / f"vidshare-test-{os.getpid()}.db"
TEST_DB_URL = os.getenv("TEST_DB_URL", f"sqlite:///{TEST_DB_PATH}")
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("TIKTOK_CLIENT_KEY", "test-client-key")
os.environ.setdefault("TIKTOK_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("TIKTOK_REDIRECT_URI", "https://example.com/api/v1/tiktok/auth/callback")

from vidshare.core.config import settings
from vidshare.db.init_db import init_db
from vidshare.main import app
from vidshare.services.tiktok_client import RefreshedToken

settings.DATABASE_URL = TEST_DB_URL


class FakeClock:
    def __init__(self, now: Optional[datetime] = None) -> None:
        self.now = now or datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FakeTikTokClient:
    """Stands in for TikTokClient; records every refresh call."""

    def __init__(self) -> None:
        self.refresh_calls: list[str] = []
        self.refresh_response = RefreshedToken(access_token='A2', refresh_token=None, expires_in=7200)
        self.refresh_error: Optional[Exception] = None
        self.refresh_delay = 0.0
        self.videos: list[dict[str, Any]] = []
        self.list_error: Optional[Exception] = None
        self.list_calls: list[str] = []
        self.exchange_payload: dict[str, Any] = {
            'access_token': 'user-access',
            'refresh_token': 'user-refresh',
            'open_id': 'user-open-id',
            'scope': 'user.info.basic,video.list',
            'expires_in': 86400,
        }
        self._lock = threading.Lock()

    def refresh(self, refresh_token: str) -> RefreshedToken:
        with self._lock:
            self.refresh_calls.append(refresh_token)
        if self.refresh_delay:
            time.sleep(self.refresh_delay)
        if self.refresh_error is not None:
            raise self.refresh_error
        return self.refresh_response

    def list_videos(self, access_token: str, cursor: Any = None, max_count: int = 20) -> dict[str, Any]:
        self.list_calls.append(access_token)
        if self.list_error is not None:
            raise self.list_error
        return {'videos': list(self.videos[:max_count]), 'cursor': 'next-cursor', 'has_more': False}

    def exchange_code(self, code: str) -> dict[str, Any]:
        return dict(self.exchange_payload)

    def authorize_url(self, state: str, scope: str = 'user.info.basic') -> str:
        return f"https://www.tiktok.com/v2/auth/authorize/?state={state}"


@pytest.fixture(autouse=True, scope="session")
def _configure_test_database():
    init_db(drop_all=True)
    yield
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()


@pytest.fixture(autouse=True)
def _reset_overrides():
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_tiktok() -> FakeTikTokClient:
    return FakeTikTokClient()
