from __future__ import annotations

from typing import Any, Optional


class VidshareError(Exception):
    """Base class for errors raised by vidshare services."""


class InvalidInputError(VidshareError):
    pass


class StoreError(VidshareError):
    """A durable-store query or write failed."""


class TikTokIntegrationError(VidshareError):
    pass


class NoActiveCredentialError(TikTokIntegrationError):
    def __init__(self, message: str = 'TikTok integration not configured') -> None:
        super().__init__(message)


class TikTokAPIError(TikTokIntegrationError):
    """TikTok answered with an error payload or an unexpected status."""

    def __init__(self, reason: str, payload: Optional[Any] = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.payload = payload


class RefreshFailedError(TikTokAPIError):
    """Refresh-token exchange failed (network, timeout or provider rejection)."""
