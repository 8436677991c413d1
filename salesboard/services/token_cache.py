"""
In-process cache for provider access tokens.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from salesboard.models.token import AccessToken
from salesboard.utils.clock import utcnow

logger = logging.getLogger(__name__)


class TokenCache:
    """
    Hold a single access token and refresh it on demand.

    ``token_client`` is any object exposing an async ``fetch_token()`` that
    returns ``(access_token, expires_in_seconds)``. A token is only handed out
    while it is more than ``_SAFETY_MARGIN`` away from expiring. Failed
    exchanges leave the cache untouched, so the next call tries again.
    """

    _SAFETY_MARGIN = timedelta(seconds=60)

    def __init__(
        self,
        token_client: Any,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._client = token_client
        self._clock = clock
        self._token: Optional[AccessToken] = None

    @property
    def provider(self) -> str:
        return getattr(self._client, "provider", "provider")

    @property
    def current(self) -> Optional[AccessToken]:
        return self._token

    async def get_token(self) -> str:
        """Return a usable bearer token, exchanging credentials when required."""
        token = self._token
        if token is not None and token.is_fresh(self._clock(), self._SAFETY_MARGIN):
            return token.value

        logger.info("Refreshing %s access token", self.provider)
        value, expires_in = await self._client.fetch_token()
        refreshed_at = self._clock()
        self._token = AccessToken(
            value=value,
            expires_at=refreshed_at + timedelta(seconds=expires_in),
        )
        return value

    def invalidate(self) -> None:
        """Forget the cached token so the next call performs an exchange."""
        self._token = None


__all__ = ["TokenCache"]
