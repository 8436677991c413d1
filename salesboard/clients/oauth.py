"""
Provider OAuth utilities.

Each client performs a single credential exchange and returns the raw
``(access_token, expires_in_seconds)`` pair; caching is handled by
:class:`salesboard.services.token_cache.TokenCache`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from salesboard.core.config import PayPalSettings, ZettleSettings

logger = logging.getLogger(__name__)


class AuthConfigError(Exception):
    """Raised when credentials required for a provider call are not configured."""


class UpstreamAuthError(Exception):
    """Raised when a provider token endpoint rejects the exchange."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Token endpoint returned {status_code}: {body}")
        self.status_code = status_code
        self.body = body


def _coerce_expires_in(value: Any) -> int:
    try:
        return max(int(float(value)), 0)
    except (TypeError, ValueError, OverflowError):
        return 0


class _TokenExchangeClient:
    """Shared POST-and-parse logic for the provider token endpoints."""

    provider = "provider"

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    async def _exchange(
        self,
        url: str,
        data: Dict[str, str],
        auth: Optional[Tuple[str, str]] = None,
    ) -> Tuple[str, int]:
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            response = await client.post(
                url,
                data=data,
                auth=auth,
                headers={"Accept": "application/json"},
            )

        if not response.is_success:
            logger.warning(
                "%s token exchange failed with status %s",
                self.provider,
                response.status_code,
            )
            raise UpstreamAuthError(response.status_code, response.text)

        try:
            token_payload = response.json()
        except ValueError as exc:
            raise UpstreamAuthError(response.status_code, response.text) from exc

        access_token = (
            token_payload.get("access_token") if isinstance(token_payload, dict) else None
        )
        if not access_token:
            raise UpstreamAuthError(
                response.status_code, "Incomplete token payload returned."
            )

        return access_token, _coerce_expires_in(token_payload.get("expires_in"))


class ZettleOAuthClient(_TokenExchangeClient):
    """Exchange the Zettle API key for an access token (JWT-bearer grant)."""

    provider = "zettle"
    TOKEN_URL = "https://oauth.zettle.com/token"
    GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"

    def __init__(self, settings: ZettleSettings, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._settings = settings

    async def fetch_token(self) -> Tuple[str, int]:
        """
        Request a new access token.

        Returns a tuple of (access_token, expires_in_seconds).
        """
        client_id = self._settings.client_id
        api_key = self._settings.api_key
        if not client_id or not api_key:
            raise AuthConfigError("ZETTLE_CLIENT_ID and ZETTLE_API_KEY must be set.")

        payload = {
            "grant_type": self.GRANT_TYPE,
            "client_id": client_id,
            "assertion": api_key,
        }
        return await self._exchange(self.TOKEN_URL, payload)


class PayPalOAuthClient(_TokenExchangeClient):
    """Obtain a PayPal access token with the client-credentials grant."""

    provider = "paypal"
    TOKEN_PATH = "/v1/oauth2/token"

    def __init__(self, settings: PayPalSettings, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._settings = settings

    @property
    def token_url(self) -> str:
        return f"{self._settings.api_base_url}{self.TOKEN_PATH}"

    async def fetch_token(self) -> Tuple[str, int]:
        """Request a new access token using HTTP Basic client credentials."""
        client_id = self._settings.client_id
        client_secret = self._settings.client_secret
        if not client_id or not client_secret:
            raise AuthConfigError(
                "PAYPAL_CLIENT_ID and PAYPAL_CLIENT_SECRET must be set."
            )

        return await self._exchange(
            self.token_url,
            {"grant_type": "client_credentials"},
            auth=(client_id, client_secret),
        )


__all__ = [
    "AuthConfigError",
    "PayPalOAuthClient",
    "UpstreamAuthError",
    "ZettleOAuthClient",
]
