"""
PayPal webhook signature verification client.

PayPal webhooks are not signed with a shared secret; instead the transmission
headers are posted back to PayPal, which answers with a verification status.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from salesboard.clients.oauth import AuthConfigError
from salesboard.core.config import PayPalSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PayPalTransmission:
    """The five transmission headers PayPal attaches to every delivery."""

    transmission_id: str
    transmission_time: str
    cert_url: str
    auth_algo: str
    transmission_sig: str


class PayPalWebhookClient:
    """Ask PayPal whether a webhook delivery is authentic."""

    VERIFY_PATH = "/v1/notifications/verify-webhook-signature"

    def __init__(
        self,
        settings: PayPalSettings,
        token_cache: Any,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._tokens = token_cache
        self._timeout = timeout
        self._transport = transport

    @property
    def verify_url(self) -> str:
        return f"{self._settings.api_base_url}{self.VERIFY_PATH}"

    async def verify_signature(
        self,
        transmission: PayPalTransmission,
        webhook_event: Dict[str, Any],
    ) -> Optional[str]:
        """
        Submit the delivery for verification.

        Returns PayPal's ``verification_status`` or ``None`` when the call was
        answered with a non-success status. Transport errors propagate as
        :class:`httpx.HTTPError`.
        """
        webhook_id = self._settings.webhook_id
        if not webhook_id:
            raise AuthConfigError("PAYPAL_WEBHOOK_ID must be set.")

        token = await self._tokens.get_token()
        payload = {
            "auth_algo": transmission.auth_algo,
            "cert_url": transmission.cert_url,
            "transmission_id": transmission.transmission_id,
            "transmission_sig": transmission.transmission_sig,
            "transmission_time": transmission.transmission_time,
            "webhook_id": webhook_id,
            "webhook_event": webhook_event,
        }

        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            response = await client.post(
                self.verify_url,
                json=payload,
                headers={"Authorization": f"Bearer {token}"},
            )

        if not response.is_success:
            logger.warning(
                "PayPal verification call returned %s: %s",
                response.status_code,
                response.text[:200],
            )
            return None

        try:
            body = response.json()
        except ValueError:
            logger.warning("PayPal verification response was not JSON")
            return None
        if not isinstance(body, dict):
            return None
        return body.get("verification_status")


__all__ = ["PayPalTransmission", "PayPalWebhookClient"]
