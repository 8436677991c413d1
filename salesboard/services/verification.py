"""Webhook signature verification for Zettle and PayPal deliveries.

Security contract:
- Zettle digests are compared with a length check plus hmac.compare_digest()
- Missing secret or signature header -> rejected before any HMAC is computed
- PayPal deliveries are verified remotely; a failed or negative answer rejects
- Infrastructure failures while verifying raise VerificationUnavailableError
  so the route can answer 500 instead of 401
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Union

import httpx

from salesboard.clients.oauth import AuthConfigError, UpstreamAuthError
from salesboard.clients.paypal import PayPalTransmission

logger = logging.getLogger(__name__)

PROVIDER_ZETTLE = "zettle"
PROVIDER_PAYPAL = "paypal"


@dataclass(frozen=True)
class Accepted:
    provider: str


@dataclass(frozen=True)
class Rejected:
    reason: str


VerificationOutcome = Union[Accepted, Rejected]


class VerificationUnavailableError(Exception):
    """Raised when a delivery could not be checked at all."""


def _digests_match(received: str, expected: str) -> bool:
    received_bytes = received.encode("utf-8")
    expected_bytes = expected.encode("utf-8")
    if len(received_bytes) != len(expected_bytes):
        return False
    return hmac.compare_digest(received_bytes, expected_bytes)


def _decode_base64_key(secret: str) -> Optional[bytes]:
    try:
        decoded = base64.b64decode(secret, validate=True)
    except (binascii.Error, ValueError):
        return None
    return decoded or None


class ZettleSignatureVerifier:
    """HMAC-SHA256 check of the raw body against ``X-iZettle-Signature``.

    The signing key is documented ambiguously, so the digest is computed with
    the key taken both as text and as base64-decoded bytes; either may match.
    """

    HEADER = "x-izettle-signature"
    _LOG_PREFIX = 12

    def __init__(self, signing_key: Optional[str]) -> None:
        self._signing_key = signing_key

    def can_handle(self, headers: Mapping[str, str]) -> bool:
        return True

    async def verify(self, body: bytes, headers: Mapping[str, str]) -> VerificationOutcome:
        if not self._signing_key:
            logger.warning("ZETTLE_SIGNING_KEY not set; rejecting webhook")
            return Rejected("signing key not configured")

        received = (headers.get(self.HEADER) or "").strip().lower()
        if not received:
            return Rejected("missing signature header")

        text_digest = hmac.new(
            self._signing_key.encode("utf-8"), body, hashlib.sha256
        ).hexdigest()
        decoded_key = _decode_base64_key(self._signing_key)
        base64_digest = (
            hmac.new(decoded_key, body, hashlib.sha256).hexdigest()
            if decoded_key is not None
            else None
        )

        candidates = [text_digest] if base64_digest is None else [text_digest, base64_digest]
        if any(_digests_match(received, candidate) for candidate in candidates):
            return Accepted(PROVIDER_ZETTLE)

        logger.warning(
            "Zettle signature mismatch: received=%s text_key=%s base64_key=%s",
            received[: self._LOG_PREFIX],
            text_digest[: self._LOG_PREFIX],
            base64_digest[: self._LOG_PREFIX] if base64_digest else "-",
        )
        return Rejected("signature mismatch")


class PayPalSignatureVerifier:
    """Delegate verification to PayPal's verify-webhook-signature endpoint."""

    HEADERS = (
        "paypal-transmission-id",
        "paypal-transmission-time",
        "paypal-cert-url",
        "paypal-auth-algo",
        "paypal-transmission-sig",
    )
    SUCCESS = "SUCCESS"

    def __init__(self, webhook_client: Any) -> None:
        self._client = webhook_client

    def can_handle(self, headers: Mapping[str, str]) -> bool:
        return all(name in headers for name in self.HEADERS)

    async def verify(self, body: bytes, headers: Mapping[str, str]) -> VerificationOutcome:
        try:
            event = json.loads(body)
        except ValueError:
            return Rejected("body is not valid JSON")
        if not isinstance(event, dict):
            return Rejected("body is not a JSON object")

        transmission = PayPalTransmission(
            transmission_id=headers["paypal-transmission-id"],
            transmission_time=headers["paypal-transmission-time"],
            cert_url=headers["paypal-cert-url"],
            auth_algo=headers["paypal-auth-algo"],
            transmission_sig=headers["paypal-transmission-sig"],
        )

        try:
            status = await self._client.verify_signature(transmission, event)
        except AuthConfigError as exc:
            logger.warning("PayPal verification not configured: %s", exc)
            return Rejected("paypal verification not configured")
        except (UpstreamAuthError, httpx.HTTPError) as exc:
            raise VerificationUnavailableError(
                f"PayPal verification failed: {exc}"
            ) from exc

        if status == self.SUCCESS:
            return Accepted(PROVIDER_PAYPAL)

        logger.warning(
            "PayPal rejected webhook %s with status %s",
            transmission.transmission_id,
            status,
        )
        return Rejected(f"verification status {status}")


class WebhookVerifier:
    """Run the first verifier in the chain that recognises the request."""

    def __init__(self, verifiers: Sequence[Any]) -> None:
        self._verifiers = tuple(verifiers)

    async def verify(self, body: bytes, headers: Mapping[str, str]) -> VerificationOutcome:
        for verifier in self._verifiers:
            if verifier.can_handle(headers):
                return await verifier.verify(body, headers)
        return Rejected("no verifier accepts this request")


__all__ = [
    "Accepted",
    "PROVIDER_PAYPAL",
    "PROVIDER_ZETTLE",
    "PayPalSignatureVerifier",
    "Rejected",
    "VerificationOutcome",
    "VerificationUnavailableError",
    "WebhookVerifier",
    "ZettleSignatureVerifier",
]
