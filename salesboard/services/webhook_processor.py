"""
Turn verified webhook bodies into leaderboard updates.

Parsing returns explicit result objects rather than raising, because a
malformed body arrives after the delivery has already been acknowledged and
can only be logged.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from salesboard.services.broadcaster import LiveFeedBroadcaster
from salesboard.services.leaderboard import (
    UNKNOWN_PRODUCT,
    LeaderboardStore,
    coerce_quantity,
    normalize_name,
)
from salesboard.services.verification import PROVIDER_PAYPAL, PROVIDER_ZETTLE
from salesboard.utils.clock import isoformat_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineItem:
    name: str
    quantity: int


@dataclass(frozen=True)
class ParsedEvent:
    body: Dict[str, Any]


@dataclass(frozen=True)
class ParseFailure:
    reason: str


ParseResult = Union[ParsedEvent, ParseFailure]


def parse_webhook_body(raw: bytes) -> ParseResult:
    """Decode the body, plus a ``payload`` field that is itself a JSON string."""
    try:
        body = json.loads(raw)
    except ValueError:
        return ParseFailure("body is not valid JSON")
    if not isinstance(body, dict):
        return ParseFailure("body is not a JSON object")

    payload = body.get("payload")
    if isinstance(payload, str):
        try:
            body = {**body, "payload": json.loads(payload)}
        except ValueError:
            return ParseFailure("payload field is not valid JSON")

    return ParsedEvent(body)


def _first_name(item: Dict[str, Any]) -> str:
    for key in ("name", "productName", "variantName"):
        name = normalize_name(item.get(key))
        if name != UNKNOWN_PRODUCT:
            return name
    return UNKNOWN_PRODUCT


def extract_zettle_items(body: Dict[str, Any]) -> List[LineItem]:
    """Read ``payload.products`` from a Zettle purchase notification."""
    payload = body.get("payload")
    products = payload.get("products") if isinstance(payload, dict) else None
    if not isinstance(products, list):
        return []

    items: List[LineItem] = []
    for product in products:
        if not isinstance(product, dict):
            product = {}
        items.append(
            LineItem(
                name=_first_name(product),
                quantity=coerce_quantity(product.get("quantity")),
            )
        )
    return items


def extract_paypal_items(body: Dict[str, Any]) -> List[LineItem]:
    """Flatten ``resource.purchase_units[*].items[*]`` from a PayPal event."""
    resource = body.get("resource")
    if not isinstance(resource, dict):
        resource = {}

    items: List[LineItem] = []
    units = resource.get("purchase_units")
    for unit in units if isinstance(units, list) else []:
        unit_items = unit.get("items") if isinstance(unit, dict) else None
        for item in unit_items if isinstance(unit_items, list) else []:
            if not isinstance(item, dict):
                item = {}
            items.append(
                LineItem(
                    name=normalize_name(item.get("name")),
                    quantity=coerce_quantity(item.get("quantity")),
                )
            )

    if not items:
        items.append(LineItem(name=normalize_name(resource.get("custom_id")), quantity=1))
    return items


_EXTRACTORS: Dict[str, Callable[[Dict[str, Any]], List[LineItem]]] = {
    PROVIDER_ZETTLE: extract_zettle_items,
    PROVIDER_PAYPAL: extract_paypal_items,
}


class WebhookProcessor:
    """Apply a verified delivery to the leaderboard and notify live clients."""

    def __init__(
        self,
        leaderboard: LeaderboardStore,
        broadcaster: LiveFeedBroadcaster,
        *,
        top_n: int = 20,
    ) -> None:
        self._leaderboard = leaderboard
        self._broadcaster = broadcaster
        self._top_n = top_n

    def snapshot(self) -> Dict[str, Any]:
        return {
            "type": "leaderboard",
            "at": isoformat_utc(),
            "top": self._leaderboard.top(self._top_n),
        }

    async def process(self, raw: bytes, provider: str) -> Optional[List[LineItem]]:
        """Parse ``raw`` and bump every line item; ``None`` when it was dropped."""
        result = parse_webhook_body(raw)
        if isinstance(result, ParseFailure):
            logger.warning("Dropping %s webhook: %s", provider, result.reason)
            return None

        extractor = _EXTRACTORS.get(provider)
        if extractor is None:
            logger.warning("No line item extractor for provider %s", provider)
            return None

        items = extractor(result.body)
        for item in items:
            self._leaderboard.bump(item.name, item.quantity)

        delivered = self._broadcaster.publish(self.snapshot())
        logger.info(
            "Applied %d line item(s) from %s webhook; notified %d client(s)",
            len(items),
            provider,
            delivered,
        )
        return items


__all__ = [
    "LineItem",
    "ParseFailure",
    "ParsedEvent",
    "WebhookProcessor",
    "extract_paypal_items",
    "extract_zettle_items",
    "parse_webhook_body",
]
