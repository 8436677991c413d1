"""In-memory per-product sales tally."""

from __future__ import annotations

import math
from typing import Any, Dict, List

UNKNOWN_PRODUCT = "Unknown product"


def normalize_name(name: Any) -> str:
    """Return a display name, falling back to the unknown-product sentinel."""
    if name is None:
        return UNKNOWN_PRODUCT
    text = str(name).strip()
    return text or UNKNOWN_PRODUCT


def coerce_quantity(value: Any) -> int:
    """
    Interpret a webhook quantity.

    Missing, boolean, non-numeric, non-finite and non-positive values count as
    a single unit. Fractional quantities are truncated.
    """
    if value is None or isinstance(value, bool):
        return 1
    if isinstance(value, int):
        return value if value > 0 else 1
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 1
    if not math.isfinite(number):
        return 1
    quantity = int(number)
    return quantity if quantity > 0 else 1


class LeaderboardStore:
    """
    Running totals keyed by product name.

    Entries are only ever added to. Insertion order is kept so that products
    with equal totals rank in the order they were first sold.
    """

    def __init__(self) -> None:
        self._totals: Dict[str, int] = {}

    def bump(self, name: Any, quantity: Any = 1) -> int:
        """Add ``quantity`` to ``name`` and return the new total."""
        key = normalize_name(name)
        total = self._totals.get(key, 0) + coerce_quantity(quantity)
        self._totals[key] = total
        return total

    def top(self, n: int) -> List[Dict[str, Any]]:
        """Return at most ``n`` entries ordered by count, highest first."""
        if n <= 0:
            return []
        # sorted() is stable, so ties keep first-seen order.
        ranked = sorted(self._totals.items(), key=lambda item: -item[1])
        return [{"name": name, "count": count} for name, count in ranked[:n]]

    def count(self, name: Any) -> int:
        return self._totals.get(normalize_name(name), 0)

    def __len__(self) -> int:
        return len(self._totals)


__all__ = ["LeaderboardStore", "UNKNOWN_PRODUCT", "coerce_quantity", "normalize_name"]
