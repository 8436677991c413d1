"""Client for the Zettle purchases API."""

from __future__ import annotations

from typing import Any, Optional

import httpx


class PurchasesApiError(Exception):
    """Raised when the purchases endpoint answers with a non-success status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Zettle error {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class ZettlePurchasesClient:
    """Read purchase history using a token from the Zettle token cache."""

    PURCHASES_URL = "https://purchase.izettle.com/purchases/v2"

    def __init__(
        self,
        token_cache: Any,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._tokens = token_cache
        self._timeout = timeout
        self._transport = transport

    async def count_purchases(self) -> int:
        """Return the number of purchases in the first page of history."""
        token = await self._tokens.get_token()

        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            response = await client.get(
                self.PURCHASES_URL,
                headers={"Authorization": f"Bearer {token}"},
            )

        if not response.is_success:
            raise PurchasesApiError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as exc:
            raise PurchasesApiError(response.status_code, "Response was not JSON.") from exc
        return _count_purchases(data)


def _count_purchases(data: Any) -> int:
    if isinstance(data, list):
        return len(data)
    if isinstance(data, dict) and isinstance(data.get("purchases"), list):
        return len(data["purchases"])
    return 0


__all__ = ["PurchasesApiError", "ZettlePurchasesClient"]
