try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import httpx
import pytest

from salesboard.clients.oauth import AuthConfigError, UpstreamAuthError
from salesboard.clients.zettle import PurchasesApiError, ZettlePurchasesClient
from salesboard.main import app

pytestmark = pytest.mark.anyio("asyncio")


class StubPurchasesClient:
    def __init__(self, result=3) -> None:
        self.result = result

    async def count_purchases(self) -> int:
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class StubTokenCache:
    def __init__(self) -> None:
        self.calls = 0

    async def get_token(self) -> str:
        self.calls += 1
        return "zettle-token"


@pytest.fixture()
def purchases_client():
    from salesboard import dependencies

    stub = StubPurchasesClient()
    app.dependency_overrides[dependencies.get_purchases_client] = lambda: stub
    yield stub
    app.dependency_overrides.clear()


async def _get(path: str) -> httpx.Response:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        return await client.get(path)


async def test_reports_purchase_count(purchases_client):
    purchases_client.result = 12

    response = await _get("/purchases-count")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "Purchases fetched: 12"


@pytest.mark.parametrize(
    ("error", "status", "fragment"),
    [
        (AuthConfigError("ZETTLE_CLIENT_ID and ZETTLE_API_KEY must be set."), 500, "ZETTLE_CLIENT_ID"),
        (UpstreamAuthError(401, "invalid_grant"), 502, "invalid_grant"),
        (PurchasesApiError(403, "forbidden"), 502, "Zettle error 403: forbidden"),
        (httpx.ConnectError("no route"), 502, "no route"),
    ],
)
async def test_failures_map_to_server_errors(purchases_client, error, status, fragment):
    purchases_client.result = error

    response = await _get("/purchases-count")

    assert response.status_code == status
    assert fragment in response.text


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ([{"id": 1}, {"id": 2}], 2),
        ({"purchases": [{"id": 1}, {"id": 2}, {"id": 3}]}, 3),
        ({"unexpected": True}, 0),
    ],
)
async def test_client_counts_purchase_shapes(payload, expected):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=payload)

    tokens = StubTokenCache()
    client = ZettlePurchasesClient(tokens, transport=httpx.MockTransport(handler))

    assert await client.count_purchases() == expected
    assert str(requests[0].url) == ZettlePurchasesClient.PURCHASES_URL
    assert requests[0].headers["authorization"] == "Bearer zettle-token"


async def test_client_raises_on_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    client = ZettlePurchasesClient(StubTokenCache(), transport=httpx.MockTransport(handler))

    with pytest.raises(PurchasesApiError) as excinfo:
        await client.count_purchases()
    assert excinfo.value.status_code == 500
