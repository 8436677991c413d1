from __future__ import annotations

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import base64
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs

import httpx
import pytest

from salesboard.clients.oauth import (
    AuthConfigError,
    PayPalOAuthClient,
    UpstreamAuthError,
    ZettleOAuthClient,
)
from salesboard.core.config import PayPalSettings, ZettleSettings
from salesboard.services.token_cache import TokenCache

pytestmark = pytest.mark.anyio


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class CountingTokenClient:
    provider = "test"

    def __init__(self, expires_in: int = 3600) -> None:
        self.expires_in = expires_in
        self.calls = 0
        self.fail_with: Exception | None = None

    async def fetch_token(self) -> tuple[str, int]:
        self.calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return f"token-{self.calls}", self.expires_in


async def test_fresh_token_is_reused_without_second_exchange() -> None:
    clock = FakeClock()
    client = CountingTokenClient(expires_in=3600)
    cache = TokenCache(client, clock=clock)

    assert await cache.get_token() == "token-1"
    clock.advance(3600 - 61)
    assert await cache.get_token() == "token-1"
    assert client.calls == 1


async def test_token_inside_safety_margin_is_refreshed() -> None:
    clock = FakeClock()
    client = CountingTokenClient(expires_in=3600)
    cache = TokenCache(client, clock=clock)

    await cache.get_token()
    clock.advance(3600 - 60)

    assert await cache.get_token() == "token-2"
    assert client.calls == 2
    assert cache.current is not None
    assert cache.current.expires_at == clock.now + timedelta(seconds=3600)


async def test_failed_refresh_keeps_previous_state_and_retries() -> None:
    clock = FakeClock()
    client = CountingTokenClient(expires_in=120)
    cache = TokenCache(client, clock=clock)

    await cache.get_token()
    previous = cache.current
    clock.advance(120)
    client.fail_with = UpstreamAuthError(503, "unavailable")

    with pytest.raises(UpstreamAuthError):
        await cache.get_token()
    assert cache.current == previous

    client.fail_with = None
    assert await cache.get_token() == "token-3"


async def test_zero_expiry_token_is_refreshed_every_call() -> None:
    client = CountingTokenClient(expires_in=0)
    cache = TokenCache(client, clock=FakeClock())

    await cache.get_token()
    await cache.get_token()
    assert client.calls == 2


async def test_invalidate_forces_exchange() -> None:
    client = CountingTokenClient()
    cache = TokenCache(client, clock=FakeClock())

    await cache.get_token()
    cache.invalidate()
    await cache.get_token()
    assert client.calls == 2


async def test_zettle_exchange_posts_jwt_bearer_grant() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"access_token": "zettle-token", "expires_in": 7200})

    settings = ZettleSettings(ZETTLE_CLIENT_ID="client-123", ZETTLE_API_KEY="api-key")
    client = ZettleOAuthClient(settings, transport=httpx.MockTransport(handler))

    assert await client.fetch_token() == ("zettle-token", 7200)

    assert len(requests) == 1
    request = requests[0]
    assert str(request.url) == ZettleOAuthClient.TOKEN_URL
    form = parse_qs(request.content.decode())
    assert form == {
        "grant_type": [ZettleOAuthClient.GRANT_TYPE],
        "client_id": ["client-123"],
        "assertion": ["api-key"],
    }


async def test_zettle_missing_credentials_fail_before_network() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not run
        raise AssertionError("no network call expected")

    settings = ZettleSettings(ZETTLE_CLIENT_ID="client-123")
    client = ZettleOAuthClient(settings, transport=httpx.MockTransport(handler))
    cache = TokenCache(client)

    with pytest.raises(AuthConfigError):
        await cache.get_token()
    assert cache.current is None


async def test_upstream_rejection_carries_status_and_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text="invalid_client")

    settings = ZettleSettings(ZETTLE_CLIENT_ID="client-123", ZETTLE_API_KEY="bad")
    client = ZettleOAuthClient(settings, transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamAuthError) as excinfo:
        await client.fetch_token()
    assert excinfo.value.status_code == 401
    assert excinfo.value.body == "invalid_client"


@pytest.mark.parametrize(
    ("environment", "host"),
    [("sandbox", "api-m.sandbox.paypal.com"), ("LIVE", "api-m.paypal.com")],
)
async def test_paypal_exchange_uses_basic_auth_and_environment(environment, host) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"access_token": "pp-token", "expires_in": "32400"})

    settings = PayPalSettings(
        PAYPAL_CLIENT_ID="pp-client",
        PAYPAL_CLIENT_SECRET="pp-secret",
        PAYPAL_ENV=environment,
    )
    client = PayPalOAuthClient(settings, transport=httpx.MockTransport(handler))

    assert await client.fetch_token() == ("pp-token", 32400)

    request = requests[0]
    assert request.url.host == host
    assert request.url.path == "/v1/oauth2/token"
    expected_auth = base64.b64encode(b"pp-client:pp-secret").decode()
    assert request.headers["authorization"] == f"Basic {expected_auth}"
    assert parse_qs(request.content.decode()) == {"grant_type": ["client_credentials"]}


async def test_paypal_missing_secret_raises_config_error() -> None:
    client = PayPalOAuthClient(PayPalSettings(PAYPAL_CLIENT_ID="pp-client"))

    with pytest.raises(AuthConfigError):
        await client.fetch_token()
