"""
Process-scoped state and the services built on top of it.

Each factory is cached so the whole process shares one leaderboard, one set of
live feed clients and one token cache per provider. Tests replace them through
``app.dependency_overrides`` or call ``reset_state()``.
"""

from functools import lru_cache

from salesboard.clients import (
    PayPalOAuthClient,
    PayPalWebhookClient,
    ZettleOAuthClient,
    ZettlePurchasesClient,
)
from salesboard.core.config import get_settings
from salesboard.dependencies.config import _settings_singleton
from salesboard.services import (
    LeaderboardStore,
    LiveFeedBroadcaster,
    PayPalSignatureVerifier,
    TokenCache,
    WebhookProcessor,
    WebhookVerifier,
    ZettleSignatureVerifier,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_leaderboard_store() -> LeaderboardStore:
    """Provide the process-wide leaderboard."""
    return LeaderboardStore()


@lru_cache()
def get_broadcaster() -> LiveFeedBroadcaster:
    """Provide the process-wide live feed broadcaster."""
    return LiveFeedBroadcaster(max_pending=_settings().feed_max_pending)


@lru_cache()
def get_zettle_token_cache() -> TokenCache:
    settings = _settings()
    return TokenCache(
        ZettleOAuthClient(settings.zettle, timeout=settings.http_timeout_seconds)
    )


@lru_cache()
def get_paypal_token_cache() -> TokenCache:
    settings = _settings()
    return TokenCache(
        PayPalOAuthClient(settings.paypal, timeout=settings.http_timeout_seconds)
    )


@lru_cache()
def get_purchases_client() -> ZettlePurchasesClient:
    """Provide the Zettle purchases client used by the diagnostic endpoint."""
    settings = _settings()
    return ZettlePurchasesClient(
        get_zettle_token_cache(), timeout=settings.http_timeout_seconds
    )


@lru_cache()
def get_webhook_verifier() -> WebhookVerifier:
    """Build the verifier chain; PayPal first, Zettle as the fallback."""
    settings = _settings()
    paypal_client = PayPalWebhookClient(
        settings.paypal,
        get_paypal_token_cache(),
        timeout=settings.http_timeout_seconds,
    )
    return WebhookVerifier(
        [
            PayPalSignatureVerifier(paypal_client),
            ZettleSignatureVerifier(settings.zettle.signing_key),
        ]
    )


@lru_cache()
def get_webhook_processor() -> WebhookProcessor:
    settings = _settings()
    return WebhookProcessor(
        get_leaderboard_store(),
        get_broadcaster(),
        top_n=settings.leaderboard_size,
    )


def reset_state() -> None:
    """Drop every cached instance, settings included."""
    for factory in (
        get_settings,
        _settings_singleton,
        _settings,
        get_leaderboard_store,
        get_broadcaster,
        get_zettle_token_cache,
        get_paypal_token_cache,
        get_purchases_client,
        get_webhook_verifier,
        get_webhook_processor,
    ):
        factory.cache_clear()


__all__ = [
    "get_broadcaster",
    "get_leaderboard_store",
    "get_paypal_token_cache",
    "get_purchases_client",
    "get_webhook_processor",
    "get_webhook_verifier",
    "get_zettle_token_cache",
    "reset_state",
]
