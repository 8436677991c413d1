"""Expose dependency helpers for FastAPI routers."""

from .config import get_app_settings
from .state import (
    get_broadcaster,
    get_leaderboard_store,
    get_paypal_token_cache,
    get_purchases_client,
    get_webhook_processor,
    get_webhook_verifier,
    get_zettle_token_cache,
    reset_state,
)

__all__ = [
    "get_app_settings",
    "get_broadcaster",
    "get_leaderboard_store",
    "get_paypal_token_cache",
    "get_purchases_client",
    "get_webhook_processor",
    "get_webhook_verifier",
    "get_zettle_token_cache",
    "reset_state",
]
