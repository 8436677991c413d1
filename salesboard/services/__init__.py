"""Service layer exports."""

from .broadcaster import FeedSubscription, LiveFeedBroadcaster
from .leaderboard import LeaderboardStore
from .token_cache import TokenCache
from .verification import (
    Accepted,
    PayPalSignatureVerifier,
    Rejected,
    VerificationUnavailableError,
    WebhookVerifier,
    ZettleSignatureVerifier,
)
from .webhook_processor import WebhookProcessor

__all__ = [
    "Accepted",
    "FeedSubscription",
    "LeaderboardStore",
    "LiveFeedBroadcaster",
    "PayPalSignatureVerifier",
    "Rejected",
    "TokenCache",
    "VerificationUnavailableError",
    "WebhookProcessor",
    "WebhookVerifier",
    "ZettleSignatureVerifier",
]
