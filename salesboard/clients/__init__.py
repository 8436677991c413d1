"""Expose constructed client wrappers."""

from .oauth import AuthConfigError, PayPalOAuthClient, UpstreamAuthError, ZettleOAuthClient
from .paypal import PayPalTransmission, PayPalWebhookClient
from .zettle import PurchasesApiError, ZettlePurchasesClient

__all__ = [
    "AuthConfigError",
    "PayPalOAuthClient",
    "PayPalTransmission",
    "PayPalWebhookClient",
    "PurchasesApiError",
    "UpstreamAuthError",
    "ZettleOAuthClient",
    "ZettlePurchasesClient",
]
