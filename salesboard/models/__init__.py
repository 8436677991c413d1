"""Domain models."""

from .token import AccessToken

__all__ = ["AccessToken"]
