"""
Domain model for cached provider access tokens.
"""

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field


class AccessToken(BaseModel):
    """A bearer token returned by a provider token exchange."""

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., description="Opaque bearer token.")
    expires_at: datetime = Field(..., description="Absolute expiry in UTC.")

    def is_fresh(self, now: datetime, margin: timedelta) -> bool:
        """True while ``now`` is earlier than the expiry minus ``margin``."""
        return now < self.expires_at - margin


__all__ = ["AccessToken"]
