"""Inbound activity record pushed once per external interaction."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from cogsynergy.network.models import utc_now

MESSAGE_ACTIVITY = "message"


class Activity(BaseModel):
    """An external interaction fed into the synergy networks.

    Only `type` and `text` influence node relevance; `id` is carried for
    correlation in logs.
    """
    type: str = MESSAGE_ACTIVITY
    text: Optional[str] = None
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=utc_now)

    @property
    def normalized_text(self) -> str:
        """Lower-cased text, or an empty string when absent."""
        return (self.text or "").lower()
