"""Pydantic models for API input/output and the cached paste copy."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, StrictInt

MAX_CONTENT_BYTES = 1024 * 1024
MIN_TTL_SECONDS = 60
MAX_TTL_SECONDS = 31536000                      # 1 year
MAX_LANGUAGE_LENGTH = 50


# ═══════════════ REQUESTS ═══════════════

class CreatePasteRequest(BaseModel):
    """Body of POST /api/pastes.

    Only presence and types are checked here. Size and TTL bounds are
    enforced by the paste service so they map to 413 / 400 respectively.
    """

    content: str = Field(min_length=1)
    language: str = Field(min_length=1, max_length=MAX_LANGUAGE_LENGTH)
    ttl_seconds: StrictInt


# ═══════════════ RESPONSES ═══════════════

class CreatePasteResponse(BaseModel):
    id: str


class Paste(BaseModel):
    """A live paste, as returned by the store and kept in the cache."""

    id: str
    content: str
    language: str
    created_at: datetime
    expires_at: datetime

    def remaining_seconds(self, now: datetime) -> float:
        return (self.expires_at - now).total_seconds()

    def is_live(self, now: datetime) -> bool:
        return self.expires_at > now
