"""Persisted system notifications shown in the dashboard's notification center."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SystemNotification(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: str
    title: str
    message: str
    playlist_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    read: bool = False
    created_at: datetime
