"""Seven GUIs event models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class GuiEvent(BaseModel):
    """What a widget posts: {"t": "counter.increment", "p": {...}}."""

    model_config = ConfigDict(extra="forbid")

    t: str = Field(min_length=1, max_length=100)
    p: dict[str, Any] = Field(default_factory=dict)


class GuiEventResponse(BaseModel):
    """Outcome of one event plus the re-rendered task fragment."""

    accepted: bool
    reason: str | None = None
    state: dict[str, Any]
    html: str
    toast: str | None = None
    confirm: str | None = None


class SourceListing(BaseModel):
    """Handler source shown under a demo."""

    task: str
    sloc: int
    source: str
