from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional


@dataclass(frozen=True)
class Thread:
    """Discussion thread as returned by the tracker (one issue)."""

    number: int
    title: str
    body: str = ""


@dataclass(frozen=True)
class ResolvedThread:
    """Thread identity projected into what the renderer needs."""

    thread_number: int
    thread_url: str
    reply_endpoint: str
    created: bool = False


@dataclass
class Post:
    """
    One content item from the site corpus.

    Only `title` and `summary` are read by the synchronizer. The resolved
    fields stay None until `bind()` sets all three together.
    """

    title: str
    summary: str = ""
    path: Optional[Path] = None
    data: dict[str, Any] = field(default_factory=dict)
    body: str = ""

    thread_number: Optional[int] = None
    thread_url: Optional[str] = None
    reply_endpoint: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.thread_number is not None

    def bind(self, resolved: ResolvedThread) -> None:
        self.thread_number = resolved.thread_number
        self.thread_url = resolved.thread_url
        self.reply_endpoint = resolved.reply_endpoint

    def label(self) -> str:
        """Human-readable identification for logs and failure messages."""
        if self.path is not None:
            return f"{self.path} ({self.title!r})"
        return repr(self.title)
