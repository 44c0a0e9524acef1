"""Mailbox and text classifier collaborators.

The mailbox transport itself is not part of this package; anything that
satisfies MailAdapter can be injected through the factory.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

logger = logging.getLogger(__name__)

CATEGORY_LABELS = [
    "To Respond",
    "FYI",
    "Comment",
    "Notification",
    "Meeting Update",
    "Awaiting Reply",
    "Actioned",
    "Marketing",
]


@dataclass
class MailMessage:
    """Message metadata as returned by a mailbox search or read."""

    id: str
    thread_id: str | None = None
    sender: str = ""  # Bare address
    sender_name: str = ""
    to: str = ""
    subject: str = ""
    snippet: str = ""
    date: str | None = None  # Raw Date header
    body: str = ""
    labels: list[str] = field(default_factory=list)

    @property
    def from_display(self) -> str:
        return f"{self.sender_name} <{self.sender}>".strip()


class MailAdapter(Protocol):
    """Protocol for mailbox access. Sending is deliberately absent."""

    async def search(self, query: str, limit: int) -> list[MailMessage]:
        """Search messages using provider query syntax."""
        ...

    async def read(self, message_id: str) -> MailMessage:
        """Read a message including its body."""
        ...

    async def apply_label(self, message_id: str, label: str) -> None:
        """Add a label, creating it when missing."""
        ...

    async def remove_label(self, message_id: str, label: str) -> None:
        """Remove a label if it exists."""
        ...

    async def create_draft(self, subject: str, body: str, to: str | None = None) -> str:
        """Create a draft and return its ID."""
        ...

    async def ensure_labels(self) -> None:
        """Create any missing triage labels."""
        ...


class TextClassifier(Protocol):
    """Protocol for the language model used by triage."""

    async def generate_text(self, system: str, user: str) -> str:
        """Return raw model text for a system/user prompt pair."""
        ...


class LabelCache:
    """Label name to provider ID cache owned by one adapter instance.

    Populated from the loader on the first lookup and never reloaded or
    invalidated. Labels created later are recorded with set().
    """

    def __init__(self, loader: Callable[[], Awaitable[dict[str, str]]]) -> None:
        self._loader = loader
        self._ids: dict[str, str] = {}
        self._loaded = False

    async def get(self, name: str) -> str | None:
        if not self._loaded:
            self._ids.update(await self._loader())
            self._loaded = True
            logger.debug(f"[LabelCache] Loaded {len(self._ids)} labels")
        return self._ids.get(name)

    def set(self, name: str, label_id: str) -> None:
        self._ids[name] = label_id


def sanitize_email_content(content: str) -> str:
    """Mark externally sourced text as untrusted before it reaches a model."""
    return f"<untrusted_email_data>\n{content}\n</untrusted_email_data>"
