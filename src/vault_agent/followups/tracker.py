"""Follow-up tracking derived from mailbox labels.

The Follow-Ups.md file is a snapshot rendered from two label searches. It is
overwritten on every refresh, so manual edits and check-offs do not survive.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Literal

from vault_agent.config import VaultConfig
from vault_agent.mail.adapter import MailAdapter
from vault_agent.vault.frontmatter import read_text

logger = logging.getLogger(__name__)

FollowUpType = Literal["needs_reply", "awaiting_reply", "needs_action"]

OVERDUE_THRESHOLDS: dict[str, int] = {
    "needs_reply": 1,
    "awaiting_reply": 3,
    "needs_action": 2,
}

SECTIONS: dict[str, str] = {
    "needs_reply": "## Needs Reply",
    "awaiting_reply": "## Awaiting Reply",
    "needs_action": "## Needs Action",
}

NEEDS_REPLY_QUERY = "label:To-Respond"
AWAITING_REPLY_QUERY = "label:Awaiting-Reply"
SEARCH_LIMIT = 50
OVERDUE_MARKER = "⚠️ overdue"


@dataclass
class FollowUp:
    type: str
    subject: str
    counterparty: str
    message_id: str
    thread_id: str | None
    date: str
    days_age: int
    overdue: bool


@dataclass
class RefreshResult:
    pending: int
    resolved: int
    overdue: int


@dataclass
class FollowUpCounts:
    needs_reply: int = 0
    awaiting_reply: int = 0
    needs_action: int = 0
    overdue: int = 0


def parse_message_date(value: str) -> datetime:
    """Parse an RFC 2822 Date header or ISO timestamp, naive values as UTC."""
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def days_ago(value: str, now: datetime | None = None) -> int:
    """Whole days elapsed since value, rounded down."""
    now = now or datetime.now(UTC)
    try:
        then = parse_message_date(value)
    except ValueError:
        logger.warning(f"[FollowUps] Unparseable message date: {value!r}")
        return 0
    return int((now - then).total_seconds() // 86400)


def is_overdue(follow_up_type: str, days: int) -> bool:
    return days > OVERDUE_THRESHOLDS[follow_up_type]


async def collect_follow_ups(mailbox: MailAdapter, now: datetime | None = None) -> list[FollowUp]:
    """Query both labels, one after the other, and derive follow-up records."""
    now = now or datetime.now(UTC)
    follow_ups: list[FollowUp] = []

    for follow_up_type, query in (
        ("needs_reply", NEEDS_REPLY_QUERY),
        ("awaiting_reply", AWAITING_REPLY_QUERY),
    ):
        messages = await mailbox.search(query, limit=SEARCH_LIMIT)
        logger.info(f"[FollowUps] {query}: {len(messages)} messages")
        for msg in messages:
            date = msg.date or now.isoformat()
            days = days_ago(date, now)
            counterparty = msg.from_display if follow_up_type == "needs_reply" else msg.to
            follow_ups.append(
                FollowUp(
                    type=follow_up_type,
                    subject=msg.subject or "(no subject)",
                    counterparty=counterparty,
                    message_id=msg.id,
                    thread_id=msg.thread_id,
                    date=date,
                    days_age=days,
                    overdue=is_overdue(follow_up_type, days),
                )
            )
    return follow_ups


def _age(days: int) -> str:
    return f"{days} day{'' if days == 1 else 's'} ago"


def _render_line(follow_up: FollowUp) -> str:
    overdue_tag = f" {OVERDUE_MARKER}" if follow_up.overdue else ""
    if follow_up.type == "needs_reply":
        text = f"**{follow_up.subject}** from {follow_up.counterparty} — {_age(follow_up.days_age)}"
    elif follow_up.type == "awaiting_reply":
        text = f"**{follow_up.subject}** to {follow_up.counterparty} — sent {_age(follow_up.days_age)}"
    else:
        text = f"**{follow_up.subject}** — {_age(follow_up.days_age)}"
    return f"- [ ] {text}{overdue_tag}"


def render_follow_ups(follow_ups: list[FollowUp], now: datetime | None = None) -> str:
    """Render the tracking file: updated_at frontmatter, then three fixed sections."""
    now = now or datetime.now(UTC)
    lines = ["---", f"updated_at: {now.isoformat()}", "---", ""]
    for index, (follow_up_type, header) in enumerate(SECTIONS.items()):
        if index:
            lines.append("")
        lines.extend([header, ""])
        lines.extend(_render_line(f) for f in follow_ups if f.type == follow_up_type)
    lines.append("")
    return "\n".join(lines)


async def refresh_follow_ups(
    mailbox: MailAdapter, vault: VaultConfig, now: datetime | None = None
) -> RefreshResult:
    """Rebuild Follow-Ups.md from the mailbox labels."""
    now = now or datetime.now(UTC)
    follow_ups = await collect_follow_ups(mailbox, now)

    vault.follow_ups_file.parent.mkdir(parents=True, exist_ok=True)
    vault.follow_ups_file.write_text(render_follow_ups(follow_ups, now), encoding="utf-8")

    overdue = sum(1 for f in follow_ups if f.overdue)
    result = RefreshResult(pending=len(follow_ups) - overdue, resolved=0, overdue=overdue)
    logger.info(f"[FollowUps] Refreshed: pending={result.pending} overdue={result.overdue}")
    return result


def read_follow_up_counts(path: Path) -> FollowUpCounts:
    """Re-derive counts from the rendered file.

    Tracks the last section header seen and counts unchecked checkbox lines;
    any counted line mentioning "overdue" also counts as overdue.
    """
    counts = FollowUpCounts()
    if not path.exists():
        return counts

    section: str | None = None
    for line in read_text(path).splitlines():
        header = next((t for t, h in SECTIONS.items() if line.startswith(h)), None)
        if header:
            section = header
        elif line.startswith("- [ ]"):
            if section is not None:
                setattr(counts, section, getattr(counts, section) + 1)
            if "overdue" in line:
                counts.overdue += 1
    return counts


def follow_up_summary(path: Path) -> str:
    """One-line human summary such as "2 need reply, 1 overdue"."""
    counts = read_follow_up_counts(path)
    parts: list[str] = []
    if counts.needs_reply:
        parts.append(f"{counts.needs_reply} need{'s' if counts.needs_reply == 1 else ''} reply")
    if counts.awaiting_reply:
        parts.append(f"{counts.awaiting_reply} awaiting reply")
    if counts.needs_action:
        parts.append(f"{counts.needs_action} need{'s' if counts.needs_action == 1 else ''} action")
    if counts.overdue:
        parts.append(f"{counts.overdue} overdue")
    return ", ".join(parts) if parts else "No pending follow-ups."
