"""E-mail triage: categorize unread mail with a text classifier and label it."""

import json
import logging
import re
from dataclasses import asdict, dataclass
from typing import Any

from vault_agent.mail.adapter import MailAdapter, TextClassifier, sanitize_email_content

logger = logging.getLogger(__name__)

CATEGORY_TO_LABEL: dict[str, str] = {
    "to_respond": "To Respond",
    "fyi": "FYI",
    "comment": "Comment",
    "notification": "Notification",
    "meeting_update": "Meeting Update",
    "awaiting_reply": "Awaiting Reply",
    "actioned": "Actioned",
    "marketing": "Marketing",
}

DEFAULT_CATEGORY = "fyi"

SYSTEM_PROMPT = (
    "You are an email triage assistant. Categorize emails accurately. Return only valid JSON."
)


@dataclass
class Categorization:
    index: int
    category: str
    draft_reply: str | None = None


@dataclass
class TriageResult:
    message_id: str
    sender: str
    sender_name: str
    subject: str
    snippet: str
    category: str
    draft_reply: str | None = None


def build_categorization_prompt(emails: list[dict[str, str]]) -> str:
    """Build the user prompt listing emails by index.

    Snippets are wrapped as untrusted content.
    """
    email_list = "\n\n".join(
        f"[{i}] From: {e['from']}\nSubject: {e['subject']}\n"
        f"Snippet: {sanitize_email_content(e['snippet'])}"
        for i, e in enumerate(emails)
    )
    return f"""Categorize each email into exactly ONE of these categories:
- to_respond: requires a reply from the user
- fyi: informational, no action needed
- comment: someone commented on something (PR, doc, thread)
- notification: automated system notification
- meeting_update: calendar/meeting related
- awaiting_reply: user is waiting for someone else to respond
- actioned: already handled or resolved
- marketing: promotional, newsletter, cold outreach

For emails categorized as "to_respond", also draft a brief reply suggestion.

Return valid JSON array with objects: {{ "index": number, "category": string, "draft_reply": string | null }}

Emails:
{email_list}"""


def parse_categorization_response(text: str, count: int) -> list[Categorization]:
    """Extract categorizations from raw model output.

    Takes the first bracketed array in the text. Returns an empty list when
    nothing parses; drops entries with a missing or out-of-range index and
    coerces unknown categories to "fyi". Never raises.
    """
    json_match = re.search(r"\[[\s\S]*\]", text)
    if not json_match:
        logger.warning("[Triage] No JSON array in classifier response")
        return []

    try:
        parsed = json.loads(json_match.group())
    except json.JSONDecodeError:
        logger.warning(f"[Triage] Failed to parse JSON from response: {json_match.group()[:200]}")
        return []

    if not isinstance(parsed, list):
        return []

    results: list[Categorization] = []
    for item in parsed:
        if not isinstance(item, dict):
            continue
        index = item.get("index")
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < count:
            continue
        category = item.get("category")
        if category not in CATEGORY_TO_LABEL:
            category = DEFAULT_CATEGORY
        draft_reply = item.get("draft_reply")
        results.append(
            Categorization(
                index=index,
                category=category,
                draft_reply=draft_reply if isinstance(draft_reply, str) and draft_reply else None,
            )
        )
    return results


async def run_email_triage(
    mailbox: MailAdapter,
    classifier: TextClassifier,
    limit: int = 20,
    timeframe: str = "1d",
    apply_labels: bool = True,
    archive_marketing: bool = False,
    dry_run: bool = False,
) -> dict[str, Any]:
    """Categorize unread mail from the timeframe and apply labels.

    Suggested replies are returned, never sent.
    """
    await mailbox.ensure_labels()

    messages = await mailbox.search(f"is:unread newer_than:{timeframe}", limit=limit)
    if not messages:
        return {
            "count": 0,
            "message": "No unread emails found in the specified timeframe.",
            "summary": {},
        }

    summaries = [
        {
            "id": m.id,
            "from": m.from_display,
            "subject": m.subject or "(no subject)",
            "snippet": m.snippet,
        }
        for m in messages
    ]
    text = await classifier.generate_text(SYSTEM_PROMPT, build_categorization_prompt(summaries))
    categorized = parse_categorization_response(text, len(messages))
    logger.info(f"[Triage] Categorized {len(categorized)} of {len(messages)} emails")

    results: list[TriageResult] = []
    summary: dict[str, int] = {}

    for item in categorized:
        msg = messages[item.index]
        summary[item.category] = summary.get(item.category, 0) + 1

        if not dry_run and apply_labels:
            await mailbox.apply_label(msg.id, CATEGORY_TO_LABEL[item.category])
        if not dry_run and archive_marketing and item.category == "marketing":
            await mailbox.remove_label(msg.id, "INBOX")

        results.append(
            TriageResult(
                message_id=msg.id,
                sender=msg.sender,
                sender_name=msg.sender_name,
                subject=msg.subject,
                snippet=msg.snippet,
                category=item.category,
                draft_reply=item.draft_reply,
            )
        )

    return {
        "count": len(results),
        "dry_run": dry_run,
        "summary": summary,
        "triaged": [asdict(r) for r in results],
    }
