"""Tool API endpoints.

Every endpoint answers with a JSON payload. Failures are reported as
{"error": "..."} instead of HTTP errors so a tool-calling agent can always
relay the response.
"""

import logging
from datetime import UTC, datetime
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter

from vault_agent.api.models import (
    CreateProjectRequest,
    CreateTaskRequest,
    DraftRequest,
    Task,
    TaskResponse,
    TriageRequest,
    UpdateTaskRequest,
)
from vault_agent.errors import VaultAgentError
from vault_agent.factory import (
    get_classifier,
    get_mail_adapter,
    get_task_store,
    get_vault_config,
)
from vault_agent.followups.tracker import (
    follow_up_summary,
    read_follow_up_counts,
    refresh_follow_ups,
)
from vault_agent.mail.adapter import sanitize_email_content
from vault_agent.mail.triage import run_email_triage
from vault_agent.vault.projects import create_project as create_vault_project
from vault_agent.vault.projects import list_projects as list_vault_projects
from vault_agent.vault.sync import last_sync_time, sync_board

logger = logging.getLogger(__name__)

router = APIRouter()

DRAFT_NOTE = "Draft created. Review and send manually."


def _error(e: Exception) -> dict[str, Any]:
    """Convert an exception into an error payload."""
    if isinstance(e, VaultAgentError | ValueError):
        logger.warning(f"[Tools] {type(e).__name__}: {e}")
    else:
        logger.exception(f"[Tools] Unexpected error: {e}")
    return {"error": str(e) or type(e).__name__}


def _task_to_response(task: Task) -> TaskResponse:
    """Convert Task to TaskResponse."""
    return TaskResponse(
        title=task.title,
        filename=task.filename,
        status=task.status,
        assignee=task.assignee,
        priority=task.priority,
        project=task.project,
        due_date=task.due_date,
        blocked_by=task.blocked_by,
        follow_up_date=task.follow_up_date,
        created_at=task.created_at,
        completed_at=task.completed_at,
        tags=task.tags,
        description=task.body or None,
    )


@router.post("/tasks")
async def create_task(request: CreateTaskRequest) -> dict[str, Any]:
    """Create a task file and its board card."""
    try:
        task = get_task_store().create(**request.model_dump())
        return {"created": True, "task": _task_to_response(task).model_dump()}
    except Exception as e:
        return _error(e)


@router.get("/tasks")
async def list_tasks(
    assignee: str | None = None,
    status: str | None = None,
    project: str | None = None,
    search: str | None = None,
    limit: int | None = 50,
) -> dict[str, Any]:
    """List tasks.

    Args:
        assignee: "me", "assistant" or "all"
        status: Task status, "active" (working/next/blocked) or "all"
        project: Project slug
        search: Case-insensitive text in title or description
        limit: Max tasks to return
    """
    try:
        tasks = get_task_store().list_tasks(
            assignee=assignee, status=status, project=project, search=search, limit=limit
        )
        return {
            "count": len(tasks),
            "tasks": [_task_to_response(t).model_dump() for t in tasks],
        }
    except Exception as e:
        return _error(e)


@router.patch("/tasks/{task_id}")
async def update_task(task_id: str, request: UpdateTaskRequest) -> dict[str, Any]:
    """Update a task by title or filename."""
    try:
        task = get_task_store().update(task_id, **request.model_dump())
        return {"updated": True, "task": _task_to_response(task).model_dump()}
    except Exception as e:
        return _error(e)


@router.post("/tasks/{task_id}/complete")
async def complete_task(task_id: str) -> dict[str, Any]:
    """Mark a task as done."""
    try:
        task = get_task_store().complete(task_id)
        return {"updated": True, "task": _task_to_response(task).model_dump()}
    except Exception as e:
        return _error(e)


@router.post("/tasks/{task_id}/archive")
async def archive_task(task_id: str) -> dict[str, Any]:
    """Move a task to Tasks/Archive and remove it from the board."""
    try:
        task = get_task_store().archive(task_id)
        return {"archived": True, "task": {"title": task.title}}
    except Exception as e:
        return _error(e)


@router.delete("/tasks/{task_id}")
async def delete_task(task_id: str) -> dict[str, Any]:
    """Permanently delete a task. Prefer archiving."""
    try:
        task = get_task_store().delete(task_id)
        return {"deleted": True, "task": {"title": task.title}}
    except Exception as e:
        return _error(e)


@router.get("/projects")
async def list_projects() -> dict[str, Any]:
    """List projects found in tasks and the Projects folder."""
    try:
        projects = list_vault_projects(get_vault_config())
        return {
            "count": len(projects),
            "projects": [{"slug": p.slug, "task_count": p.task_count} for p in projects],
        }
    except Exception as e:
        return _error(e)


@router.post("/projects")
async def create_project(request: CreateProjectRequest) -> dict[str, Any]:
    """Create a project note in the Projects folder."""
    try:
        project = create_vault_project(
            get_vault_config(),
            request.slug,
            display_name=request.display_name,
            description=request.description,
        )
        return {
            "created": True,
            "project": {"slug": project.slug, "display_name": project.display_name},
        }
    except Exception as e:
        return _error(e)


@router.post("/board/sync")
async def sync() -> dict[str, Any]:
    """Reconcile Board.md with the task files."""
    try:
        vault = get_vault_config()
        result = sync_board(vault)
        return {
            "synced": True,
            "last_sync": last_sync_time(vault),
            "added": result.added,
            "moved": result.moved,
            "removed": result.removed,
            "updated": result.updated,
        }
    except Exception as e:
        return _error(e)


@router.get("/time")
async def get_current_time(timezone: str = "UTC") -> dict[str, Any]:
    """Current date and time in an IANA timezone."""
    try:
        now = datetime.now(UTC).astimezone(ZoneInfo(timezone))
    except (ZoneInfoNotFoundError, ValueError):
        return _error(ValueError(f"Unknown timezone: {timezone}"))
    return {
        "timezone": timezone,
        "iso": now.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "formatted": now.strftime("%m/%d/%Y, %I:%M:%S %p"),
        "unix": int(now.timestamp()),
    }


@router.post("/follow-ups/refresh")
async def check_follow_ups() -> dict[str, Any]:
    """Rebuild Follow-Ups.md from mailbox labels."""
    try:
        vault = get_vault_config()
        result = await refresh_follow_ups(get_mail_adapter(), vault)
        return {
            "pending": result.pending,
            "resolved": result.resolved,
            "overdue": result.overdue,
            "summary": follow_up_summary(vault.follow_ups_file),
        }
    except Exception as e:
        return _error(e)


@router.get("/follow-ups")
async def get_follow_ups() -> dict[str, Any]:
    """Counts and summary from the last rendered Follow-Ups.md."""
    try:
        vault = get_vault_config()
        counts = read_follow_up_counts(vault.follow_ups_file)
        return {
            "needs_reply": counts.needs_reply,
            "awaiting_reply": counts.awaiting_reply,
            "needs_action": counts.needs_action,
            "overdue": counts.overdue,
            "summary": follow_up_summary(vault.follow_ups_file),
        }
    except Exception as e:
        return _error(e)


@router.post("/email/triage")
async def triage_email(request: TriageRequest) -> dict[str, Any]:
    """Categorize unread mail and apply labels."""
    try:
        return await run_email_triage(
            get_mail_adapter(),
            get_classifier(),
            limit=request.limit,
            timeframe=request.timeframe,
            apply_labels=request.apply_labels,
            archive_marketing=request.archive_marketing,
            dry_run=request.dry_run,
        )
    except Exception as e:
        return _error(e)


@router.get("/email")
async def list_emails(query: str, max_results: int = 10) -> dict[str, Any]:
    """Search the mailbox."""
    try:
        messages = await get_mail_adapter().search(query, limit=max_results)
        return {
            "count": len(messages),
            "emails": [
                {
                    "id": m.id,
                    "thread_id": m.thread_id,
                    "from": m.sender,
                    "from_name": m.sender_name,
                    "subject": m.subject,
                    "snippet": m.snippet,
                    "date": m.date,
                }
                for m in messages
            ],
        }
    except Exception as e:
        return _error(e)


@router.get("/email/{email_id}")
async def read_email(email_id: str) -> dict[str, Any]:
    """Read one message; the body is marked as untrusted content."""
    try:
        msg = await get_mail_adapter().read(email_id)
        return {
            "id": msg.id,
            "thread_id": msg.thread_id,
            "from": msg.sender,
            "from_name": msg.sender_name,
            "to": msg.to,
            "subject": msg.subject,
            "date": msg.date,
            "body": sanitize_email_content(msg.body),
        }
    except Exception as e:
        return _error(e)


@router.post("/email/drafts")
async def create_draft(request: DraftRequest) -> dict[str, Any]:
    """Create a draft. Nothing is ever sent automatically."""
    try:
        draft_id = await get_mail_adapter().create_draft(
            request.subject, request.body, to=request.to
        )
        return {"created": True, "draft_id": draft_id, "note": DRAFT_NOTE}
    except Exception as e:
        return _error(e)
