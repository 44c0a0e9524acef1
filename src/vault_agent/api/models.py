"""Domain and API models for the vault agent."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from pydantic import BaseModel

TaskStatus = Literal["backlog", "next", "working", "blocked", "done", "archived"]
Assignee = Literal["me", "assistant"]
Priority = Literal["low", "medium", "high"]

ACTIVE_STATUSES: frozenset[str] = frozenset({"working", "next", "blocked"})


@dataclass
class Task:
    """Task from the vault's Tasks folder."""

    title: str  # Sanitized filename stem, unique per folder
    file_path: Path
    status: str = "backlog"
    assignee: str = "me"
    priority: str = "medium"
    project: str | None = None
    due_date: str | None = None  # YYYY-MM-DD
    blocked_by: str | None = None
    follow_up_date: str | None = None  # YYYY-MM-DD
    created_at: str = ""  # ISO timestamp
    completed_at: str | None = None  # ISO timestamp, set on first transition to done
    tags: list[str] = field(default_factory=list)
    body: str = ""

    @property
    def filename(self) -> str:
        return self.file_path.stem


class TaskResponse(BaseModel):
    """API response model for tasks."""

    title: str
    filename: str
    status: str
    assignee: str
    priority: str
    project: str | None
    due_date: str | None
    blocked_by: str | None
    follow_up_date: str | None
    created_at: str
    completed_at: str | None
    tags: list[str]
    description: str | None


class CreateTaskRequest(BaseModel):
    """Request model for creating a task."""

    title: str
    description: str | None = None
    assignee: Assignee = "me"
    status: TaskStatus = "backlog"
    priority: Priority = "medium"
    project: str | None = None
    due_date: str | None = None
    blocked_by: str | None = None
    follow_up_date: str | None = None


class UpdateTaskRequest(BaseModel):
    """Request model for updating a task. Omitted fields are preserved."""

    title: str | None = None
    description: str | None = None
    assignee: Assignee | None = None
    status: TaskStatus | None = None
    priority: Priority | None = None
    project: str | None = None
    due_date: str | None = None
    blocked_by: str | None = None
    follow_up_date: str | None = None


class CreateProjectRequest(BaseModel):
    """Request model for creating a project."""

    slug: str
    display_name: str | None = None
    description: str | None = None


class TriageRequest(BaseModel):
    """Request model for e-mail triage."""

    limit: int = 20
    timeframe: str = "1d"
    apply_labels: bool = True
    archive_marketing: bool = False
    dry_run: bool = False


class DraftRequest(BaseModel):
    """Request model for creating an e-mail draft."""

    to: str | None = None
    subject: str
    body: str
