"""Task store for the Obsidian vault's Tasks folder."""

import logging
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from vault_agent.api.models import ACTIVE_STATUSES, Task
from vault_agent.config import VaultConfig
from vault_agent.errors import AlreadyExistsError, TaskNotFoundError
from vault_agent.vault.board import BoardFile
from vault_agent.vault.frontmatter import read_text, render, split_frontmatter, to_string
from vault_agent.vault.layout import ensure_vault_structure

logger = logging.getLogger(__name__)

BOARD_FILENAME = "Board.md"


class TaskStore(Protocol):
    """Protocol for task persistence."""

    def create(self, title: str, **fields: Any) -> Task:
        """Create a new task file and add it to the board."""
        ...

    def list_tasks(self, **filters: Any) -> list[Task]:
        """List tasks matching the filters, newest first."""
        ...

    def update(self, task_id: str, **changes: Any) -> Task:
        """Update an existing task, keeping the board in step."""
        ...

    def complete(self, task_id: str) -> Task:
        """Mark a task as done."""
        ...

    def archive(self, task_id: str) -> Task:
        """Move a task into the archive and off the board."""
        ...

    def delete(self, task_id: str) -> Task:
        """Permanently remove a task."""
        ...


def sanitize_filename(title: str) -> str:
    """Strip path-unsafe and wiki-link characters and collapse whitespace."""
    title = re.sub(r'[<>:"/\\|?*\[\]]', "", title)
    return re.sub(r"\s+", " ", title).strip()


def now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_task_file(file_path: Path) -> Task:
    """Parse markdown file into Task object."""
    content = read_text(file_path)
    frontmatter, body = split_frontmatter(content)

    created_at = to_string(frontmatter.get("created_at"))
    if created_at is None:
        # Hand-written files without a creation stamp sort by modification time
        created_at = (
            datetime.fromtimestamp(file_path.stat().st_mtime, UTC)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )

    tags = frontmatter.get("tags") or []
    if isinstance(tags, str):
        tags = [tags]

    return Task(
        title=file_path.stem,
        file_path=file_path,
        status=to_string(frontmatter.get("status")) or "backlog",
        assignee=to_string(frontmatter.get("assignee")) or "me",
        priority=to_string(frontmatter.get("priority")) or "medium",
        project=to_string(frontmatter.get("project")),
        due_date=to_string(frontmatter.get("due_date")),
        blocked_by=to_string(frontmatter.get("blocked_by")),
        follow_up_date=to_string(frontmatter.get("follow_up_date")),
        created_at=created_at,
        completed_at=to_string(frontmatter.get("completed_at")),
        tags=[str(tag) for tag in tags],
        body=body.strip(),
    )


def write_task_file(file_path: Path, task: Task) -> None:
    """Write task frontmatter and body, omitting empty optional fields."""
    data: dict[str, Any] = {
        "status": task.status,
        "assignee": task.assignee,
        "priority": task.priority,
    }
    if task.project:
        data["project"] = task.project
    if task.due_date:
        data["due_date"] = task.due_date
    if task.blocked_by:
        data["blocked_by"] = task.blocked_by
    if task.follow_up_date:
        data["follow_up_date"] = task.follow_up_date
    data["created_at"] = task.created_at
    if task.completed_at:
        data["completed_at"] = task.completed_at
    if task.tags:
        data["tags"] = list(task.tags)

    file_path.write_text(render(data, task.body.strip()), encoding="utf-8")


def list_task_files(tasks_dir: Path) -> list[Task]:
    """Parse every task file directly inside tasks_dir.

    The board and sub-folders (Archive) are skipped, as are files that fail
    to parse.
    """
    if not tasks_dir.exists():
        return []

    tasks: list[Task] = []
    for file_path in sorted(tasks_dir.glob("*.md")):
        if file_path.name == BOARD_FILENAME or not file_path.is_file():
            continue
        try:
            tasks.append(parse_task_file(file_path))
        except Exception as e:
            logger.warning(f"Failed to parse {file_path.name}: {e}")
            continue
    return tasks


def _created_sort_key(task: Task) -> datetime:
    try:
        created = datetime.fromisoformat(task.created_at)
    except ValueError:
        return datetime.min.replace(tzinfo=UTC)
    if created.tzinfo is None:
        created = created.replace(tzinfo=UTC)
    return created


class ObsidianTaskStore:
    """Task store backed by one markdown file per task plus Board.md.

    Nothing is cached between calls; every operation re-reads the vault.
    """

    def __init__(self, vault: VaultConfig) -> None:
        """Initialize store for a vault."""
        self._vault = vault
        self._tasks_dir = vault.tasks_dir
        self._board = BoardFile(vault.board_file)

    @property
    def board(self) -> BoardFile:
        return self._board

    def create(
        self,
        title: str,
        description: str | None = None,
        assignee: str = "me",
        status: str = "backlog",
        priority: str = "medium",
        project: str | None = None,
        due_date: str | None = None,
        blocked_by: str | None = None,
        follow_up_date: str | None = None,
    ) -> Task:
        """Create task file and add it to the board.

        Raises:
            AlreadyExistsError: If a task with the same sanitized title exists
        """
        ensure_vault_structure(self._vault)
        title = sanitize_filename(title)
        if not title:
            raise ValueError("Task title is empty after sanitizing")

        file_path = self._tasks_dir / f"{title}.md"
        if file_path.exists():
            raise AlreadyExistsError(f'Task "{title}" already exists')

        task = Task(
            title=title,
            file_path=file_path,
            status=status or "backlog",
            assignee=assignee or "me",
            priority=priority or "medium",
            project=project or None,
            due_date=due_date or None,
            blocked_by=blocked_by or None,
            follow_up_date=follow_up_date or None,
            created_at=now_iso(),
            body=description or "",
        )
        if task.status == "done":
            task.completed_at = task.created_at

        write_task_file(file_path, task)
        self._board.add_item(title, task.status, task.due_date)
        logger.info(f"[TaskStore] Created '{title}' ({task.status})")

        return parse_task_file(file_path)

    def list_tasks(
        self,
        assignee: str | None = None,
        status: str | None = None,
        project: str | None = None,
        search: str | None = None,
        limit: int | None = None,
    ) -> list[Task]:
        """List tasks matching all given filters, newest first.

        Args:
            assignee: "me", "assistant", or "all"/None for everyone
            status: Exact status, "active" for working/next/blocked, or "all"/None
            project: Exact project slug
            search: Case-insensitive substring of title or body
            limit: Max tasks returned after sorting
        """
        ensure_vault_structure(self._vault)
        tasks = list_task_files(self._tasks_dir)

        if assignee and assignee != "all":
            tasks = [t for t in tasks if t.assignee == assignee]

        if status == "active":
            tasks = [t for t in tasks if t.status in ACTIVE_STATUSES]
        elif status and status != "all":
            tasks = [t for t in tasks if t.status == status]

        if project:
            tasks = [t for t in tasks if t.project == project]

        if search:
            query = search.lower()
            tasks = [t for t in tasks if query in t.title.lower() or query in t.body.lower()]

        tasks.sort(key=_created_sort_key, reverse=True)

        if limit:
            tasks = tasks[:limit]
        return tasks

    def find(self, task_id: str) -> Task | None:
        """Resolve task by sanitized filename, then by case-insensitive title."""
        file_path = self._tasks_dir / f"{sanitize_filename(task_id)}.md"
        if file_path.is_file():
            return parse_task_file(file_path)

        wanted = task_id.lower()
        for task in list_task_files(self._tasks_dir):
            if task.title.lower() == wanted:
                return task
        return None

    def get(self, task_id: str) -> Task:
        task = self.find(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def update(
        self,
        task_id: str,
        title: str | None = None,
        description: str | None = None,
        assignee: str | None = None,
        status: str | None = None,
        priority: str | None = None,
        project: str | None = None,
        due_date: str | None = None,
        blocked_by: str | None = None,
        follow_up_date: str | None = None,
    ) -> Task:
        """Update fields of an existing task.

        None leaves a field unchanged; an empty string clears an optional
        field. Renames rename the board card in place; status changes move
        the card to the new column and archiving drops it. Other edits
        rewrite the card's date in place.

        Raises:
            TaskNotFoundError: If task_id does not resolve
            AlreadyExistsError: If the new title collides with another task
        """
        task = self.get(task_id)
        old_title = task.title
        old_status = task.status

        if assignee:
            task.assignee = assignee
        if status:
            task.status = status
        if priority:
            task.priority = priority
        if project is not None:
            task.project = project or None
        if due_date is not None:
            task.due_date = due_date or None
        if blocked_by is not None:
            task.blocked_by = blocked_by or None
        if follow_up_date is not None:
            task.follow_up_date = follow_up_date or None
        if description is not None:
            task.body = description

        # completed_at is stamped once and never cleared or overwritten
        if status == "done" and not task.completed_at:
            task.completed_at = now_iso()

        new_title = sanitize_filename(title) if title else old_title
        if new_title != old_title:
            if not new_title:
                raise ValueError("Task title is empty after sanitizing")
            new_path = self._tasks_dir / f"{new_title}.md"
            if new_path.exists():
                raise AlreadyExistsError(f'Task "{new_title}" already exists')
            write_task_file(new_path, task)
            task.file_path.unlink()
            self._board.rename_item(old_title, new_title)
            task.file_path = new_path
            logger.info(f"[TaskStore] Renamed '{old_title}' -> '{new_title}'")
        else:
            write_task_file(task.file_path, task)

        if task.status == "archived":
            self._board.remove_item(new_title)
        elif status and status != old_status:
            self._board.move_item(new_title, task.status, task.due_date)
            logger.info(f"[TaskStore] Moved '{new_title}' {old_status} -> {task.status}")
        else:
            self._board.refresh_item(new_title, task.status, task.due_date)

        return parse_task_file(task.file_path)

    def complete(self, task_id: str) -> Task:
        return self.update(task_id, status="done")

    def archive(self, task_id: str) -> Task:
        """Set status to archived, move file to Archive/ and drop the board card.

        Raises:
            TaskNotFoundError: If task_id does not resolve
            AlreadyExistsError: If Archive/ already holds a task with this title
        """
        task = self.get(task_id)

        archive_dir = self._vault.archive_dir
        archive_dir.mkdir(parents=True, exist_ok=True)

        old_path = task.file_path
        archived_path = archive_dir / old_path.name
        if archived_path.exists():
            raise AlreadyExistsError(f'Archived task "{task.title}" already exists')

        task.status = "archived"
        task.file_path = archived_path
        write_task_file(task.file_path, task)
        old_path.unlink()
        self._board.remove_item(task.title)
        logger.info(f"[TaskStore] Archived '{task.title}'")

        return task

    def delete(self, task_id: str) -> Task:
        """Permanently remove the task file and its board card."""
        task = self.get(task_id)
        task.file_path.unlink()
        self._board.remove_item(task.title)
        logger.info(f"[TaskStore] Deleted '{task.title}'")
        return task
