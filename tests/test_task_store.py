"""Tests for ObsidianTaskStore."""

from pathlib import Path

import pytest

from vault_agent.config import VaultConfig
from vault_agent.errors import AlreadyExistsError, TaskNotFoundError
from vault_agent.vault.board import BoardItem
from vault_agent.vault.frontmatter import split_frontmatter
from vault_agent.vault.task_store import ObsidianTaskStore, sanitize_filename


def _write_task(tasks_dir: Path, title: str, created_at: str, **fields: str) -> None:
    extra = "".join(f"{key}: {value}\n" for key, value in fields.items())
    (tasks_dir / f"{title}.md").write_text(
        f"---\nstatus: backlog\ncreated_at: '{created_at}'\n{extra}---\n\nBody of {title}\n"
    )


def test_sanitize_filename() -> None:
    assert sanitize_filename('Fix: "bug" in a/b?') == "Fix bug in ab"
    assert sanitize_filename("  many   spaces\there ") == "many spaces here"
    assert sanitize_filename("Fix [[wiki]] links") == "Fix wiki links"


def test_list_tasks_empty(task_store: ObsidianTaskStore) -> None:
    """Test listing tasks from empty vault."""
    assert task_store.list_tasks() == []


def test_list_tasks_with_file(task_store: ObsidianTaskStore, sample_task_file: Path) -> None:
    """Test parsing a hand-written task file."""
    tasks = task_store.list_tasks()

    assert len(tasks) == 1
    task = tasks[0]
    assert task.title == "Test Task"
    assert task.filename == "Test Task"
    assert task.status == "working"
    assert task.assignee == "assistant"
    assert task.priority == "high"
    assert task.project == "product-launch"
    assert task.due_date == "2026-02-28"  # unquoted YAML date comes back as string
    assert task.tags == ["launch"]
    assert task.body == "Prepare the launch checklist."


def test_list_skips_board_and_archive(
    task_store: ObsidianTaskStore, vault_config: VaultConfig, sample_task_file: Path
) -> None:
    vault_config.archive_dir.mkdir()
    (vault_config.archive_dir / "Old.md").write_text("---\nstatus: archived\n---\n")
    task_store.create("Another")

    titles = [t.title for t in task_store.list_tasks()]
    assert sorted(titles) == ["Another", "Test Task"]


def test_create_task_defaults(task_store: ObsidianTaskStore, vault_config: VaultConfig) -> None:
    """Test creation writes frontmatter defaults and adds a board card."""
    task = task_store.create("Write report", description="Quarterly numbers")

    assert task.status == "backlog"
    assert task.assignee == "me"
    assert task.priority == "medium"
    assert task.created_at
    assert task.completed_at is None
    assert task.body == "Quarterly numbers"

    data, body = split_frontmatter((vault_config.tasks_dir / "Write report.md").read_text())
    assert list(data) == ["status", "assignee", "priority", "created_at"]
    assert body.strip() == "Quarterly numbers"

    assert task_store.board.locate("Write report") == ["Backlog"]


def test_create_bootstraps_vault(tmp_path: Path) -> None:
    vault = VaultConfig.from_vault_path(tmp_path / "fresh")
    ObsidianTaskStore(vault).create("First")

    assert vault.board_file.exists()
    assert vault.archive_dir.is_dir()
    assert vault.projects_dir.is_dir()


def test_create_duplicate_fails(task_store: ObsidianTaskStore) -> None:
    task_store.create("Draft proposal")
    with pytest.raises(AlreadyExistsError):
        task_store.create("Draft: proposal")  # sanitizes to the same filename


def test_list_tasks_filters(task_store: ObsidianTaskStore) -> None:
    """Test filters compose with AND."""
    task_store.create("Mine working", status="working")
    task_store.create("Assistant next", status="next", assignee="assistant", project="alpha")
    task_store.create("Mine backlog", description="mentions Quarterly budget")
    task_store.create("Blocked alpha", status="blocked", project="alpha")

    def titles(**filters: str) -> set[str]:
        return {t.title for t in task_store.list_tasks(**filters)}

    assert titles(assignee="assistant") == {"Assistant next"}
    assert titles(assignee="all") == titles()
    assert titles(status="active") == {"Mine working", "Assistant next", "Blocked alpha"}
    assert titles(status="all") == titles()
    assert titles(status="backlog") == {"Mine backlog"}
    assert titles(project="alpha") == {"Assistant next", "Blocked alpha"}
    assert titles(project="alpha", assignee="me") == {"Blocked alpha"}
    assert titles(search="quarterly") == {"Mine backlog"}
    assert titles(search="ALPHA") == {"Blocked alpha"}


def test_list_tasks_sorted_newest_first_with_limit(
    task_store: ObsidianTaskStore, vault_config: VaultConfig
) -> None:
    tasks_dir = vault_config.tasks_dir
    _write_task(tasks_dir, "Oldest", "2026-01-01T00:00:00.000Z")
    _write_task(tasks_dir, "Newest", "2026-03-01T00:00:00.000Z")
    _write_task(tasks_dir, "Middle", "2026-02-01T00:00:00+00:00")

    assert [t.title for t in task_store.list_tasks()] == ["Newest", "Middle", "Oldest"]
    assert [t.title for t in task_store.list_tasks(limit=2)] == ["Newest", "Middle"]


def test_list_skips_invalid_yaml(task_store: ObsidianTaskStore, vault_config: VaultConfig) -> None:
    (vault_config.tasks_dir / "Broken.md").write_text("---\nstatus: [unclosed\n---\n")
    task_store.create("Fine")
    assert [t.title for t in task_store.list_tasks()] == ["Fine"]


def test_find_by_case_insensitive_title(
    task_store: ObsidianTaskStore, sample_task_file: Path
) -> None:
    task = task_store.find("test task")
    assert task is not None
    assert task.title == "Test Task"
    assert task_store.find("Nope") is None


def test_update_not_found(task_store: ObsidianTaskStore) -> None:
    with pytest.raises(TaskNotFoundError):
        task_store.update("Missing", status="done")


def test_update_preserves_omitted_fields(
    task_store: ObsidianTaskStore, sample_task_file: Path
) -> None:
    task = task_store.update("Test Task", priority="low", blocked_by="Legal review")

    assert task.priority == "low"
    assert task.blocked_by == "Legal review"
    assert task.assignee == "assistant"
    assert task.project == "product-launch"
    assert task.created_at == "2026-01-05T09:00:00.000Z"
    assert task.tags == ["launch"]
    assert task.body == "Prepare the launch checklist."


def test_update_empty_string_clears_field(
    task_store: ObsidianTaskStore, sample_task_file: Path
) -> None:
    task = task_store.update("Test Task", project="", due_date="")
    assert task.project is None
    assert task.due_date is None


def test_update_status_moves_board_card(task_store: ObsidianTaskStore) -> None:
    task_store.create("Draft proposal", status="next", due_date="2026-02-20")

    task_store.update("Draft proposal", status="working")

    assert task_store.board.locate("Draft proposal") == ["Working"]
    working = next(c for c in task_store.board.read() if c.name == "Working")
    assert working.items == [BoardItem(title="Draft proposal", date="2026-02-20")]


def test_update_rename_keeps_board_position(
    task_store: ObsidianTaskStore, vault_config: VaultConfig
) -> None:
    """Test renaming a task renames its board card in place."""
    task_store.create("Alpha")
    task_store.create("Beta")
    task_store.create("Gamma")

    task = task_store.update("Beta", title="Beta v2")

    assert task.title == "Beta v2"
    assert not (vault_config.tasks_dir / "Beta.md").exists()
    assert (vault_config.tasks_dir / "Beta v2.md").exists()
    backlog = next(c for c in task_store.board.read() if c.name == "Backlog")
    assert [i.title for i in backlog.items] == ["Alpha", "Beta v2", "Gamma"]


def test_update_rename_to_existing_title_fails(task_store: ObsidianTaskStore) -> None:
    task_store.create("One")
    task_store.create("Two")
    with pytest.raises(AlreadyExistsError):
        task_store.update("One", title="Two")
    assert task_store.find("One") is not None


def test_update_same_title_keeps_file(task_store: ObsidianTaskStore) -> None:
    task_store.create("Same")
    task = task_store.update("Same", title=" Same ")
    assert task.title == "Same"
    assert task.file_path.exists()


def test_complete_sets_completed_at(task_store: ObsidianTaskStore) -> None:
    task_store.create("Finish me", status="working")

    task = task_store.complete("Finish me")

    assert task.status == "done"
    assert task.completed_at is not None
    done = next(c for c in task_store.board.read() if c.name == "Done")
    assert done.items == [BoardItem(title="Finish me", completed=True)]


def test_completed_at_is_never_overwritten(
    task_store: ObsidianTaskStore, vault_config: VaultConfig
) -> None:
    """Test re-opening and re-completing keeps the first completed_at.

    completed_at is deliberately never cleared when a task leaves done.
    """
    (vault_config.tasks_dir / "Reopened.md").write_text(
        "---\nstatus: done\ncreated_at: '2020-01-01T00:00:00.000Z'\n"
        "completed_at: '2020-01-02T00:00:00.000Z'\n---\n"
    )

    reopened = task_store.update("Reopened", status="working")
    assert reopened.completed_at == "2020-01-02T00:00:00.000Z"

    done_again = task_store.complete("Reopened")
    assert done_again.completed_at == "2020-01-02T00:00:00.000Z"


def test_archive_task(task_store: ObsidianTaskStore, vault_config: VaultConfig) -> None:
    task_store.create("Old work", status="done")

    task = task_store.archive("old work")

    archived_path = vault_config.archive_dir / "Old work.md"
    assert task.file_path == archived_path
    assert not (vault_config.tasks_dir / "Old work.md").exists()
    data, _ = split_frontmatter(archived_path.read_text())
    assert data["status"] == "archived"
    assert data["completed_at"]
    assert "Old work" not in task_store.board.titles()
    assert task_store.list_tasks() == []


def test_archive_not_found(task_store: ObsidianTaskStore) -> None:
    with pytest.raises(TaskNotFoundError):
        task_store.archive("Missing")


def test_delete_task(task_store: ObsidianTaskStore, vault_config: VaultConfig) -> None:
    task_store.create("Throwaway")

    task_store.delete("Throwaway")

    assert not (vault_config.tasks_dir / "Throwaway.md").exists()
    assert "Throwaway" not in task_store.board.titles()
    with pytest.raises(TaskNotFoundError):
        task_store.delete("Throwaway")


def test_latin1_task_file(task_store: ObsidianTaskStore, vault_config: VaultConfig) -> None:
    (vault_config.tasks_dir / "Cafe.md").write_bytes(
        "---\nstatus: next\n---\n\nCaf\xe9 order\n".encode("latin-1")
    )
    task = task_store.find("Cafe")
    assert task is not None
    assert task.body == "Café order"


def test_update_to_archived_status_drops_card(task_store: ObsidianTaskStore) -> None:
    task_store.create("Old")

    task = task_store.update("Old", status="archived")

    assert task.status == "archived"
    assert "Old" not in task_store.board.titles()


def test_update_due_date_rewrites_card(task_store: ObsidianTaskStore) -> None:
    task_store.create("First", status="next", due_date="2026-03-01")
    task_store.create("Second", status="next")

    task_store.update("First", due_date="2026-04-15")

    next_column = next(c for c in task_store.board.read() if c.name == "Next")
    assert next_column.items == [
        BoardItem(title="First", date="2026-04-15"),
        BoardItem(title="Second"),
    ]

    task_store.update("First", due_date="")
    next_column = next(c for c in task_store.board.read() if c.name == "Next")
    assert next_column.items[0] == BoardItem(title="First")


def test_archive_keeps_earlier_archived_copy(
    task_store: ObsidianTaskStore, vault_config: VaultConfig
) -> None:
    task_store.create("Recurring", description="first run")
    task_store.archive("Recurring")
    task_store.create("Recurring", description="second run")

    with pytest.raises(AlreadyExistsError):
        task_store.archive("Recurring")

    _, body = split_frontmatter((vault_config.archive_dir / "Recurring.md").read_text())
    assert body.strip() == "first run"
    assert (vault_config.tasks_dir / "Recurring.md").exists()
    assert task_store.board.locate("Recurring") == ["Backlog"]
