"""Reconciliation between task files and the Kanban board.

Task files are authoritative for which tasks exist and what status they
have. The board is a projection that gets re-derived whenever it disagrees:
missing cards are added, cards in the wrong column are moved, and cards
without a task file are pruned.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from vault_agent.config import VaultConfig
from vault_agent.vault.board import BoardFile, column_for_status, is_linkable
from vault_agent.vault.layout import ensure_vault_structure
from vault_agent.vault.task_store import list_task_files

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Convergence work done by one sync pass."""

    added: int = 0
    moved: int = 0
    removed: int = 0
    updated: int = 0


def sync_board(vault: VaultConfig) -> SyncResult:
    """Make the board's cards and columns match the active task files.

    Archived tasks never appear on the board, so their cards are pruned like
    orphans. Safe to re-run after a partial failure: adds are idempotent and
    every step re-reads the board before mutating it.
    """
    ensure_vault_structure(vault)
    board = BoardFile(vault.board_file)
    result = SyncResult()

    tasks = []
    for task in list_task_files(vault.tasks_dir):
        if task.status == "archived":
            continue
        if not is_linkable(task.title):
            logger.warning(f"[Sync] Skipping '{task.title}': brackets cannot be linked")
            continue
        tasks.append(task)

    board_titles = board.titles()
    task_titles = {task.title for task in tasks}

    for task in tasks:
        if task.title not in board_titles:
            board.add_item(task.title, task.status, task.due_date)
            result.added += 1
            logger.debug(f"[Sync] Added '{task.title}'")
            continue

        # Re-read so earlier moves in this pass are visible
        expected = column_for_status(task.status)
        current = board.locate(task.title)
        if current != [expected]:
            board.move_item(task.title, task.status, task.due_date)
            result.moved += 1
            logger.debug(f"[Sync] Moved '{task.title}' {current} -> {expected}")
        elif board.refresh_item(task.title, task.status, task.due_date):
            result.updated += 1
            logger.debug(f"[Sync] Updated '{task.title}'")

    orphans = dict.fromkeys(
        item.title
        for column in board.read()
        for item in column.items
        if item.title not in task_titles
    )
    for title in orphans:
        board.remove_item(title)
        result.removed += 1
        logger.debug(f"[Sync] Removed orphan '{title}'")

    logger.info(
        f"[Sync] Board synced: added={result.added} moved={result.moved} "
        f"removed={result.removed} updated={result.updated}"
    )
    return result


def last_sync_time(vault: VaultConfig) -> str:
    """Board modification time as ISO string, or "never"."""
    if not vault.board_file.exists():
        return "never"
    mtime = vault.board_file.stat().st_mtime
    return datetime.fromtimestamp(mtime, UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
