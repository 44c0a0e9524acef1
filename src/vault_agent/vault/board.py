"""Kanban board codec for the vault's Board.md.

The board is a markdown file understood by the Obsidian Kanban plugin:

    ---
    kanban-plugin: basic
    ---

    ## Backlog

    - [ ] [[Some Task]] @{2026-02-20}

    ## Done

    - [x] [[Finished Task]]

    **Complete**

Parsing is structural. Only column headers and checkbox item lines that
reference a task by wikilink are recognized; any other line inside a column
(notes, plain checkboxes, plugin settings blocks) is dropped and will not
survive a parse/serialize round trip.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from vault_agent.vault.frontmatter import FRONTMATTER_RE, read_text

logger = logging.getLogger(__name__)

STATUS_TO_COLUMN: dict[str, str] = {
    "backlog": "Backlog",
    "next": "Next",
    "working": "Working",
    "blocked": "Blocked",
    "done": "Done",
    "archived": "Done",
}

COLUMN_TO_STATUS: dict[str, str] = {
    "Backlog": "backlog",
    "Next": "next",
    "Working": "working",
    "Blocked": "blocked",
    "Done": "done",
}

DONE_COLUMN = "Done"
DONE_MARKER = "**Complete**"
BOARD_HEADER = "---\nkanban-plugin: basic\n---\n\n"

COLUMN_RE = re.compile(r"^## (.+)$")
ITEM_RE = re.compile(r"^- \[([ x])\] \[\[(.+?)\]\](?:\s*@\{(.+?)\})?")


@dataclass
class BoardItem:
    """Single card on the board."""

    title: str
    completed: bool = False
    date: str | None = None


@dataclass
class Column:
    """Named board column holding ordered items."""

    name: str
    items: list[BoardItem] = field(default_factory=list)

    def has(self, title: str) -> bool:
        return any(item.title == title for item in self.items)


def column_for_status(status: str) -> str:
    """Map task status to board column, unknown statuses land in Backlog."""
    return STATUS_TO_COLUMN.get(status, "Backlog")


def is_linkable(title: str) -> bool:
    """Titles with square brackets cannot round-trip through a [[wiki link]]."""
    return "[" not in title and "]" not in title


def parse_board(text: str) -> list[Column]:
    """Parse board markdown into ordered columns."""
    match = FRONTMATTER_RE.match(text)
    if match:
        text = text[match.end() :]

    columns: list[Column] = []
    current: Column | None = None

    for line in text.splitlines():
        column_match = COLUMN_RE.match(line)
        if column_match:
            current = Column(name=column_match.group(1).strip())
            columns.append(current)
            continue
        if current is None:
            continue
        item_match = ITEM_RE.match(line)
        if item_match:
            current.items.append(
                BoardItem(
                    title=item_match.group(2),
                    completed=item_match.group(1) == "x",
                    date=item_match.group(3) or None,
                )
            )

    return columns


def serialize_board(columns: list[Column]) -> str:
    """Serialize columns back to board markdown."""
    lines: list[str] = []
    for column in columns:
        lines.append(f"## {column.name}")
        lines.append("")
        for item in column.items:
            check = "x" if item.completed else " "
            date_part = f" @{{{item.date}}}" if item.date else ""
            lines.append(f"- [{check}] [[{item.title}]]{date_part}")
        if column.name == DONE_COLUMN:
            lines.append("")
            lines.append(DONE_MARKER)
        lines.append("")
    return BOARD_HEADER + "\n".join(lines)


DEFAULT_BOARD = serialize_board([Column(name=name) for name in COLUMN_TO_STATUS])


class BoardFile:
    """Board.md on disk.

    Every mutation re-reads the file, mutates the parsed structure and writes
    the whole board back.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self) -> list[Column]:
        if not self.path.exists():
            return []
        return parse_board(read_text(self.path))

    def write(self, columns: list[Column]) -> None:
        self.path.write_text(serialize_board(columns), encoding="utf-8")

    def titles(self) -> set[str]:
        return {item.title for column in self.read() for item in column.items}

    def locate(self, title: str) -> list[str]:
        """Return the column name for every card titled title, in board order."""
        return [column.name for column in self.read() for item in column.items if item.title == title]

    def add_item(self, title: str, status: str, due_date: str | None = None) -> None:
        """Append title to the column for status unless already there."""
        columns = self.read()
        target = column_for_status(status)
        column = next((c for c in columns if c.name == target), None)
        if column is None:
            column = Column(name=target)
            columns.append(column)

        if column.has(title):
            logger.debug(f"[Board] '{title}' already in {target}")
        else:
            column.items.append(
                BoardItem(
                    title=title,
                    completed=status in ("done", "archived"),
                    date=due_date or None,
                )
            )
            logger.debug(f"[Board] Added '{title}' to {target}")
        self.write(columns)

    def remove_item(self, title: str) -> None:
        columns = self.read()
        for column in columns:
            column.items = [item for item in column.items if item.title != title]
        self.write(columns)
        logger.debug(f"[Board] Removed '{title}'")

    def move_item(self, title: str, status: str, due_date: str | None = None) -> None:
        """Move title to the column for status, appending it at the end."""
        self.remove_item(title)
        self.add_item(title, status, due_date)

    def refresh_item(self, title: str, status: str, due_date: str | None = None) -> bool:
        """Rewrite completion flag and date of title in place.

        Returns True when a card changed. The file is left untouched otherwise.
        """
        columns = self.read()
        completed = status in ("done", "archived")
        date = due_date or None
        changed = False
        for column in columns:
            for item in column.items:
                if item.title == title and (item.completed, item.date) != (completed, date):
                    item.completed = completed
                    item.date = date
                    changed = True
        if changed:
            self.write(columns)
            logger.debug(f"[Board] Refreshed '{title}'")
        return changed

    def rename_item(self, old_title: str, new_title: str) -> None:
        """Rename in place, keeping column, position and completion flag."""
        columns = self.read()
        for column in columns:
            for item in column.items:
                if item.title == old_title:
                    item.title = new_title
        self.write(columns)
        logger.debug(f"[Board] Renamed '{old_title}' -> '{new_title}'")
