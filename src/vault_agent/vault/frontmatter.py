"""YAML frontmatter reading and writing for vault markdown files."""

import re
from datetime import date
from pathlib import Path
from typing import Any

import yaml

# Match frontmatter between --- markers
FRONTMATTER_RE = re.compile(r"^---[ \t]*\n(.*?)^---[ \t]*(?:\n|\Z)", re.DOTALL | re.MULTILINE)


def read_text(file_path: Path) -> str:
    """Read a vault file, falling back to latin-1 for non-UTF-8 files."""
    try:
        return file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return file_path.read_text(encoding="latin-1")


def split_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Split markdown content into frontmatter dict and body.

    Content without a frontmatter block yields an empty dict and the whole
    content as body. Invalid YAML raises ValueError.
    """
    match = FRONTMATTER_RE.match(content)
    if not match:
        return {}, content

    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        raise ValueError("Invalid YAML frontmatter") from e

    if not isinstance(data, dict):
        data = {}
    return data, content[match.end() :]


def render(data: dict[str, Any], body: str = "") -> str:
    """Render frontmatter and body back to markdown text."""
    frontmatter = yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
    if body:
        return f"---\n{frontmatter}---\n\n{body}\n"
    return f"---\n{frontmatter}---\n"


def to_string(value: Any) -> str | None:
    """Convert YAML scalar to string.

    YAML parser converts unquoted dates and timestamps to date objects,
    convert back to ISO strings.
    """
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return value or None
    return str(value)
