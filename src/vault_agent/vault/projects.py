"""Projects referenced by tasks or kept in the vault's Projects folder."""

import logging
from dataclasses import dataclass

from vault_agent.config import VaultConfig
from vault_agent.errors import AlreadyExistsError
from vault_agent.vault.frontmatter import render
from vault_agent.vault.task_store import list_task_files, now_iso, sanitize_filename

logger = logging.getLogger(__name__)


@dataclass
class ProjectSummary:
    slug: str
    task_count: int


@dataclass
class Project:
    slug: str
    display_name: str
    description: str = ""


def list_projects(vault: VaultConfig) -> list[ProjectSummary]:
    """Collect project slugs from task frontmatter and Projects/*.md files."""
    tasks = list_task_files(vault.tasks_dir)

    slugs: list[str] = []
    for task in tasks:
        if task.project and task.project not in slugs:
            slugs.append(task.project)

    if vault.projects_dir.exists():
        for file_path in sorted(vault.projects_dir.glob("*.md")):
            if file_path.stem not in slugs:
                slugs.append(file_path.stem)

    return [
        ProjectSummary(slug=slug, task_count=sum(1 for t in tasks if t.project == slug))
        for slug in slugs
    ]


def create_project(
    vault: VaultConfig,
    slug: str,
    display_name: str | None = None,
    description: str | None = None,
) -> Project:
    """Create Projects/{slug}.md.

    Raises:
        AlreadyExistsError: If the project file already exists
    """
    slug = sanitize_filename(slug)
    if not slug:
        raise ValueError("Project slug is empty")
    vault.projects_dir.mkdir(parents=True, exist_ok=True)

    file_path = vault.projects_dir / f"{slug}.md"
    if file_path.exists():
        raise AlreadyExistsError(f'Project "{slug}" already exists')

    project = Project(slug=slug, display_name=display_name or slug, description=description or "")
    data = {
        "slug": project.slug,
        "display_name": project.display_name,
        "status": "active",
        "created_at": now_iso(),
    }
    file_path.write_text(render(data, project.description), encoding="utf-8")
    logger.info(f"[Projects] Created '{slug}'")
    return project
