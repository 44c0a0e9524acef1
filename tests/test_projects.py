"""Tests for vault projects."""

import pytest

from vault_agent.config import VaultConfig
from vault_agent.errors import AlreadyExistsError
from vault_agent.vault.frontmatter import split_frontmatter
from vault_agent.vault.projects import ProjectSummary, create_project, list_projects
from vault_agent.vault.task_store import ObsidianTaskStore


def test_create_project_writes_note(vault_config: VaultConfig) -> None:
    project = create_project(vault_config, "product-launch", "Product Launch", "Ship it")

    assert project.display_name == "Product Launch"
    data, body = split_frontmatter((vault_config.projects_dir / "product-launch.md").read_text())
    assert data["slug"] == "product-launch"
    assert data["display_name"] == "Product Launch"
    assert data["status"] == "active"
    assert data["created_at"]
    assert body.strip() == "Ship it"


def test_create_project_defaults_display_name(vault_config: VaultConfig) -> None:
    assert create_project(vault_config, "infra").display_name == "infra"


def test_create_project_duplicate_fails(vault_config: VaultConfig) -> None:
    create_project(vault_config, "infra")
    with pytest.raises(AlreadyExistsError):
        create_project(vault_config, "infra")


def test_list_projects_merges_tasks_and_notes(
    task_store: ObsidianTaskStore, vault_config: VaultConfig
) -> None:
    task_store.create("One", project="alpha")
    task_store.create("Two", project="alpha")
    task_store.create("Three")
    create_project(vault_config, "beta")
    create_project(vault_config, "alpha")

    assert list_projects(vault_config) == [
        ProjectSummary(slug="alpha", task_count=2),
        ProjectSummary(slug="beta", task_count=0),
    ]
