"""Test fixtures for VaultAgent."""

from pathlib import Path

import pytest

from vault_agent.config import VaultConfig
from vault_agent.vault.task_store import ObsidianTaskStore


@pytest.fixture
def tmp_vault(tmp_path: Path) -> Path:
    """Create temporary Obsidian vault structure."""
    vault = tmp_path / "vault"
    tasks_dir = vault / "Tasks"
    tasks_dir.mkdir(parents=True)
    return vault


@pytest.fixture
def vault_config(tmp_vault: Path) -> VaultConfig:
    return VaultConfig.from_vault_path(tmp_vault)


@pytest.fixture
def task_store(vault_config: VaultConfig) -> ObsidianTaskStore:
    return ObsidianTaskStore(vault_config)


@pytest.fixture
def sample_task_file(tmp_vault: Path) -> Path:
    """Create a hand-written task file."""
    task_file = tmp_vault / "Tasks" / "Test Task.md"

    content = """---
status: working
assignee: assistant
priority: high
project: product-launch
due_date: 2026-02-28
created_at: '2026-01-05T09:00:00.000Z'
tags:
- launch
---

Prepare the launch checklist.
"""

    task_file.write_text(content)
    return task_file
