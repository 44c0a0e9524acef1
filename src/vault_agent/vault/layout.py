"""Vault directory skeleton."""

import logging

from vault_agent.config import VaultConfig
from vault_agent.vault.board import DEFAULT_BOARD

logger = logging.getLogger(__name__)


def ensure_vault_structure(vault: VaultConfig) -> None:
    """Create missing vault folders and the default board.

    Idempotent - safe to call before every operation.
    """
    for directory in (vault.tasks_dir, vault.projects_dir, vault.templates_dir, vault.archive_dir):
        if not directory.exists():
            directory.mkdir(parents=True, exist_ok=True)
            logger.info(f"[Vault] Created {directory}")

    if not vault.board_file.exists():
        vault.board_file.write_text(DEFAULT_BOARD, encoding="utf-8")
        logger.info(f"[Vault] Created board {vault.board_file}")
