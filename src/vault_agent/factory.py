"""Dependency injection factory."""

import logging

from fastapi import FastAPI

from vault_agent.claude.classifier import ClaudeTextClassifier
from vault_agent.config import Config, VaultConfig
from vault_agent.errors import ConfigurationMissingError
from vault_agent.mail.adapter import MailAdapter, TextClassifier
from vault_agent.vault.task_store import ObsidianTaskStore, TaskStore

logger = logging.getLogger(__name__)

# Global config instance for dependency injection
_config: Config | None = None

# Injected collaborators
_mail_adapter: MailAdapter | None = None
_classifier: TextClassifier | None = None


def get_config() -> Config:
    """Get or create Config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def get_vault_config() -> VaultConfig:
    """Get vault config, raising ConfigurationMissingError if unset."""
    return get_config().get_vault()


def get_task_store() -> TaskStore:
    """Create task store for the configured vault."""
    return ObsidianTaskStore(get_vault_config())


def set_mail_adapter(adapter: MailAdapter | None) -> None:
    """Set global mail adapter."""
    global _mail_adapter
    _mail_adapter = adapter


def get_mail_adapter() -> MailAdapter:
    """Get the injected mail adapter."""
    if _mail_adapter is None:
        raise ConfigurationMissingError(
            "Mailbox not configured. Inject a mail adapter before using email tools."
        )
    return _mail_adapter


def set_classifier(classifier: TextClassifier | None) -> None:
    """Set global text classifier."""
    global _classifier
    _classifier = classifier


def get_classifier() -> TextClassifier:
    """Get or create the text classifier used for triage."""
    global _classifier
    if _classifier is None:
        _classifier = ClaudeTextClassifier(get_config().claude_model)
    return _classifier


def create_app() -> FastAPI:
    """Create FastAPI application (composition root)."""
    from vault_agent.api.tools import router as tools_router

    app = FastAPI(
        title="VaultAgent",
        description="Keep Obsidian task files, the Kanban board and follow-ups in sync",
        version="0.1.0",
    )

    # Mount API routes
    app.include_router(tools_router, prefix="/api")

    return app
