"""Configuration for the vault agent."""

from dataclasses import dataclass
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from vault_agent.errors import ConfigurationMissingError


@dataclass
class VaultConfig:
    """Resolved locations inside one Obsidian vault."""

    vault_path: Path
    tasks_dir: Path
    projects_dir: Path
    templates_dir: Path
    follow_ups_file: Path

    @property
    def board_file(self) -> Path:
        """Kanban board lives next to the task files."""
        return self.tasks_dir / "Board.md"

    @property
    def archive_dir(self) -> Path:
        return self.tasks_dir / "Archive"

    @classmethod
    def from_vault_path(
        cls,
        vault_path: str | Path,
        tasks_folder: str = "Tasks",
        projects_folder: str = "Projects",
        templates_folder: str = "Templates",
        follow_ups_file: str = "Follow-Ups.md",
    ) -> "VaultConfig":
        """Build the default vault layout rooted at vault_path."""
        root = Path(vault_path)
        return cls(
            vault_path=root,
            tasks_dir=root / tasks_folder,
            projects_dir=root / projects_folder,
            templates_dir=root / templates_folder,
            follow_ups_file=root / follow_ups_file,
        )


class Config(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(env_prefix="VAULT_AGENT_", env_file=".env", extra="ignore")

    vault_path: str | None = Field(default=None)
    tasks_folder: str = Field(default="Tasks")
    projects_folder: str = Field(default="Projects")
    templates_folder: str = Field(default="Templates")
    follow_ups_file: str = Field(default="Follow-Ups.md")
    claude_model: str = Field(default="sonnet")
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)

    def get_vault(self) -> VaultConfig:
        """Get vault config, failing when no vault path is configured."""
        if not self.vault_path:
            raise ConfigurationMissingError(
                "VAULT_AGENT_VAULT_PATH is required. Set it to your Obsidian vault path."
            )
        return VaultConfig.from_vault_path(
            self.vault_path,
            tasks_folder=self.tasks_folder,
            projects_folder=self.projects_folder,
            templates_folder=self.templates_folder,
            follow_ups_file=self.follow_ups_file,
        )
