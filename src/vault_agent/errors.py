"""Error types raised by the vault agent core."""


class VaultAgentError(Exception):
    """Base class for expected, reportable failures."""


class NotFoundError(VaultAgentError):
    """Referenced item does not resolve to an existing file."""


class TaskNotFoundError(NotFoundError):
    """Task could not be resolved by filename or title."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f'Task "{task_id}" not found')
        self.task_id = task_id


class AlreadyExistsError(VaultAgentError):
    """Creation collides with an existing filename or slug."""


class ConfigurationMissingError(VaultAgentError):
    """Required configuration is absent at the point of first use."""
