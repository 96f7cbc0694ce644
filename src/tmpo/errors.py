"""Exception hierarchy shared by the store, settings and command layers."""
from __future__ import annotations


class TmpoError(Exception):
    """Base class for every error raised by tmpo."""


class SetupError(TmpoError):
    """The store or data directory could not be prepared. Fatal for the invocation."""


class MigrationError(SetupError):
    """A migration failed and its transaction was rolled back."""


class StorageError(TmpoError):
    """A query or statement against the store failed."""


class ConfigError(TmpoError):
    """A configuration document is malformed or holds an invalid value."""


class RuleViolation(TmpoError):
    """A business rule rejected the requested operation."""


class ProjectNotFoundError(RuleViolation):
    pass


class ProjectExistsError(RuleViolation):
    pass


class AlreadyRunningError(RuleViolation):
    def __init__(self, project_name: str) -> None:
        super().__init__(f"Already tracking time for '{project_name}'.")
        self.project_name = project_name


class NoRunningEntryError(RuleViolation):
    def __init__(self) -> None:
        super().__init__("No time entry is currently running.")


class NoPreviousSessionError(RuleViolation):
    def __init__(self, project_name: str) -> None:
        super().__init__(f"No previous session found for project '{project_name}' to resume.")
        self.project_name = project_name


class EntryNotFoundError(RuleViolation):
    def __init__(self, entry_id: int) -> None:
        super().__init__(f"Time entry {entry_id} not found.")
        self.entry_id = entry_id


class InvalidEntryError(RuleViolation):
    pass


class MilestoneExistsError(RuleViolation):
    def __init__(self, project_name: str, name: str) -> None:
        super().__init__(f"Milestone '{name}' already exists for project '{project_name}'.")
        self.project_name = project_name
        self.name = name


class ActiveMilestoneExistsError(RuleViolation):
    def __init__(self, project_name: str, name: str) -> None:
        super().__init__(f"Milestone '{name}' is already active for project '{project_name}'.")
        self.project_name = project_name
        self.name = name


class NoActiveMilestoneError(RuleViolation):
    def __init__(self, project_name: str) -> None:
        super().__init__(f"No active milestone for project '{project_name}'.")
        self.project_name = project_name
