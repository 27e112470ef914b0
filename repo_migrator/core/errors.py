"""Core exception classes for the application."""


class NotFoundError(Exception):
    """Raised when a resource is not found."""


class PersistenceError(Exception):
    """Raised when a record cannot be created, updated or deleted."""


class ConfigurationError(Exception):
    """Raised when a task payload cannot be decoded into its options."""


class InvalidTransitionError(Exception):
    """Raised when a task status change is not allowed."""

    def __init__(self, current, target):
        super().__init__(f"Cannot transition task from {current.name} to {target.name}")
        self.current = current
        self.target = target


class RepositoryError(Exception):
    """Base class for repository creation rule violations."""


class ReachLimitOfRepoError(RepositoryError):
    """Raised when the owner cannot create more repositories."""

    def __init__(self, limit: int):
        super().__init__(f"user has reached maximum limit of repositories [limit: {limit}]")
        self.limit = limit


class RepoAlreadyExistError(RepositoryError):
    """Raised when the owner already has a repository with the same name."""

    def __init__(self, owner_name: str, name: str):
        super().__init__(f"repository already exists [uname: {owner_name}, name: {name}]")
        self.owner_name = owner_name
        self.name = name


class NameReservedError(RepositoryError):
    """Raised when the repository name is reserved."""

    def __init__(self, name: str):
        super().__init__(f"name is reserved [name: {name}]")
        self.name = name


class NamePatternNotAllowedError(RepositoryError):
    """Raised when the repository name matches a reserved pattern."""

    def __init__(self, pattern: str):
        super().__init__(f"name pattern is not allowed [pattern: {pattern}]")
        self.pattern = pattern


class MigrationError(Exception):
    """Raised when the repository data transfer fails."""


class TaskCrashError(Exception):
    """Synthetic error for an unexpected fault raised inside a task body."""


class TaskCreationError(Exception):
    """Raised when a migrate task could not be set up at enqueue time.

    Carries the task, already marked failed, and the user-facing message.
    """

    def __init__(self, task, message: str):
        super().__init__(message)
        self.task = task
        self.message = message
