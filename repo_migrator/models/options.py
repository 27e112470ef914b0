"""Options captured when a migration is requested."""

from pydantic import BaseModel, ConfigDict, ValidationError

from repo_migrator.core.errors import ConfigurationError


class MigrateOptions(BaseModel):
    """Immutable snapshot of a migration request.

    Stored as JSON in ``Task.payload_content`` when the task is created and
    decoded back when the task runs.
    """

    model_config = ConfigDict(frozen=True)

    remote_url: str
    auth_username: str = ""
    auth_password: str = ""
    name: str
    description: str = ""
    private: bool = False
    mirror: bool = False

    def encode(self) -> str:
        """Serialize the options for storage in a task payload."""
        return self.model_dump_json()

    @classmethod
    def decode(cls, payload: str) -> "MigrateOptions":
        """Decode options from a task payload.

        Raises:
            ConfigurationError: If the payload is not valid options JSON
        """
        try:
            return cls.model_validate_json(payload)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid migrate task payload: {e}") from e
