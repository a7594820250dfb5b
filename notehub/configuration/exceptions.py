"""Contains exceptions raised when resolving application configuration."""

from notehub.exceptions import NoteHubError


class ConfigError(NoteHubError):
    """Raised when required configuration is missing or invalid."""

    pass


class NoDefaultSet(ConfigError):
    """Raised when a command needs the default repository and none is set."""

    def __init__(self) -> None:
        """Initializes the exception with a hint on how to set a default."""
        super().__init__("No default repository is set. Pass --repo or run 'notehub repo use owner/name'.")
