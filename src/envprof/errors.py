"""Exception types shared across the profile store and service layers."""


class EnvProfError(Exception):
    """Base class for envprof errors."""


class ProfileNotFoundError(EnvProfError):
    """Raised when a profile name does not exist in the store."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Profile '{name}' not found")
        self.name = name


class ProfileConflictError(EnvProfError):
    """Raised when a create or rename would duplicate an existing name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"A profile with name '{name}' already exists")
        self.name = name


class ProfileStoreError(EnvProfError):
    """Raised when the profile store file exists but cannot be loaded."""
