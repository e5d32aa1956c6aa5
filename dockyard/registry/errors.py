"""Container registry errors."""

from __future__ import annotations


class RegistryError(RuntimeError):
    """Base class for registry failures.

    ``code`` carries the registry service's error code when one was returned.
    """

    def __init__(self, message: str, *, code: str | None = None) -> None:
        """Initialise with a message and optional service error code."""
        self.code = code
        super().__init__(message)


class RegistryLookupFailed(RegistryError):  # noqa: N818 - taxonomy name
    """Raised when a registry cannot be described or listed."""

    @classmethod
    def for_name(cls, name: str, *, code: str | None = None) -> RegistryLookupFailed:
        """Return an error for a failed describe call."""
        return cls(f"Unable to check registry {name}", code=code)

    @classmethod
    def listing(cls, *, code: str | None = None) -> RegistryLookupFailed:
        """Return an error for a failed listing call."""
        return cls("Unable to list registries", code=code)


class RegistryCreateFailed(RegistryError):  # noqa: N818 - taxonomy name
    """Raised when a registry cannot be created."""

    @classmethod
    def for_name(cls, name: str, *, code: str | None = None) -> RegistryCreateFailed:
        """Return an error for a failed create call."""
        return cls(f"Unable to create registry {name}", code=code)


class RegistryDeleteFailed(RegistryError):  # noqa: N818 - taxonomy name
    """Raised when a registry cannot be deleted."""

    @classmethod
    def for_name(cls, name: str, *, code: str | None = None) -> RegistryDeleteFailed:
        """Return an error for a failed delete call."""
        return cls(f"Unable to delete registry {name}", code=code)


class RegistryAlreadyExists(RegistryError):  # noqa: N818 - taxonomy name
    """Raised by clients when a create call collides with an existing registry."""

    @classmethod
    def for_name(cls, name: str) -> RegistryAlreadyExists:
        """Return an error for a create that lost a race."""
        return cls(
            f"Registry {name} already exists",
            code="RepositoryAlreadyExistsException",
        )
