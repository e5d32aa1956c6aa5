"""Version-control lookup errors."""

from __future__ import annotations


class SourceUnavailable(RuntimeError):  # noqa: N818 - taxonomy name
    """Raised when the version-control service cannot answer a lookup.

    ``code`` carries the service error code when one was returned, so
    observability can tell throttling apart from missing branches.
    """

    def __init__(self, message: str, *, code: str | None = None) -> None:
        """Initialise with a message and optional service error code."""
        self.code = code
        super().__init__(message)

    @classmethod
    def branch(
        cls, repository: str, branch: str, *, code: str | None = None
    ) -> SourceUnavailable:
        """Return an error for a branch that cannot be resolved."""
        return cls(f"Cannot resolve branch {branch!r} in {repository}", code=code)

    @classmethod
    def commit(
        cls, repository: str, commit_id: str, *, code: str | None = None
    ) -> SourceUnavailable:
        """Return an error for a commit that cannot be read."""
        return cls(f"Cannot read commit {commit_id} in {repository}", code=code)

    @classmethod
    def folder(
        cls, repository: str, path: str, commit_id: str, *, code: str | None = None
    ) -> SourceUnavailable:
        """Return an error for a folder that cannot be listed."""
        return cls(
            f"Cannot list folder {path!r} at {commit_id} in {repository}", code=code
        )

    @classmethod
    def request(
        cls, repository: str, operation: str, *, code: str | None = None
    ) -> SourceUnavailable:
        """Return an error for any other failed request."""
        return cls(f"{operation} failed for {repository}", code=code)
