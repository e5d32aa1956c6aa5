"""Build submission errors."""

from __future__ import annotations


class BuildSubmissionFailed(RuntimeError):  # noqa: N818 - taxonomy name
    """Raised when the build service rejects or fails a job submission."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        """Initialise with a message and optional service error code."""
        self.code = code
        super().__init__(message)

    @classmethod
    def for_project(
        cls, project: str, service_name: str, *, code: str | None = None
    ) -> BuildSubmissionFailed:
        """Return an error for a failed submission of one service's build."""
        return cls(
            f"Unable to queue build of {service_name} in project {project}",
            code=code,
        )

    @classmethod
    def missing_id(cls, project: str) -> BuildSubmissionFailed:
        """Return an error for a submission whose response has no build id."""
        return cls(f"Build service returned no build id for project {project}")
