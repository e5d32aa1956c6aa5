"""Typed results of version-control lookups."""

from __future__ import annotations

import dataclasses
import enum


class ChangeKind(enum.StrEnum):
    """How a path changed between two commits."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclasses.dataclass(frozen=True, slots=True)
class FileChange:
    """A single changed path, normalised to a repository-relative POSIX path."""

    path: str
    change_kind: ChangeKind


@dataclasses.dataclass(frozen=True, slots=True)
class RawDifference:
    """A difference entry as reported by the version-control service.

    ``change_type`` is the service's single-letter code (``A``, ``M`` or
    ``D``); either path may be missing depending on the change.
    """

    change_type: str
    before_path: str | None = None
    after_path: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class CommitInfo:
    """Commit metadata needed to pick a diff base."""

    commit_id: str
    parents: tuple[str, ...] = ()

    @property
    def first_parent(self) -> str | None:
        """Return the first parent, or ``None`` for a root commit."""
        return self.parents[0] if self.parents else None


@dataclasses.dataclass(frozen=True, slots=True)
class FolderEntry:
    """A sub-folder returned by a folder listing."""

    relative_path: str
    absolute_path: str
