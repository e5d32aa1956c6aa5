"""Normalise version-control differences into :class:`FileChange` values."""

from __future__ import annotations

import typing as typ
from pathlib import PurePosixPath

from .models import ChangeKind, FileChange, RawDifference

if typ.TYPE_CHECKING:
    from .client import SourceControlClient

_CHANGE_TYPES: dict[str, ChangeKind] = {
    "A": ChangeKind.ADDED,
    "M": ChangeKind.MODIFIED,
    "D": ChangeKind.DELETED,
}


def normalise_path(path: str | None) -> str | None:
    """Return a repository-relative POSIX path, or ``None`` when unusable."""
    if not path:
        return None
    pure = PurePosixPath(path.replace("\\", "/"))
    parts = [part for part in pure.parts if part != "/"]
    if not parts:
        return None
    return str(PurePosixPath(*parts))


def normalise_difference(difference: RawDifference) -> list[FileChange]:
    """Convert one raw difference into zero, one or two file changes.

    A modification whose before and after paths differ is a rename and is
    reported as the deletion of the old path plus the addition of the new one.
    """
    kind = _CHANGE_TYPES.get(difference.change_type.upper())
    before = normalise_path(difference.before_path)
    after = normalise_path(difference.after_path)

    if kind is ChangeKind.ADDED:
        return [FileChange(after, kind)] if after else []
    if kind is ChangeKind.DELETED:
        return [FileChange(before, kind)] if before else []
    if kind is ChangeKind.MODIFIED:
        if before and after and before != after:
            return [
                FileChange(before, ChangeKind.DELETED),
                FileChange(after, ChangeKind.ADDED),
            ]
        path = after or before
        return [FileChange(path, kind)] if path else []
    return []


class DiffAnalyzer:
    """Compute the changed paths between two commits."""

    def __init__(self, source: SourceControlClient) -> None:
        """Bind the analyzer to a version-control client."""
        self._source = source

    async def diff(
        self,
        repository: str,
        after_commit: str,
        before_commit: str | None = None,
    ) -> list[FileChange]:
        """Return the changes from ``before_commit`` to ``after_commit``.

        Without ``before_commit`` every path reachable from ``after_commit`` is
        reported as added. Order follows the service response and callers must
        not rely on it.

        Raises
        ------
        SourceUnavailable
            If either commit cannot be resolved.

        """
        differences = await self._source.diff_commits(
            repository, after_commit, before_commit
        )
        changes: list[FileChange] = []
        for difference in differences:
            changes.extend(normalise_difference(difference))
        return changes
