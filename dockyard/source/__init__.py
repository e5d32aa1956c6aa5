"""Version-control access and diff normalisation."""

from __future__ import annotations

from .client import CodeCommitSourceClient, SourceControlClient
from .diff import DiffAnalyzer, normalise_difference, normalise_path
from .errors import SourceUnavailable
from .models import ChangeKind, CommitInfo, FileChange, FolderEntry, RawDifference

__all__ = [
    "ChangeKind",
    "CodeCommitSourceClient",
    "CommitInfo",
    "DiffAnalyzer",
    "FileChange",
    "FolderEntry",
    "RawDifference",
    "SourceControlClient",
    "SourceUnavailable",
    "normalise_difference",
    "normalise_path",
]
