"""Version-control collaborator bindings.

:class:`SourceControlClient` is the port the pipeline depends on;
:class:`CodeCommitSourceClient` implements it over a boto3 CodeCommit client.
Every boto3 call is blocking, so each request is pushed to a worker thread.
"""

from __future__ import annotations

import asyncio
import typing as typ

from botocore.exceptions import BotoCoreError, ClientError

from .errors import SourceUnavailable
from .models import CommitInfo, FolderEntry, RawDifference

if typ.TYPE_CHECKING:
    from botocore.client import BaseClient


class SourceControlClient(typ.Protocol):
    """Interface for the version-control lookups used by dispatch."""

    async def resolve_branch_head(self, repository: str, branch: str) -> str:
        """Return the commit id at the tip of ``branch``."""
        ...

    async def get_commit(self, repository: str, commit_id: str) -> CommitInfo:
        """Return parent information for ``commit_id``."""
        ...

    async def diff_commits(
        self, repository: str, after: str, before: str | None = None
    ) -> list[RawDifference]:
        """Return differences between ``before`` (or the empty tree) and ``after``."""
        ...

    async def list_folder(
        self, repository: str, path: str, commit_id: str
    ) -> list[FolderEntry]:
        """Return the immediate sub-folders of ``path`` at ``commit_id``."""
        ...

    async def list_branches(self, repository: str) -> list[str]:
        """Return every branch name in ``repository``."""
        ...


def _error_code(exc: BaseException) -> str | None:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


def _blob_path(difference: dict[str, typ.Any], key: str) -> str | None:
    blob = difference.get(key)
    if not isinstance(blob, dict):
        return None
    path = blob.get("path")
    return path if isinstance(path, str) and path else None


class CodeCommitSourceClient:
    """AWS CodeCommit implementation of :class:`SourceControlClient`."""

    def __init__(self, client: BaseClient) -> None:
        """Wrap an existing boto3 CodeCommit client."""
        self._client = client

    async def resolve_branch_head(self, repository: str, branch: str) -> str:
        """Return the commit id at the tip of ``branch``."""
        try:
            response = await asyncio.to_thread(
                self._client.get_branch,
                repositoryName=repository,
                branchName=branch,
            )
        except (BotoCoreError, ClientError) as exc:
            raise SourceUnavailable.branch(
                repository, branch, code=_error_code(exc)
            ) from exc
        commit_id = response.get("branch", {}).get("commitId")
        if not commit_id:
            raise SourceUnavailable.branch(repository, branch)
        return commit_id

    async def get_commit(self, repository: str, commit_id: str) -> CommitInfo:
        """Return parent information for ``commit_id``."""
        try:
            response = await asyncio.to_thread(
                self._client.get_commit,
                repositoryName=repository,
                commitId=commit_id,
            )
        except (BotoCoreError, ClientError) as exc:
            raise SourceUnavailable.commit(
                repository, commit_id, code=_error_code(exc)
            ) from exc
        parents = response.get("commit", {}).get("parents") or []
        return CommitInfo(commit_id=commit_id, parents=tuple(parents))

    def _collect_differences(
        self, repository: str, after: str, before: str | None
    ) -> list[RawDifference]:
        options: dict[str, str] = {
            "repositoryName": repository,
            "afterCommitSpecifier": after,
        }
        if before is not None:
            options["beforeCommitSpecifier"] = before

        differences: list[RawDifference] = []
        paginator = self._client.get_paginator("get_differences")
        for page in paginator.paginate(**options):
            for entry in page.get("differences", []):
                differences.append(
                    RawDifference(
                        change_type=entry.get("changeType", ""),
                        before_path=_blob_path(entry, "beforeBlob"),
                        after_path=_blob_path(entry, "afterBlob"),
                    )
                )
        return differences

    async def diff_commits(
        self, repository: str, after: str, before: str | None = None
    ) -> list[RawDifference]:
        """Return every difference page between the two commits."""
        try:
            return await asyncio.to_thread(
                self._collect_differences, repository, after, before
            )
        except (BotoCoreError, ClientError) as exc:
            raise SourceUnavailable.commit(
                repository, after, code=_error_code(exc)
            ) from exc

    async def list_folder(
        self, repository: str, path: str, commit_id: str
    ) -> list[FolderEntry]:
        """Return the immediate sub-folders of ``path`` at ``commit_id``."""
        try:
            response = await asyncio.to_thread(
                self._client.get_folder,
                repositoryName=repository,
                commitSpecifier=commit_id,
                folderPath=path,
            )
        except (BotoCoreError, ClientError) as exc:
            raise SourceUnavailable.folder(
                repository, path, commit_id, code=_error_code(exc)
            ) from exc
        return [
            FolderEntry(
                relative_path=folder["relativePath"],
                absolute_path=folder["absolutePath"],
            )
            for folder in response.get("subFolders", [])
            if folder.get("relativePath") and folder.get("absolutePath")
        ]

    def _collect_branches(self, repository: str) -> list[str]:
        paginator = self._client.get_paginator("list_branches")
        branches: list[str] = []
        for page in paginator.paginate(repositoryName=repository):
            branches.extend(page.get("branches", []))
        return branches

    async def list_branches(self, repository: str) -> list[str]:
        """Return every branch name in ``repository``."""
        try:
            return await asyncio.to_thread(self._collect_branches, repository)
        except (BotoCoreError, ClientError) as exc:
            raise SourceUnavailable.request(
                repository, "ListBranches", code=_error_code(exc)
            ) from exc
