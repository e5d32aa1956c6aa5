"""Container registry collaborator bindings.

:class:`RegistryClient` is the port used by the lifecycle manager and
:class:`EcrRegistryClient` implements it over a boto3 ECR client. The client
only translates service errors; create-if-absent semantics live in
:mod:`dockyard.registry.lifecycle`.
"""

from __future__ import annotations

import asyncio
import typing as typ

from botocore.exceptions import BotoCoreError, ClientError

from .errors import (
    RegistryAlreadyExists,
    RegistryCreateFailed,
    RegistryDeleteFailed,
    RegistryLookupFailed,
)
from .models import RegistryRef

if typ.TYPE_CHECKING:
    from botocore.client import BaseClient

_NOT_FOUND = "RepositoryNotFoundException"
_ALREADY_EXISTS = "RepositoryAlreadyExistsException"


class RegistryClient(typ.Protocol):
    """Interface for the registry operations used by dispatch."""

    async def describe(self, name: str) -> RegistryRef | None:
        """Return the named registry, or ``None`` if it does not exist."""
        ...

    async def create(self, name: str) -> RegistryRef:
        """Create a registry; raise :class:`RegistryAlreadyExists` on collision."""
        ...

    async def delete(self, name: str, *, force: bool = True) -> None:
        """Delete a registry, including its images when ``force`` is set."""
        ...

    async def list_all(self) -> list[RegistryRef]:
        """Return every registry visible to the account."""
        ...


def _error_code(exc: BaseException) -> str | None:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


def _to_ref(repository: dict[str, typ.Any]) -> RegistryRef:
    return RegistryRef(
        name=repository["repositoryName"],
        uri=repository["repositoryUri"],
        arn=repository["repositoryArn"],
    )


class EcrRegistryClient:
    """Amazon ECR implementation of :class:`RegistryClient`."""

    def __init__(self, client: BaseClient) -> None:
        """Wrap an existing boto3 ECR client."""
        self._client = client

    async def describe(self, name: str) -> RegistryRef | None:
        """Return the named registry, or ``None`` if it does not exist."""
        try:
            response = await asyncio.to_thread(
                self._client.describe_repositories, repositoryNames=[name]
            )
        except ClientError as exc:
            if _error_code(exc) == _NOT_FOUND:
                return None
            raise RegistryLookupFailed.for_name(name, code=_error_code(exc)) from exc
        except BotoCoreError as exc:
            raise RegistryLookupFailed.for_name(name) from exc

        repositories = response.get("repositories", [])
        return _to_ref(repositories[0]) if repositories else None

    async def create(self, name: str) -> RegistryRef:
        """Create a registry named ``name``."""
        try:
            response = await asyncio.to_thread(
                self._client.create_repository, repositoryName=name
            )
        except ClientError as exc:
            if _error_code(exc) == _ALREADY_EXISTS:
                raise RegistryAlreadyExists.for_name(name) from exc
            raise RegistryCreateFailed.for_name(name, code=_error_code(exc)) from exc
        except BotoCoreError as exc:
            raise RegistryCreateFailed.for_name(name) from exc
        return _to_ref(response["repository"])

    async def delete(self, name: str, *, force: bool = True) -> None:
        """Delete the registry named ``name``."""
        try:
            await asyncio.to_thread(
                self._client.delete_repository, repositoryName=name, force=force
            )
        except (BotoCoreError, ClientError) as exc:
            raise RegistryDeleteFailed.for_name(name, code=_error_code(exc)) from exc

    def _collect_repositories(self) -> list[RegistryRef]:
        paginator = self._client.get_paginator("describe_repositories")
        return [
            _to_ref(repository)
            for page in paginator.paginate()
            for repository in page.get("repositories", [])
        ]

    async def list_all(self) -> list[RegistryRef]:
        """Return every registry in the account and region."""
        try:
            return await asyncio.to_thread(self._collect_repositories)
        except (BotoCoreError, ClientError) as exc:
            raise RegistryLookupFailed.listing(code=_error_code(exc)) from exc
