"""Per-service, per-branch registry lifecycle.

Registries are created lazily on the first build of a service on a branch and
removed when the branch (or the service) goes away. There is no lock around
creation: names are deterministic, so two overlapping invocations racing to
create the same registry is expected and the loser simply re-reads it.
"""

from __future__ import annotations

import asyncio
import typing as typ

from dockyard.logging import get_logger, log_info, log_warning

from . import naming
from .errors import RegistryAlreadyExists, RegistryError, RegistryLookupFailed
from .models import (
    SKIP_AMBIGUOUS_BRANCH,
    SKIP_BRANCH_MISMATCH,
    SKIP_PROTECTED_BRANCH,
    DeletionOutcome,
    DeletionStatus,
    EnsureOutcome,
)

if typ.TYPE_CHECKING:
    import re

    from .client import RegistryClient
    from .models import RegistryRef

logger = get_logger(__name__)


class RegistryLifecycleManager:
    """Ensure, create and delete the registries owned by one deployment.

    Parameters
    ----------
    client
        Registry collaborator.
    prefix
        Leading name segment of every registry this deployment owns.
    protected_branches
        Compiled pattern; registries of fully matching branches are never
        deleted.

    """

    def __init__(
        self,
        client: RegistryClient,
        *,
        prefix: str,
        protected_branches: re.Pattern[str],
    ) -> None:
        """Bind the manager to a registry client and naming policy."""
        self._client = client
        self._prefix = prefix
        self._protected = protected_branches

    def name_for(self, service_name: str, branch_name: str) -> str:
        """Return the registry name for a service on a branch."""
        return naming.registry_name(self._prefix, service_name, branch_name)

    def is_protected(self, branch_name: str) -> bool:
        """Return True when ``branch_name`` is a protected branch."""
        if self._protected.fullmatch(branch_name):
            return True
        try:
            segment = naming.name_segment(branch_name)
        except ValueError:
            return False
        return self._protected.fullmatch(segment) is not None

    async def ensure(self, name: str) -> RegistryRef:
        """Return the named registry, creating it when absent."""
        return (await self.ensure_outcome(name)).registry

    async def ensure_outcome(self, name: str) -> EnsureOutcome:
        """Return the named registry and whether this call created it.

        Raises
        ------
        RegistryLookupFailed
            If the describe call fails for a reason other than not-found, or
            a registry reported as already existing cannot be re-read.
        RegistryCreateFailed
            If creation fails for a reason other than a name collision.

        """
        existing = await self._client.describe(name)
        if existing is not None:
            return EnsureOutcome(registry=existing, created=False)

        try:
            created = await self._client.create(name)
        except RegistryAlreadyExists:
            log_info(logger, "Registry %s created concurrently; re-reading", name)
            existing = await self._client.describe(name)
            if existing is None:
                raise RegistryLookupFailed.for_name(name) from None
            return EnsureOutcome(registry=existing, created=False)

        log_info(logger, "Created registry %s", name)
        return EnsureOutcome(registry=created, created=True)

    async def delete_matching(
        self,
        branch_name: str,
        service_name: str | None = None,
        *,
        active_branches: typ.Iterable[str] = (),
    ) -> list[DeletionOutcome]:
        """Delete the registries of a branch, or of one service on it.

        Every registry under the prefix is reported: matching registries are
        deleted and the rest are skipped as a branch mismatch. Deletions run
        concurrently and one failure never stops the others.

        A name such as ``<prefix>-web-api-main`` can be read as service
        ``web`` on ``api-main`` or service ``web-api`` on ``main``, so a
        matching registry is also skipped when any possible branch segment of
        its name is protected, or names one of ``active_branches`` other than
        ``branch_name``.

        Raises
        ------
        RegistryLookupFailed
            If the registries cannot be listed.

        """
        registries = await self._client.list_all()
        others = naming.branch_segments(active_branches) - naming.branch_segments(
            [branch_name]
        )
        wanted = None
        if service_name is not None:
            wanted = self.name_for(service_name, branch_name)

        outcomes: list[DeletionOutcome] = []
        to_delete: list[tuple[str, str]] = []
        for registry in registries:
            remainder = naming.owned_remainder(registry.name, self._prefix)
            if remainder is None:
                continue
            service = naming.service_for_branch(
                registry.name, self._prefix, branch_name
            )
            if service is None or (wanted is not None and registry.name != wanted):
                outcomes.append(
                    DeletionOutcome(
                        registry_name=registry.name,
                        service_name=service or remainder,
                        status=DeletionStatus.SKIPPED,
                        detail=SKIP_BRANCH_MISMATCH,
                    )
                )
                continue
            reason = self._skip_reason(branch_name, remainder, others)
            if reason is not None:
                log_warning(
                    logger,
                    "Refusing to delete registry %s of branch %s: %s",
                    registry.name,
                    branch_name,
                    reason,
                )
                outcomes.append(
                    DeletionOutcome(
                        registry_name=registry.name,
                        service_name=service,
                        status=DeletionStatus.SKIPPED,
                        detail=reason,
                    )
                )
                continue
            to_delete.append((registry.name, service))

        outcomes.extend(await self._delete_all(to_delete))
        return outcomes

    def _skip_reason(
        self, branch_name: str, remainder: str, others: frozenset[str]
    ) -> str | None:
        """Return why a registry matching ``branch_name`` must be kept."""
        candidates = tuple(naming.branch_candidates(remainder))
        if self.is_protected(branch_name) or any(
            self.is_protected(candidate) for candidate in candidates
        ):
            return SKIP_PROTECTED_BRANCH
        if others.intersection(candidates):
            return SKIP_AMBIGUOUS_BRANCH
        return None

    async def delete_unused(
        self, active_branches: typ.Iterable[str]
    ) -> list[DeletionOutcome]:
        """Delete registries whose branch no longer exists.

        A registry is kept when its name ends in the segment of any active
        branch or when any possible branch segment of its name is protected.

        Raises
        ------
        RegistryLookupFailed
            If the registries cannot be listed.

        """
        suffixes = tuple(
            f"-{segment}" for segment in naming.branch_segments(active_branches)
        )
        registries = await self._client.list_all()

        outcomes: list[DeletionOutcome] = []
        to_delete: list[tuple[str, str]] = []
        for registry in registries:
            remainder = naming.owned_remainder(registry.name, self._prefix)
            if remainder is None or registry.name.endswith(suffixes):
                continue
            if any(self.is_protected(c) for c in naming.branch_candidates(remainder)):
                outcomes.append(
                    DeletionOutcome(
                        registry_name=registry.name,
                        service_name=remainder,
                        status=DeletionStatus.SKIPPED,
                        detail=SKIP_PROTECTED_BRANCH,
                    )
                )
                continue
            to_delete.append((registry.name, remainder))

        outcomes.extend(await self._delete_all(to_delete))
        return outcomes

    async def _delete_one(self, name: str, service_name: str) -> DeletionOutcome:
        await self._client.delete(name, force=True)
        log_info(logger, "Deleted registry %s", name)
        return DeletionOutcome(
            registry_name=name,
            service_name=service_name,
            status=DeletionStatus.DELETED,
        )

    async def _delete_all(
        self, targets: list[tuple[str, str]]
    ) -> list[DeletionOutcome]:
        """Delete every target, capturing each failure instead of raising."""
        gathered = await asyncio.gather(
            *(self._delete_one(name, service) for name, service in targets),
            return_exceptions=True,
        )
        outcomes: list[DeletionOutcome] = []
        for (name, service), result in zip(targets, gathered, strict=True):
            if isinstance(result, DeletionOutcome):
                outcomes.append(result)
            elif isinstance(result, Exception):
                log_warning(
                    logger,
                    "Unable to delete registry %s: %s",
                    name,
                    result,
                    exc_info=result if not isinstance(result, RegistryError) else None,
                )
                outcomes.append(
                    DeletionOutcome(
                        registry_name=name,
                        service_name=service,
                        status=DeletionStatus.FAILED,
                        detail=str(result),
                    )
                )
            else:
                raise result
        return outcomes
