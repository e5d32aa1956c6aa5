"""Route one push event to the registry and build actions it implies.

The router classifies an event as branch-created, branch-deleted or
branch-updated and drives the other components:

- created: every folder under the services root gets a registry and a build;
- deleted: every registry of the branch is removed;
- updated: the diff against the previous commit is resolved to services,
  deduplicated, and each service is built (or, when its marker file was
  deleted, has its registry removed).

Resolution and deduplication finish before any per-service work starts; the
per-service work then runs concurrently and is always settled in full.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import datetime as dt
import typing as typ

from dockyard.build.dispatcher import BuildDispatcher
from dockyard.build.errors import BuildSubmissionFailed
from dockyard.events.models import EventAction
from dockyard.logging import get_logger, log_debug
from dockyard.registry.lifecycle import RegistryLifecycleManager
from dockyard.registry.models import SKIP_BRANCH_MISMATCH
from dockyard.services.dedup import DedupTracker, select_targets
from dockyard.services.models import ServiceTarget
from dockyard.services.resolver import ServiceResolver
from dockyard.source.diff import DiffAnalyzer, normalise_path

from .observability import DispatchEventLogger, DispatchRunContext
from .settlement import (
    DispatchAction,
    SettlementEntry,
    SettlementReport,
    SettlementStatus,
    entry_from_deletion,
    failure_entry,
    settle_all,
)

if typ.TYPE_CHECKING:
    from dockyard.build.client import BuildClient
    from dockyard.config import DispatchConfig
    from dockyard.events.models import ChangeEvent
    from dockyard.registry.client import RegistryClient
    from dockyard.source.client import SourceControlClient

    Clock: typ.TypeAlias = cabc.Callable[[], dt.datetime]

logger = get_logger(__name__)

_ALL_BRANCHES = "*"


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


@dataclasses.dataclass(frozen=True, slots=True)
class DispatchDependencies:
    """Collaborator clients used by :class:`EventRouter`."""

    source: SourceControlClient
    registry: RegistryClient
    builds: BuildClient


class EventRouter:
    """Entry point of the change-to-build dispatch pipeline.

    Parameters
    ----------
    dependencies
        Version-control, registry and build clients.
    config
        Deployment configuration.
    event_logger
        Structured event logger; a default one is created when omitted.
    clock
        Source of the current time for run durations.

    """

    def __init__(
        self,
        dependencies: DispatchDependencies,
        config: DispatchConfig,
        *,
        event_logger: DispatchEventLogger | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Wire the pipeline components from configuration."""
        self._source = dependencies.source
        self._services_root = config.services_root
        self._diff = DiffAnalyzer(dependencies.source)
        self._resolver = ServiceResolver(
            config.services_root,
            config.marker_files,
            config.build_extensions,
        )
        self._registries = RegistryLifecycleManager(
            dependencies.registry,
            prefix=config.registry_prefix,
            protected_branches=config.protected_branches,
        )
        self._builds = BuildDispatcher(
            dependencies.builds,
            project_name=config.build_project,
            extra_parameters=config.extra_build_parameters,
        )
        self._event_logger = event_logger or DispatchEventLogger()
        self._clock = clock or _utcnow

    async def handle(self, event: ChangeEvent) -> SettlementReport:
        """Dispatch every action implied by ``event`` and settle them all.

        Raises
        ------
        SourceUnavailable
            If the commit, its parent, the diff, the services folder or the
            branch list cannot be read.
        RegistryLookupFailed
            If registries cannot be listed for a branch deletion.

        """
        action = {
            EventAction.DELETED: DispatchAction.DELETE,
            EventAction.CREATED: DispatchAction.BOOTSTRAP,
            EventAction.UPDATED: DispatchAction.UPDATE,
        }[event.action]
        context = DispatchRunContext(
            repository_name=event.repository_name,
            branch_name=event.branch_name,
            action=action,
            commit_hash=event.commit_hash,
            started_at=self._clock(),
        )
        match action:
            case DispatchAction.DELETE:
                work = self._delete_branch(event)
            case DispatchAction.BOOTSTRAP:
                work = self._bootstrap(event)
            case _:
                work = self._update(event)
        return await self._observe(context, work)

    async def cleanup(self, repository_name: str) -> SettlementReport:
        """Delete registries of branches that no longer exist in the repository.

        Raises
        ------
        SourceUnavailable
            If the branches cannot be listed.
        RegistryLookupFailed
            If registries cannot be listed.

        """
        context = DispatchRunContext(
            repository_name=repository_name,
            branch_name=_ALL_BRANCHES,
            action=DispatchAction.CLEANUP,
            commit_hash=None,
            started_at=self._clock(),
        )
        return await self._observe(context, self._cleanup(repository_name))

    async def _observe(
        self,
        context: DispatchRunContext,
        work: cabc.Coroutine[typ.Any, typ.Any, SettlementReport],
    ) -> SettlementReport:
        self._event_logger.log_run_started(context)
        try:
            report = await work
        except BaseException as exc:
            self._event_logger.log_run_failed(
                context, exc, self._clock() - context.started_at
            )
            raise

        for entry in report.with_status(SettlementStatus.FAILED):
            self._event_logger.log_action_failed(context, entry)
        self._event_logger.log_run_completed(
            context, report, self._clock() - context.started_at
        )
        return report

    async def _with_commit(self, event: ChangeEvent) -> ChangeEvent:
        """Return ``event`` with its commit resolved from the branch head."""
        if event.commit_hash:
            return event
        head = await self._source.resolve_branch_head(
            event.repository_name, event.branch_name
        )
        return dataclasses.replace(event, commit_hash=head)

    async def _previous_commit(self, event: ChangeEvent) -> str | None:
        """Return the diff base: the supplied one, else the first parent."""
        if event.previous_commit_hash:
            return event.previous_commit_hash
        commit = await self._source.get_commit(
            event.repository_name, typ.cast("str", event.commit_hash)
        )
        return commit.first_parent

    async def _delete_branch(self, event: ChangeEvent) -> SettlementReport:
        branches = await self._source.list_branches(event.repository_name)
        outcomes = await self._registries.delete_matching(
            event.branch_name, active_branches=branches
        )
        return SettlementReport(
            repository_name=event.repository_name,
            branch_name=event.branch_name,
            action=DispatchAction.DELETE,
            entries=tuple(entry_from_deletion(outcome) for outcome in outcomes),
        )

    async def _bootstrap(self, event: ChangeEvent) -> SettlementReport:
        resolved = await self._with_commit(event)
        folders = await self._source.list_folder(
            resolved.repository_name,
            self._services_root,
            typ.cast("str", resolved.commit_hash),
        )
        tracker = DedupTracker()
        targets = [
            ServiceTarget(
                service_name=folder.relative_path,
                service_directory=normalise_path(folder.absolute_path)
                or self._resolver.service_directory(folder.relative_path),
            )
            for folder in folders
            if tracker.should_dispatch(folder.relative_path)
        ]
        entries = await settle_all(
            [
                (target.service_name, self._build_service(resolved, target))
                for target in targets
            ]
        )
        return SettlementReport(
            repository_name=resolved.repository_name,
            branch_name=resolved.branch_name,
            action=DispatchAction.BOOTSTRAP,
            entries=tuple(entries),
        )

    async def _update(self, event: ChangeEvent) -> SettlementReport:
        resolved = await self._with_commit(event)
        previous = await self._previous_commit(resolved)
        changes = await self._diff.diff(
            resolved.repository_name,
            typ.cast("str", resolved.commit_hash),
            previous,
        )
        targets = select_targets(self._resolver.resolve_all(changes), DedupTracker())
        log_debug(
            logger,
            "Resolved %d changed path(s) in %s@%s to %d service(s)",
            len(changes),
            resolved.repository_name,
            resolved.branch_name,
            len(targets),
        )

        branches: list[str] = []
        if any(target.removes_service for target in targets):
            branches = await self._source.list_branches(resolved.repository_name)

        work: list[tuple[str, cabc.Awaitable[list[SettlementEntry]]]] = []
        for target in targets:
            if target.removes_service:
                task = self._remove_service(resolved, target, branches)
            else:
                task = self._build_service(resolved, target)
            work.append((target.service_name, task))
        entries = await settle_all(work)
        return SettlementReport(
            repository_name=resolved.repository_name,
            branch_name=resolved.branch_name,
            action=DispatchAction.UPDATE,
            entries=tuple(entries),
        )

    async def _cleanup(self, repository_name: str) -> SettlementReport:
        branches = await self._source.list_branches(repository_name)
        outcomes = await self._registries.delete_unused(branches)
        return SettlementReport(
            repository_name=repository_name,
            branch_name=_ALL_BRANCHES,
            action=DispatchAction.CLEANUP,
            entries=tuple(entry_from_deletion(outcome) for outcome in outcomes),
        )

    async def _build_service(
        self, event: ChangeEvent, target: ServiceTarget
    ) -> list[SettlementEntry]:
        """Ensure the service's registry and queue its build."""
        name = self._registries.name_for(target.service_name, event.branch_name)
        ensured = await self._registries.ensure_outcome(name)

        entries: list[SettlementEntry] = []
        if ensured.created:
            entries.append(
                SettlementEntry(
                    service_name=target.service_name,
                    status=SettlementStatus.REGISTRY_CREATED,
                    detail=ensured.registry.uri,
                )
            )
        try:
            build_id = await self._builds.dispatch(event, target, ensured.registry)
        except BuildSubmissionFailed as exc:
            entries.append(failure_entry(target.service_name, exc))
            return entries

        entries.append(
            SettlementEntry(
                service_name=target.service_name,
                status=SettlementStatus.BUILT,
                detail=build_id,
            )
        )
        return entries

    async def _remove_service(
        self,
        event: ChangeEvent,
        target: ServiceTarget,
        branches: cabc.Sequence[str],
    ) -> list[SettlementEntry]:
        """Delete the registry of a service whose marker file was removed."""
        outcomes = await self._registries.delete_matching(
            event.branch_name, target.service_name, active_branches=branches
        )
        entries = [
            entry_from_deletion(outcome)
            for outcome in outcomes
            if outcome.detail != SKIP_BRANCH_MISMATCH
        ]
        if not entries:
            entries.append(
                SettlementEntry(
                    service_name=target.service_name,
                    status=SettlementStatus.SKIPPED,
                    detail="no registry to delete",
                )
            )
        return entries
