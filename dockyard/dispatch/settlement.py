"""Settlement reports: the per-invocation record of every attempted action.

Per-service work runs concurrently and is joined with a wait-for-all
combinator, so an exception in one work item becomes a ``FAILED`` entry for
that service instead of cancelling its siblings.
"""

from __future__ import annotations

import asyncio
import dataclasses
import enum
import typing as typ

import msgspec

from dockyard.registry.models import DeletionOutcome, DeletionStatus

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class SettlementStatus(enum.StrEnum):
    """Outcome of a single action in a settlement report."""

    BUILT = "built"
    REGISTRY_CREATED = "registry_created"
    DELETED = "deleted"
    SKIPPED = "skipped"
    FAILED = "failed"


class DispatchAction(enum.StrEnum):
    """What an invocation set out to do."""

    BOOTSTRAP = "bootstrap"
    DELETE = "delete"
    UPDATE = "update"
    CLEANUP = "cleanup"


class ReportOutcome(enum.StrEnum):
    """Overall verdict of a settlement report."""

    SUCCEEDED = "succeeded"
    PARTIAL_FAILURE = "partial_failure"
    FAILED = "failed"
    NOOP = "noop"


@dataclasses.dataclass(frozen=True, slots=True)
class SettlementEntry:
    """One attempted action and how it ended."""

    service_name: str
    status: SettlementStatus
    detail: str = ""


_DELETION_STATUS: dict[DeletionStatus, SettlementStatus] = {
    DeletionStatus.DELETED: SettlementStatus.DELETED,
    DeletionStatus.SKIPPED: SettlementStatus.SKIPPED,
    DeletionStatus.FAILED: SettlementStatus.FAILED,
}


def entry_from_deletion(outcome: DeletionOutcome) -> SettlementEntry:
    """Convert a registry deletion outcome into a settlement entry."""
    detail = outcome.registry_name
    if outcome.detail:
        detail = f"{outcome.registry_name}: {outcome.detail}"
    return SettlementEntry(
        service_name=outcome.service_name,
        status=_DELETION_STATUS[outcome.status],
        detail=detail,
    )


def failure_entry(service_name: str, exc: BaseException) -> SettlementEntry:
    """Return a ``FAILED`` entry describing ``exc``."""
    return SettlementEntry(
        service_name=service_name,
        status=SettlementStatus.FAILED,
        detail=f"{type(exc).__name__}: {exc}",
    )


@dataclasses.dataclass(frozen=True, slots=True)
class SettlementReport:
    """Everything one invocation attempted, with per-action outcomes."""

    repository_name: str
    branch_name: str
    action: DispatchAction
    entries: tuple[SettlementEntry, ...] = ()

    @property
    def services(self) -> tuple[str, ...]:
        """Return the distinct service names in entry order."""
        return tuple(dict.fromkeys(entry.service_name for entry in self.entries))

    @property
    def failed_services(self) -> tuple[str, ...]:
        """Return services with at least one failed action."""
        return tuple(
            dict.fromkeys(
                entry.service_name
                for entry in self.entries
                if entry.status is SettlementStatus.FAILED
            )
        )

    def with_status(self, status: SettlementStatus) -> tuple[SettlementEntry, ...]:
        """Return the entries that ended with ``status``."""
        return tuple(entry for entry in self.entries if entry.status is status)

    @property
    def outcome(self) -> ReportOutcome:
        """Return the overall verdict.

        The report fails only when every service it touched has a failed
        action; any mix of failures and successes is a partial failure.
        """
        if not self.entries:
            return ReportOutcome.NOOP
        failed = self.failed_services
        if not failed:
            return ReportOutcome.SUCCEEDED
        if len(failed) == len(self.services):
            return ReportOutcome.FAILED
        return ReportOutcome.PARTIAL_FAILURE

    def to_builtins(self) -> dict[str, typ.Any]:
        """Return a JSON-compatible representation for the function response."""
        payload = msgspec.to_builtins(self)
        payload["outcome"] = str(self.outcome)
        return payload


async def settle_all(
    work: cabc.Sequence[tuple[str, cabc.Awaitable[list[SettlementEntry]]]],
) -> list[SettlementEntry]:
    """Run every work item concurrently and collect every outcome.

    Parameters
    ----------
    work
        ``(service_name, awaitable)`` pairs. Each awaitable returns the
        entries for its service.

    Returns
    -------
    list[SettlementEntry]
        Entries in work order; a work item that raised contributes a single
        ``FAILED`` entry for its service.

    Raises
    ------
    BaseException
        Re-raised for non-``Exception`` failures such as cancellation.

    """
    gathered = await asyncio.gather(
        *(awaitable for _, awaitable in work), return_exceptions=True
    )
    entries: list[SettlementEntry] = []
    for (service_name, _), result in zip(work, gathered, strict=True):
        if isinstance(result, Exception):
            entries.append(failure_entry(service_name, result))
        elif isinstance(result, BaseException):
            raise result
        else:
            entries.extend(result)
    return entries
