"""At-most-once selection of services within one dispatch run."""

from __future__ import annotations

import typing as typ

from dockyard.source.models import ChangeKind

if typ.TYPE_CHECKING:
    from .models import ServiceTarget


class DedupTracker:
    """Remember which services have already been scheduled in this run.

    A tracker holds no state beyond its own lifetime; create a new one for
    every event.
    """

    def __init__(self) -> None:
        """Start with no services seen."""
        self._seen: set[str] = set()

    def should_dispatch(self, service_name: str) -> bool:
        """Return True the first time ``service_name`` is offered, else False."""
        if service_name in self._seen:
            return False
        self._seen.add(service_name)
        return True

    def __contains__(self, service_name: object) -> bool:
        """Return True when ``service_name`` has already been scheduled."""
        return service_name in self._seen

    def __len__(self) -> int:
        """Return the number of distinct services scheduled."""
        return len(self._seen)


def _precedence(target: ServiceTarget) -> tuple[int, str]:
    """Rank targets so the surviving one does not depend on diff order."""
    if target.is_marker and target.triggering_change_kind is not ChangeKind.DELETED:
        rank = 0
    elif target.removes_service:
        rank = 1
    else:
        rank = 2
    return (rank, target.triggering_path or "")


def select_targets(
    targets: typ.Iterable[ServiceTarget],
    tracker: DedupTracker | None = None,
) -> list[ServiceTarget]:
    """Collapse ``targets`` to one per service.

    A changed marker file wins over a deleted one, and a deleted marker wins
    over any other change, so a renamed Dockerfile still builds while a
    removed one tears the service down even when sibling files changed too.

    Parameters
    ----------
    targets
        Resolved targets in any order.
    tracker
        Tracker for the current run; a fresh one is used when omitted.

    Returns
    -------
    list[ServiceTarget]
        Exactly one target per distinct service name, sorted by name.

    """
    run_tracker = tracker if tracker is not None else DedupTracker()
    ranked = sorted(targets, key=lambda t: (t.service_name, *_precedence(t)))
    return [t for t in ranked if run_tracker.should_dispatch(t.service_name)]
