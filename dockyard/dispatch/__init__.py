"""Event routing, settlement and observability for dispatch runs.

Usage
-----
Handle one parsed event with explicitly constructed clients::

    from dockyard.dispatch import DispatchDependencies, EventRouter

    router = EventRouter(
        DispatchDependencies(source=source, registry=registry, builds=builds),
        DispatchConfig.from_env(),
    )
    report = await router.handle(event)
    for entry in report.entries:
        print(entry.service_name, entry.status, entry.detail)

"""

from __future__ import annotations

from .errors import DispatchFailed
from .observability import (
    DispatchEventLogger,
    DispatchEventType,
    DispatchRunContext,
    ErrorCategory,
    categorize_error,
)
from .router import DispatchDependencies, EventRouter
from .settlement import (
    DispatchAction,
    ReportOutcome,
    SettlementEntry,
    SettlementReport,
    SettlementStatus,
    settle_all,
)

__all__ = [
    "DispatchAction",
    "DispatchDependencies",
    "DispatchEventLogger",
    "DispatchEventType",
    "DispatchFailed",
    "DispatchRunContext",
    "ErrorCategory",
    "EventRouter",
    "ReportOutcome",
    "SettlementEntry",
    "SettlementReport",
    "SettlementStatus",
    "categorize_error",
    "settle_all",
]
