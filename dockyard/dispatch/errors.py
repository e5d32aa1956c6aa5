"""Errors raised at the invocation boundary."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from .settlement import SettlementReport


class DispatchFailed(RuntimeError):  # noqa: N818 - taxonomy name
    """Raised when every service touched by an event failed.

    Raising hands the event back to the trigger's redelivery mechanism; the
    report is kept for diagnostics.
    """

    report: SettlementReport

    def __init__(self, report: SettlementReport) -> None:
        """Initialise with the all-failed settlement report."""
        self.report = report
        count = len(report.failed_services)
        super().__init__(
            f"Dispatch failed for {report.repository_name}@{report.branch_name}: "
            f"all {count} service(s) failed"
        )
