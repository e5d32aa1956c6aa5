"""Structured log events and error categories for dispatch runs.

Every event is emitted as ``[event.type] key=value ...`` through femtologging
so log queries can filter on the bracketed event type.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from botocore.exceptions import BotoCoreError, ClientError, EndpointConnectionError

from dockyard.build.errors import BuildSubmissionFailed
from dockyard.config import ConfigError
from dockyard.events.errors import MalformedEvent
from dockyard.logging import get_logger, log_error, log_info, log_warning
from dockyard.registry.errors import RegistryError
from dockyard.source.errors import SourceUnavailable

if typ.TYPE_CHECKING:
    import datetime as dt

    from .settlement import SettlementEntry, SettlementReport

logger = get_logger(__name__)

_HTTP_SERVER_ERROR_THRESHOLD = 500

_TRANSIENT_CODES = frozenset(
    {
        "ThrottlingException",
        "Throttling",
        "TooManyRequestsException",
        "RequestLimitExceeded",
        "ServiceUnavailableException",
        "InternalServerException",
        "ServerException",
        "EncryptionKeyUnavailableException",
    }
)


class DispatchEventType(enum.StrEnum):
    """Structured log event types for dispatch observability."""

    RUN_STARTED = "dispatch.run.started"
    RUN_COMPLETED = "dispatch.run.completed"
    RUN_FAILED = "dispatch.run.failed"
    ACTION_FAILED = "dispatch.action.failed"


class ErrorCategory(enum.StrEnum):
    """Categories used to route dispatch failure alerts."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    CONFIGURATION = "configuration"
    MALFORMED_EVENT = "malformed_event"
    SOURCE_UNAVAILABLE = "source_unavailable"
    UNKNOWN = "unknown"


@dataclasses.dataclass(frozen=True, slots=True)
class DispatchRunContext:
    """Event context attached to every log line of one invocation."""

    repository_name: str
    branch_name: str
    action: str
    commit_hash: str | None
    started_at: dt.datetime


def _is_transient(exc: BaseException) -> bool:
    code = getattr(exc, "code", None)
    if isinstance(code, str) and code in _TRANSIENT_CODES:
        return True
    cause = exc.__cause__
    if isinstance(cause, EndpointConnectionError):
        return True
    if isinstance(cause, ClientError):
        status = cause.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if isinstance(status, int) and status >= _HTTP_SERVER_ERROR_THRESHOLD:
            return True
        return cause.response.get("Error", {}).get("Code") in _TRANSIENT_CODES
    return False


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (MalformedEvent, ErrorCategory.MALFORMED_EVENT),
    (ConfigError, ErrorCategory.CONFIGURATION),
    (SourceUnavailable, ErrorCategory.SOURCE_UNAVAILABLE),
    (RegistryError, ErrorCategory.CLIENT_ERROR),
    (BuildSubmissionFailed, ErrorCategory.CLIENT_ERROR),
    (EndpointConnectionError, ErrorCategory.TRANSIENT),
    (BotoCoreError, ErrorCategory.CLIENT_ERROR),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an exception for alerting.

    Throttling, unavailable services and 5xx responses are transient whichever
    collaborator raised them; the rest map by exception type.
    """
    if _is_transient(exc):
        return ErrorCategory.TRANSIENT
    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category
    return ErrorCategory.UNKNOWN


class DispatchEventLogger:
    """Emit structured dispatch events via femtologging."""

    def log_run_started(self, context: DispatchRunContext) -> None:
        """Log the start of an invocation."""
        log_info(
            logger,
            "[%s] repository=%s branch=%s action=%s commit=%s started_at=%s",
            DispatchEventType.RUN_STARTED,
            context.repository_name,
            context.branch_name,
            context.action,
            context.commit_hash,
            context.started_at.isoformat(),
        )

    def log_run_completed(
        self,
        context: DispatchRunContext,
        report: SettlementReport,
        duration: dt.timedelta,
    ) -> None:
        """Log a settled invocation with its outcome counts."""
        template = (
            "[%s] repository=%s branch=%s action=%s duration_seconds=%.3f "
            "outcome=%s services=%d failed_services=%d entries=%d"
        )
        args = (
            DispatchEventType.RUN_COMPLETED,
            context.repository_name,
            context.branch_name,
            context.action,
            duration.total_seconds(),
            report.outcome,
            len(report.services),
            len(report.failed_services),
            len(report.entries),
        )
        if report.failed_services:
            log_warning(logger, template, *args)
        else:
            log_info(logger, template, *args)

    def log_run_failed(
        self,
        context: DispatchRunContext,
        error: BaseException,
        duration: dt.timedelta,
    ) -> None:
        """Log an invocation aborted by a top-level failure."""
        log_error(
            logger,
            "[%s] repository=%s branch=%s action=%s commit=%s "
            "duration_seconds=%.3f error_type=%s error_category=%s error_message=%s",
            DispatchEventType.RUN_FAILED,
            context.repository_name,
            context.branch_name,
            context.action,
            context.commit_hash,
            duration.total_seconds(),
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )

    def log_action_failed(
        self,
        context: DispatchRunContext,
        entry: SettlementEntry,
    ) -> None:
        """Log one failed per-service action."""
        log_warning(
            logger,
            "[%s] repository=%s branch=%s service=%s detail=%s",
            DispatchEventType.ACTION_FAILED,
            context.repository_name,
            context.branch_name,
            entry.service_name,
            entry.detail,
        )
