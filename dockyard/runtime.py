"""Function entry points for push events and scheduled cleanup.

``handler`` is the target of the repository trigger: it parses the payload,
dispatches the implied actions and returns the settlement report.
``cleanup_handler`` runs on a schedule and removes registries of branches that
no longer exist.

Configuration is driven by environment variables (see
:class:`dockyard.config.DispatchConfig`) plus:

- ``DOCKYARD_LOG_LEVEL``: Log level (default ``INFO``)

Clients are built per invocation from a boto3 session bound to the event's
region, and handed to the router explicitly.
"""

from __future__ import annotations

import asyncio
import os
import typing as typ

import boto3

from dockyard.build.client import CodeBuildClient
from dockyard.config import ConfigError, DispatchConfig
from dockyard.dispatch.errors import DispatchFailed
from dockyard.dispatch.router import DispatchDependencies, EventRouter
from dockyard.dispatch.settlement import ReportOutcome
from dockyard.events.errors import MalformedEvent
from dockyard.events.parser import parse_change_event
from dockyard.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)
from dockyard.registry.client import EcrRegistryClient
from dockyard.source.client import CodeCommitSourceClient

if typ.TYPE_CHECKING:
    from dockyard.dispatch.settlement import SettlementReport

__all__ = ["build_dependencies", "cleanup_handler", "handler"]

logger = get_logger(__name__)


def _configure_logging() -> None:
    raw_level = os.environ.get("DOCKYARD_LOG_LEVEL", "INFO")
    normalized, invalid = configure_logging(raw_level, force=True)
    if invalid:
        log_warning(
            logger,
            "Invalid DOCKYARD_LOG_LEVEL %r, falling back to %s",
            raw_level,
            normalized,
        )


def build_dependencies(
    region: str | None = None,
    *,
    session: boto3.session.Session | None = None,
) -> DispatchDependencies:
    """Build the collaborator clients for one region.

    Parameters
    ----------
    region
        Region of the triggering repository; the session default when omitted.
    session
        boto3 session to create clients from; a new one when omitted.

    Returns
    -------
    DispatchDependencies
        CodeCommit, ECR and CodeBuild bindings.

    """
    boto_session = session or boto3.session.Session(region_name=region)
    return DispatchDependencies(
        source=CodeCommitSourceClient(boto_session.client("codecommit")),
        registry=EcrRegistryClient(boto_session.client("ecr")),
        builds=CodeBuildClient(boto_session.client("codebuild")),
    )


def _settled(report: SettlementReport) -> dict[str, typ.Any]:
    """Return the report payload, raising when every service failed."""
    if report.outcome is ReportOutcome.FAILED:
        raise DispatchFailed(report)
    return report.to_builtins()


def handler(event: dict[str, typ.Any], context: object = None) -> dict[str, typ.Any]:
    """Handle one repository trigger invocation.

    Returns
    -------
    dict[str, Any]
        The settlement report as JSON-compatible builtins.

    Raises
    ------
    MalformedEvent
        If the payload lacks the region, source ARN or branch reference.
    ConfigError
        If the deployment configuration is invalid.
    DispatchFailed
        If every service touched by the event failed.

    """
    del context
    _configure_logging()
    config = DispatchConfig.from_env()
    try:
        change_event = parse_change_event(event)
    except MalformedEvent as exc:
        log_error(logger, "Rejected trigger payload: %s", exc, exc_info=exc)
        raise

    log_info(
        logger,
        "Received push to %s@%s commit=%s created=%s deleted=%s",
        change_event.repository_name,
        change_event.branch_name,
        change_event.commit_hash,
        change_event.is_branch_created,
        change_event.is_branch_deleted,
    )
    router = EventRouter(build_dependencies(change_event.region), config)
    report = asyncio.run(router.handle(change_event))
    return _settled(report)


def cleanup_handler(
    event: dict[str, typ.Any] | None = None, context: object = None
) -> dict[str, typ.Any]:
    """Delete registries of branches missing from the configured repository.

    Raises
    ------
    ConfigError
        If ``DOCKYARD_REPOSITORY_NAME`` is unset or configuration is invalid.
    DispatchFailed
        If every registry considered for deletion failed to delete.

    """
    del event, context
    _configure_logging()
    config = DispatchConfig.from_env()
    if config.repository_name is None:
        raise ConfigError.missing("DOCKYARD_REPOSITORY_NAME")

    router = EventRouter(build_dependencies(), config)
    report = asyncio.run(router.cleanup(config.repository_name))
    return _settled(report)
