"""Assemble and submit one build job per affected service."""

from __future__ import annotations

import typing as typ

from dockyard.logging import get_logger, log_info, log_warning

from .models import BuildJobSpec

if typ.TYPE_CHECKING:
    from dockyard.events.models import ChangeEvent
    from dockyard.registry.models import RegistryRef
    from dockyard.services.models import ServiceTarget

    from .client import BuildClient

logger = get_logger(__name__)

FIXED_PARAMETERS: tuple[str, ...] = (
    "AWS_DEFAULT_REGION",
    "ECR_REPO",
    "ECR_REPO_URI",
    "AWS_ACCOUNT_ID",
    "APP_DIR",
    "SERVICE_NAME",
    "BRANCH_NAME",
    "COMMIT_ID",
)


def source_location(region: str, repository_name: str) -> str:
    """Return the HTTPS clone URL of a CodeCommit repository."""
    return f"https://git-codecommit.{region}.amazonaws.com/v1/repos/{repository_name}"


class BuildDispatcher:
    """Build job assembly bound to one build project.

    Parameters
    ----------
    client
        Build-execution collaborator.
    project_name
        Build project every job is submitted to.
    extra_parameters
        Deployment-wide ``(name, value)`` pairs appended after the fixed
        parameters. Pairs whose name is a fixed parameter are dropped.

    """

    def __init__(
        self,
        client: BuildClient,
        *,
        project_name: str,
        extra_parameters: typ.Iterable[tuple[str, str]] = (),
    ) -> None:
        """Bind the dispatcher to a build client and project."""
        self._client = client
        self._project_name = project_name
        extras: list[tuple[str, str]] = []
        for name, value in extra_parameters:
            if name in FIXED_PARAMETERS:
                log_warning(
                    logger, "Ignoring extra build parameter %s: name is reserved", name
                )
                continue
            extras.append((name, value))
        self._extras = tuple(extras)

    def build_spec(
        self,
        event: ChangeEvent,
        target: ServiceTarget,
        registry: RegistryRef,
    ) -> BuildJobSpec:
        """Return the job for building ``target`` at the event's commit.

        Raises
        ------
        ValueError
            If the event has no resolved commit.

        """
        if not event.commit_hash:
            msg = f"Event for branch {event.branch_name!r} has no commit to build"
            raise ValueError(msg)

        fixed = (
            ("AWS_DEFAULT_REGION", event.region),
            ("ECR_REPO", registry.name),
            ("ECR_REPO_URI", registry.uri),
            ("AWS_ACCOUNT_ID", event.account_id),
            ("APP_DIR", target.service_directory),
            ("SERVICE_NAME", target.service_name),
            ("BRANCH_NAME", event.branch_name),
            ("COMMIT_ID", event.commit_hash),
        )
        return BuildJobSpec(
            project_name=self._project_name,
            source_version=event.commit_hash,
            source_location=source_location(event.region, event.repository_name),
            service_name=target.service_name,
            parameters=fixed + self._extras,
        )

    async def dispatch(
        self,
        event: ChangeEvent,
        target: ServiceTarget,
        registry: RegistryRef,
    ) -> str:
        """Submit the build for ``target`` and return its build id.

        Raises
        ------
        BuildSubmissionFailed
            If the build service rejects the submission.

        """
        spec = self.build_spec(event, target, registry)
        build_id = await self._client.submit(spec)
        log_info(
            logger,
            "Queued build %s for service=%s branch=%s commit=%s",
            build_id,
            target.service_name,
            event.branch_name,
            spec.source_version,
        )
        return build_id
