"""Build-execution collaborator bindings."""

from __future__ import annotations

import asyncio
import typing as typ

from botocore.exceptions import BotoCoreError, ClientError

from .errors import BuildSubmissionFailed

if typ.TYPE_CHECKING:
    from botocore.client import BaseClient

    from .models import BuildJobSpec


class BuildClient(typ.Protocol):
    """Interface for submitting build jobs."""

    async def submit(self, spec: BuildJobSpec) -> str:
        """Queue ``spec`` and return the build identifier."""
        ...


def _error_code(exc: BaseException) -> str | None:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


class CodeBuildClient:
    """AWS CodeBuild implementation of :class:`BuildClient`."""

    def __init__(self, client: BaseClient) -> None:
        """Wrap an existing boto3 CodeBuild client."""
        self._client = client

    async def submit(self, spec: BuildJobSpec) -> str:
        """Start a build with the job's source and environment overrides."""
        try:
            response = await asyncio.to_thread(
                self._client.start_build,
                projectName=spec.project_name,
                sourceVersion=spec.source_version,
                sourceTypeOverride=spec.source_type,
                sourceLocationOverride=spec.source_location,
                environmentVariablesOverride=[
                    {"name": name, "value": value, "type": "PLAINTEXT"}
                    for name, value in spec.parameters
                ],
            )
        except (BotoCoreError, ClientError) as exc:
            raise BuildSubmissionFailed.for_project(
                spec.project_name, spec.service_name, code=_error_code(exc)
            ) from exc

        build_id = response.get("build", {}).get("id")
        if not build_id:
            raise BuildSubmissionFailed.missing_id(spec.project_name)
        return build_id
