"""Deployment configuration for the dispatch pipeline.

Every option is static for a deployment and read from the environment once
per invocation. Only the build project is mandatory.

Usage
-----
>>> config = DispatchConfig(build_project="image-builds")
>>> config.services_root
'backend/services'
>>> config.registry_prefix
'customer-portal'

In a deployment the same values come from the environment through
:meth:`DispatchConfig.from_env`.

"""

from __future__ import annotations

import dataclasses as dc
import os
import re

import msgspec

DEFAULT_SERVICES_ROOT = "backend/services"
DEFAULT_REGISTRY_PREFIX = "customer-portal"
DEFAULT_MARKER_FILES: tuple[str, ...] = ("Dockerfile", "DockerFile")
DEFAULT_PROTECTED_BRANCHES = "main|master|dev|develop|prod|production"


class ConfigError(ValueError):
    """Raised when the deployment configuration is missing or invalid."""

    @classmethod
    def missing(cls, env_var: str) -> ConfigError:
        """Return an error for a required variable that is unset."""
        return cls(f"{env_var} is required")

    @classmethod
    def invalid(cls, env_var: str, reason: str) -> ConfigError:
        """Return an error for a variable whose value cannot be used."""
        return cls(f"{env_var} is invalid: {reason}")


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _normalise_extension(value: str) -> str:
    return value if value.startswith(".") else f".{value}"


@dc.dataclass(frozen=True, slots=True)
class DispatchConfig:
    """Static options for one deployment.

    Attributes
    ----------
    build_project
        CodeBuild project that receives every build job.
    services_root
        Repository path whose immediate sub-folders are services.
    registry_prefix
        Leading segment of every registry name owned by this deployment.
    marker_files
        Base names that mark a buildable service (case-sensitive).
    build_extensions
        File extensions, with leading dot, whose changes also trigger a build.
    protected_branch_pattern
        Regular expression; branches that fully match never lose registries.
    extra_build_parameters
        Additional ``(name, value)`` build parameters appended to every job.
    repository_name
        Repository scanned by the scheduled unused-branch cleanup.

    """

    build_project: str
    services_root: str = DEFAULT_SERVICES_ROOT
    registry_prefix: str = DEFAULT_REGISTRY_PREFIX
    marker_files: tuple[str, ...] = DEFAULT_MARKER_FILES
    build_extensions: tuple[str, ...] = ()
    protected_branch_pattern: str = DEFAULT_PROTECTED_BRANCHES
    extra_build_parameters: tuple[tuple[str, str], ...] = ()
    repository_name: str | None = None

    def __post_init__(self) -> None:
        """Reject values that would break registry naming or matching."""
        if not self.build_project.strip():
            raise ConfigError.missing("DOCKYARD_BUILD_PROJECT")
        if not self.registry_prefix.strip():
            raise ConfigError.invalid(
                "DOCKYARD_REGISTRY_PREFIX", "prefix must be non-empty"
            )
        try:
            re.compile(self.protected_branch_pattern)
        except re.error as exc:
            raise ConfigError.invalid("DOCKYARD_PROTECTED_BRANCHES", str(exc)) from exc

    @property
    def protected_branches(self) -> re.Pattern[str]:
        """Return the compiled protected-branch expression."""
        return re.compile(self.protected_branch_pattern)

    @staticmethod
    def _parse_extra_parameters(raw: str) -> tuple[tuple[str, str], ...]:
        """Decode a JSON object of build parameters into ordered pairs."""
        if not raw.strip():
            return ()
        try:
            decoded = msgspec.json.decode(raw, type=dict[str, str | int | bool])
        except msgspec.DecodeError as exc:
            raise ConfigError.invalid(
                "DOCKYARD_EXTRA_BUILD_PARAMETERS", str(exc)
            ) from exc
        return tuple((name, _stringify(value)) for name, value in decoded.items())

    @classmethod
    def from_env(cls) -> DispatchConfig:
        """Build the configuration from ``DOCKYARD_*`` environment variables.

        Raises
        ------
        ConfigError
            If the build project is unset, the protected-branch pattern is not
            a valid regular expression, or the extra parameters are not a JSON
            object of scalar values.

        """
        build_project = os.environ.get("DOCKYARD_BUILD_PROJECT", "").strip()
        if not build_project:
            raise ConfigError.missing("DOCKYARD_BUILD_PROJECT")

        services_root = (
            os.environ.get("DOCKYARD_SERVICES_ROOT", "").strip().strip("/")
            or DEFAULT_SERVICES_ROOT
        )
        registry_prefix = (
            os.environ.get("DOCKYARD_REGISTRY_PREFIX", "").strip()
            or DEFAULT_REGISTRY_PREFIX
        )
        marker_files = (
            _split_csv(os.environ.get("DOCKYARD_MARKER_FILES", ""))
            or DEFAULT_MARKER_FILES
        )
        build_extensions = tuple(
            _normalise_extension(ext)
            for ext in _split_csv(os.environ.get("DOCKYARD_BUILD_EXTENSIONS", ""))
        )
        protected = (
            os.environ.get("DOCKYARD_PROTECTED_BRANCHES", "").strip()
            or DEFAULT_PROTECTED_BRANCHES
        )
        extras = cls._parse_extra_parameters(
            os.environ.get("DOCKYARD_EXTRA_BUILD_PARAMETERS", "")
        )
        repository_name = os.environ.get("DOCKYARD_REPOSITORY_NAME", "").strip()

        return cls(
            build_project=build_project,
            services_root=services_root,
            registry_prefix=registry_prefix,
            marker_files=marker_files,
            build_extensions=build_extensions,
            protected_branch_pattern=protected,
            extra_build_parameters=extras,
            repository_name=repository_name or None,
        )


def _stringify(value: str | int | bool) -> str:  # noqa: FBT001
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


__all__ = ["ConfigError", "DispatchConfig"]
