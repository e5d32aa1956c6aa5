"""Registry references and lifecycle outcomes."""

from __future__ import annotations

import dataclasses
import enum


@dataclasses.dataclass(frozen=True, slots=True)
class RegistryRef:
    """A container registry as reported by the registry service."""

    name: str
    uri: str
    arn: str


@dataclasses.dataclass(frozen=True, slots=True)
class EnsureOutcome:
    """Result of ensuring a registry exists."""

    registry: RegistryRef
    created: bool


SKIP_BRANCH_MISMATCH = "branch mismatch"
SKIP_PROTECTED_BRANCH = "protected branch"
SKIP_AMBIGUOUS_BRANCH = "ambiguous branch"


class DeletionStatus(enum.StrEnum):
    """Outcome of one registry considered for deletion."""

    DELETED = "deleted"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclasses.dataclass(frozen=True, slots=True)
class DeletionOutcome:
    """Settlement of one registry considered by a deletion sweep.

    ``service_name`` is the service segment of the registry name when the
    branch is known, otherwise everything after the prefix.
    """

    registry_name: str
    service_name: str
    status: DeletionStatus
    detail: str = ""
