"""Container registry lifecycle for per-service, per-branch image stores.

Usage
-----
Ensure the registry for a service build exists::

    from dockyard.registry import EcrRegistryClient, RegistryLifecycleManager

    manager = RegistryLifecycleManager(
        EcrRegistryClient(boto3.client("ecr")),
        prefix="customer-portal",
        protected_branches=re.compile("main|dev"),
    )
    registry = await manager.ensure(manager.name_for("api", "feature-123"))

Tear down every registry of a deleted branch::

    outcomes = await manager.delete_matching("feature-123")

"""

from __future__ import annotations

from .client import EcrRegistryClient, RegistryClient
from .errors import (
    RegistryAlreadyExists,
    RegistryCreateFailed,
    RegistryDeleteFailed,
    RegistryError,
    RegistryLookupFailed,
)
from .lifecycle import RegistryLifecycleManager
from .models import DeletionOutcome, DeletionStatus, EnsureOutcome, RegistryRef
from .naming import registry_name

__all__ = [
    "DeletionOutcome",
    "DeletionStatus",
    "EcrRegistryClient",
    "EnsureOutcome",
    "RegistryAlreadyExists",
    "RegistryClient",
    "RegistryCreateFailed",
    "RegistryDeleteFailed",
    "RegistryError",
    "RegistryLifecycleManager",
    "RegistryLookupFailed",
    "RegistryRef",
    "registry_name",
]
