"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import datetime as dt
import typing as typ

import pytest

from dockyard.config import DispatchConfig
from dockyard.dispatch.router import DispatchDependencies, EventRouter
from tests.helpers.fakes import FakeBuildClient, FakeRegistryClient, FakeSourceControl

if typ.TYPE_CHECKING:
    import collections.abc as cabc

_FIXED_NOW = dt.datetime(2099, 1, 1, tzinfo=dt.UTC)

_DOCKYARD_ENV = (
    "DOCKYARD_BUILD_PROJECT",
    "DOCKYARD_SERVICES_ROOT",
    "DOCKYARD_REGISTRY_PREFIX",
    "DOCKYARD_MARKER_FILES",
    "DOCKYARD_BUILD_EXTENSIONS",
    "DOCKYARD_PROTECTED_BRANCHES",
    "DOCKYARD_EXTRA_BUILD_PARAMETERS",
    "DOCKYARD_REPOSITORY_NAME",
    "DOCKYARD_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_dockyard_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate every test from ``DOCKYARD_*`` variables set by the shell."""
    for name in _DOCKYARD_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def dispatch_config() -> DispatchConfig:
    """Return the default deployment configuration."""
    return DispatchConfig(build_project="image-builds")


@pytest.fixture
def source() -> FakeSourceControl:
    """Return an empty version-control fake."""
    return FakeSourceControl()


@pytest.fixture
def registry() -> FakeRegistryClient:
    """Return an empty registry fake."""
    return FakeRegistryClient()


@pytest.fixture
def builds() -> FakeBuildClient:
    """Return a build fake with no submissions."""
    return FakeBuildClient()


@pytest.fixture
def fixed_clock() -> cabc.Callable[[], dt.datetime]:
    """Return a clock frozen at a fixed instant."""
    return lambda: _FIXED_NOW


@pytest.fixture
def router(
    source: FakeSourceControl,
    registry: FakeRegistryClient,
    builds: FakeBuildClient,
    dispatch_config: DispatchConfig,
    fixed_clock: cabc.Callable[[], dt.datetime],
) -> EventRouter:
    """Return a router wired to the in-memory fakes."""
    return EventRouter(
        DispatchDependencies(source=source, registry=registry, builds=builds),
        dispatch_config,
        clock=fixed_clock,
    )
