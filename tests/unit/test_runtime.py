"""Unit tests for the function entry points."""

from __future__ import annotations

import typing as typ

import pytest

from dockyard import runtime
from dockyard.config import ConfigError
from dockyard.dispatch import DispatchDependencies, DispatchFailed
from dockyard.events import MalformedEvent
from tests.helpers.event_builders import TriggerSpec
from tests.helpers.fakes import (
    FakeBuildClient,
    FakeRegistryClient,
    FakeSourceControl,
    RecordingLogger,
)


class _Wiring(typ.NamedTuple):
    source: FakeSourceControl
    registry: FakeRegistryClient
    builds: FakeBuildClient
    regions: list[str | None]


@pytest.fixture
def wiring(monkeypatch: pytest.MonkeyPatch) -> _Wiring:
    """Route the entry points to in-memory fakes."""
    wired = _Wiring(
        FakeSourceControl(), FakeRegistryClient(), FakeBuildClient(), []
    )

    def _fake_dependencies(region: str | None = None) -> DispatchDependencies:
        wired.regions.append(region)
        return DispatchDependencies(
            source=wired.source, registry=wired.registry, builds=wired.builds
        )

    monkeypatch.setattr(runtime, "build_dependencies", _fake_dependencies)
    monkeypatch.setattr("dockyard.logging.basicConfig", lambda **_: None)
    monkeypatch.setenv("DOCKYARD_BUILD_PROJECT", "image-builds")
    return wired


def test_handler_returns_settlement_payload(wiring: _Wiring) -> None:
    """A created branch is bootstrapped and the report returned as builtins."""
    wiring.source.folders = ["api", "web"]

    payload = runtime.handler(TriggerSpec(created=True).build())

    assert payload["action"] == "bootstrap"
    assert payload["outcome"] == "succeeded"
    assert payload["repository_name"] == "portal"
    assert wiring.regions == ["eu-west-1"]
    assert wiring.builds.built_services() == ["api", "web"]


def test_handler_rejects_malformed_payload(wiring: _Wiring) -> None:
    """Malformed payloads are raised before any collaborator is built."""
    with pytest.raises(MalformedEvent):
        runtime.handler({"Records": []})

    assert wiring.regions == []


def test_handler_logs_rejected_payload_with_exception(
    wiring: _Wiring, monkeypatch: pytest.MonkeyPatch
) -> None:
    """The rejection is logged at ERROR with the parse failure attached."""
    del wiring
    recorder = RecordingLogger()
    monkeypatch.setattr(runtime, "logger", recorder)

    with pytest.raises(MalformedEvent) as excinfo:
        runtime.handler({"Records": []})

    [record] = recorder.at("ERROR")
    assert record.message == f"Rejected trigger payload: {excinfo.value}"
    assert record.exc_info is excinfo.value


def test_handler_requires_configuration(
    wiring: _Wiring, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Missing configuration fails the invocation."""
    del wiring
    monkeypatch.delenv("DOCKYARD_BUILD_PROJECT")

    with pytest.raises(ConfigError):
        runtime.handler(TriggerSpec().build())


def test_handler_raises_when_every_service_fails(wiring: _Wiring) -> None:
    """An all-failed report is raised so the trigger can redeliver."""
    wiring.source.folders = ["api"]
    wiring.builds.fail_services.add("api")

    with pytest.raises(DispatchFailed) as excinfo:
        runtime.handler(TriggerSpec(created=True).build())

    assert excinfo.value.report.failed_services == ("api",)


def test_handler_tolerates_partial_failure(wiring: _Wiring) -> None:
    """Partial failures are returned, not raised."""
    wiring.source.folders = ["api", "web"]
    wiring.builds.fail_services.add("api")

    payload = runtime.handler(TriggerSpec(created=True).build())

    assert payload["outcome"] == "partial_failure"


def test_handler_with_noop_update(wiring: _Wiring) -> None:
    """A push touching no service settles as a no-op."""
    payload = runtime.handler(TriggerSpec().build())

    assert payload["outcome"] == "noop"
    assert payload["entries"] == []


def test_cleanup_handler_requires_repository(wiring: _Wiring) -> None:
    """The sweep needs to know which repository to scan."""
    del wiring

    with pytest.raises(ConfigError, match="DOCKYARD_REPOSITORY_NAME"):
        runtime.cleanup_handler()


def test_cleanup_handler_sweeps_repository(
    wiring: _Wiring, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Registries of vanished branches are deleted by the sweep."""
    monkeypatch.setenv("DOCKYARD_REPOSITORY_NAME", "portal")
    wiring.source.branches = ["main"]
    wiring.registry.add("customer-portal-api-main", "customer-portal-api-old")

    payload = runtime.cleanup_handler({}, None)

    assert payload["action"] == "cleanup"
    assert set(wiring.registry.registries) == {"customer-portal-api-main"}
    assert wiring.regions == [None]


def test_invalid_log_level_falls_back(
    wiring: _Wiring, monkeypatch: pytest.MonkeyPatch
) -> None:
    """An unknown log level does not fail the invocation."""
    monkeypatch.setenv("DOCKYARD_LOG_LEVEL", "chatty")

    payload = runtime.handler(TriggerSpec().build())

    assert payload["outcome"] == "noop"
    assert wiring.regions == ["eu-west-1"]
