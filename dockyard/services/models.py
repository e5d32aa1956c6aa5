"""Service targets derived from changed paths."""

from __future__ import annotations

import dataclasses

from dockyard.source.models import ChangeKind


@dataclasses.dataclass(frozen=True, slots=True)
class ServiceTarget:
    """A logical service affected by a change.

    Attributes
    ----------
    service_name
        Folder name of the service directly under the services root.
    service_directory
        Repository path of the service folder, e.g. ``backend/services/api``.
    triggering_change_kind
        Change kind of the path that selected this service.
    triggering_path
        Repository path that selected this service, if any. Bootstrap targets
        come from a folder listing and carry ``None``.
    is_marker
        Whether ``triggering_path`` is a marker file such as a Dockerfile.

    """

    service_name: str
    service_directory: str
    triggering_change_kind: ChangeKind = ChangeKind.ADDED
    triggering_path: str | None = None
    is_marker: bool = False

    @property
    def removes_service(self) -> bool:
        """Return True when the change deleted the service's marker file."""
        return self.is_marker and self.triggering_change_kind is ChangeKind.DELETED
