"""Map changed paths onto the services that own them."""

from __future__ import annotations

import typing as typ
from pathlib import PurePosixPath

from .models import ServiceTarget

if typ.TYPE_CHECKING:
    from dockyard.source.models import FileChange


class ServiceResolver:
    """Resolve file changes to services under a fixed services root.

    A path ``<root>/<service>/<...>/<file>`` belongs to ``<service>`` when the
    file's base name is a marker file or its extension is allow-listed.
    Anything else, including paths outside the root or too shallow to name a
    service and a file, resolves to ``None``.

    Parameters
    ----------
    services_root
        Repository path whose immediate sub-folders are services.
    marker_files
        Exact, case-sensitive base names that mark a buildable service.
    build_extensions
        Extensions, with leading dot, whose changes also count.

    """

    def __init__(
        self,
        services_root: str,
        marker_files: typ.Iterable[str],
        build_extensions: typ.Iterable[str] = (),
    ) -> None:
        """Store the path convention and the trigger allow-lists."""
        root = PurePosixPath(services_root.strip("/"))
        self._root_parts = tuple(part for part in root.parts if part != ".")
        self._marker_files = frozenset(marker_files)
        self._extensions = frozenset(build_extensions)

    def is_marker(self, file_name: str) -> bool:
        """Return True when ``file_name`` is a marker file."""
        return file_name in self._marker_files

    def triggers_build(self, file_name: str) -> bool:
        """Return True when changes to ``file_name`` can trigger a build."""
        if self.is_marker(file_name):
            return True
        suffix = PurePosixPath(file_name).suffix
        return bool(suffix) and suffix in self._extensions

    def service_directory(self, service_name: str) -> str:
        """Return the repository path of ``service_name``."""
        return str(PurePosixPath(*self._root_parts, service_name))

    def resolve(self, change: FileChange) -> ServiceTarget | None:
        """Return the service owning ``change``, or ``None`` if it is irrelevant."""
        parts = PurePosixPath(change.path).parts
        depth = len(self._root_parts)
        # root segments, the service folder, and at least the file itself
        if len(parts) < depth + 2 or parts[:depth] != self._root_parts:
            return None

        file_name = parts[-1]
        if not self.triggers_build(file_name):
            return None

        service_name = parts[depth]
        return ServiceTarget(
            service_name=service_name,
            service_directory=self.service_directory(service_name),
            triggering_change_kind=change.change_kind,
            triggering_path=change.path,
            is_marker=self.is_marker(file_name),
        )

    def resolve_all(self, changes: typ.Iterable[FileChange]) -> list[ServiceTarget]:
        """Resolve every change, dropping the ones that map to no service."""
        return [
            target
            for target in (self.resolve(change) for change in changes)
            if target is not None
        ]
