"""Build job specifications."""

from __future__ import annotations

import dataclasses

SOURCE_TYPE_CODECOMMIT = "CODECOMMIT"


@dataclasses.dataclass(frozen=True, slots=True)
class BuildJobSpec:
    """A fully assembled build job, immutable once built.

    ``parameters`` keeps submission order; the build service receives them as
    plain-text environment variables.
    """

    project_name: str
    source_version: str
    source_location: str
    service_name: str
    parameters: tuple[tuple[str, str], ...]
    source_type: str = SOURCE_TYPE_CODECOMMIT

    def parameter(self, name: str) -> str | None:
        """Return the value of parameter ``name``, if present."""
        for key, value in self.parameters:
            if key == name:
                return value
        return None
