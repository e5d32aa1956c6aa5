"""Deterministic registry names.

A registry is named ``<prefix>-<service>-<branch>``. The same helpers are used
when creating, looking up and deleting registries, so the name is the only key
linking a build to its registry.
"""

from __future__ import annotations

import re
import typing as typ

_INVALID_CHARS = re.compile(r"[^a-z0-9._-]+")
_EDGE_CHARS = "-._"


def name_segment(value: str) -> str:
    """Return ``value`` reduced to characters valid in a registry name.

    Examples
    --------
    >>> name_segment("feature/JIRA-12")
    'feature-jira-12'

    """
    segment = _INVALID_CHARS.sub("-", value.lower()).strip(_EDGE_CHARS)
    if not segment:
        msg = f"Cannot derive a registry name segment from {value!r}"
        raise ValueError(msg)
    return segment


def registry_name(prefix: str, service_name: str, branch_name: str) -> str:
    """Return the registry name for a service on a branch.

    Examples
    --------
    >>> registry_name("customer-portal", "api", "feature-123")
    'customer-portal-api-feature-123'

    """
    return "-".join(
        (name_segment(prefix), name_segment(service_name), name_segment(branch_name))
    )


def prefix_of(prefix: str) -> str:
    """Return the leading text shared by every registry under ``prefix``."""
    return f"{name_segment(prefix)}-"


def branch_suffix(branch_name: str) -> str:
    """Return the trailing text shared by every registry of ``branch_name``."""
    return f"-{name_segment(branch_name)}"


def service_for_branch(name: str, prefix: str, branch_name: str) -> str | None:
    """Return the service segment of ``name`` if it belongs to the branch.

    Examples
    --------
    >>> service_for_branch("customer-portal-api-main", "customer-portal", "main")
    'api'
    >>> service_for_branch("customer-portal-api-main", "customer-portal", "dev")

    """
    head = prefix_of(prefix)
    tail = branch_suffix(branch_name)
    if not (name.startswith(head) and name.endswith(tail)):
        return None
    service = name[len(head) : len(name) - len(tail)]
    return service or None


def owned_remainder(name: str, prefix: str) -> str | None:
    """Return the text after the prefix, or ``None`` if ``name`` is not ours."""
    head = prefix_of(prefix)
    if not name.startswith(head) or len(name) == len(head):
        return None
    return name[len(head) :]


def branch_candidates(remainder: str) -> typ.Iterator[str]:
    """Yield every possible branch segment of a ``<service>-<branch>`` tail."""
    for index, char in enumerate(remainder):
        if char == "-" and index + 1 < len(remainder):
            yield remainder[index + 1 :]


def branch_segments(branch_names: typ.Iterable[str]) -> frozenset[str]:
    """Return the registry-safe segments of the nameable branches.

    Examples
    --------
    >>> sorted(branch_segments(["feature/X", "main", "///"]))
    ['feature-x', 'main']

    """
    segments: set[str] = set()
    for branch in branch_names:
        try:
            segments.add(name_segment(branch))
        except ValueError:
            continue
    return frozenset(segments)
