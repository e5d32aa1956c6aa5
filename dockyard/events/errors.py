"""Errors raised while parsing inbound trigger payloads."""

from __future__ import annotations


class MalformedEvent(ValueError):  # noqa: N818 - taxonomy name
    """Raised when a trigger payload lacks the fields needed for dispatch."""

    @classmethod
    def missing(cls, field: str) -> MalformedEvent:
        """Return an error for a required payload field that is absent."""
        return cls(f"Trigger payload missing required field: {field}")

    @classmethod
    def invalid(cls, field: str, reason: str) -> MalformedEvent:
        """Return an error for a payload field with an unusable value."""
        return cls(f"Trigger payload field {field} is invalid: {reason}")
