"""Typed views of the inbound CodeCommit trigger payload.

The ``msgspec`` structs mirror the wire shape of a trigger record and are only
used during parsing. :class:`ChangeEvent` is the validated value object the
rest of the pipeline consumes.
"""

from __future__ import annotations

import dataclasses
import enum

import msgspec


class EventAction(enum.StrEnum):
    """Mutually exclusive classifications of a push event."""

    CREATED = "created"
    DELETED = "deleted"
    UPDATED = "updated"


class TriggerReference(msgspec.Struct, kw_only=True):
    """One entry of ``codecommit.references`` in a trigger record."""

    ref: str | None = None
    commit: str | None = None
    created: bool = False
    deleted: bool = False


class TriggerCodeCommit(msgspec.Struct, kw_only=True):
    """The ``codecommit`` block of a trigger record."""

    references: list[TriggerReference] = msgspec.field(default_factory=list)


class TriggerRecord(msgspec.Struct, kw_only=True, rename="camel"):
    """A single record of a CodeCommit trigger invocation."""

    aws_region: str | None = None
    event_source_arn: str | None = msgspec.field(default=None, name="eventSourceARN")
    codecommit: TriggerCodeCommit | None = None


class TriggerPayload(msgspec.Struct, kw_only=True):
    """Top-level CodeCommit trigger payload."""

    records: list[TriggerRecord] = msgspec.field(
        default_factory=list, name="Records"
    )


@dataclasses.dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A validated push event for one branch of one repository.

    ``commit_hash`` is ``None`` when the payload did not carry a commit, which
    is always the case for branch deletions. ``previous_commit_hash`` is only
    set by callers that already know the diff base; otherwise the router reads
    the first parent of the commit.
    """

    branch_name: str
    commit_hash: str | None
    repository_name: str
    account_id: str
    region: str
    is_branch_created: bool = False
    is_branch_deleted: bool = False
    previous_commit_hash: str | None = None

    @property
    def action(self) -> EventAction:
        """Return the event classification, with deletion taking precedence."""
        if self.is_branch_deleted:
            return EventAction.DELETED
        if self.is_branch_created:
            return EventAction.CREATED
        return EventAction.UPDATED
