"""Parse raw trigger payloads into :class:`ChangeEvent` values."""

from __future__ import annotations

import typing as typ

import msgspec

from .errors import MalformedEvent
from .models import ChangeEvent, TriggerPayload, TriggerReference

_BRANCH_REF_PREFIX = "refs/heads/"
# arn:aws:codecommit:<region>:<account>:<repository>
_ARN_MIN_SEGMENTS = 6
_ARN_ACCOUNT_INDEX = 4


def branch_from_ref(ref: str) -> str:
    """Return the branch name for a ``refs/heads/...`` reference.

    Raises
    ------
    MalformedEvent
        If the reference is not a branch reference or names no branch.

    """
    if not ref.startswith(_BRANCH_REF_PREFIX):
        raise MalformedEvent.invalid("ref", f"not a branch reference: {ref!r}")
    branch = ref.removeprefix(_BRANCH_REF_PREFIX)
    if not branch:
        raise MalformedEvent.invalid("ref", "branch name is empty")
    return branch


def split_source_arn(arn: str) -> tuple[str, str]:
    """Return ``(repository_name, account_id)`` from an event source ARN.

    Examples
    --------
    >>> split_source_arn("arn:aws:codecommit:eu-west-1:123456789012:portal")
    ('portal', '123456789012')

    """
    segments = arn.split(":")
    if len(segments) < _ARN_MIN_SEGMENTS:
        raise MalformedEvent.invalid("eventSourceARN", f"unexpected shape: {arn!r}")
    repository_name = segments[-1]
    account_id = segments[_ARN_ACCOUNT_INDEX]
    if not repository_name or not account_id:
        raise MalformedEvent.invalid("eventSourceARN", f"unexpected shape: {arn!r}")
    return repository_name, account_id


def _first_reference(payload: TriggerPayload) -> tuple[str, str, TriggerReference]:
    if not payload.records:
        raise MalformedEvent.missing("Records")
    record = payload.records[0]
    if not record.aws_region:
        raise MalformedEvent.missing("awsRegion")
    if not record.event_source_arn:
        raise MalformedEvent.missing("eventSourceARN")
    if record.codecommit is None or not record.codecommit.references:
        raise MalformedEvent.missing("codecommit.references")
    return record.aws_region, record.event_source_arn, record.codecommit.references[0]


def parse_change_event(raw: typ.Mapping[str, typ.Any]) -> ChangeEvent:
    """Validate a trigger payload and build the corresponding event.

    Parameters
    ----------
    raw
        The decoded payload handed to the function entry point.

    Returns
    -------
    ChangeEvent
        Immutable event describing the pushed branch.

    Raises
    ------
    MalformedEvent
        If the payload does not match the trigger shape or lacks the region,
        source ARN or branch reference.

    """
    try:
        payload = msgspec.convert(raw, type=TriggerPayload)
    except msgspec.ValidationError as exc:
        raise MalformedEvent.invalid("payload", str(exc)) from exc

    region, arn, reference = _first_reference(payload)
    if not reference.ref:
        raise MalformedEvent.missing("codecommit.references[0].ref")

    repository_name, account_id = split_source_arn(arn)
    is_deleted = reference.deleted
    return ChangeEvent(
        branch_name=branch_from_ref(reference.ref),
        commit_hash=reference.commit or None,
        repository_name=repository_name,
        account_id=account_id,
        region=region,
        is_branch_created=reference.created and not is_deleted,
        is_branch_deleted=is_deleted,
    )
