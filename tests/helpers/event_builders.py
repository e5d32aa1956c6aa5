"""Builders for CodeCommit trigger payloads and parsed change events.

Examples
--------
>>> from tests.helpers.event_builders import TriggerSpec
>>> payload = TriggerSpec(branch="feature-123", created=True).build()
>>> payload["Records"][0]["codecommit"]["references"][0]["ref"]
'refs/heads/feature-123'

"""

from __future__ import annotations

import dataclasses
import typing as typ

from dockyard.events.models import ChangeEvent
from tests.helpers.fakes import ACCOUNT_ID, REGION

REPOSITORY = "portal"
SOURCE_ARN = f"arn:aws:codecommit:{REGION}:{ACCOUNT_ID}:{REPOSITORY}"


@dataclasses.dataclass(frozen=True, slots=True)
class TriggerSpec:
    """Parameters for one trigger record."""

    branch: str = "feature-123"
    commit: str | None = "c0ffee1"
    created: bool = False
    deleted: bool = False
    region: str = REGION
    source_arn: str = SOURCE_ARN

    def build(self) -> dict[str, typ.Any]:
        """Return the trigger payload as the function runtime delivers it."""
        reference: dict[str, typ.Any] = {"ref": f"refs/heads/{self.branch}"}
        if self.commit is not None:
            reference["commit"] = self.commit
        if self.created:
            reference["created"] = True
        if self.deleted:
            reference["deleted"] = True
        return {
            "Records": [
                {
                    "awsRegion": self.region,
                    "eventSourceARN": self.source_arn,
                    "eventTriggerName": "dockyard",
                    "codecommit": {"references": [reference]},
                }
            ]
        }


def change_event(
    branch: str = "feature-123",
    *,
    commit: str | None = "c0ffee1",
    created: bool = False,
    deleted: bool = False,
    previous: str | None = None,
) -> ChangeEvent:
    """Return a parsed event for the test repository."""
    return ChangeEvent(
        branch_name=branch,
        commit_hash=commit,
        repository_name=REPOSITORY,
        account_id=ACCOUNT_ID,
        region=REGION,
        is_branch_created=created,
        is_branch_deleted=deleted,
        previous_commit_hash=previous,
    )
