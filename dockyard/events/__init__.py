"""Inbound trigger parsing."""

from __future__ import annotations

from .errors import MalformedEvent
from .models import ChangeEvent, EventAction
from .parser import branch_from_ref, parse_change_event, split_source_arn

__all__ = [
    "ChangeEvent",
    "EventAction",
    "MalformedEvent",
    "branch_from_ref",
    "parse_change_event",
    "split_source_arn",
]
