"""Path-to-service resolution and per-run deduplication."""

from __future__ import annotations

from .dedup import DedupTracker, select_targets
from .models import ServiceTarget
from .resolver import ServiceResolver

__all__ = ["DedupTracker", "ServiceResolver", "ServiceTarget", "select_targets"]
