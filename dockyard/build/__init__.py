"""Build job assembly and submission."""

from __future__ import annotations

from .client import BuildClient, CodeBuildClient
from .dispatcher import FIXED_PARAMETERS, BuildDispatcher, source_location
from .errors import BuildSubmissionFailed
from .models import BuildJobSpec

__all__ = [
    "FIXED_PARAMETERS",
    "BuildClient",
    "BuildDispatcher",
    "BuildJobSpec",
    "BuildSubmissionFailed",
    "CodeBuildClient",
    "source_location",
]
