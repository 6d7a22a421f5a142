"""
Artifact dependency models.

This package provides:
1. ArtifactProperties, the declared part of a dependency, and its Condition
2. Path rule parsing and matching, producing Jobs
3. DependencyEntry, a dependency resolved against its server
"""

from .artifact_properties import ArtifactProperties, Condition
from .path_rules import Job, PathRule, expand_jobs, parse_path_rules
from .dependency_entry import DependencyEntry

__all__ = [
    "ArtifactProperties",
    "Condition",
    "Job",
    "PathRule",
    "expand_jobs",
    "parse_path_rules",
    "DependencyEntry",
]
