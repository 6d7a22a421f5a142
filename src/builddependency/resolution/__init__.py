"""
Dependency resolution.

This package handles:
1. Resolving descriptor sections against their build servers
2. Expanding resolved dependencies into jobs
3. Importing dependencies declared on a server
"""

from .pipeline import ResolutionPipeline
from .importer import DependencyImporter

__all__ = ["ResolutionPipeline", "DependencyImporter"]
