"""
Build server connectors.

This package handles:
1. The BuildServer interface every connector implements
2. The per-pass ServerRegistry and its resolve-once metadata memos
3. Concrete connectors (TeamCity)
"""

from .server import BuildServer
from .registry import LookupResult, ResolveOnce, ServerMetadata, ServerRegistry

__all__ = [
    "BuildServer",
    "LookupResult",
    "ResolveOnce",
    "ServerMetadata",
    "ServerRegistry",
]
