"""
Server metadata models.

This package provides Pydantic data models for the projects, build
configurations and artifact dependency declarations reported by build servers.
"""

from .server_models import (
    ServerType,
    Project,
    BuildConfiguration,
    BuildConfigurationRef,
    Property,
    ArtifactDependencyDeclaration,
)

__all__ = [
    "ServerType",
    "Project",
    "BuildConfiguration",
    "BuildConfigurationRef",
    "Property",
    "ArtifactDependencyDeclaration",
]
