"""
Intermediate result of parsing a dependency descriptor, before any server is
contacted.
"""

from typing import List, Optional

from builddependency.artifacts.artifact_properties import ArtifactProperties
from builddependency.servers.registry import ServerRegistry


class ParsedDependency:
    """
    One [server::buildConfigId] section of a descriptor.

    A placeholder collects the lines of a section that can't be resolved
    (unknown server, malformed header) and is never handed to resolution.
    """

    def __init__(
        self,
        server_name: str,
        properties: ArtifactProperties,
        line_number: int,
        line: str,
        placeholder: bool = False,
    ):
        self.server_name = server_name
        self.properties = properties
        self.line_number = line_number
        self.line = line
        self.placeholder = placeholder

    @property
    def build_config_id(self) -> str:
        return self.properties.build_config_id

    def __repr__(self) -> str:
        return (
            f"ParsedDependency(server={self.server_name}, config={self.build_config_id}, "
            f"line={self.line_number})"
        )


class ParsedDescriptor:
    """Servers and dependency sections read from a descriptor."""

    def __init__(self, registry: Optional[ServerRegistry] = None, dependencies: Optional[List[ParsedDependency]] = None):
        self.registry = registry if registry is not None else ServerRegistry()
        self.dependencies = dependencies if dependencies is not None else []
