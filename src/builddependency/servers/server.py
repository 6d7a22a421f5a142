"""
Provides the BuildServer interface that every build server connector implements.

The resolution pipeline and the importer only ever talk to a BuildServer, never
to a concrete connector.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from builddependency.builddependency_config import BuildDependencyConfig
from builddependency.builddependency_exceptions import BuildDependencyException
from builddependency.server_models import (
    ArtifactDependencyDeclaration,
    BuildConfiguration,
    Project,
    ServerType,
)


class BuildServer(ABC):
    """
    A named connection to a remote build server.

    All lookups are coroutines and raise TransportError when the server can't
    be reached or answers with something unusable.
    """

    server_type: ServerType

    def __init__(self, name: str, url: str = "", config: Optional[BuildDependencyConfig] = None):
        self.name = name
        self.url = url
        self.config = config or BuildDependencyConfig()

    @classmethod
    def create(
        cls,
        server_type: ServerType,
        name: str,
        url: str = "",
        config: Optional[BuildDependencyConfig] = None,
    ) -> "BuildServer":
        """
        Creates a connector for the given server type.

        Raises:
            BuildDependencyException: If no connector exists for server_type
        """
        if server_type == ServerType.TeamCity:
            from builddependency.servers.teamcity.teamcity_server import TeamCityServer

            return TeamCityServer(name, url, config)

        raise BuildDependencyException(f"Server type {server_type} is not supported")

    @abstractmethod
    async def list_all_projects(self) -> List[Project]:
        pass

    @abstractmethod
    async def list_build_configurations(self, project_id: Optional[str] = None) -> List[BuildConfiguration]:
        """
        Lists the build configurations of one project, or of the whole server
        when project_id is None.
        """

    @abstractmethod
    async def get_build_configuration(self, build_config_id: str) -> Optional[BuildConfiguration]:
        """Returns the build configuration with the given id, None if it doesn't exist."""

    @abstractmethod
    async def list_artifact_dependency_declarations(
        self, build_config_id: str
    ) -> List[ArtifactDependencyDeclaration]:
        pass

    @abstractmethod
    async def list_artifact_files(self, build_config_id: str, revision: str) -> List[str]:
        """
        Lists the artifact file paths (relative, '/' separated) of the build
        selected by revision.
        """

    @abstractmethod
    def artifact_url(self, build_config_id: str, revision: str, path: str = "") -> str:
        """Returns the download URL of an artifact file, or of the artifact root if path is empty."""

    async def close(self) -> None:
        """Releases connections held by the connector."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name}, url={self.url})"
