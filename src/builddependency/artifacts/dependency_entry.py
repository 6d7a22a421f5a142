"""
A fully resolved artifact dependency.
"""

from typing import List, Optional

from builddependency.artifacts.artifact_properties import ArtifactProperties, Condition
from builddependency.artifacts.path_rules import Job, PathRule, expand_jobs, parse_path_rules
from builddependency.builddependency_exceptions import BuildDependencyException
from builddependency.builddependency_utils import PlatformId
from builddependency.server_models import BuildConfiguration, Project
from builddependency.servers.server import BuildServer


class DependencyEntry:
    """
    One declared dependency whose server, project and build configuration
    have been resolved.

    Entries are only created by the resolution pipeline or the importer, once
    the build configuration is known to belong to the project.
    """

    def __init__(
        self,
        server: BuildServer,
        project: Project,
        config: BuildConfiguration,
        properties: ArtifactProperties,
    ):
        """
        Args:
            server: Server hosting the build configuration
            project: Project owning the build configuration
            config: The source build configuration
            properties: Revision selector, condition and path rules

        Raises:
            BuildDependencyException: If config, project and properties disagree
        """
        if config.project_id != project.id:
            raise BuildDependencyException(
                f"Build configuration '{config.id}' belongs to project '{config.project_id}', not '{project.id}'"
            )
        if config.id != properties.build_config_id:
            raise BuildDependencyException(
                f"Properties refer to '{properties.build_config_id}', not '{config.id}'"
            )
        self.server = server
        self.project = project
        self.config = config
        self.properties = properties

    @property
    def build_config_id(self) -> str:
        return self.config.id

    @property
    def config_name(self) -> str:
        return self.config.name

    @property
    def revision_name(self) -> str:
        return self.properties.revision_name

    @property
    def revision_value(self) -> str:
        return self.properties.revision_value

    @property
    def condition(self) -> Condition:
        return self.properties.condition

    @property
    def path_rules(self) -> str:
        return self.properties.path_rules

    @property
    def clean_destination(self) -> bool:
        return self.properties.clean_destination

    @property
    def repo_url(self) -> str:
        """Download URL of the artifact root of the selected build."""
        return self.server.artifact_url(self.config.id, self.properties.revision)

    def get_rules(self) -> List[PathRule]:
        return parse_path_rules(self.path_rules, self.condition)

    async def get_jobs(self, platform: Optional[PlatformId] = None) -> List[Job]:
        """
        Expands the path rules against the artifact listing of the selected build.

        The listing is fetched once and shared by all rules.

        Raises:
            TransportError: If the listing can't be fetched
        """
        revision = self.properties.revision
        files = await self.server.list_artifact_files(self.config.id, revision)
        return expand_jobs(
            self.get_rules(),
            files,
            lambda path: self.server.artifact_url(self.config.id, revision, path),
            self.clean_destination,
            platform,
        )

    def __repr__(self) -> str:
        return (
            f"DependencyEntry(server={self.server.name}, project={self.project.id}, "
            f"config={self.config.id}, revision={self.properties.revision})"
        )
