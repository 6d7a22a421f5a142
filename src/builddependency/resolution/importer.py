"""
Imports the artifact dependencies a build configuration already declares on
its server, so they can be written to a descriptor.
"""

import logging
from typing import List, Optional

from builddependency.artifacts.artifact_properties import ArtifactProperties
from builddependency.artifacts.dependency_entry import DependencyEntry
from builddependency.builddependency_logger import BuildDependencyLogger, ErrorKind
from builddependency.resolution.pipeline import ResolutionPipeline
from builddependency.server_models import ArtifactDependencyDeclaration, BuildConfiguration, Project
from builddependency.servers.registry import ServerRegistry
from builddependency.servers.server import BuildServer


class DependencyImporter:
    """
    Browses one server and converts declared artifact dependencies into entries.
    """

    def __init__(
        self,
        server: BuildServer,
        registry: Optional[ServerRegistry] = None,
        logger: Optional[BuildDependencyLogger] = None,
    ):
        self.server = server
        self.registry = registry or ServerRegistry()
        if server.name not in self.registry:
            self.registry.add(server)
        self.logger = logger or BuildDependencyLogger()
        self._pipeline = ResolutionPipeline(self.registry, self.logger, server.config)

    async def list_projects(self) -> List[Project]:
        return await self.server.list_all_projects()

    async def list_build_configurations(self, project_id: str) -> List[BuildConfiguration]:
        return await self.server.list_build_configurations(project_id)

    async def list_declarations(self, build_config_id: str) -> List[ArtifactProperties]:
        """
        Raises:
            TransportError: If the declarations can't be fetched
        """
        declarations = await self.server.list_artifact_dependency_declarations(build_config_id)
        return [ArtifactProperties.from_declaration(d) for d in declarations]

    async def describe_declaration(self, declaration: ArtifactDependencyDeclaration) -> str:
        """Returns a short human readable summary of a declaration."""
        properties = ArtifactProperties.from_declaration(declaration)
        configs = await self.registry.metadata(self.server).build_configurations.get()
        source_name = "?"
        if configs.ok and properties.build_config_id in configs.value:
            source_name = configs.value[properties.build_config_id].name
        return (
            f"id: {declaration.id}, pathRules: {properties.path_rules},\n"
            f" buildType: {properties.build_config_id} ({source_name}),\n"
            f"revName: {properties.revision_name}, revValue: {properties.revision_value} "
            f"({properties.revision_label})"
        )

    async def import_dependencies(self, build_config_id: str) -> List[DependencyEntry]:
        """
        Resolves every artifact dependency declared for build_config_id.

        Declarations whose source configuration or project can't be found are
        reported and skipped.

        Raises:
            TransportError: If the declarations can't be fetched
        """
        entries = []
        for properties in await self.list_declarations(build_config_id):
            if not properties.build_config_id:
                self.logger.log(
                    f"Artifact dependency of '{build_config_id}' has no source build configuration. Skipping it.",
                    logging.ERROR,
                    ErrorKind.REFERENCE,
                )
                continue
            entry = await self._pipeline.resolve_properties(self.server, properties)
            if entry is not None:
                entries.append(entry)
        return entries
