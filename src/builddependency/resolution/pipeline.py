"""
Resolution pipeline.

Turns parsed dependency sections into DependencyEntry objects by looking up
their build configuration and owning project on the named server, and expands
resolved entries into jobs. Every failure is reported through the logger and
only affects the dependency it happened for.
"""

import logging
from typing import List, Optional, Sequence

from builddependency.artifacts.artifact_properties import ArtifactProperties
from builddependency.artifacts.dependency_entry import DependencyEntry
from builddependency.artifacts.path_rules import Job
from builddependency.builddependency_config import BuildDependencyConfig
from builddependency.builddependency_exceptions import TransportError
from builddependency.builddependency_logger import BuildDependencyLogger, ErrorKind
from builddependency.builddependency_utils import PlatformId
from builddependency.descriptor.parsed_descriptor import ParsedDependency
from builddependency.servers.registry import ServerRegistry
from builddependency.servers.server import BuildServer


class ResolutionPipeline:
    """
    Resolves dependencies for one pass over a descriptor.

    Server metadata is memoized in the registry, so each server's build
    configuration and project lists are fetched at most once per pass.
    """

    def __init__(
        self,
        registry: ServerRegistry,
        logger: BuildDependencyLogger,
        config: Optional[BuildDependencyConfig] = None,
    ):
        """
        Args:
            registry: Servers of this pass and their metadata memos
            logger: Diagnostics sink
            config: If given, its target platform filters jobs in collect_jobs
        """
        self.registry = registry
        self.logger = logger
        self.config = config

    async def resolve(self, dependencies: Sequence[ParsedDependency]) -> List[DependencyEntry]:
        """
        Resolves dependencies one after the other, in the given order.

        Returns:
            The entries that could be resolved
        """
        entries = []
        for dependency in dependencies:
            if dependency.placeholder:
                continue
            entry = await self.resolve_dependency(dependency)
            if entry is not None:
                entries.append(entry)
        return entries

    async def resolve_dependency(self, dependency: ParsedDependency) -> Optional[DependencyEntry]:
        server = self.registry.get(dependency.server_name)
        if server is None:
            self.logger.log(
                f"Can't find server '{dependency.server_name}' mentioned on line {dependency.line_number}. "
                f"Skipping {dependency.line}.",
                logging.ERROR,
                ErrorKind.REFERENCE,
                dependency.line_number,
                dependency.line,
            )
            return None
        return await self.resolve_properties(server, dependency.properties, dependency.line, dependency.line_number)

    async def resolve_properties(
        self,
        server: BuildServer,
        properties: ArtifactProperties,
        line: Optional[str] = None,
        line_number: Optional[int] = None,
    ) -> Optional[DependencyEntry]:
        """
        Looks up the build configuration and its project on server.

        Both lookups are started together; the configuration is awaited first.
        The configuration is taken from the server's memoized configuration
        list rather than fetched by id, so a pass costs one request per server.

        Args:
            server: Server hosting the build configuration
            properties: The declared dependency
            line: Descriptor line of the dependency, for diagnostics
            line_number: Its line number

        Returns:
            The resolved entry, or None if something couldn't be found
        """
        where = f" Skipping {line} (line {line_number})." if line is not None else ""
        config_id = properties.build_config_id

        metadata = self.registry.metadata(server)
        metadata.build_configurations.start()
        metadata.projects.start()

        configs = await metadata.build_configurations.get()
        if not configs.ok:
            self._log_transport_error(
                configs.error,
                f"Got {configs.error.cause_name} trying to get build configurations from server "
                f"{server.name} ({server.url}).{where}",
                line,
                line_number,
            )
            return None

        config = configs.value.get(config_id)
        if config is None:
            self.logger.log(
                f"Can't find build configuration '{config_id}' on server {server.name}.{where}",
                logging.ERROR,
                ErrorKind.REFERENCE,
                line_number,
                line,
            )
            return None

        projects = await metadata.projects.get()
        if not projects.ok:
            self._log_transport_error(
                projects.error,
                f"Got {projects.error.cause_name} trying to get projects from server "
                f"{server.name} ({server.url}).{where}",
                line,
                line_number,
            )
            return None

        project = projects.value.get(config.project_id)
        if project is None:
            self.logger.log(
                f"Can't find project '{config.project_id}' on server {server.name}.{where}",
                logging.ERROR,
                ErrorKind.REFERENCE,
                line_number,
                line,
            )
            return None

        return DependencyEntry(server, project, config, properties)

    def _log_transport_error(
        self, error: TransportError, message: str, line: Optional[str], line_number: Optional[int]
    ) -> None:
        self.logger.log(message, logging.ERROR, ErrorKind.TRANSPORT, line_number, line)
        self.logger.log(f"Exception details:\n{error.detail}", logging.DEBUG, ErrorKind.TRANSPORT, line_number, line)

    async def collect_jobs(
        self, entries: Sequence[DependencyEntry], platform: Optional[PlatformId] = None
    ) -> List[Job]:
        """
        Expands entries into jobs, in entry order.

        An entry whose artifact listing can't be fetched contributes no jobs.

        Args:
            entries: Resolved dependencies
            platform: Rules whose condition doesn't apply to it are skipped.
                Defaults to the config's target platform; without a config
                nothing is skipped.
        """
        if platform is None and self.config is not None:
            platform = self.config.target_platform
        jobs = []
        for entry in entries:
            try:
                jobs.extend(await entry.get_jobs(platform))
            except TransportError as e:
                self._log_transport_error(
                    e,
                    f"Can't get artifacts of '{entry.build_config_id}' ({entry.properties.revision}) "
                    f"from server {entry.server.name} ({entry.server.url}).",
                    None,
                    None,
                )
        return jobs
