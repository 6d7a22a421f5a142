"""
Provides the TeamCity specific implementation of the BuildServer interface.
Metadata is read from the REST API, artifact listings from the Ivy descriptor
TeamCity publishes in its artifact repository.
"""

import logging
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from builddependency.builddependency_config import BuildDependencyConfig
from builddependency.builddependency_exceptions import TransportError
from builddependency.server_models import (
    ArtifactDependencyDeclaration,
    BuildConfiguration,
    Project,
    ServerType,
)
from builddependency.servers.server import BuildServer

logger = logging.getLogger(__name__)

IVY_DESCRIPTOR = "teamcity-ivy.xml"


class TeamCityServer(BuildServer):
    """
    Connector for a TeamCity server.
    """

    server_type = ServerType.TeamCity

    def __init__(
        self,
        name: str,
        url: str = "",
        config: Optional[BuildDependencyConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Creates a new TeamCityServer instance.

        Args:
            name: Name of the server in the dependency descriptor
            url: Base URL of the server, e.g. https://build.example.org
            config: Timeouts and authentication settings
            transport: Optional httpx transport, used instead of the network
        """
        super().__init__(name, url, config)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def _auth_prefix(self) -> str:
        return "guestAuth" if self.config.guest_auth else "httpAuth"

    @property
    def base_url(self) -> str:
        return self.url.rstrip("/")

    @property
    def rest_url(self) -> str:
        return f"{self.base_url}/{self._auth_prefix}/app/rest"

    @property
    def repository_url(self) -> str:
        return f"{self.base_url}/{self._auth_prefix}/repository"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            auth = None
            if not self.config.guest_auth:
                auth = httpx.BasicAuth(self.config.username, self.config.password or "")
            self._client = httpx.AsyncClient(
                timeout=self.config.request_timeout,
                verify=self.config.verify_ssl,
                auth=auth,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get(self, url: str, allow_missing: bool = False) -> Optional[httpx.Response]:
        """
        Performs a GET request.

        Returns:
            The response, or None if allow_missing is set and the server answered 404

        Raises:
            TransportError: If the request fails or the server answers with an error
        """
        logger.debug(f"GET {url}")
        try:
            response = await self._get_client().get(url)
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {self.name} ({self.url}) failed: {url}", e)

        if allow_missing and response.status_code == 404:
            return None
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Server {self.name} ({self.url}) answered {response.status_code} for {url}", e
            )
        return response

    async def _get_json(self, resource: str, allow_missing: bool = False) -> Optional[Dict[str, Any]]:
        response = await self._get(f"{self.rest_url}/{resource.lstrip('/')}", allow_missing)
        if response is None:
            return None
        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(f"Server {self.name} ({self.url}) sent invalid JSON for {resource}", e)
        if not isinstance(data, dict):
            raise TransportError(
                f"Unexpected answer from {self.name} ({self.url}) for {resource}",
                ValueError(f"expected a JSON object, got {type(data).__name__}"),
            )
        return data

    def _parse(self, model, items: List[Dict[str, Any]], resource: str) -> List[Any]:
        try:
            return [model(**item) for item in items]
        except (ValidationError, TypeError) as e:
            raise TransportError(f"Unexpected answer from {self.name} ({self.url}) for {resource}", e)

    async def list_all_projects(self) -> List[Project]:
        data = await self._get_json("projects")
        return self._parse(Project, data.get("project", []), "projects")

    async def list_build_configurations(self, project_id: Optional[str] = None) -> List[BuildConfiguration]:
        resource = "buildTypes" if project_id is None else f"projects/id:{project_id}/buildTypes"
        data = await self._get_json(resource)
        return self._parse(BuildConfiguration, data.get("buildType", []), resource)

    async def get_build_configuration(self, build_config_id: str) -> Optional[BuildConfiguration]:
        resource = f"buildTypes/id:{build_config_id}"
        data = await self._get_json(resource, allow_missing=True)
        if data is None:
            return None
        return self._parse(BuildConfiguration, [data], resource)[0]

    async def list_artifact_dependency_declarations(
        self, build_config_id: str
    ) -> List[ArtifactDependencyDeclaration]:
        resource = f"buildTypes/id:{build_config_id}/artifact-dependencies"
        data = await self._get_json(resource)
        try:
            return [
                ArtifactDependencyDeclaration.from_rest(item)
                for item in data.get("artifact-dependency", [])
            ]
        except (ValidationError, TypeError, ValueError) as e:
            raise TransportError(f"Unexpected answer from {self.name} ({self.url}) for {resource}", e)

    def artifact_url(self, build_config_id: str, revision: str, path: str = "") -> str:
        url = f"{self.repository_url}/download/{build_config_id}/{revision}"
        if path:
            url = f"{url}/{path.lstrip('/')}"
        return url

    async def list_artifact_files(self, build_config_id: str, revision: str) -> List[str]:
        url = self.artifact_url(build_config_id, revision, IVY_DESCRIPTOR)
        response = await self._get(url)
        try:
            root = ET.fromstring(response.content)
        except ET.ParseError as e:
            raise TransportError(f"Server {self.name} ({self.url}) sent an invalid Ivy descriptor: {url}", e)

        files = []
        for artifact in root.iter("artifact"):
            name = artifact.get("name")
            if not name:
                continue
            ext = artifact.get("ext")
            files.append(f"{name}.{ext}" if ext else name)
        return files
