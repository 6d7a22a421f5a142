"""
Server registry and per-server metadata memoization.

A ServerRegistry is created for one load/resolution pass. It maps the server
names used in a descriptor to connectors and owns, per server, a resolve-once
memo for the build configuration list and the project list.
"""

import asyncio
from typing import Awaitable, Callable, Dict, Generic, Iterator, List, Optional, TypeVar

from builddependency.builddependency_exceptions import TransportError
from builddependency.server_models import BuildConfiguration, Project
from builddependency.servers.server import BuildServer

T = TypeVar("T")


class LookupResult(Generic[T]):
    """
    Outcome of a remote lookup: either a value or the TransportError that
    prevented getting it.
    """

    def __init__(self, value: Optional[T] = None, error: Optional[TransportError] = None):
        self.value = value
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "LookupResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: TransportError) -> "LookupResult[T]":
        return cls(error=error)

    def __repr__(self) -> str:
        if self.ok:
            return f"LookupResult(value={self.value!r})"
        return f"LookupResult(error={self.error.message!r})"


class ResolveOnce(Generic[T]):
    """
    Runs an async fetch at most once and shares its result.

    The first caller starts the fetch; callers arriving while it is in flight
    await the same task. Failures are not kept, so the next call fetches again.
    """

    def __init__(self, fetch: Callable[[], Awaitable[T]]):
        self._fetch = fetch
        self._task: Optional["asyncio.Task[LookupResult[T]]"] = None

    async def _run(self) -> LookupResult[T]:
        try:
            return LookupResult.success(await self._fetch())
        except TransportError as e:
            return LookupResult.failure(e)

    @staticmethod
    def _failed(task: "asyncio.Task[LookupResult[T]]") -> bool:
        if not task.done():
            return False
        return task.cancelled() or task.exception() is not None or not task.result().ok

    def start(self) -> "asyncio.Task[LookupResult[T]]":
        """
        Starts the fetch unless it is in flight or has succeeded. A finished
        failure is dropped here too, even if nobody awaited it.
        """
        if self._task is None or self._failed(self._task):
            self._task = asyncio.ensure_future(self._run())
        return self._task

    async def get(self) -> LookupResult[T]:
        task = self.start()
        result = await task
        if not result.ok and self._task is task:
            self._task = None
        return result

    @property
    def resolved(self) -> bool:
        return self._task is not None and self._task.done() and not self._failed(self._task)


class ServerMetadata:
    """Memoized metadata of a single server."""

    def __init__(self, server: BuildServer):
        self.server = server
        self.build_configurations: ResolveOnce[Dict[str, BuildConfiguration]] = ResolveOnce(
            self._fetch_build_configurations
        )
        self.projects: ResolveOnce[Dict[str, Project]] = ResolveOnce(self._fetch_projects)

    async def _fetch_build_configurations(self) -> Dict[str, BuildConfiguration]:
        return {config.id: config for config in await self.server.list_build_configurations()}

    async def _fetch_projects(self) -> Dict[str, Project]:
        return {project.id: project for project in await self.server.list_all_projects()}


class ServerRegistry:
    """
    Maps server names to connectors for one resolution pass.
    """

    def __init__(self) -> None:
        self._servers: Dict[str, BuildServer] = {}
        self._metadata: Dict[str, ServerMetadata] = {}

    def add(self, server: BuildServer) -> None:
        """
        Registers a server under its name.

        Raises:
            KeyError: If a server with the same name is already registered
        """
        if server.name in self._servers:
            raise KeyError(server.name)
        self._servers[server.name] = server

    def get(self, name: str) -> Optional[BuildServer]:
        return self._servers.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._servers

    def __iter__(self) -> Iterator[BuildServer]:
        return iter(self._servers.values())

    def __len__(self) -> int:
        return len(self._servers)

    @property
    def servers(self) -> List[BuildServer]:
        """Registered servers in registration order."""
        return list(self._servers.values())

    def metadata(self, server: BuildServer) -> ServerMetadata:
        """Returns the metadata memo for a server, creating it on first access."""
        if server.name not in self._metadata or self._metadata[server.name].server is not server:
            self._metadata[server.name] = ServerMetadata(server)
        return self._metadata[server.name]

    async def close(self) -> None:
        for server in self._servers.values():
            await server.close()
