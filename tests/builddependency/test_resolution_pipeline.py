"""
Tests for resolving parsed dependencies against build servers.
"""

import asyncio
import logging

import pytest

from builddependency.artifacts import ArtifactProperties, Condition
from builddependency.builddependency_config import BuildDependencyConfig
from builddependency.builddependency_exceptions import TransportError
from builddependency.builddependency_logger import ErrorKind
from builddependency.builddependency_utils import PlatformId
from builddependency.descriptor import DescriptorCodec, ParsedDependency
from builddependency.resolution import ResolutionPipeline
from builddependency.server_models import BuildConfiguration, Project
from builddependency.servers import ResolveOnce, ServerRegistry
from tests.builddependency.fakes import factory_for, make_server

pytest_plugins = ("pytest_asyncio",)

TWO_SERVERS = """[[Good]]
Type=TeamCity
Url=https://good.example.org

[[Down]]
Type=TeamCity
Url=https://down.example.org

[Down::cfg1]
Path=**

[Good::cfg1]
RevisionValue=latest.lastSuccessful
Path=build/*.zip=>lib/

[Good::cfg2]
Path=**
"""


def dependency(server_name, config_id, line_number=1, **properties):
    line = f"[{server_name}::{config_id}]"
    return ParsedDependency(server_name, ArtifactProperties(build_config_id=config_id, **properties), line_number, line)


@pytest.fixture
def server():
    return make_server("ServerA", artifacts={"cfg1": ["build/x.zip", "build/y.txt"]})


@pytest.fixture
def pipeline(server, logger):
    registry = ServerRegistry()
    registry.add(server)
    return ResolutionPipeline(registry, logger)


class TestResolve:
    """Tests for ResolutionPipeline.resolve."""

    @pytest.mark.asyncio
    async def test_resolves_config_and_project(self, pipeline, server, logger):
        (entry,) = await pipeline.resolve([dependency("ServerA", "cfg1")])

        assert entry.server is server
        assert entry.project == Project(id="Proj", name="Project")
        assert entry.config.id == "cfg1"
        assert logger.diagnostics == []

    @pytest.mark.asyncio
    async def test_unknown_build_configuration(self, pipeline, logger):
        entries = await pipeline.resolve([dependency("ServerA", "nope", line_number=7)])

        assert entries == []
        (diagnostic,) = logger.diagnostics
        assert diagnostic.kind == ErrorKind.REFERENCE
        assert diagnostic.line_number == 7
        assert "'nope'" in diagnostic.message

    @pytest.mark.asyncio
    async def test_unknown_project(self, logger):
        server = make_server(configs=[BuildConfiguration(id="cfg1", name="c", project_id="Gone")])
        registry = ServerRegistry()
        registry.add(server)

        entries = await ResolutionPipeline(registry, logger).resolve([dependency("ServerA", "cfg1")])

        assert entries == []
        (diagnostic,) = logger.diagnostics
        assert diagnostic.kind == ErrorKind.REFERENCE
        assert "'Gone'" in diagnostic.message

    @pytest.mark.asyncio
    async def test_unknown_server(self, pipeline, logger):
        assert await pipeline.resolve([dependency("Nowhere", "cfg1")]) == []
        assert logger.diagnostics[0].kind == ErrorKind.REFERENCE

    @pytest.mark.asyncio
    async def test_placeholders_are_skipped(self, pipeline, server):
        placeholder = dependency("ServerA", "cfg1")
        placeholder.placeholder = True

        assert await pipeline.resolve([placeholder]) == []
        assert server.calls == {}

    @pytest.mark.asyncio
    async def test_metadata_is_fetched_once_per_server(self, pipeline, server):
        dependencies = [dependency("ServerA", "cfg1"), dependency("ServerA", "cfg2"), dependency("ServerA", "cfg1")]

        entries = await pipeline.resolve(dependencies)

        assert len(entries) == 3
        assert server.calls["list_build_configurations"] == 1
        assert server.calls["list_all_projects"] == 1

    @pytest.mark.asyncio
    async def test_project_lookup_starts_with_configuration_lookup(self, pipeline, server):
        # the project list is requested even when the configuration is unknown
        await pipeline.resolve([dependency("ServerA", "nope")])
        await asyncio.sleep(0)

        assert server.calls["list_all_projects"] == 1

    @pytest.mark.asyncio
    async def test_transport_error_is_reported_with_detail(self, logger):
        server = make_server(failing={"list_build_configurations"})
        registry = ServerRegistry()
        registry.add(server)

        entries = await ResolutionPipeline(registry, logger).resolve([dependency("ServerA", "cfg1", line_number=3)])

        assert entries == []
        error, detail = logger.diagnostics_of_kind(ErrorKind.TRANSPORT)
        assert error.level == logging.ERROR
        assert error.line_number == 3
        assert "ConnectionRefusedError" in error.message
        assert detail.level == logging.DEBUG
        assert "refused the connection" in detail.message

    @pytest.mark.asyncio
    async def test_failed_lookup_is_retried_for_next_dependency(self, logger):
        server = make_server(failing={"list_all_projects"})
        registry = ServerRegistry()
        registry.add(server)
        pipeline = ResolutionPipeline(registry, logger)

        assert await pipeline.resolve([dependency("ServerA", "cfg1")]) == []
        server.failing.clear()
        (entry,) = await pipeline.resolve([dependency("ServerA", "cfg2")])

        assert entry.config.id == "cfg2"
        assert server.calls["list_all_projects"] == 2
        assert server.calls["list_build_configurations"] == 1

    @pytest.mark.asyncio
    async def test_both_lookups_are_retried_after_recovery(self, logger):
        # the project lookup fails without being awaited, it must not stay cached
        server = make_server(failing={"list_build_configurations", "list_all_projects"})
        registry = ServerRegistry()
        registry.add(server)
        pipeline = ResolutionPipeline(registry, logger)

        assert await pipeline.resolve([dependency("ServerA", "cfg1")]) == []
        await asyncio.sleep(0)
        server.failing.clear()
        (entry,) = await pipeline.resolve([dependency("ServerA", "cfg2")])

        assert entry.config.id == "cfg2"
        assert server.calls["list_build_configurations"] == 2
        assert server.calls["list_all_projects"] == 2

    @pytest.mark.asyncio
    async def test_one_unreachable_server_does_not_stop_the_others(self, logger):
        good = make_server("Good")
        down = make_server("Down", failing={"list_build_configurations", "list_all_projects"})
        codec = DescriptorCodec(logger, server_factory=factory_for(good, down))

        entries, diagnostics = await codec.load(TWO_SERVERS)

        assert [(e.server.name, e.build_config_id) for e in entries] == [("Good", "cfg1"), ("Good", "cfg2")]
        transport = [d for d in diagnostics if d.kind == ErrorKind.TRANSPORT]
        assert [d.line_number for d in transport] == [9, 9]
        assert "down.example.org" in transport[0].message


class TestCollectJobs:
    """Tests for expanding resolved entries into jobs."""

    @pytest.mark.asyncio
    async def test_example_descriptor(self, logger, server):
        text = "[[ServerA]]\nType=TeamCity\nUrl=https://a.example.org\n\n[ServerA::cfg1]\nPath=build/*.zip=>lib/\n"
        codec = DescriptorCodec(logger, server_factory=factory_for(server))
        parsed = codec.parse(text)
        pipeline = ResolutionPipeline(parsed.registry, logger)

        jobs = await pipeline.collect_jobs(await pipeline.resolve(parsed.dependencies))

        assert [(j.source_path, j.destination) for j in jobs] == [("build/x.zip", "lib/x.zip")]
        assert jobs[0].source_url == "https://a.example.org/repository/download/cfg1/latest.lastSuccessful/build/x.zip"
        assert logger.diagnostics == []

    @pytest.mark.asyncio
    async def test_listing_is_fetched_once_per_entry(self, pipeline, server):
        entries = await pipeline.resolve([dependency("ServerA", "cfg1", path_rules="build/*.zip\nbuild/*.txt\n**")])

        jobs = await pipeline.collect_jobs(entries)

        assert len(jobs) == 4
        assert server.calls["list_artifact_files"] == 1

    @pytest.mark.asyncio
    async def test_listing_failure_only_drops_that_entry(self, logger):
        flaky = make_server("Flaky", failing={"list_artifact_files"})
        good = make_server("ServerA", artifacts={"cfg1": ["a.zip"]})
        registry = ServerRegistry()
        registry.add(flaky)
        registry.add(good)
        pipeline = ResolutionPipeline(registry, logger)
        entries = await pipeline.resolve(
            [dependency("Flaky", "cfg1", path_rules="**"), dependency("ServerA", "cfg1", path_rules="**")]
        )

        jobs = await pipeline.collect_jobs(entries)

        assert [j.source_path for j in jobs] == ["a.zip"]
        assert [d.kind for d in logger.diagnostics] == [ErrorKind.TRANSPORT, ErrorKind.TRANSPORT]

    @pytest.mark.asyncio
    async def test_config_platform_filters_conditions(self, server, logger):
        registry = ServerRegistry()
        registry.add(server)
        config = BuildDependencyConfig.from_dict({"platform": "linux-x64"})
        pipeline = ResolutionPipeline(registry, logger, config)
        entries = await pipeline.resolve(
            [
                dependency("ServerA", "cfg1", path_rules="**", condition=Condition.Win),
                dependency("ServerA", "cfg1", path_rules="build/*.zip", condition=Condition.Linux64),
            ]
        )

        jobs = await pipeline.collect_jobs(entries)

        assert [(j.source_path, j.condition) for j in jobs] == [("build/x.zip", Condition.Linux64)]
        assert len(await pipeline.collect_jobs(entries, PlatformId.WIN_x64)) == 2
        assert logger.diagnostics == []

    @pytest.mark.asyncio
    async def test_codec_passes_its_config_to_the_pipeline(self, server, logger):
        config = BuildDependencyConfig(platform=PlatformId.LINUX_x64)
        codec = DescriptorCodec(logger, config, server_factory=factory_for(server))
        parsed = codec.parse("[[ServerA]]\nType=TeamCity\nUrl=u\n\n[ServerA::cfg1]\nCondition=Win\nPath=**\n")

        entries = await codec.resolve(parsed)
        pipeline = ResolutionPipeline(parsed.registry, logger, codec.config)

        assert len(entries) == 1
        assert await pipeline.collect_jobs(entries) == []


class TestResolveOnce:
    """Tests for the resolve-once memo."""

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_fetch(self):
        calls = []

        async def fetch():
            calls.append(1)
            await asyncio.sleep(0)
            return "value"

        memo = ResolveOnce(fetch)
        results = await asyncio.gather(memo.get(), memo.get(), memo.get())

        assert [r.value for r in results] == ["value"] * 3
        assert len(calls) == 1
        assert memo.resolved

    @pytest.mark.asyncio
    async def test_failure_is_a_value(self):
        async def fetch():
            raise TransportError("boom")

        result = await ResolveOnce(fetch).get()

        assert not result.ok
        assert result.error.message == "boom"

    @pytest.mark.asyncio
    async def test_unawaited_failure_is_fetched_again(self):
        outcomes = [TransportError("boom"), "value"]

        async def fetch():
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        memo = ResolveOnce(fetch)
        first = memo.start()
        await asyncio.sleep(0)

        assert first.done()
        assert not memo.resolved
        assert (await memo.get()).value == "value"
        assert memo.resolved
