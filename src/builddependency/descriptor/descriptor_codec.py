"""
Reads and writes dependency descriptors.

A descriptor is a line oriented text file:

    # comment
    [[ServerName]]
    Type=TeamCity
    Url=https://build.example.org

    [ServerName::BuildConfigId]
    Name=informational, not read back
    RevisionName=lastSuccessful
    RevisionValue=latest.lastSuccessful
    Condition=All
    Path=first rule
    second rule

Keys are case-sensitive. A blank line ends a block; Path continues on the
following non-blank lines. Descriptors are edited by hand, so a bad line is
reported and skipped, never fatal.
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from builddependency.artifacts.artifact_properties import ArtifactProperties, Condition
from builddependency.artifacts.dependency_entry import DependencyEntry
from builddependency.builddependency_config import BuildDependencyConfig
from builddependency.builddependency_exceptions import FatalIOError
from builddependency.builddependency_logger import BuildDependencyLogger, Diagnostic, ErrorKind
from builddependency.descriptor.parsed_descriptor import ParsedDependency, ParsedDescriptor
from builddependency.resolution.pipeline import ResolutionPipeline
from builddependency.server_models import ServerType
from builddependency.servers.server import BuildServer
from builddependency.version import __version__

ServerFactory = Callable[[ServerType, str, str], BuildServer]

SECTION_SEPARATOR = "::"

HEADER = [
    "# This file lists dependencies",
    "# It can be edited by hand or with the builddependency tools.",
    f"# Edited with version {__version__}",
]


class DescriptorCodec:
    """
    Parser and writer for the dependency descriptor format.
    """

    def __init__(
        self,
        logger: Optional[BuildDependencyLogger] = None,
        config: Optional[BuildDependencyConfig] = None,
        server_factory: Optional[ServerFactory] = None,
    ):
        """
        Args:
            logger: Diagnostics sink; a new one is created if omitted
            config: Passed to the server connectors created while parsing
            server_factory: Creates connectors for [[server]] blocks, defaults to BuildServer.create
        """
        self.logger = logger or BuildDependencyLogger()
        self.config = config or BuildDependencyConfig()
        self.server_factory = server_factory or (
            lambda server_type, name, url: BuildServer.create(server_type, name, url, self.config)
        )

    # ========================================================================
    # Writing
    # ========================================================================

    def save(self, servers: Sequence[BuildServer], entries: Sequence[DependencyEntry]) -> str:
        """
        Serializes servers and dependencies, servers first, each in the given order.
        """
        lines = list(HEADER)
        lines.append("")
        for server in servers:
            lines.append(f"[[{server.name}]]")
            lines.append(f"Type={server.server_type.value}")
            lines.append(f"Url={server.url}")
            lines.append("")

        for entry in entries:
            lines.append(f"[{entry.server.name}{SECTION_SEPARATOR}{entry.build_config_id}]")
            lines.append(f"Name={entry.config_name}")
            lines.append(f"RevisionName={entry.revision_name}")
            lines.append(f"RevisionValue={entry.revision_value}")
            lines.append(f"Condition={entry.condition.value}")
            if entry.clean_destination:
                lines.append("CleanDestination=True")
            # Path has to come last, its value runs up to the blank line
            lines.append("Path=" + "\n".join(entry.properties.path_rule_lines()))
            lines.append("")

        return "\n".join(lines) + "\n"

    def save_file(self, file_name: str, servers: Sequence[BuildServer], entries: Sequence[DependencyEntry]) -> None:
        """
        Raises:
            FatalIOError: If the file can't be written
        """
        text = self.save(servers, entries)
        try:
            with open(file_name, "w", encoding="utf-8", newline="\n") as f:
                f.write(text)
        except OSError as e:
            raise FatalIOError(f"Can't write dependency file {file_name}: {e}", file_name)

    # ========================================================================
    # Reading
    # ========================================================================

    def parse(self, text: str) -> ParsedDescriptor:
        """
        Parses a descriptor without contacting any server.

        Servers are registered in the returned registry; dependency sections
        naming an unknown server are reported and left out.
        """
        parsed = ParsedDescriptor()
        lines = text.splitlines()
        current: Optional[ParsedDependency] = None
        i = 0
        while i < len(lines):
            line = lines[i]
            line_number = i + 1
            i += 1
            stripped = line.strip()

            if stripped.startswith("[["):
                current = None
                i = self._read_server(lines, i, line, line_number, parsed)
            elif stripped.startswith("["):
                current = self._start_dependency(line, line_number, parsed)
                if not current.placeholder:
                    parsed.dependencies.append(current)
            elif not stripped:
                current = None
            elif stripped.startswith("#"):
                continue
            else:
                i = self._read_dependency_key(lines, i, line, line_number, current)

        return parsed

    def _error(self, message: str, kind: ErrorKind, line_number: int, line: str) -> None:
        self.logger.log(message, logging.ERROR, kind, line_number, line)

    def _read_server(self, lines: List[str], i: int, header: str, header_number: int, parsed: ParsedDescriptor) -> int:
        """
        Reads a [[server]] block starting after its header line.

        Returns:
            Index of the first line after the block
        """
        name = header.strip().strip("[]").strip()
        server_type = None
        type_seen = False
        url = ""

        while i < len(lines):
            line = lines[i]
            line_number = i + 1
            i += 1
            if not line.strip():
                break
            if line.strip().startswith("#"):
                continue

            key, separator, value = line.partition("=")
            if not separator:
                self._error(f"Can't interpret line {line_number}. Skipping {line}.", ErrorKind.FORMAT, line_number, line)
                continue
            key = key.strip()
            if key == "Type":
                type_seen = True
                try:
                    server_type = ServerType(value.strip())
                except ValueError:
                    self._error(
                        f"Can't interpret type {value} on line {line_number}. Skipping {line}.",
                        ErrorKind.FORMAT,
                        line_number,
                        line,
                    )
            elif key == "Url":
                url = value.strip()
            else:
                self._error(
                    f"Unknown key '{key}' on line {line_number}. Skipping {line}.", ErrorKind.FORMAT, line_number, line
                )

        if not name:
            self._error(f"Missing server name on line {header_number}. Skipping {header}.", ErrorKind.FORMAT, header_number, header)
        elif server_type is None:
            if not type_seen:
                self._error(
                    f"Server '{name}' on line {header_number} has no type. Skipping {header}.",
                    ErrorKind.FORMAT,
                    header_number,
                    header,
                )
        elif name in parsed.registry:
            self._error(
                f"Server '{name}' on line {header_number} is already defined. Skipping {header}.",
                ErrorKind.FORMAT,
                header_number,
                header,
            )
        else:
            parsed.registry.add(self.server_factory(server_type, name, url))
        return i

    def _start_dependency(self, line: str, line_number: int, parsed: ParsedDescriptor) -> ParsedDependency:
        server_name, separator, config_id = line.strip().strip("[]").partition(SECTION_SEPARATOR)
        server_name = server_name.strip()
        config_id = config_id.strip()

        if not separator or not server_name or not config_id:
            self._error(f"Can't interpret line {line_number}. Skipping {line}.", ErrorKind.FORMAT, line_number, line)
            placeholder = True
        elif server_name not in parsed.registry:
            self._error(
                f"Can't find server '{server_name}' mentioned on line {line_number}. Skipping {line}.",
                ErrorKind.REFERENCE,
                line_number,
                line,
            )
            placeholder = True
        else:
            placeholder = False

        # placeholders still consume the section's lines so they don't end up elsewhere
        return ParsedDependency(
            server_name,
            ArtifactProperties(build_config_id=config_id),
            line_number,
            line,
            placeholder=placeholder,
        )

    def _read_dependency_key(
        self, lines: List[str], i: int, line: str, line_number: int, current: Optional[ParsedDependency]
    ) -> int:
        """
        Applies one key=value line to the current dependency section.

        Returns:
            Index of the next line to read
        """
        key, separator, value = line.partition("=")
        if not separator:
            self._error(f"Can't interpret line {line_number}. Skipping {line}.", ErrorKind.FORMAT, line_number, line)
            return i
        if current is None:
            self._error(
                f"Line {line_number} is outside of a section. Skipping {line}.", ErrorKind.FORMAT, line_number, line
            )
            return i

        properties = current.properties
        key = key.strip()
        if key == "Name":
            pass
        elif key == "RevisionName":
            properties.revision_name = value
        elif key == "RevisionValue":
            properties.revision_value = value
        elif key == "Condition":
            try:
                properties.condition = Condition(value.strip())
            except ValueError:
                self._error(
                    f"Can't interpret condition '{value}' on line {line_number}. Skipping {line}.",
                    ErrorKind.FORMAT,
                    line_number,
                    line,
                )
        elif key == "CleanDestination":
            if value.strip().lower() in ("true", "false"):
                properties.clean_destination = value.strip().lower() == "true"
            else:
                self._error(
                    f"Can't interpret flag '{value}' on line {line_number}. Skipping {line}.",
                    ErrorKind.FORMAT,
                    line_number,
                    line,
                )
        elif key == "Path":
            if not value:
                return i
            rules = [value]
            while i < len(lines) and lines[i].strip():
                rules.append(lines[i])
                i += 1
            properties.path_rules = "\n".join(rules)
        else:
            self._error(
                f"Unknown key '{key}' on line {line_number}. Skipping {line}.", ErrorKind.FORMAT, line_number, line
            )
        return i

    async def resolve(self, parsed: ParsedDescriptor) -> List[DependencyEntry]:
        """Resolves the parsed dependency sections against their servers."""
        pipeline = ResolutionPipeline(parsed.registry, self.logger, self.config)
        return await pipeline.resolve(parsed.dependencies)

    async def load(self, text: str) -> Tuple[List[DependencyEntry], List[Diagnostic]]:
        """
        Parses a descriptor and resolves its dependencies.

        Returns:
            The dependencies that could be resolved and the diagnostics
            reported while loading
        """
        first = len(self.logger.diagnostics)
        parsed = self.parse(text)
        try:
            entries = await self.resolve(parsed)
        finally:
            await parsed.registry.close()
        return entries, self.logger.diagnostics[first:]

    @staticmethod
    def read_file(file_name: str) -> str:
        """
        Raises:
            FatalIOError: If the file can't be read
        """
        try:
            with open(file_name, "r", encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise FatalIOError(f"Can't read dependency file {file_name}: {e}", file_name)

    async def load_file(self, file_name: str) -> Tuple[List[DependencyEntry], List[Diagnostic]]:
        return await self.load(self.read_file(file_name))
