"""
Path rules and the jobs they expand to.

A path rule is one line of the form

    [+:|-:]source_pattern[!archive_pattern][=>destination]

source_pattern is matched against the whole artifact path, case-sensitive:
``**`` matches anything including '/', ``*`` anything except '/', ``?`` one
character except '/'. ``**/`` also matches no directory at all.

Without ``=>`` a job's destination is the matched artifact path. A
destination ending in '/' (or an empty one) is a directory: the artifact path
below the pattern's wildcard-free directory prefix is appended to it. Any other
destination is used literally.
"""

import dataclasses
import re
from typing import Callable, Iterable, List, Optional, Pattern

from builddependency.artifacts.artifact_properties import Condition
from builddependency.builddependency_utils import PlatformId

RULE_SEPARATOR = "=>"
ARCHIVE_SEPARATOR = "!"
INCLUDE_PREFIX = "+:"
EXCLUDE_PREFIX = "-:"
WILDCARDS = "*?"


@dataclasses.dataclass(frozen=True)
class Job:
    """
    Copy one remote artifact to one local destination.

    When archive_path is set the artifact is an archive and the entries
    matching archive_path are extracted into destination instead.
    """

    source_url: str
    source_path: str
    destination: str
    condition: Condition = Condition.All
    clean_destination: bool = False
    archive_path: Optional[str] = None

    @property
    def is_archive_extraction(self) -> bool:
        return self.archive_path is not None


def pattern_to_regex(pattern: str) -> Pattern:
    """Translates a path rule wildcard pattern into a compiled regex."""
    out = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**", i):
            i += 2
            if pattern.startswith("/", i):
                out.append("(?:.*/)?")
                i += 1
            else:
                out.append(".*")
            continue
        c = pattern[i]
        if c == "*":
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        else:
            out.append(re.escape(c))
        i += 1
    return re.compile("".join(out), re.DOTALL)


def literal_root(pattern: str) -> str:
    """
    Returns the directory prefix of pattern that contains no wildcard,
    including its trailing '/'.
    """
    wildcard = min((pattern.find(c) for c in WILDCARDS if c in pattern), default=len(pattern))
    prefix = pattern[:wildcard]
    return prefix[: prefix.rfind("/") + 1]


class PathRule:
    """
    One parsed path rule line.
    """

    def __init__(self, line: str, condition: Condition = Condition.All):
        """
        Parses a path rule.

        Args:
            line: The rule text
            condition: Condition of the dependency the rule belongs to
        """
        self.line = line
        self.condition = condition
        self.exclude = False

        text = line.strip()
        if text.startswith(INCLUDE_PREFIX):
            text = text[len(INCLUDE_PREFIX):]
        elif text.startswith(EXCLUDE_PREFIX):
            text = text[len(EXCLUDE_PREFIX):]
            self.exclude = True

        source, separator, destination = text.partition(RULE_SEPARATOR)
        self.destination: Optional[str] = destination.strip() if separator else None

        source, bang, archive_path = source.strip().partition(ARCHIVE_SEPARATOR)
        self.source_pattern = source.strip().lstrip("/")
        self.archive_path: Optional[str] = archive_path.strip() if bang else None

        self._regex = pattern_to_regex(self.source_pattern)
        self._root = literal_root(self.source_pattern)

    def matches(self, path: str) -> bool:
        return self._regex.fullmatch(path.lstrip("/")) is not None

    def applies_to(self, platform: Optional[PlatformId]) -> bool:
        return platform is None or self.condition.applies_to(platform)

    def destination_for(self, path: str) -> str:
        """Computes the local destination of a matched artifact path."""
        path = path.lstrip("/")
        if self.archive_path is not None:
            return self.destination or ""
        if self.destination is None:
            return path
        if self.destination == "" or self.destination.endswith("/"):
            return self.destination + path[len(self._root):]
        return self.destination

    def job_for(self, path: str, source_url: str, clean_destination: bool = False) -> Optional[Job]:
        """Returns the job for path, or None if the rule doesn't match it."""
        if self.exclude or not self.matches(path):
            return None
        return Job(
            source_url=source_url,
            source_path=path,
            destination=self.destination_for(path),
            condition=self.condition,
            clean_destination=clean_destination,
            archive_path=self.archive_path,
        )

    def __repr__(self) -> str:
        return f"PathRule({self.line!r})"


def parse_path_rules(path_rules: str, condition: Condition = Condition.All) -> List[PathRule]:
    """Parses every non-empty line of path_rules, keeping their order."""
    return [PathRule(line, condition) for line in path_rules.split("\n") if line.strip()]


def expand_jobs(
    rules: List[PathRule],
    files: Iterable[str],
    url_for: Callable[[str], str],
    clean_destination: bool = False,
    platform: Optional[PlatformId] = None,
) -> List[Job]:
    """
    Matches rules against an artifact listing.

    Jobs are ordered by rule, then by position of the file in the listing.
    Files matched by an exclusion rule produce no job. Two rules matching the
    same file both produce a job.

    Args:
        rules: Parsed path rules of one dependency
        files: Artifact paths as listed by the server
        url_for: Maps an artifact path to its download URL
        clean_destination: Flag copied to every job
        platform: If set, rules whose condition doesn't apply are skipped
    """
    files = list(files)
    excludes = [rule for rule in rules if rule.exclude]
    included = [f for f in files if not any(rule.matches(f) for rule in excludes)]

    jobs = []
    for rule in rules:
        if rule.exclude or not rule.applies_to(platform):
            continue
        for path in included:
            job = rule.job_for(path, url_for(path), clean_destination)
            if job is not None:
                jobs.append(job)
    return jobs
