"""
Pydantic data model for the user editable part of an artifact dependency.

ArtifactProperties is what a dependency descriptor section holds: which build
configuration, which build (revision selector), under which condition, and
which files (path rules).
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from builddependency.builddependency_utils import PlatformId
from builddependency.server_models import ArtifactDependencyDeclaration

BUILD_TAG_SUFFIX = ".tcbuildtag"
BUILD_NUMBER_SUFFIX = ".tcbuild"


class Condition(str, Enum):
    """
    Restricts a dependency to some platforms. All applies everywhere.
    """

    All = "All"
    Win = "Win"
    Win32 = "Win32"
    Win64 = "Win64"
    Linux = "Linux"
    Linux32 = "Linux32"
    Linux64 = "Linux64"

    def applies_to(self, platform: PlatformId) -> bool:
        if self == Condition.All:
            return True
        system = "win" if self.value.startswith("Win") else "linux"
        if platform.system != system:
            return False
        if self.value.endswith("32"):
            return platform.bitness == 32
        if self.value.endswith("64"):
            return platform.bitness == 64
        return True


# Revision names whose value is implied by the name itself
DEFAULT_REVISION_VALUES = {
    "lastSuccessful": "latest.lastSuccessful",
    "lastPinned": "latest.lastPinned",
    "lastFinished": "latest.lastFinished",
    "sameChainOrLastFinished": "latest.sameChainOrLastFinished",
}


class ArtifactProperties(BaseModel):
    """
    The declared properties of one artifact dependency.
    """

    build_config_id: str = Field(..., description="Id of the source build configuration")
    revision_name: str = Field("", description="Revision selector kind, e.g. lastSuccessful or buildTag")
    revision_value: str = Field("", description="Revision selector value, e.g. latest.lastSuccessful")
    condition: Condition = Field(Condition.All)
    path_rules: str = Field("", description="Path rules, one per line")
    clean_destination: bool = Field(False, description="Clean destination directories before copying")

    @classmethod
    def from_declaration(cls, declaration: ArtifactDependencyDeclaration) -> "ArtifactProperties":
        """
        Converts an artifact dependency declared on the server.

        Blank path rule lines are dropped since a descriptor can't hold them.
        """
        props = declaration.property_dict()
        rules = props.get("pathRules", "").replace("\r\n", "\n").split("\n")
        return cls(
            build_config_id=declaration.source_build_config_id or "",
            revision_name=props.get("revisionName", ""),
            revision_value=props.get("revisionValue", ""),
            path_rules="\n".join(rule.strip() for rule in rules if rule.strip()),
            clean_destination=props.get("cleanDestinationDirectory", "false").lower() == "true",
        )

    @property
    def revision(self) -> str:
        """The revision used in artifact repository URLs."""
        if self.revision_value:
            return self.revision_value
        return DEFAULT_REVISION_VALUES.get(self.revision_name, "latest.lastSuccessful")

    @property
    def revision_label(self) -> str:
        """Human readable description of the revision selector."""
        if self.revision_name == "lastSuccessful":
            return "Latest successful build"
        if self.revision_name == "lastPinned":
            return "Latest pinned build"
        if self.revision_name == "lastFinished":
            return "Latest finished build"
        if self.revision_name == "sameChainOrLastFinished":
            return "Build from the same chain"
        if self.revision_name == "buildNumber":
            return f"Build #{_strip_suffix(self.revision_value, BUILD_NUMBER_SUFFIX)}"
        if self.revision_name == "buildTag":
            return _strip_suffix(self.revision_value, BUILD_TAG_SUFFIX)
        return self.revision_name

    def path_rule_lines(self):
        return [line for line in self.path_rules.split("\n") if line.strip()]


def _strip_suffix(value: Optional[str], suffix: str) -> str:
    value = value or ""
    if value.endswith(suffix):
        return value[: -len(suffix)]
    return value
