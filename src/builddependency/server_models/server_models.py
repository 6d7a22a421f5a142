"""
Pydantic data models for the metadata a build server reports.

These mirror the JSON documents returned by the TeamCity REST API, but are
used by every connector: the resolution pipeline only depends on these models.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ServerType(str, Enum):
    """Kinds of build server connectors."""

    TeamCity = "TeamCity"


class Project(BaseModel):
    """A project on a build server."""

    id: str = Field(..., description="Server assigned project id")
    name: str = Field("", description="Display name")
    parent_project_id: Optional[str] = Field(None, alias="parentProjectId")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class BuildConfiguration(BaseModel):
    """A build configuration (TeamCity: build type). Belongs to exactly one project."""

    id: str = Field(..., description="Server assigned build configuration id")
    name: str = Field("", description="Display name")
    project_id: str = Field(..., alias="projectId")
    project_name: Optional[str] = Field(None, alias="projectName")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class BuildConfigurationRef(BaseModel):
    """A reference to a build configuration, as embedded in other documents."""

    id: str
    name: str = ""

    model_config = ConfigDict(extra="ignore")


class Property(BaseModel):
    name: str
    value: str = ""


class ArtifactDependencyDeclaration(BaseModel):
    """
    An artifact dependency declared on the server for a build configuration.

    The interesting bits are in ``properties``: pathRules, revisionName,
    revisionValue, cleanDestinationDirectory and the source build type.
    """

    id: str = ""
    type: str = "artifact_dependency"
    properties: List[Property] = Field(default_factory=list)
    source_build_type: Optional[BuildConfigurationRef] = Field(None, alias="source-buildType")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @classmethod
    def from_rest(cls, data: Dict) -> "ArtifactDependencyDeclaration":
        """
        Create a declaration from a TeamCity REST document, where properties
        are wrapped as {"count": n, "property": [...]}.
        """
        data = dict(data)
        properties = data.get("properties") or {}
        if isinstance(properties, dict):
            data["properties"] = properties.get("property", [])
        return cls(**data)

    def property_dict(self) -> Dict[str, str]:
        return {p.name: p.value for p in self.properties}

    @property
    def source_build_config_id(self) -> Optional[str]:
        if self.source_build_type is not None:
            return self.source_build_type.id
        return self.property_dict().get("source_buildTypeId")
