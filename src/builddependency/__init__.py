"""
builddependency resolves build artifact dependency descriptors into download jobs.
"""

from builddependency.version import __version__
from builddependency.builddependency_config import BuildDependencyConfig
from builddependency.builddependency_exceptions import (
    BuildDependencyException,
    ConfigurationError,
    FatalIOError,
    TransportError,
)
from builddependency.builddependency_logger import BuildDependencyLogger, Diagnostic, ErrorKind
from builddependency.artifacts import ArtifactProperties, Condition, DependencyEntry, Job, PathRule
from builddependency.descriptor import DescriptorCodec, ParsedDescriptor
from builddependency.resolution import DependencyImporter, ResolutionPipeline
from builddependency.servers import BuildServer, ServerRegistry

__all__ = [
    "__version__",
    "BuildDependencyConfig",
    "BuildDependencyException",
    "ConfigurationError",
    "FatalIOError",
    "TransportError",
    "BuildDependencyLogger",
    "Diagnostic",
    "ErrorKind",
    "ArtifactProperties",
    "Condition",
    "DependencyEntry",
    "Job",
    "PathRule",
    "DescriptorCodec",
    "ParsedDescriptor",
    "DependencyImporter",
    "ResolutionPipeline",
    "BuildServer",
    "ServerRegistry",
]
