"""
Dependency descriptor reading and writing.
"""

from .parsed_descriptor import ParsedDependency, ParsedDescriptor
from .descriptor_codec import DescriptorCodec

__all__ = ["ParsedDependency", "ParsedDescriptor", "DescriptorCodec"]
