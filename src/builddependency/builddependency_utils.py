"""
This file contains various utility functions like platform detection.
"""

import platform
from enum import Enum


class PlatformId(str, Enum):
    """
    Platform identifiers used when evaluating dependency conditions
    """

    WIN_x86 = "win-x86"
    WIN_x64 = "win-x64"
    WIN_arm64 = "win-arm64"
    OSX_x64 = "osx-x64"
    OSX_arm64 = "osx-arm64"
    LINUX_x86 = "linux-x86"
    LINUX_x64 = "linux-x64"
    LINUX_arm64 = "linux-arm64"

    @property
    def system(self) -> str:
        return self.value.split("-")[0]

    @property
    def bitness(self) -> int:
        return 32 if self.value.endswith("x86") else 64


class PlatformUtils:
    """
    This class provides utilities for platform detection and identification.
    """

    @staticmethod
    def get_platform_id() -> PlatformId:
        """
        Returns the platform id for the current system
        """
        system = platform.system()
        machine = platform.machine().lower()
        bitness = platform.architecture()[0]
        system_map = {"Windows": "win", "Darwin": "osx", "Linux": "linux"}
        if system not in system_map:
            raise NotImplementedError(f"Unsupported platform: {system}")
        if machine in ("arm64", "aarch64"):
            arch = "arm64"
        elif bitness == "64bit":
            arch = "x64"
        else:
            arch = "x86"
        return PlatformId(f"{system_map[system]}-{arch}")
