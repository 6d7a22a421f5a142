"""
Configuration parameters for builddependency.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

try:
    import tomllib
except ModuleNotFoundError:
    # Python < 3.11
    import tomli as tomllib

from builddependency.builddependency_exceptions import ConfigurationError
from builddependency.builddependency_utils import PlatformId, PlatformUtils


@dataclass
class BuildDependencyConfig:
    """
    Configuration parameters for talking to build servers and expanding jobs.
    """

    request_timeout: float = 30.0
    guest_auth: bool = True
    username: Optional[str] = None
    password: Optional[str] = None
    verify_ssl: bool = True
    platform: Optional[PlatformId] = None

    @classmethod
    def from_dict(cls, env: Dict[str, Any]) -> "BuildDependencyConfig":
        """
        Create a BuildDependencyConfig instance from a dictionary.

        Unknown keys are ignored.

        Raises:
            ConfigurationError: If a value has the wrong type or is out of range
        """
        import inspect

        values = {
            k: v for k, v in env.items() if k in inspect.signature(cls).parameters
        }

        timeout = values.get("request_timeout", cls.request_timeout)
        if not isinstance(timeout, (int, float)) or isinstance(timeout, bool) or timeout <= 0:
            raise ConfigurationError(f"'request_timeout' must be a positive number, got {timeout!r}")
        values["request_timeout"] = float(timeout)

        for flag in ("guest_auth", "verify_ssl"):
            if flag in values and not isinstance(values[flag], bool):
                raise ConfigurationError(f"'{flag}' must be true or false")

        if values.get("platform") is not None:
            try:
                values["platform"] = PlatformId(values["platform"])
            except ValueError:
                raise ConfigurationError(f"Unsupported platform: {values['platform']}")

        config = cls(**values)
        if not config.guest_auth and not config.username:
            raise ConfigurationError("'username' is required when 'guest_auth' is false")
        return config

    @classmethod
    def from_toml_file(cls, path: str) -> "BuildDependencyConfig":
        """
        Load the configuration from the [builddependency] table of a TOML file.

        Args:
            path: Path to the TOML file

        Returns:
            BuildDependencyConfig instance

        Raises:
            ConfigurationError: If the file can't be read or is invalid
        """
        try:
            with open(path, "rb") as f:
                toml_dict = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigurationError(f"Failed to load configuration from {path}: {str(e)}")

        section = toml_dict.get("builddependency", {})
        if not isinstance(section, dict):
            raise ConfigurationError("[builddependency] must be a table")
        return cls.from_dict(section)

    @property
    def target_platform(self) -> PlatformId:
        """The platform conditions are evaluated against."""
        return self.platform or PlatformUtils.get_platform_id()
