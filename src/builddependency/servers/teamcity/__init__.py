from .teamcity_server import TeamCityServer

__all__ = ["TeamCityServer"]
