"""Route adapters."""

from explox.adapters.route.fixture import FixtureRouteTool
from explox.adapters.route.osrm import OsrmRouteTool

__all__ = ["FixtureRouteTool", "OsrmRouteTool"]
