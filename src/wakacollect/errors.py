"""Exception types for wakacollect.

The collector core never raises past its own boundary: branch lookups
return explicit results and subscriber failures are logged. These types
cover the outer surfaces (configuration loading, the CLI).
"""


class WakaCollectError(Exception):
    """Base class for wakacollect errors."""


class ConfigError(WakaCollectError):
    """Configuration file or environment override is invalid."""
