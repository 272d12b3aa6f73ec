"""
Moloch Configuration

Loads moloch.toml; environment variables override TOML values.
"""

from .loader import (
    LimitsConfig,
    LoggingConfig,
    MolochConfig,
    SummonConfig,
    load_config,
)

__all__ = [
    "LimitsConfig",
    "LoggingConfig",
    "MolochConfig",
    "SummonConfig",
    "load_config",
]
