"""
Moloch TOML Configuration Loader

Loads the [summon], [limits] and [logging] sections of moloch.toml with
environment variable overrides (dataclass + from_dict + from_file).

Environment variable mapping:
    [summon] period_duration   → MOLOCH_PERIOD_DURATION
    [summon] proposal_deposit  → MOLOCH_PROPOSAL_DEPOSIT
    [logging] level            → MOLOCH_LOG_LEVEL
    ...
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    try:
        import tomli  # type: ignore[no-redef]
    except ImportError:
        tomli = None  # type: ignore[assignment]

from ..constants import (
    MAX_DILUTION_BOUND,
    MAX_GRACE_PERIOD_LENGTH,
    MAX_NUMBER_OF_SHARES,
    MAX_PERIOD_DURATION,
    MAX_PROPOSAL_DEPOSIT,
    MAX_VOTING_PERIOD_LENGTH,
    SUMMON_DEFAULTS,
    U128_MAX,
)
from ..exceptions import InvalidParameter

logger = logging.getLogger(__name__)


def _env_int(name: str) -> Optional[int]:
    v = os.environ.get(name)
    if v is None or not v.strip():
        return None
    try:
        return int(v)
    except ValueError:
        raise InvalidParameter(f"{name} must be an integer, got {v!r}")


# -- Limits -------------------------------------------------------------

@dataclass
class LimitsConfig:
    """
    [limits] section: system maxima the summon parameters are checked against.

    abort_window is capped through voting_period_length and processing_reward
    through proposal_deposit.
    """
    max_period_duration: int = MAX_PERIOD_DURATION
    max_voting_period_length: int = MAX_VOTING_PERIOD_LENGTH
    max_grace_period_length: int = MAX_GRACE_PERIOD_LENGTH
    max_dilution_bound: int = MAX_DILUTION_BOUND
    max_shares: int = MAX_NUMBER_OF_SHARES
    max_proposal_deposit: int = MAX_PROPOSAL_DEPOSIT

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LimitsConfig":
        return cls(
            max_period_duration=data.get("max_period_duration", MAX_PERIOD_DURATION),
            max_voting_period_length=data.get("max_voting_period_length", MAX_VOTING_PERIOD_LENGTH),
            max_grace_period_length=data.get("max_grace_period_length", MAX_GRACE_PERIOD_LENGTH),
            max_dilution_bound=data.get("max_dilution_bound", MAX_DILUTION_BOUND),
            max_shares=data.get("max_shares", MAX_NUMBER_OF_SHARES),
            max_proposal_deposit=data.get("max_proposal_deposit", MAX_PROPOSAL_DEPOSIT),
        )

    def validate(self) -> None:
        for name in ("max_period_duration", "max_voting_period_length", "max_grace_period_length",
                     "max_dilution_bound", "max_shares", "max_proposal_deposit"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise InvalidParameter(f"{name} must be a positive integer, got {value!r}")
            if value > U128_MAX:
                raise InvalidParameter(f"{name} exceeds the u128 range")


# -- Summon -------------------------------------------------------------

@dataclass
class SummonConfig:
    """
    [summon] section: the parameters fixed once at summon time.

    Fields:
        period_duration:       Seconds per period
        voting_period_length:  Periods a proposal accepts votes
        grace_period_length:   Periods between voting close and processing
        abort_window:          Periods (from start) during which the applicant may abort
        dilution_bound:        Max multiple of total shares at the last YES vote
        proposal_deposit:      Deposit escrowed from the proposer
        processing_reward:     Part of the deposit paid to whoever processes
    """
    period_duration: int = SUMMON_DEFAULTS["period_duration"]
    voting_period_length: int = SUMMON_DEFAULTS["voting_period_length"]
    grace_period_length: int = SUMMON_DEFAULTS["grace_period_length"]
    abort_window: int = SUMMON_DEFAULTS["abort_window"]
    dilution_bound: int = SUMMON_DEFAULTS["dilution_bound"]
    proposal_deposit: int = SUMMON_DEFAULTS["proposal_deposit"]
    processing_reward: int = SUMMON_DEFAULTS["processing_reward"]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SummonConfig":
        return cls(**{
            name: data.get(name, default)
            for name, default in SUMMON_DEFAULTS.items()
        })

    def apply_env(self) -> None:
        """Override from environment variables."""
        for name in SUMMON_DEFAULTS:
            v = _env_int(f"MOLOCH_{name.upper()}")
            if v is not None:
                setattr(self, name, v)

    def validate(self, limits: Optional[LimitsConfig] = None) -> None:
        """
        Check every parameter against its bound.

        Raises:
            InvalidParameter: on the first violated bound
        """
        limits = limits or LimitsConfig()
        for name in SUMMON_DEFAULTS:
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise InvalidParameter(f"{name} must be a non-negative integer, got {value!r}")
            if value > U128_MAX:
                raise InvalidParameter(f"{name} exceeds the u128 range")

        if self.period_duration < 1:
            raise InvalidParameter("period_duration must be > 0")
        if self.period_duration > limits.max_period_duration:
            raise InvalidParameter(
                f"period_duration {self.period_duration} exceeds limit {limits.max_period_duration}"
            )
        if self.voting_period_length < 1:
            raise InvalidParameter("voting_period_length must be > 0")
        if self.voting_period_length > limits.max_voting_period_length:
            raise InvalidParameter(
                f"voting_period_length {self.voting_period_length} exceeds limit "
                f"{limits.max_voting_period_length}"
            )
        if self.grace_period_length > limits.max_grace_period_length:
            raise InvalidParameter(
                f"grace_period_length {self.grace_period_length} exceeds limit "
                f"{limits.max_grace_period_length}"
            )
        if self.abort_window < 1:
            raise InvalidParameter("abort_window must be > 0")
        if self.abort_window > self.voting_period_length:
            raise InvalidParameter("abort_window must be <= voting_period_length")
        if self.dilution_bound < 1:
            raise InvalidParameter("dilution_bound must be > 0")
        if self.dilution_bound > limits.max_dilution_bound:
            raise InvalidParameter(
                f"dilution_bound {self.dilution_bound} exceeds limit {limits.max_dilution_bound}"
            )
        if self.proposal_deposit > limits.max_proposal_deposit:
            raise InvalidParameter(
                f"proposal_deposit {self.proposal_deposit} exceeds limit {limits.max_proposal_deposit}"
            )
        if self.proposal_deposit < self.processing_reward:
            raise InvalidParameter("proposal_deposit cannot be smaller than processing_reward")

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in SUMMON_DEFAULTS}


# -- Logging ------------------------------------------------------------

@dataclass
class LoggingConfig:
    """[logging] section."""
    level: str = "INFO"
    file: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        return cls(
            level=data.get("level", "INFO"),
            file=data.get("file", ""),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("MOLOCH_LOG_LEVEL"):
            self.level = v
        if v := os.environ.get("MOLOCH_LOG_FILE"):
            self.file = v

    def validate(self) -> None:
        if self.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise InvalidParameter(f"Invalid log level: {self.level}")


# -----------------------------------------------------------------------
# Top-level config
# -----------------------------------------------------------------------

@dataclass
class MolochConfig:
    """Complete configuration: summon parameters, limits, logging."""
    summon: SummonConfig = field(default_factory=SummonConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MolochConfig":
        return cls(
            summon=SummonConfig.from_dict(data.get("summon", {})),
            limits=LimitsConfig.from_dict(data.get("limits", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "MolochConfig":
        """
        Load configuration from a TOML file.

        A missing file yields the defaults (with env overrides).
        """
        if tomli is None:
            raise ImportError(
                "tomli is required for TOML config loading. "
                "Install it: pip install tomli"
            )

        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        with open(path, "rb") as f:
            raw = tomli.load(f)

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.summon.apply_env()
        self.logging.apply_env()

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Raises:
            InvalidParameter: on invalid config
        """
        self.limits.validate()
        self.summon.validate(self.limits)
        self.logging.validate()
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics)."""
        return {
            "summon": self.summon.to_dict(),
            "limits": {
                "max_period_duration": self.limits.max_period_duration,
                "max_voting_period_length": self.limits.max_voting_period_length,
                "max_grace_period_length": self.limits.max_grace_period_length,
                "max_dilution_bound": self.limits.max_dilution_bound,
                "max_shares": self.limits.max_shares,
                "max_proposal_deposit": self.limits.max_proposal_deposit,
            },
            "logging": {
                "level": self.logging.level,
                "file": self.logging.file,
            },
        }


def load_config(path: Optional[str] = None) -> MolochConfig:
    """
    Load configuration.

    Resolution order:
        1. Explicit *path* argument
        2. MOLOCH_CONFIG env var
        3. ./moloch.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("MOLOCH_CONFIG", "moloch.toml")

    return MolochConfig.from_file(path)
