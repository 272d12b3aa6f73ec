"""
Moloch Governance Constants

This module consolidates the global constants and environment configuration
used throughout the codebase. Constants are organized by category for easy
reference and maintenance.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# ==================================================================================
# HARD-CODED LIMITS
# ==================================================================================
# Small enough to avoid overflows when doing calculations with periods or
# shares, big enough not to limit reasonable use cases.
MAX_VOTING_PERIOD_LENGTH = 10**8
MAX_GRACE_PERIOD_LENGTH = 10**8
MAX_DILUTION_BOUND = 10**8
MAX_NUMBER_OF_SHARES = 10**8
MAX_PERIOD_DURATION = 10**8          # seconds, a little over three years
MAX_PROPOSAL_DEPOSIT = 10**30        # smallest token units

# Proposal details are free-form bytes, capped to keep records bounded
MAX_DETAILS_LENGTH = 1024

# Shares and balances are unsigned 128-bit quantities
U128_MAX = 2**128 - 1


# ==================================================================================
# VOTE CODES
# ==================================================================================
# Wire codes accepted by submit_vote and carried in SubmitVote records
VOTE_NULL = 0
VOTE_YES = 1
VOTE_NO = 2


# ==================================================================================
# SUMMON DEFAULTS
# ==================================================================================
# Used by the config loader when a [summon] key is missing
SUMMON_DEFAULTS = {
    'period_duration':      17280,  # 4.8 hours
    'voting_period_length': 35,     # 7 days of periods
    'grace_period_length':  35,
    'abort_window':         5,
    'dilution_bound':       3,
    'proposal_deposit':     10,
    'processing_reward':    1,
}


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Only calls ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        # ast.literal_eval expects "True"/"False"
        return ast.literal_eval(s.title())
    return v

for key, default_raw in LOGGER_DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)
