"""
Moloch Governance Package

Core imports are lazily loaded so that `moloch.config` and `moloch.logger`
can be used without pulling in the engine.

    from moloch import MolochEngine
    from moloch.ledger import InMemoryLedger, ManualClock
    from moloch.exceptions import PendingCommitment
"""

__version__ = "1.0.0"


def __getattr__(name):
    """Lazy module loading."""
    if name == 'MolochEngine':
        from .governance.engine import MolochEngine
        return MolochEngine
    elif name == 'MolochConfig':
        from .config import MolochConfig
        return MolochConfig
    elif name == 'MolochError':
        from .exceptions import MolochError
        return MolochError
    raise AttributeError(f"module 'moloch' has no attribute {name!r}")

__all__ = ['MolochEngine', 'MolochConfig', 'MolochError']
