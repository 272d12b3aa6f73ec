"""
Moloch Host Collaborators

Provides:
  - Ledger / Clock / EventSink                       (interfaces.py)
  - InMemoryLedger / SystemClock / ManualClock /
    InMemoryEventSink                                (memory.py)
"""

from .interfaces import (
    Clock,
    EventSink,
    Ledger,
)
from .memory import (
    InMemoryEventSink,
    InMemoryLedger,
    ManualClock,
    SystemClock,
)

__all__ = [
    "Clock",
    "EventSink",
    "Ledger",
    "InMemoryEventSink",
    "InMemoryLedger",
    "ManualClock",
    "SystemClock",
]
