"""
State aggregate and per-transaction context.

MolochState owns everything the engine mutates: configuration, registry,
queue and treasury. Operations receive a working copy plus a TxContext and
either return normally (the copy is committed) or raise (it is dropped).
"""

from dataclasses import dataclass, field
from typing import Any, List

from ..config.loader import LimitsConfig, SummonConfig
from .proposals import ProposalQueue
from .registry import MembershipRegistry
from .treasury import LedgerJournal, Treasury


@dataclass
class MolochState:
    summon: SummonConfig
    limits: LimitsConfig
    summon_time: int
    registry: MembershipRegistry
    queue: ProposalQueue
    treasury: Treasury

    def to_dict(self):
        return {
            "summon": self.summon.to_dict(),
            "summonTime": self.summon_time,
            "registry": self.registry.to_dict(),
            "queue": self.queue.to_dict(),
            "treasury": self.treasury.to_dict(),
        }


@dataclass
class TxContext:
    """What one transaction may touch outside the state copy."""
    journal: LedgerJournal
    current_period: int
    events: List[Any] = field(default_factory=list)

    def emit(self, event: Any) -> None:
        self.events.append(event)
