"""
Moloch Governance: share-weighted membership DAO

Provides:
  - Vote / ProposalState / Member / Proposal     (types.py)
  - MembershipRegistry                           (registry.py)
  - ProposalQueue / submit_proposal / abort      (proposals.py)
  - submit_vote                                  (voting.py)
  - process_proposal                             (processing.py)
  - ragequit                                     (ragequit.py)
  - Treasury / LedgerJournal                     (treasury.py)
  - MolochEngine                                 (engine.py)
"""

from .types import (
    Member,
    Proposal,
    ProposalState,
    Vote,
)
from .events import (
    Abort,
    Custody,
    CustodyWithdrawn,
    ProcessProposal,
    Ragequit,
    SubmitProposal,
    SubmitVote,
    SummonComplete,
    UpdateDelegateKey,
)
from .period import PeriodClock
from .registry import MembershipRegistry
from .treasury import LedgerJournal, Treasury
from .proposals import ProposalQueue
from .state import MolochState, TxContext
from .engine import DEFAULT_POOL_ACCOUNT, MolochEngine

__all__ = [
    # Types
    "Member",
    "Proposal",
    "ProposalState",
    "Vote",
    # Events
    "Abort",
    "Custody",
    "CustodyWithdrawn",
    "ProcessProposal",
    "Ragequit",
    "SubmitProposal",
    "SubmitVote",
    "SummonComplete",
    "UpdateDelegateKey",
    # Components
    "LedgerJournal",
    "MembershipRegistry",
    "MolochState",
    "PeriodClock",
    "ProposalQueue",
    "Treasury",
    "TxContext",
    # Engine
    "DEFAULT_POOL_ACCOUNT",
    "MolochEngine",
]
