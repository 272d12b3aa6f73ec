"""
Proposal Queue: submission and abort

The queue is append-only with stable integer indices; indices are referenced
by members' highest_index_yes_vote and by the sequential processing rule, so
entries are never reordered or removed.

Each new proposal starts voting at least one period after both the current
period and its predecessor's start, giving a FIFO order of voting windows.
"""

import copy
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

from ..constants import MAX_DETAILS_LENGTH
from ..exceptions import (
    AbortWindowPassed,
    AlreadyProcessed,
    ArithmeticOverflow,
    InvalidAmount,
    InvalidApplicant,
    InvalidDetails,
    NotApplicant,
    ProposalAborted,
    ProposalNotFound,
    ShareSupplyOverflow,
)
from ..logger import get_logger
from .events import Abort, SubmitProposal
from .math import checked_add, checked_sub, require_u128
from .types import Proposal

if TYPE_CHECKING:
    from .state import MolochState, TxContext

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  QUEUE
# ══════════════════════════════════════════════════════════════════════

class ProposalQueue:
    """Arena of proposals plus the outstanding share-request counter."""

    def __init__(self) -> None:
        self._proposals: List[Proposal] = []
        self.total_shares_requested: int = 0

    def __len__(self) -> int:
        return len(self._proposals)

    def __iter__(self) -> Iterator[Proposal]:
        return iter(self._proposals)

    def get(self, index: int) -> Proposal:
        if not isinstance(index, int) or isinstance(index, bool):
            raise ProposalNotFound(f"Proposal index must be an integer, got {index!r}")
        if index < 0 or index >= len(self._proposals):
            raise ProposalNotFound(f"Proposal #{index} does not exist")
        return self._proposals[index]

    def exists(self, index: int) -> bool:
        return 0 <= index < len(self._proposals)

    @property
    def last(self) -> Optional[Proposal]:
        return self._proposals[-1] if self._proposals else None

    def next_starting_period(self, current_period: int) -> int:
        last_start = self.last.starting_period if self.last is not None else 0
        return max(current_period, last_start) + 1

    def append(self, proposal: Proposal) -> int:
        if proposal.index != len(self._proposals):
            raise ProposalNotFound(
                f"Proposal index {proposal.index} does not match queue length {len(self._proposals)}"
            )
        self._proposals.append(proposal)
        return proposal.index

    def __deepcopy__(self, memo: Dict[int, Any]) -> "ProposalQueue":
        # Processed proposals are final, so copies share them
        clone = ProposalQueue()
        memo[id(self)] = clone
        clone.total_shares_requested = self.total_shares_requested
        clone._proposals = [
            p if p.processed else copy.deepcopy(p, memo) for p in self._proposals
        ]
        return clone

    def reserve_shares(self, shares: int) -> None:
        self.total_shares_requested = checked_add(self.total_shares_requested, shares)

    def release_shares(self, shares: int) -> None:
        self.total_shares_requested = checked_sub(self.total_shares_requested, shares)

    def to_dict(self):
        return {
            "length": len(self._proposals),
            "totalSharesRequested": self.total_shares_requested,
            "proposals": [p.to_dict() for p in self._proposals],
        }


# ══════════════════════════════════════════════════════════════════════
#  OPERATIONS
# ══════════════════════════════════════════════════════════════════════

def submit_proposal(
    state: "MolochState",
    ctx: "TxContext",
    caller: str,
    applicant: str,
    token_tribute: int,
    shares_requested: int,
    details: bytes,
) -> int:
    """
    Queue a membership proposal for *applicant*.

    The caller is a delegate key; the proposer recorded is the member behind
    it. The proposal deposit comes from the caller, the tribute from the
    applicant's custody balance.

    Returns:
        The new proposal's index.
    """
    member = state.registry.require_shareholder(caller)

    if not applicant:
        raise InvalidApplicant("Applicant address is required")
    try:
        require_u128(token_tribute, "token_tribute")
        require_u128(shares_requested, "shares_requested")
    except ArithmeticOverflow as e:
        raise InvalidAmount(str(e)) from e
    if isinstance(details, str):
        details = details.encode()
    if not isinstance(details, (bytes, bytearray)):
        raise InvalidDetails("Proposal details must be bytes")
    if len(details) > MAX_DETAILS_LENGTH:
        raise InvalidDetails(
            f"Proposal details are {len(details)} bytes, limit is {MAX_DETAILS_LENGTH}"
        )

    queue = state.queue
    requested_total = (
        state.registry.total_shares + queue.total_shares_requested + shares_requested
    )
    if requested_total > state.limits.max_shares:
        raise ShareSupplyOverflow(
            f"Requested shares would bring the supply to {requested_total}, "
            f"limit is {state.limits.max_shares}"
        )

    state.treasury.escrow_proposal(
        ctx.journal,
        depositor=caller,
        deposit=state.summon.proposal_deposit,
        applicant=applicant,
        tribute=token_tribute,
    )

    index = len(queue)
    proposal = Proposal(
        index=index,
        proposer=member.account,
        applicant=applicant,
        shares_requested=shares_requested,
        starting_period=queue.next_starting_period(ctx.current_period),
        token_tribute=token_tribute,
        details=bytes(details),
    )
    queue.append(proposal)
    queue.reserve_shares(shares_requested)

    ctx.emit(SubmitProposal(
        proposal_index=index,
        delegate_key=caller,
        member=member.account,
        applicant=applicant,
        token_tribute=token_tribute,
        shares_requested=shares_requested,
    ))
    logger.info(
        f"Proposal #{index} submitted by {member.account}: applicant={applicant} "
        f"shares={shares_requested} tribute={token_tribute} "
        f"starts at period {proposal.starting_period}"
    )
    return index


def abort(state: "MolochState", ctx: "TxContext", caller: str, proposal_index: int) -> None:
    """
    Applicant withdraws its proposal before the abort window closes.

    The tribute is returned at once; the proposal still has to be processed
    (in order) to release the proposer's deposit, and can no longer pass.
    """
    proposal = state.queue.get(proposal_index)

    if caller != proposal.applicant:
        raise NotApplicant(f"Only applicant {proposal.applicant} can abort proposal #{proposal_index}")
    if proposal.processed:
        raise AlreadyProcessed(f"Proposal #{proposal_index} has already been processed")
    if proposal.aborted:
        raise ProposalAborted(f"Proposal #{proposal_index} was already aborted")
    if ctx.current_period >= proposal.starting_period + state.summon.abort_window:
        raise AbortWindowPassed(f"Abort window for proposal #{proposal_index} has passed")

    tribute = proposal.token_tribute
    proposal.token_tribute = 0
    proposal.aborted = True
    state.treasury.return_tribute(ctx.journal, proposal.applicant, tribute)

    ctx.emit(Abort(proposal_index=proposal_index, applicant=proposal.applicant))
    logger.info(f"Proposal #{proposal_index} ABORTED by applicant {caller}, tribute={tribute} returned")
