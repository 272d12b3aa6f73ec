"""
Processing Engine

Resolves one proposal at a time, strictly in queue order, once its voting
and grace periods have elapsed:

    QUEUED → VOTING → GRACE → READY → PASSED | REJECTED

Passing requires more YES than NO shares and that total shares have not
grown past dilution_bound × the total seen at the last YES vote.
"""

from typing import TYPE_CHECKING

from ..exceptions import (
    AlreadyProcessed,
    PreviousProposalUnprocessed,
    ProposalNotReady,
)
from ..logger import get_logger
from .events import ProcessProposal
from .math import checked_mul

if TYPE_CHECKING:
    from .state import MolochState, TxContext
    from .types import Proposal

logger = get_logger(__name__)


def exceeds_dilution_bound(total_shares: int, dilution_bound: int, max_total_shares_at_yes: int) -> bool:
    """True if YES voters' weight has been diluted past the bound."""
    return checked_mul(total_shares, dilution_bound) < max_total_shares_at_yes


def tally(state: "MolochState", proposal: "Proposal") -> bool:
    """Outcome a proposal would have if processed against the current state."""
    if proposal.aborted:
        return False
    did_pass = proposal.yes_votes > proposal.no_votes
    if did_pass and exceeds_dilution_bound(
        state.registry.total_shares,
        state.summon.dilution_bound,
        proposal.max_total_shares_at_yes,
    ):
        logger.info(
            f"Proposal #{proposal.index} fails the dilution bound: "
            f"total={state.registry.total_shares} bound={state.summon.dilution_bound} "
            f"max_at_yes={proposal.max_total_shares_at_yes}"
        )
        did_pass = False
    return did_pass


def process_proposal(
    state: "MolochState",
    ctx: "TxContext",
    caller: str,
    proposal_index: int,
) -> bool:
    """
    Resolve a proposal and settle its escrow.

    Anyone may process; the caller earns the processing reward.

    Returns:
        Whether the proposal passed.
    """
    queue = state.queue
    proposal = queue.get(proposal_index)
    summon = state.summon

    if proposal.processed:
        raise AlreadyProcessed(f"Proposal #{proposal_index} has already been processed")
    if not proposal.ready_for_processing(
        ctx.current_period, summon.voting_period_length, summon.grace_period_length
    ):
        raise ProposalNotReady(f"Proposal #{proposal_index} is not ready to be processed")
    if proposal_index > 0 and not queue.get(proposal_index - 1).processed:
        raise PreviousProposalUnprocessed(
            f"Proposal #{proposal_index - 1} must be processed first"
        )

    queue.release_shares(proposal.shares_requested)
    did_pass = tally(state, proposal)

    registry = state.registry
    treasury = state.treasury
    if did_pass:
        applicant = proposal.applicant
        if registry.is_member(applicant):
            registry.mint(applicant, proposal.shares_requested)
        else:
            # The applicant's address may be in use as someone's delegate key
            reset = registry.reset_delegate(applicant)
            if reset is not None:
                logger.info(f"Delegate key of {reset} reset: {applicant} is joining as a member")
            registry.add_member(applicant, proposal.shares_requested)
        treasury.accept_tribute(proposal.token_tribute)
    else:
        treasury.return_tribute(ctx.journal, proposal.applicant, proposal.token_tribute)

    treasury.release_deposit(
        ctx.journal,
        deposit=summon.proposal_deposit,
        processor=caller,
        reward=summon.processing_reward,
        proposer=proposal.proposer,
    )

    proposal.processed = True
    proposal.did_pass = did_pass

    ctx.emit(ProcessProposal(
        proposal_index=proposal_index,
        applicant=proposal.applicant,
        member=proposal.proposer,
        token_tribute=proposal.token_tribute,
        shares_requested=proposal.shares_requested,
        did_pass=did_pass,
    ))
    logger.info(
        f"Proposal #{proposal_index}: {'PASSED' if did_pass else 'REJECTED'} "
        f"(yes={proposal.yes_votes} no={proposal.no_votes}) processed by {caller}"
    )
    return did_pass
