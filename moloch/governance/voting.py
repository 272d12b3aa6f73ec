"""
Share-Weighted Voting Engine

Implements:
  - 1 share = 1 vote, no quorum
  - Vote types: Yes / No (Null is the implicit abstention)
  - One vote per proposal for each member and for each delegate key
  - highest_index_yes_vote bookkeeping that gates ragequit
  - max_total_shares_at_yes snapshot used by the dilution bound
"""

from typing import TYPE_CHECKING

from ..exceptions import (
    AlreadyProcessed,
    AlreadyVoted,
    ProposalAborted,
    ProposalExpired,
    VotingNotStarted,
)
from ..logger import get_logger
from .events import SubmitVote
from .math import checked_add
from .types import Vote

if TYPE_CHECKING:
    from .state import MolochState, TxContext

logger = get_logger(__name__)


def submit_vote(
    state: "MolochState",
    ctx: "TxContext",
    caller: str,
    proposal_index: int,
    vote_code: int,
) -> Vote:
    """
    Cast the caller's member's shares on a proposal.

    Args:
        caller: Delegate key of the voting member
        proposal_index: Queue index of the proposal
        vote_code: 1 (Yes) or 2 (No)

    Returns:
        The recorded Vote.
    """
    vote = Vote.from_code(vote_code)
    member = state.registry.require_shareholder(caller)
    proposal = state.queue.get(proposal_index)

    if proposal.processed:
        raise AlreadyProcessed(f"Proposal #{proposal_index} has already been processed")
    if ctx.current_period < proposal.starting_period:
        raise VotingNotStarted(
            f"Voting on proposal #{proposal_index} starts at period "
            f"{proposal.starting_period} (now {ctx.current_period})"
        )
    if proposal.voting_expired(ctx.current_period, state.summon.voting_period_length):
        raise ProposalExpired(f"Voting period for proposal #{proposal_index} has expired")
    if proposal.vote_of(member.account) != Vote.NULL:
        raise AlreadyVoted(f"{member.account} has already voted on proposal #{proposal_index}")
    if proposal.vote_by_delegate(caller) != Vote.NULL:
        raise AlreadyVoted(f"Delegate key {caller} has already voted on proposal #{proposal_index}")
    if proposal.aborted:
        raise ProposalAborted(f"Proposal #{proposal_index} has been aborted")

    if vote == Vote.YES:
        proposal.yes_votes = checked_add(proposal.yes_votes, member.shares)
        if proposal_index > member.highest_index_yes_vote:
            member.highest_index_yes_vote = proposal_index
        total_shares = state.registry.total_shares
        if total_shares > proposal.max_total_shares_at_yes:
            proposal.max_total_shares_at_yes = total_shares
    else:
        proposal.no_votes = checked_add(proposal.no_votes, member.shares)

    proposal.votes_by_member[member.account] = vote
    proposal.votes_by_delegate[caller] = vote

    ctx.emit(SubmitVote(
        proposal_index=proposal_index,
        delegate_key=caller,
        member=member.account,
        vote=int(vote),
    ))
    logger.info(
        f"Vote: {member.account} → {vote.name} on proposal #{proposal_index} "
        f"(shares={member.shares})"
    )
    return vote
