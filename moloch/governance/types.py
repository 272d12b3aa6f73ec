"""
Governance Types

Defines the vote variant, proposal lifecycle stages and the Member / Proposal
records owned by the registry and the queue.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict

from ..constants import VOTE_NO, VOTE_NULL, VOTE_YES
from ..exceptions import InvalidVote


# ══════════════════════════════════════════════════════════════════════
#  ENUMS
# ══════════════════════════════════════════════════════════════════════

class Vote(IntEnum):
    """Ballot on a proposal. NULL is the default (abstain) and cannot be cast."""
    NULL = VOTE_NULL
    YES = VOTE_YES
    NO = VOTE_NO

    @classmethod
    def from_code(cls, code: int) -> "Vote":
        """Decode a castable vote; anything but Yes/No is rejected."""
        if isinstance(code, cls):
            code = int(code)
        if not isinstance(code, int) or isinstance(code, bool):
            raise InvalidVote(f"Invalid vote code: {code!r}")
        if code not in (VOTE_YES, VOTE_NO):
            raise InvalidVote(f"Invalid vote code: {code} (must be 1=Yes or 2=No)")
        return cls(code)


class ProposalState(IntEnum):
    """Lifecycle stage, derived from the current period and the proposal flags."""
    QUEUED = 0      # Before starting_period
    VOTING = 1      # Accepting votes
    GRACE = 2       # Voting closed, waiting out the grace period
    READY = 3       # May be processed (if its predecessor is)
    PASSED = 4      # Processed, applicant admitted
    REJECTED = 5    # Processed, tribute returned


# ══════════════════════════════════════════════════════════════════════
#  RECORDS
# ══════════════════════════════════════════════════════════════════════

@dataclass
class Member:
    """
    A shareholder.

    Fields:
        account:                 Member address (registry key)
        delegate_key:            Key that submits and votes on the member's behalf
        shares:                  Voting shares held
        highest_index_yes_vote:  Index of the latest proposal voted YES
        exists:                  Always True once created
    """
    account: str
    delegate_key: str
    shares: int = 0
    highest_index_yes_vote: int = 0
    exists: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account": self.account,
            "delegateKey": self.delegate_key,
            "shares": self.shares,
            "highestIndexYesVote": self.highest_index_yes_vote,
            "exists": self.exists,
        }


@dataclass
class Proposal:
    """
    A request to admit *applicant* for *shares_requested* against a tribute.

    Fields:
        index:                    Position in the queue (stable)
        proposer:                 Member address that submitted it
        applicant:                Account to be admitted
        shares_requested:         Shares to mint on passage
        starting_period:          First period in which votes are accepted
        token_tribute:            Tribute held in escrow (0 once returned)
        details:                  Free-form description bytes
        yes_votes / no_votes:     Share-weighted tallies
        max_total_shares_at_yes:  Highest total share count seen at a YES vote
        processed / did_pass / aborted: resolution flags
        votes_by_member:          member address → Vote
        votes_by_delegate:        delegate key that cast it → Vote
    """
    index: int
    proposer: str
    applicant: str
    shares_requested: int
    starting_period: int
    token_tribute: int
    details: bytes = b""
    yes_votes: int = 0
    no_votes: int = 0
    max_total_shares_at_yes: int = 0
    processed: bool = False
    did_pass: bool = False
    aborted: bool = False
    votes_by_member: Dict[str, Vote] = field(default_factory=dict)
    votes_by_delegate: Dict[str, Vote] = field(default_factory=dict)

    def vote_of(self, member: str) -> Vote:
        return self.votes_by_member.get(member, Vote.NULL)

    def vote_by_delegate(self, delegate_key: str) -> Vote:
        return self.votes_by_delegate.get(delegate_key, Vote.NULL)

    def voting_expired(self, current_period: int, voting_period_length: int) -> bool:
        return current_period >= self.starting_period + voting_period_length

    def ready_for_processing(
        self, current_period: int, voting_period_length: int, grace_period_length: int
    ) -> bool:
        return current_period >= (
            self.starting_period + voting_period_length + grace_period_length
        )

    def state(
        self, current_period: int, voting_period_length: int, grace_period_length: int
    ) -> ProposalState:
        if self.processed:
            return ProposalState.PASSED if self.did_pass else ProposalState.REJECTED
        if current_period < self.starting_period:
            return ProposalState.QUEUED
        if not self.voting_expired(current_period, voting_period_length):
            return ProposalState.VOTING
        if not self.ready_for_processing(current_period, voting_period_length, grace_period_length):
            return ProposalState.GRACE
        return ProposalState.READY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "proposer": self.proposer,
            "applicant": self.applicant,
            "sharesRequested": self.shares_requested,
            "startingPeriod": self.starting_period,
            "yesVotes": self.yes_votes,
            "noVotes": self.no_votes,
            "processed": self.processed,
            "didPass": self.did_pass,
            "aborted": self.aborted,
            "tokenTribute": self.token_tribute,
            "details": self.details.hex(),
            "maxTotalSharesAtYes": self.max_total_shares_at_yes,
            "votes": {m: v.name for m, v in self.votes_by_member.items()},
            "votesByDelegate": {k: v.name for k, v in self.votes_by_delegate.items()},
        }

    def __repr__(self) -> str:
        return (
            f"<Proposal #{self.index} applicant={self.applicant} "
            f"shares={self.shares_requested} yes={self.yes_votes} no={self.no_votes} "
            f"processed={self.processed}>"
        )
