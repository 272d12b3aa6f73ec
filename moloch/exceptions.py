"""
Moloch Exceptions

Custom exception classes for the Moloch governance engine.

Every exception aborts the enclosing transaction; the engine unwinds any
partial effects before re-raising.
"""


class MolochError(Exception):
    """Base exception for Moloch."""
    pass


# ── Validation errors (caller-correctable) ─────────────────────────────

class ValidationError(MolochError):
    """Malformed input or parameter outside its configured bound."""
    pass


class InvalidParameter(ValidationError):
    """Configuration parameter out of bounds."""
    pass


class InvalidVote(ValidationError):
    """Vote code is neither Yes (1) nor No (2)."""
    pass


class InvalidApplicant(ValidationError):
    """Applicant address is empty."""
    pass


class InvalidDetails(ValidationError):
    """Proposal details too long or not bytes."""
    pass


class InvalidDelegateKey(ValidationError):
    """Delegate key is empty."""
    pass


class InvalidAmount(ValidationError):
    """Amount is negative, zero where forbidden, or not an integer."""
    pass


# ── State errors ───────────────────────────────────────────────────────

class StateError(MolochError):
    """Operation is not legal in the current state."""
    pass


class AlreadySummoned(StateError):
    pass


class NotSummoned(StateError):
    pass


class NotMember(StateError):
    """Caller does not resolve to a registered member."""
    pass


class InsufficientShares(StateError):
    """Member holds no shares, or fewer than requested."""
    pass


class ProposalNotFound(StateError):
    pass


class AlreadyProcessed(StateError):
    pass


class ProposalAborted(StateError):
    pass


class PreviousProposalUnprocessed(StateError):
    pass


class ProposalNotReady(StateError):
    """Voting and grace periods have not both elapsed."""
    pass


class VotingNotStarted(StateError):
    pass


class ProposalExpired(StateError):
    """Voting window closed."""
    pass


class AlreadyVoted(StateError):
    pass


class PendingCommitment(StateError):
    """Member's latest YES vote is on an unprocessed proposal."""
    pass


class NotApplicant(StateError):
    pass


class AbortWindowPassed(StateError):
    pass


class DelegateKeyCollision(StateError):
    """New delegate key is already a member or another member's delegate."""
    pass


class ShareSupplyOverflow(StateError):
    """Requested shares would push the supply past the maximum."""
    pass


class NoCustodyFound(StateError):
    """Applicant has not deposited enough tribute into custody."""
    pass


# ── Arithmetic ─────────────────────────────────────────────────────────

class ArithmeticOverflow(MolochError):
    """Checked u128 arithmetic left the representable range."""
    pass


# ── Collaborators ──────────────────────────────────────────────────────

class LedgerError(MolochError):
    """The external ledger refused an operation."""
    pass


class InsufficientBalance(LedgerError):
    """Account cannot cover a transfer."""
    pass


class InvariantViolation(MolochError):
    """Treasury or escrow accounting is inconsistent; a programming error."""
    pass
