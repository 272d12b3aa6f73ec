"""
Moloch Engine

Transactional facade over the governance modules. Every public operation:

  1. authenticates the caller through the Ledger
  2. runs against a deep copy of the committed MolochState
  3. records ledger transfers in a LedgerJournal
  4. buffers emitted records

On success the copy becomes the committed state and the buffered records are
handed to the EventSink. On any error the journal is unwound, the copy is
dropped, nothing is emitted and the error propagates to the caller.

Usage:
    ledger = InMemoryLedger({"alice": 1000})
    engine = MolochEngine(ledger, clock=ManualClock())
    engine.summon("alice", 10, 2, 2, 1, 1, 100, 50)
"""

import copy
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from ..config.loader import LimitsConfig, SummonConfig
from ..exceptions import (
    AlreadySummoned,
    InsufficientShares,
    InvariantViolation,
    MolochError,
    NotSummoned,
)
from ..ledger.interfaces import Clock, EventSink, Ledger
from ..ledger.memory import SystemClock
from ..logger import get_logger
from . import processing, proposals, ragequit, voting
from .events import Custody, CustodyWithdrawn, SummonComplete, UpdateDelegateKey
from .period import PeriodClock
from .proposals import ProposalQueue
from .registry import MembershipRegistry
from .state import MolochState, TxContext
from .treasury import LedgerJournal, Treasury
from .types import Member, Proposal, ProposalState

logger = get_logger(__name__)

DEFAULT_POOL_ACCOUNT = "moloch-pool"


class _NullSink:
    def emit(self, event: Any) -> None:
        pass


class MolochEngine:
    """
    One Moloch DAO bound to a ledger, a clock and an event sink.

    Args:
        ledger:        Account system holding balances (Ledger protocol)
        clock:         Time source; SystemClock if omitted
        sink:          Receives committed events; discarded if omitted
        pool_account:  Ledger account that holds the DAO's funds
        limits:        System maxima for the summon parameters
    """

    def __init__(
        self,
        ledger: Ledger,
        clock: Optional[Clock] = None,
        sink: Optional[EventSink] = None,
        pool_account: str = DEFAULT_POOL_ACCOUNT,
        limits: Optional[LimitsConfig] = None,
    ):
        self.ledger = ledger
        self.clock = clock or SystemClock()
        self.sink = sink or _NullSink()
        self.pool_account = pool_account
        self.limits = limits or LimitsConfig()
        self.limits.validate()

        self._state: Optional[MolochState] = None
        self._period_clock: Optional[PeriodClock] = None
        self._lock = threading.RLock()

    # ══════════════════════════════════════════════════════════════════
    #  TRANSACTIONS
    # ══════════════════════════════════════════════════════════════════

    @contextmanager
    def _transaction(self, op: str, caller: str) -> Iterator[Tuple[MolochState, TxContext]]:
        with self._lock:
            state = self._require_state()
            self.ledger.verify_caller(caller)
            working = copy.deepcopy(state)
            journal = LedgerJournal(self.ledger)
            ctx = TxContext(journal=journal, current_period=self._period_clock.current_period())
            try:
                yield working, ctx
                working.treasury.reconcile(self.ledger)
            except MolochError as e:
                logger.warning(f"{op} by {caller} failed: {type(e).__name__}: {e}")
                journal.unwind()
                raise
            except Exception:
                logger.exception(f"{op} by {caller} failed unexpectedly")
                journal.unwind()
                raise

            self._state = working
            for event in ctx.events:
                self.sink.emit(event)

    def _run(self, op: str, caller: str, fn: Callable[..., Any], *args: Any) -> Any:
        with self._transaction(op, caller) as (working, ctx):
            return fn(working, ctx, caller, *args)

    def _require_state(self) -> MolochState:
        if self._state is None:
            raise NotSummoned("The DAO has not been summoned")
        return self._state

    # ══════════════════════════════════════════════════════════════════
    #  SUMMON
    # ══════════════════════════════════════════════════════════════════

    def summon(
        self,
        founder: str,
        period_duration: int,
        voting_period_length: int,
        grace_period_length: int,
        abort_window: int,
        dilution_bound: int,
        proposal_deposit: int,
        processing_reward: int,
    ) -> Member:
        """Create the DAO with *founder* as its first member (1 share)."""
        config = SummonConfig(
            period_duration=period_duration,
            voting_period_length=voting_period_length,
            grace_period_length=grace_period_length,
            abort_window=abort_window,
            dilution_bound=dilution_bound,
            proposal_deposit=proposal_deposit,
            processing_reward=processing_reward,
        )
        return self.summon_with_config(founder, config)

    def summon_with_config(self, founder: str, config: SummonConfig) -> Member:
        with self._lock:
            if self._state is not None:
                raise AlreadySummoned("The DAO has already been summoned")
            self.ledger.verify_caller(founder)
            config = copy.copy(config)
            config.validate(self.limits)

            summon_time = self.clock.now()
            registry = MembershipRegistry()
            founder_member = registry.add_member(founder, 1)
            state = MolochState(
                summon=config,
                limits=self.limits,
                summon_time=summon_time,
                registry=registry,
                queue=ProposalQueue(),
                treasury=Treasury(
                    self.pool_account,
                    opening_balance=self.ledger.free_balance(self.pool_account),
                ),
            )
            self._state = state
            self._period_clock = PeriodClock(self.clock, summon_time, config.period_duration)

            logger.info(
                f"Summoned: founder account={founder} period={config.period_duration}s "
                f"voting={config.voting_period_length} grace={config.grace_period_length} "
                f"deposit={config.proposal_deposit} reward={config.processing_reward}"
            )
            self.sink.emit(SummonComplete(summoner=founder, shares=1))
            return copy.deepcopy(founder_member)

    # ══════════════════════════════════════════════════════════════════
    #  OPERATIONS
    # ══════════════════════════════════════════════════════════════════

    def custody(self, caller: str, amount: int) -> int:
        """Pre-pay tribute into the pool. Returns the caller's custody balance."""
        return self._run("custody", caller, _custody, amount)

    def withdraw_custody(self, caller: str, amount: int) -> int:
        """Take unused custody back. Returns what is left in custody."""
        return self._run("withdraw_custody", caller, _withdraw_custody, amount)

    def submit_proposal(
        self,
        caller: str,
        applicant: str,
        token_tribute: int,
        shares_requested: int,
        details: bytes = b"",
    ) -> int:
        return self._run(
            "submit_proposal", caller, proposals.submit_proposal,
            applicant, token_tribute, shares_requested, details,
        )

    def submit_vote(self, caller: str, proposal_index: int, vote: int) -> None:
        self._run("submit_vote", caller, voting.submit_vote, proposal_index, vote)

    def process_proposal(self, caller: str, proposal_index: int) -> bool:
        return self._run("process_proposal", caller, processing.process_proposal, proposal_index)

    def ragequit(self, caller: str, shares_to_burn: int) -> int:
        return self._run("ragequit", caller, ragequit.ragequit, shares_to_burn)

    def abort(self, caller: str, proposal_index: int) -> None:
        self._run("abort", caller, proposals.abort, proposal_index)

    def update_delegate_key(self, caller: str, new_delegate_key: str) -> None:
        """Caller is the member address, not its current delegate."""
        self._run("update_delegate_key", caller, _update_delegate_key, new_delegate_key)

    # ══════════════════════════════════════════════════════════════════
    #  VIEWS
    # ══════════════════════════════════════════════════════════════════

    # Views hold the engine lock and never observe a commit whose events
    # are still being flushed.

    @property
    def summoned(self) -> bool:
        with self._lock:
            return self._state is not None

    @property
    def state(self) -> MolochState:
        """Committed state. Callers must treat it as read-only."""
        with self._lock:
            return self._require_state()

    def current_period(self) -> int:
        with self._lock:
            self._require_state()
            return self._period_clock.current_period()

    def is_member(self, account: str) -> bool:
        with self._lock:
            return self._require_state().registry.is_member(account)

    def member(self, account: str) -> Member:
        with self._lock:
            return copy.deepcopy(self._require_state().registry.member(account))

    def shares_of(self, account: str) -> int:
        with self._lock:
            return self._require_state().registry.shares_of(account)

    def total_shares(self) -> int:
        with self._lock:
            return self._require_state().registry.total_shares

    def proposal(self, proposal_index: int) -> Proposal:
        with self._lock:
            return copy.deepcopy(self._require_state().queue.get(proposal_index))

    def proposal_count(self) -> int:
        with self._lock:
            return len(self._require_state().queue)

    def proposal_state(self, proposal_index: int) -> ProposalState:
        with self._lock:
            state = self._require_state()
            return state.queue.get(proposal_index).state(
                self._period_clock.current_period(),
                state.summon.voting_period_length,
                state.summon.grace_period_length,
            )

    def guild_bank(self) -> int:
        with self._lock:
            return self._require_state().treasury.guild_bank

    def custody_of(self, account: str) -> int:
        with self._lock:
            return self._require_state().treasury.custody_of(account)

    def check_invariants(self) -> None:
        """
        Raise InvariantViolation if the committed state is inconsistent.

        Checks the share total, the queue ordering, sequential processing
        and that the pool account covers every booked balance.
        """
        with self._lock:
            state = self._require_state()
            if not state.registry.shares_consistent():
                raise InvariantViolation("total_shares does not match the sum of member shares")

            previous_start = 0
            seen_unprocessed = False
            for proposal in state.queue:
                if proposal.starting_period < previous_start:
                    raise InvariantViolation(f"Proposal #{proposal.index} starts before its predecessor")
                previous_start = proposal.starting_period
                if proposal.processed and seen_unprocessed:
                    raise InvariantViolation(f"Proposal #{proposal.index} processed out of order")
                seen_unprocessed = seen_unprocessed or not proposal.processed

            outstanding = sum(p.shares_requested for p in state.queue if not p.processed)
            if outstanding != state.queue.total_shares_requested:
                raise InvariantViolation("total_shares_requested does not match unprocessed proposals")

            state.treasury.reconcile(self.ledger)

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            state = self._require_state()
            data = state.to_dict()
            data["currentPeriod"] = self._period_clock.current_period()
            return data

    def __repr__(self) -> str:
        with self._lock:
            if self._state is None:
                return "<MolochEngine unsummoned>"
            return (
                f"<MolochEngine members={len(self._state.registry)} "
                f"shares={self._state.registry.total_shares} "
                f"proposals={len(self._state.queue)} bank={self._state.treasury.guild_bank}>"
            )


# ══════════════════════════════════════════════════════════════════════
#  SMALL OPERATIONS
# ══════════════════════════════════════════════════════════════════════

def _custody(state: MolochState, ctx: TxContext, caller: str, amount: int) -> int:
    balance = state.treasury.deposit_custody(ctx.journal, caller, amount)
    ctx.emit(Custody(account=caller, amount=amount, balance=balance))
    logger.info(f"Custody: account={caller} deposited {amount}, balance={balance}")
    return balance


def _withdraw_custody(state: MolochState, ctx: TxContext, caller: str, amount: int) -> int:
    remaining = state.treasury.withdraw_custody(ctx.journal, caller, amount)
    ctx.emit(CustodyWithdrawn(account=caller, amount=amount, balance=remaining))
    logger.info(f"Custody withdrawn: account={caller} amount={amount}, balance={remaining}")
    return remaining


def _update_delegate_key(state: MolochState, ctx: TxContext, caller: str, new_key: str) -> None:
    registry = state.registry
    if registry.member(caller).shares == 0:
        raise InsufficientShares(f"Member {caller} holds no shares")
    registry.set_delegate_key(caller, new_key)
    ctx.emit(UpdateDelegateKey(member=caller, new_delegate_key=new_key))
