"""
Engine Test Suite

Coverage:
  - summon: parameters, events, double summon, unsummoned access
  - transactional semantics: rollback of state, ledger and events
  - caller authentication through the ledger
  - delegate key updates
  - invariant checks, views, logging of rejected operations
"""

import logging
import threading

import pytest

from moloch.config import LimitsConfig, SummonConfig
from moloch.exceptions import (
    AlreadySummoned,
    DelegateKeyCollision,
    InsufficientShares,
    InvalidDelegateKey,
    InvalidParameter,
    InvariantViolation,
    LedgerError,
    NotMember,
    NotSummoned,
)
from moloch.governance import Custody, MolochEngine, SummonComplete, UpdateDelegateKey
from moloch.ledger import InMemoryEventSink, InMemoryLedger, ManualClock

FOUNDER = "1"
APPLICANT = "2"
PROCESSOR = "3"
OUTSIDER = "0"
POOL = "moloch-pool"

SUMMON_ARGS = dict(
    period_duration=10,
    voting_period_length=2,
    grace_period_length=2,
    abort_window=1,
    dilution_bound=1,
    proposal_deposit=100,
    processing_reward=50,
)


class FailingLedger(InMemoryLedger):
    """Refuses transfers into accounts listed in *fail_to*."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_to = set()

    def transfer(self, source, dest, amount):
        if dest in self.fail_to:
            raise LedgerError(f"{dest} rejects incoming transfers")
        super().transfer(source, dest, amount)


# ══════════════════════════════════════════════════════════════════════
#  SUMMON
# ══════════════════════════════════════════════════════════════════════

class TestSummon:

    def test_summon_creates_founder(self, bare_engine, sink):
        member = bare_engine.summon(FOUNDER, **SUMMON_ARGS)
        assert member.account == FOUNDER
        assert member.shares == 1
        assert member.exists
        assert member.delegate_key == FOUNDER
        assert bare_engine.total_shares() == 1
        assert bare_engine.is_member(FOUNDER)
        assert bare_engine.current_period() == 0
        assert sink.events == [SummonComplete(summoner=FOUNDER, shares=1)]

    def test_summon_with_config(self, bare_engine):
        bare_engine.summon_with_config(FOUNDER, SummonConfig(**SUMMON_ARGS))
        assert bare_engine.state.summon.proposal_deposit == 100

    def test_summon_twice(self, engine):
        with pytest.raises(AlreadySummoned):
            engine.summon(APPLICANT, **SUMMON_ARGS)

    def test_invalid_parameters_leave_engine_unsummoned(self, bare_engine, sink):
        args = dict(SUMMON_ARGS, abort_window=5)
        with pytest.raises(InvalidParameter, match="abort_window"):
            bare_engine.summon(FOUNDER, **args)
        assert not bare_engine.summoned
        assert len(sink) == 0

    def test_engine_limits_apply(self, ledger, clock):
        engine = MolochEngine(ledger, clock=clock, limits=LimitsConfig(max_voting_period_length=1))
        with pytest.raises(InvalidParameter, match="exceeds limit"):
            engine.summon(FOUNDER, **SUMMON_ARGS)

    def test_operations_before_summon(self, bare_engine):
        with pytest.raises(NotSummoned):
            bare_engine.custody(APPLICANT, 10)
        with pytest.raises(NotSummoned):
            bare_engine.current_period()

    def test_periods_advance_from_summon_time(self, ledger):
        clock = ManualClock(1000)
        engine = MolochEngine(ledger, clock=clock)
        engine.summon(FOUNDER, **SUMMON_ARGS)
        clock.advance(9)
        assert engine.current_period() == 0
        clock.advance(1)
        assert engine.current_period() == 1
        clock.advance(25)
        assert engine.current_period() == 3

    def test_default_collaborators(self, ledger):
        engine = MolochEngine(ledger)
        engine.summon(FOUNDER, **SUMMON_ARGS)
        assert engine.current_period() == 0


# ══════════════════════════════════════════════════════════════════════
#  TRANSACTIONS
# ══════════════════════════════════════════════════════════════════════

class TestAtomicity:

    def make_engine(self):
        ledger = FailingLedger({"0": 1000, "1": 2000, "2": 3000, "3": 4000})
        clock = ManualClock(0)
        sink = InMemoryEventSink()
        engine = MolochEngine(ledger, clock=clock, sink=sink, pool_account=POOL)
        engine.summon(FOUNDER, **SUMMON_ARGS)
        return engine, ledger, clock, sink

    def test_failed_second_leg_unwinds_first(self):
        engine, ledger, clock, sink = self.make_engine()
        engine.custody(APPLICANT, 50)
        engine.submit_proposal(FOUNDER, APPLICANT, 50, 5, b"")
        clock.set(10)
        engine.submit_vote(FOUNDER, 0, 1)
        clock.set(50)
        events_before = len(sink)

        # Reward to the processor succeeds, the refund to the proposer fails
        ledger.fail_to.add(FOUNDER)
        with pytest.raises(InvariantViolation, match="could not pay"):
            engine.process_proposal(PROCESSOR, 0)

        assert ledger.free_balance(PROCESSOR) == 4000
        assert ledger.free_balance(POOL) == 150
        assert not engine.proposal(0).processed
        assert not engine.is_member(APPLICANT)
        assert engine.state.queue.total_shares_requested == 5
        assert len(sink) == events_before
        engine.check_invariants()

        ledger.fail_to.clear()
        assert engine.process_proposal(PROCESSOR, 0) is True
        assert ledger.free_balance(PROCESSOR) == 4050
        engine.check_invariants()

    def test_views_are_copies(self, engine):
        member = engine.member(FOUNDER)
        member.shares = 99
        assert engine.shares_of(FOUNDER) == 1

    def test_rejection_logged(self, engine, caplog):
        with caplog.at_level(logging.WARNING):
            with pytest.raises(NotMember):
                engine.submit_vote(OUTSIDER, 0, 1)
        assert "submit_vote by 0 failed: NotMember" in caplog.text

    def test_concurrent_callers_serialize(self, engine, ledger):
        errors = []

        def deposit(account):
            try:
                for _ in range(20):
                    engine.custody(account, 1)
            except Exception as e:  # pragma: no cover
                errors.append(e)

        threads = [threading.Thread(target=deposit, args=(a,)) for a in ("0", "2", "3")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert ledger.free_balance(POOL) == 60
        assert engine.custody_of("2") == 20
        engine.check_invariants()

    def test_views_wait_for_event_flush(self, ledger, clock):
        flushing = threading.Event()
        release = threading.Event()

        class SlowSink(InMemoryEventSink):
            def emit(self, event):
                super().emit(event)
                if isinstance(event, Custody):
                    flushing.set()
                    release.wait(5)

        engine = MolochEngine(ledger, clock=clock, sink=SlowSink())
        engine.summon(FOUNDER, **SUMMON_ARGS)

        writer = threading.Thread(target=engine.custody, args=(APPLICANT, 10))
        writer.start()
        assert flushing.wait(5)

        seen = []
        reader = threading.Thread(target=lambda: seen.append(engine.custody_of(APPLICANT)))
        reader.start()
        reader.join(0.2)
        assert reader.is_alive()

        release.set()
        writer.join(5)
        reader.join(5)
        assert seen == [10]

    def test_processed_proposals_shared_between_commits(self, engine, admit):
        admit(APPLICANT, 1)
        pending = engine.submit_proposal(FOUNDER, "4", 0, 1, b"")
        before = engine.state.queue

        engine.custody(APPLICANT, 5)
        after = engine.state.queue

        assert after is not before
        assert after.get(0) is before.get(0)
        assert after.get(pending) is not before.get(pending)
        assert after.get(pending) == before.get(pending)


class TestAuthentication:

    def test_unknown_caller_rejected(self, clock):
        ledger = InMemoryLedger({"1": 100, "2": 100}, known_callers=["1"])
        engine = MolochEngine(ledger, clock=clock)
        engine.summon(FOUNDER, **SUMMON_ARGS)
        with pytest.raises(LedgerError, match="Unknown caller"):
            engine.custody(APPLICANT, 10)
        ledger.register_caller(APPLICANT)
        assert engine.custody(APPLICANT, 10) == 10

    def test_empty_caller_rejected(self, engine):
        with pytest.raises(LedgerError):
            engine.ragequit("", 1)


# ══════════════════════════════════════════════════════════════════════
#  DELEGATE KEYS
# ══════════════════════════════════════════════════════════════════════

class TestUpdateDelegateKey:

    def test_update(self, engine, sink):
        engine.update_delegate_key(FOUNDER, "hot")
        assert engine.member(FOUNDER).delegate_key == "hot"
        assert sink.last() == UpdateDelegateKey(member=FOUNDER, new_delegate_key="hot")

    def test_non_member(self, engine):
        with pytest.raises(NotMember):
            engine.update_delegate_key(OUTSIDER, "hot")

    def test_zero_share_member(self, engine, admit):
        admit(APPLICANT, 1)
        engine.ragequit(FOUNDER, 1)
        with pytest.raises(InsufficientShares):
            engine.update_delegate_key(FOUNDER, "hot")

    def test_empty_key(self, engine):
        with pytest.raises(InvalidDelegateKey):
            engine.update_delegate_key(FOUNDER, "")

    def test_collision_with_member(self, engine, admit):
        admit(APPLICANT, 1)
        with pytest.raises(DelegateKeyCollision):
            engine.update_delegate_key(FOUNDER, APPLICANT)

    def test_collision_with_other_delegate(self, engine, admit):
        admit(APPLICANT, 1)
        engine.update_delegate_key(APPLICANT, "hot")
        with pytest.raises(DelegateKeyCollision):
            engine.update_delegate_key(FOUNDER, "hot")


# ══════════════════════════════════════════════════════════════════════
#  INVARIANTS & VIEWS
# ══════════════════════════════════════════════════════════════════════

class TestInvariants:

    def test_pool_shortfall_detected(self, engine, ledger):
        engine.custody(APPLICANT, 50)
        ledger.transfer(POOL, OUTSIDER, 1)
        with pytest.raises(InvariantViolation, match="books say 50"):
            engine.check_invariants()

    def test_shortfall_blocks_further_operations(self, engine, ledger):
        engine.custody(APPLICANT, 50)
        ledger.transfer(POOL, OUTSIDER, 1)
        with pytest.raises(InvariantViolation):
            engine.custody(APPLICANT, 10)
        assert engine.custody_of(APPLICANT) == 50
        assert ledger.free_balance(APPLICANT) == 2950

    def test_preexisting_pool_balance_ignored(self, ledger, clock):
        ledger.deposit(POOL, 500)
        engine = MolochEngine(ledger, clock=clock, pool_account=POOL)
        engine.summon(FOUNDER, **SUMMON_ARGS)
        engine.custody(APPLICANT, 50)
        engine.check_invariants()
        assert engine.guild_bank() == 0

    def test_to_dict(self, engine, clock):
        clock.set(25)
        d = engine.to_dict()
        assert d["currentPeriod"] == 2
        assert d["registry"]["totalShares"] == 1
        assert d["queue"]["length"] == 0

    def test_repr(self, engine):
        assert "members=1" in repr(engine)
        assert "unsummoned" in repr(MolochEngine(InMemoryLedger()))
