"""
Shared fixtures.

The default DAO mirrors the reference scenario: accounts "0".."3" with
balances 1000..4000, founder "1", period 10s, voting 2, grace 2, abort 1,
dilution bound 1, deposit 100, reward 50.
"""

import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from moloch.governance.engine import MolochEngine
from moloch.ledger import InMemoryEventSink, InMemoryLedger, ManualClock

FOUNDER = "1"
APPLICANT = "2"
PROCESSOR = "3"
OUTSIDER = "0"
POOL = "moloch-pool"

BALANCES = {"0": 1000, "1": 2000, "2": 3000, "3": 4000}

SUMMON_ARGS = dict(
    period_duration=10,
    voting_period_length=2,
    grace_period_length=2,
    abort_window=1,
    dilution_bound=1,
    proposal_deposit=100,
    processing_reward=50,
)


@pytest.fixture
def ledger():
    return InMemoryLedger(dict(BALANCES))


@pytest.fixture
def clock():
    return ManualClock(0)


@pytest.fixture
def sink():
    return InMemoryEventSink()


@pytest.fixture
def bare_engine(ledger, clock, sink):
    """Engine bound to the collaborators, not yet summoned."""
    return MolochEngine(ledger, clock=clock, sink=sink, pool_account=POOL)


@pytest.fixture
def engine(bare_engine):
    """Summoned DAO with the founder as its only member."""
    bare_engine.summon(FOUNDER, **SUMMON_ARGS)
    return bare_engine


@pytest.fixture
def advance_to(clock):
    """Move the clock to the start of *period* (never backwards)."""
    def _advance(period: int) -> int:
        target = period * SUMMON_ARGS["period_duration"]
        if target > clock.now():
            clock.set(target)
        return clock.now()
    return _advance


@pytest.fixture
def admit(engine, advance_to):
    """Run a full founder-sponsored proposal cycle that admits *applicant*."""
    def _admit(applicant: str, shares: int, tribute: int = 0) -> int:
        if tribute:
            engine.custody(applicant, tribute)
        index = engine.submit_proposal(FOUNDER, applicant, tribute, shares, b"")
        start = engine.proposal(index).starting_period
        advance_to(start)
        engine.submit_vote(FOUNDER, index, 1)
        advance_to(start + SUMMON_ARGS["voting_period_length"] + SUMMON_ARGS["grace_period_length"])
        assert engine.process_proposal(PROCESSOR, index) is True
        return index
    return _admit
