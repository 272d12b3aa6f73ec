"""
Ragequit Test Suite

Coverage:
  - pro-rata payout from the guild bank (floor division)
  - share burn keeps totals consistent
  - PendingCommitment gating on the latest YES vote and on an empty queue
"""

import pytest

from moloch.exceptions import InsufficientShares, NotMember, PendingCommitment
from moloch.governance import Ragequit

FOUNDER = "1"
APPLICANT = "2"
PROCESSOR = "3"
OUTSIDER = "0"
POOL = "moloch-pool"


class TestPayout:

    def test_full_exit_takes_pro_rata_share(self, engine, admit, ledger, sink):
        admit(APPLICANT, 5, tribute=60)
        assert engine.guild_bank() == 60

        amount = engine.ragequit(APPLICANT, 5)

        # 60 * 5 // 6
        assert amount == 50
        assert engine.guild_bank() == 10
        assert engine.shares_of(APPLICANT) == 0
        assert engine.total_shares() == 1
        assert ledger.free_balance(APPLICANT) == 3000 - 60 + 50
        assert sink.last() == Ragequit(member=APPLICANT, shares_to_burn=5, amount=50)
        engine.check_invariants()

    def test_partial_exit_floors(self, engine, admit):
        admit(APPLICANT, 2, tribute=100)
        # 100 * 1 // 3
        assert engine.ragequit(APPLICANT, 1) == 33
        assert engine.guild_bank() == 67
        assert engine.shares_of(APPLICANT) == 1

    def test_last_member_drains_bank(self, engine, admit):
        admit(APPLICANT, 1, tribute=10)
        engine.ragequit(APPLICANT, 1)
        engine.ragequit(FOUNDER, 1)
        assert engine.guild_bank() == 0
        assert engine.total_shares() == 0
        engine.check_invariants()

    def test_member_stays_registered(self, engine, admit):
        admit(APPLICANT, 1)
        engine.ragequit(FOUNDER, 1)
        assert engine.is_member(FOUNDER)
        assert engine.member(FOUNDER).shares == 0


class TestValidation:

    def test_not_member(self, engine):
        with pytest.raises(NotMember):
            engine.ragequit(OUTSIDER, 1)

    def test_more_than_held(self, engine):
        with pytest.raises(InsufficientShares, match="cannot burn 2"):
            engine.ragequit(FOUNDER, 2)

    def test_zero_shares(self, engine):
        with pytest.raises(InsufficientShares, match="positive"):
            engine.ragequit(FOUNDER, 0)

    def test_caller_is_member_address_not_delegate(self, engine, admit):
        admit(APPLICANT, 1)
        engine.update_delegate_key(FOUNDER, "hot")
        with pytest.raises(NotMember):
            engine.ragequit("hot", 1)
        engine.ragequit(FOUNDER, 1)


class TestPendingCommitment:

    def test_blocked_with_empty_queue(self, engine, ledger):
        with pytest.raises(PendingCommitment, match="#0 exists and is processed"):
            engine.ragequit(FOUNDER, 1)
        assert engine.shares_of(FOUNDER) == 1
        assert ledger.free_balance(FOUNDER) == 2000

    def test_blocked_before_first_proposal_processed(self, engine, advance_to):
        engine.submit_proposal(FOUNDER, APPLICANT, 0, 5, b"")
        advance_to(1)
        engine.submit_vote(FOUNDER, 0, 2)
        with pytest.raises(PendingCommitment):
            engine.ragequit(FOUNDER, 1)
        advance_to(5)
        engine.process_proposal(PROCESSOR, 0)
        assert engine.ragequit(FOUNDER, 1) == 0

    def test_blocked_while_yes_vote_pending(self, engine, advance_to):
        engine.submit_proposal(FOUNDER, APPLICANT, 0, 5, b"")
        advance_to(1)
        engine.submit_vote(FOUNDER, 0, 1)
        with pytest.raises(PendingCommitment, match="#0"):
            engine.ragequit(FOUNDER, 1)

    def test_allowed_after_processing(self, engine, advance_to):
        engine.submit_proposal(FOUNDER, APPLICANT, 0, 5, b"")
        advance_to(1)
        engine.submit_vote(FOUNDER, 0, 1)
        advance_to(5)
        engine.process_proposal(PROCESSOR, 0)
        engine.ragequit(FOUNDER, 1)

    def test_no_vote_does_not_block(self, engine, admit, advance_to):
        admit(APPLICANT, 5)
        index = engine.submit_proposal(FOUNDER, "4", 0, 1, b"")
        advance_to(engine.proposal(index).starting_period)
        engine.submit_vote(APPLICANT, index, 2)
        engine.ragequit(APPLICANT, 5)

    def test_gated_on_latest_yes_vote(self, engine, admit, advance_to):
        admit(APPLICANT, 5)
        first = engine.submit_proposal(FOUNDER, "4", 0, 1, b"")
        second = engine.submit_proposal(FOUNDER, "5", 0, 1, b"")
        advance_to(engine.proposal(second).starting_period)
        engine.submit_vote(APPLICANT, first, 1)
        engine.submit_vote(APPLICANT, second, 1)

        advance_to(engine.proposal(first).starting_period + 4)
        engine.process_proposal(PROCESSOR, first)
        with pytest.raises(PendingCommitment, match=f"#{second}"):
            engine.ragequit(APPLICANT, 1)

        advance_to(engine.proposal(second).starting_period + 4)
        engine.process_proposal(PROCESSOR, second)
        engine.ragequit(APPLICANT, 1)

    def test_failed_ragequit_changes_nothing(self, engine, advance_to, ledger, sink):
        engine.submit_proposal(FOUNDER, APPLICANT, 0, 5, b"")
        advance_to(1)
        engine.submit_vote(FOUNDER, 0, 1)
        events_before = len(sink)
        with pytest.raises(PendingCommitment):
            engine.ragequit(FOUNDER, 1)
        assert engine.total_shares() == 1
        assert len(sink) == events_before
