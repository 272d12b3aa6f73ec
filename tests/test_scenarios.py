"""
End-to-End Scenarios

A full membership cycle against the reference parameters:

  A: summon
  B: submission fails without custody, succeeds after it
  C: vote, wait out voting + grace, process, applicant admitted
  D: voting on a missing proposal and voting twice
"""

import pytest

from moloch.exceptions import AlreadyVoted, NoCustodyFound, ProposalNotFound
from moloch.governance import ProcessProposal, SubmitProposal, SubmitVote

FOUNDER = "1"
APPLICANT = "2"
PROCESSOR = "3"
POOL = "moloch-pool"


class TestMembershipCycle:

    def test_scenario_a_summon(self, engine):
        assert engine.total_shares() == 1
        assert engine.member(FOUNDER).exists

    def test_scenario_b_submission(self, engine, sink):
        with pytest.raises(NoCustodyFound):
            engine.submit_proposal(FOUNDER, APPLICANT, 50, 5, b"x")

        engine.custody(APPLICANT, 50)
        engine.submit_proposal(FOUNDER, APPLICANT, 50, 5, b"x")

        assert sink.last() == SubmitProposal(0, FOUNDER, FOUNDER, APPLICANT, 50, 5)

    def test_scenario_c_vote_and_process(self, engine, ledger, clock, sink):
        engine.custody(APPLICANT, 50)
        engine.submit_proposal(FOUNDER, APPLICANT, 50, 5, b"x")

        clock.advance(20)
        engine.submit_vote(FOUNDER, 0, 1)
        assert engine.proposal(0).yes_votes == 1
        assert sink.last() == SubmitVote(0, FOUNDER, FOUNDER, 1)

        clock.advance(60)
        reward = engine.state.summon.processing_reward
        before = ledger.free_balance(PROCESSOR)
        engine.process_proposal(PROCESSOR, 0)

        assert engine.is_member(APPLICANT)
        assert engine.shares_of(APPLICANT) == 5
        assert ledger.free_balance(PROCESSOR) == before + reward
        assert sink.last() == ProcessProposal(0, APPLICANT, FOUNDER, 50, 5, True)
        engine.check_invariants()

    def test_scenario_d_vote_errors(self, engine, clock):
        engine.custody(APPLICANT, 50)
        engine.submit_proposal(FOUNDER, APPLICANT, 50, 5, b"x")
        clock.advance(20)

        with pytest.raises(ProposalNotFound):
            engine.submit_vote(FOUNDER, 1, 1)

        engine.submit_vote(FOUNDER, 0, 1)
        with pytest.raises(AlreadyVoted):
            engine.submit_vote(FOUNDER, 0, 1)


class TestLongerHistory:

    def test_invariants_hold_through_mixed_activity(self, engine, admit, ledger, advance_to):
        admit(APPLICANT, 5, tribute=50)
        admit(PROCESSOR, 3, tribute=90)
        engine.check_invariants()

        index = engine.submit_proposal(APPLICANT, "4", 0, 2, b"")
        start = engine.proposal(index).starting_period
        advance_to(start)
        engine.submit_vote(APPLICANT, index, 2)
        engine.submit_vote(PROCESSOR, index, 2)
        engine.submit_vote(FOUNDER, index, 2)
        # Founder's latest YES vote was on an already processed proposal
        assert engine.ragequit(FOUNDER, 1) == 140 * 1 // 9
        advance_to(start + 4)
        assert engine.process_proposal(FOUNDER, index) is False

        total = engine.total_shares()
        bank = engine.guild_bank()
        amount = engine.ragequit(PROCESSOR, 3)
        assert amount == bank * 3 // total

        engine.check_invariants()
        assert ledger.free_balance(POOL) == engine.state.treasury.total_held
