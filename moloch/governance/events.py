"""
Emitted Records

One frozen dataclass per observable state change. The engine buffers these
during a transaction and hands them to the EventSink only after it commits.
"""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class SummonComplete:
    """[summoner, shares]"""
    summoner: str
    shares: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "SummonComplete",
            "summoner": self.summoner,
            "shares": self.shares,
        }


@dataclass(frozen=True)
class SubmitProposal:
    """[proposalIndex, delegateKey, memberAddress, applicant, tokenTribute, sharesRequested]"""
    proposal_index: int
    delegate_key: str
    member: str
    applicant: str
    token_tribute: int
    shares_requested: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "SubmitProposal",
            "proposalIndex": self.proposal_index,
            "delegateKey": self.delegate_key,
            "memberAddress": self.member,
            "applicant": self.applicant,
            "tokenTribute": self.token_tribute,
            "sharesRequested": self.shares_requested,
        }


@dataclass(frozen=True)
class SubmitVote:
    """[proposalIndex, delegateKey, memberAddress, uintVote]"""
    proposal_index: int
    delegate_key: str
    member: str
    vote: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "SubmitVote",
            "proposalIndex": self.proposal_index,
            "delegateKey": self.delegate_key,
            "memberAddress": self.member,
            "uintVote": self.vote,
        }


@dataclass(frozen=True)
class ProcessProposal:
    """[proposalIndex, applicant, memberAddress, tokenTribute, sharesRequested, didPass]"""
    proposal_index: int
    applicant: str
    member: str
    token_tribute: int
    shares_requested: int
    did_pass: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "ProcessProposal",
            "proposalIndex": self.proposal_index,
            "applicant": self.applicant,
            "memberAddress": self.member,
            "tokenTribute": self.token_tribute,
            "sharesRequested": self.shares_requested,
            "didPass": self.did_pass,
        }


@dataclass(frozen=True)
class Ragequit:
    """[memberAddress, sharesToBurn, amount]"""
    member: str
    shares_to_burn: int
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Ragequit",
            "memberAddress": self.member,
            "sharesToBurn": self.shares_to_burn,
            "amount": self.amount,
        }


@dataclass(frozen=True)
class Abort:
    """[proposalIndex, applicantAddress]"""
    proposal_index: int
    applicant: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Abort",
            "proposalIndex": self.proposal_index,
            "applicantAddress": self.applicant,
        }


@dataclass(frozen=True)
class UpdateDelegateKey:
    """[memberAddress, newDelegateKey]"""
    member: str
    new_delegate_key: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "UpdateDelegateKey",
            "memberAddress": self.member,
            "newDelegateKey": self.new_delegate_key,
        }


@dataclass(frozen=True)
class Custody:
    """[account, amount, custodyBalance]"""
    account: str
    amount: int
    balance: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Custody",
            "account": self.account,
            "amount": self.amount,
            "custodyBalance": self.balance,
        }


@dataclass(frozen=True)
class CustodyWithdrawn:
    """[account, amount, custodyBalance]"""
    account: str
    amount: int
    balance: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "CustodyWithdrawn",
            "account": self.account,
            "amount": self.amount,
            "custodyBalance": self.balance,
        }
