"""
Membership Registry

Member records keyed by member address, the delegate-key indirection
(delegate key → member address) and the running total-shares counter.
"""

from typing import Dict, List, Optional

from ..exceptions import (
    DelegateKeyCollision,
    InsufficientShares,
    InvalidDelegateKey,
    NotMember,
)
from ..logger import get_logger
from .math import checked_add, checked_sub
from .types import Member

logger = get_logger(__name__)


class MembershipRegistry:
    """
    Two-level lookup: caller → delegate key → member record.

    Share changes go through mint()/burn(), which update the member and the
    total together so the two counters never diverge.
    """

    def __init__(self) -> None:
        self._members: Dict[str, Member] = {}
        self._member_by_delegate: Dict[str, str] = {}
        self.total_shares: int = 0

    # ── Lookup ────────────────────────────────────────────────────────

    def is_member(self, account: str) -> bool:
        member = self._members.get(account)
        return member is not None and member.exists

    def get(self, account: str) -> Optional[Member]:
        return self._members.get(account)

    def member(self, account: str) -> Member:
        member = self._members.get(account)
        if member is None or not member.exists:
            raise NotMember(f"{account} is not a member")
        return member

    def shares_of(self, account: str) -> int:
        member = self._members.get(account)
        return member.shares if member is not None else 0

    def member_by_delegate(self, delegate_key: str) -> Member:
        """Resolve a delegate key to its member; NotMember if unmapped."""
        account = self._member_by_delegate.get(delegate_key)
        if account is None:
            raise NotMember(f"{delegate_key} is not a member delegate key")
        return self.member(account)

    def require_shareholder(self, delegate_key: str) -> Member:
        """Resolve a delegate key to a member holding at least one share."""
        member = self.member_by_delegate(delegate_key)
        if member.shares == 0:
            raise InsufficientShares(f"Member {member.account} holds no shares")
        return member

    def delegate_owner(self, delegate_key: str) -> Optional[str]:
        return self._member_by_delegate.get(delegate_key)

    def members(self) -> List[Member]:
        return list(self._members.values())

    def __len__(self) -> int:
        return len(self._members)

    # ── Creation & shares ─────────────────────────────────────────────

    def add_member(self, account: str, shares: int) -> Member:
        """Create *account* with *shares*, delegating to itself."""
        if account in self._members:
            raise DelegateKeyCollision(f"{account} is already registered")
        member = Member(account=account, delegate_key=account, shares=0)
        self._members[account] = member
        self._member_by_delegate[account] = account
        self.mint(account, shares)
        logger.info(f"Member added: account={account} shares={shares}")
        return member

    def mint(self, account: str, shares: int) -> None:
        member = self.member(account)
        new_total = checked_add(self.total_shares, shares)
        new_shares = checked_add(member.shares, shares)
        member.shares, self.total_shares = new_shares, new_total

    def burn(self, account: str, shares: int) -> None:
        member = self.member(account)
        if shares > member.shares:
            raise InsufficientShares(
                f"{account} holds {member.shares} shares, cannot burn {shares}"
            )
        new_total = checked_sub(self.total_shares, shares)
        new_shares = checked_sub(member.shares, shares)
        member.shares, self.total_shares = new_shares, new_total

    # ── Delegate keys ─────────────────────────────────────────────────

    def set_delegate_key(self, account: str, new_key: str) -> None:
        """
        Point *account*'s delegate at *new_key*.

        A key other than the member's own address may not be a member
        address, nor the delegate key of any other member.
        """
        if not new_key:
            raise InvalidDelegateKey("Delegate key cannot be empty")
        member = self.member(account)

        if new_key != account:
            if new_key in self._members:
                raise DelegateKeyCollision(f"{new_key} is already a member address")
            owner = self._member_by_delegate.get(new_key)
            if owner is not None and owner != account:
                raise DelegateKeyCollision(
                    f"{new_key} is already the delegate key of {owner}"
                )

        self._member_by_delegate.pop(member.delegate_key, None)
        self._member_by_delegate[new_key] = account
        member.delegate_key = new_key
        logger.info(f"Delegate key updated: account={account} delegate={new_key}")

    def reset_delegate(self, delegate_key: str) -> Optional[str]:
        """
        If *delegate_key* is some member's delegate, point that member back at
        its own address. Returns the member whose key was reset.
        """
        owner = self._member_by_delegate.get(delegate_key)
        if owner is None or owner == delegate_key:
            return None
        self.set_delegate_key(owner, owner)
        return owner

    # ── Invariants ────────────────────────────────────────────────────

    def shares_consistent(self) -> bool:
        return self.total_shares == sum(m.shares for m in self._members.values())

    def to_dict(self):
        return {
            "totalShares": self.total_shares,
            "members": {a: m.to_dict() for a, m in self._members.items()},
        }
