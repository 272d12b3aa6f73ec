"""
Treasury & Escrow

A single pool account on the host ledger holds everything the DAO has in
custody. The Treasury keeps the books that partition that balance:

    custody            applicant pre-payments not yet committed to a proposal
    escrowed_tribute   tributes of unresolved proposals
    escrowed_deposits  proposal deposits of unprocessed proposals
    guild_bank         accepted tributes; the pot ragequit draws from

The sum of the four is covered by the pool's ledger balance above its
opening balance.
"""

from typing import Dict, List, Tuple

from ..exceptions import InvalidAmount, InvariantViolation, LedgerError, NoCustodyFound
from ..ledger.interfaces import Ledger
from ..logger import get_logger
from .math import checked_add, checked_sub

logger = get_logger(__name__)


class LedgerJournal:
    """
    Records every transfer made on behalf of one transaction so it can be
    reversed if the transaction fails later on.
    """

    def __init__(self, ledger: Ledger):
        self.ledger = ledger
        self._entries: List[Tuple[str, str, int]] = []

    def transfer(self, source: str, dest: str, amount: int) -> None:
        if amount == 0:
            return
        self.ledger.transfer(source, dest, amount)
        self._entries.append((source, dest, amount))

    def unwind(self) -> None:
        """Reverse recorded transfers, newest first."""
        while self._entries:
            source, dest, amount = self._entries.pop()
            try:
                self.ledger.transfer(dest, source, amount)
            except LedgerError as e:
                raise InvariantViolation(
                    f"Could not reverse transfer {source} → {dest} ({amount}): {e}"
                ) from e
            logger.debug(f"Reversed transfer: {source} → {dest} amount={amount}")

    @property
    def entries(self) -> List[Tuple[str, str, int]]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class Treasury:
    """Books for the pool account. Ledger movements go through a LedgerJournal."""

    def __init__(self, pool_account: str, opening_balance: int = 0):
        self.pool_account = pool_account
        self.opening_balance = opening_balance
        self.custody: Dict[str, int] = {}
        self.escrowed_tribute: int = 0
        self.escrowed_deposits: int = 0
        self.guild_bank: int = 0

    # ── Views ─────────────────────────────────────────────────────────

    def custody_of(self, account: str) -> int:
        return self.custody.get(account, 0)

    @property
    def total_held(self) -> int:
        return (
            sum(self.custody.values())
            + self.escrowed_tribute
            + self.escrowed_deposits
            + self.guild_bank
        )

    def reconcile(self, ledger: Ledger) -> None:
        """
        Raise InvariantViolation if the pool holds less than the books say.

        A surplus (someone paid the pool directly) is not a violation; it is
        simply never distributed.
        """
        expected = self.opening_balance + self.total_held
        actual = ledger.free_balance(self.pool_account)
        if actual < expected:
            raise InvariantViolation(
                f"Pool {self.pool_account} holds {actual}, books say {expected}"
            )

    # ── Custody ───────────────────────────────────────────────────────

    def deposit_custody(self, journal: LedgerJournal, account: str, amount: int) -> int:
        if amount <= 0:
            raise InvalidAmount("Custody amount must be positive")
        new_balance = checked_add(self.custody_of(account), amount)
        journal.transfer(account, self.pool_account, amount)
        self.custody[account] = new_balance
        logger.debug(f"Custody: account={account} amount={amount} balance={new_balance}")
        return new_balance

    def withdraw_custody(self, journal: LedgerJournal, account: str, amount: int) -> int:
        if amount <= 0:
            raise InvalidAmount("Withdrawal amount must be positive")
        held = self.custody_of(account)
        if held < amount:
            raise NoCustodyFound(f"{account} has {held} in custody, cannot withdraw {amount}")
        self._pay_out(journal, account, amount)
        remaining = held - amount
        if remaining:
            self.custody[account] = remaining
        else:
            self.custody.pop(account, None)
        return remaining

    # ── Proposal escrow ───────────────────────────────────────────────

    def escrow_proposal(
        self,
        journal: LedgerJournal,
        depositor: str,
        deposit: int,
        applicant: str,
        tribute: int,
    ) -> None:
        """Take the deposit from *depositor* and commit *tribute* from the applicant's custody."""
        held = self.custody_of(applicant)
        if held < tribute:
            raise NoCustodyFound(
                f"Applicant {applicant} has {held} in custody, tribute requires {tribute}"
            )
        new_tribute = checked_add(self.escrowed_tribute, tribute)
        new_deposits = checked_add(self.escrowed_deposits, deposit)
        journal.transfer(depositor, self.pool_account, deposit)

        if held - tribute:
            self.custody[applicant] = held - tribute
        else:
            self.custody.pop(applicant, None)
        self.escrowed_tribute = new_tribute
        self.escrowed_deposits = new_deposits

    def accept_tribute(self, tribute: int) -> None:
        """Passed proposal: escrowed tribute joins the guild bank."""
        self.escrowed_tribute = self._debit(self.escrowed_tribute, tribute, "escrowed tribute")
        self.guild_bank = checked_add(self.guild_bank, tribute)

    def return_tribute(self, journal: LedgerJournal, applicant: str, tribute: int) -> None:
        """Rejected or aborted proposal: tribute goes back to the applicant."""
        self.escrowed_tribute = self._debit(self.escrowed_tribute, tribute, "escrowed tribute")
        self._pay_out(journal, applicant, tribute)

    def release_deposit(
        self,
        journal: LedgerJournal,
        deposit: int,
        processor: str,
        reward: int,
        proposer: str,
    ) -> None:
        """Pay *reward* to the processor and the rest of the deposit back to the proposer."""
        self.escrowed_deposits = self._debit(self.escrowed_deposits, deposit, "escrowed deposits")
        refund = checked_sub(deposit, reward)
        self._pay_out(journal, processor, reward)
        self._pay_out(journal, proposer, refund)

    # ── Guild bank ────────────────────────────────────────────────────

    def withdraw_guild_bank(self, journal: LedgerJournal, dest: str, amount: int) -> None:
        self.guild_bank = self._debit(self.guild_bank, amount, "guild bank")
        self._pay_out(journal, dest, amount)

    # ── Internals ─────────────────────────────────────────────────────

    def _pay_out(self, journal: LedgerJournal, dest: str, amount: int) -> None:
        try:
            journal.transfer(self.pool_account, dest, amount)
        except LedgerError as e:
            raise InvariantViolation(
                f"Pool {self.pool_account} could not pay {amount} to {dest}: {e}"
            ) from e

    @staticmethod
    def _debit(balance: int, amount: int, what: str) -> int:
        if amount > balance:
            raise InvariantViolation(f"{what} holds {balance}, cannot release {amount}")
        return balance - amount

    def to_dict(self):
        return {
            "poolAccount": self.pool_account,
            "custody": dict(self.custody),
            "escrowedTribute": self.escrowed_tribute,
            "escrowedDeposits": self.escrowed_deposits,
            "guildBank": self.guild_bank,
        }
