"""
In-Memory Collaborators

Reference implementations of the Ledger / Clock / EventSink protocols, used by
the test-suite, the `moloch simulate` command and hosts without their own
account system.
"""

import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from ..constants import U128_MAX
from ..exceptions import InsufficientBalance, InvalidAmount, LedgerError
from ..logger import get_logger

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  LEDGER
# ══════════════════════════════════════════════════════════════════════

class InMemoryLedger:
    """
    Dictionary-backed fungible ledger.

    Mirrors a simple balances module:
        - free_balance(account) → int
        - transfer(source, dest, amount)
        - deposit(account, amount)          (genesis / faucet)

    Unknown accounts have a zero balance. Accounts listed in *frozen* may
    receive but never send, which lets tests force a transfer failure.
    """

    def __init__(
        self,
        balances: Optional[Dict[str, int]] = None,
        *,
        known_callers: Optional[Iterable[str]] = None,
    ):
        self._balances: Dict[str, int] = {}
        self._transfers: List[Tuple[str, str, int]] = []
        self._frozen: set = set()
        # None means every non-empty identity is an authenticated caller
        self._known_callers = set(known_callers) if known_callers is not None else None

        for account, amount in (balances or {}).items():
            self.deposit(account, amount)

    # ── Read-only views ───────────────────────────────────────────────

    def free_balance(self, account: str) -> int:
        return self._balances.get(account, 0)

    @property
    def total_issuance(self) -> int:
        return sum(self._balances.values())

    @property
    def transfers(self) -> List[Tuple[str, str, int]]:
        return list(self._transfers)

    # ── Identity ──────────────────────────────────────────────────────

    def verify_caller(self, account: str) -> str:
        if not account:
            raise LedgerError("Caller identity is required")
        if self._known_callers is not None and account not in self._known_callers:
            raise LedgerError(f"Unknown caller {account}")
        return account

    def register_caller(self, account: str) -> None:
        if self._known_callers is not None:
            self._known_callers.add(account)

    # ── Mutations ─────────────────────────────────────────────────────

    def deposit(self, account: str, amount: int) -> None:
        """Credit *account* out of thin air (genesis balances, faucets)."""
        _require_amount(amount)
        new_balance = self.free_balance(account) + amount
        if new_balance > U128_MAX:
            raise LedgerError(f"Balance of {account} would overflow")
        self._balances[account] = new_balance

    def transfer(self, source: str, dest: str, amount: int) -> None:
        _require_amount(amount)
        if amount == 0 or source == dest:
            return
        if source in self._frozen:
            raise LedgerError(f"Account {source} is frozen")

        bal = self.free_balance(source)
        if bal < amount:
            raise InsufficientBalance(
                f"{source} balance {bal} < transfer amount {amount}"
            )
        dest_bal = self.free_balance(dest) + amount
        if dest_bal > U128_MAX:
            raise LedgerError(f"Balance of {dest} would overflow")

        self._balances[source] = bal - amount
        self._balances[dest] = dest_bal
        self._transfers.append((source, dest, amount))
        logger.debug(f"Transfer: {source} → {dest} amount={amount}")

    def freeze(self, account: str) -> None:
        self._frozen.add(account)

    def unfreeze(self, account: str) -> None:
        self._frozen.discard(account)

    def __repr__(self) -> str:
        return f"<InMemoryLedger accounts={len(self._balances)} issuance={self.total_issuance}>"


def _require_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise InvalidAmount(f"Amount must be an integer, got {amount!r}")
    if amount < 0:
        raise InvalidAmount("Amount cannot be negative")


# ══════════════════════════════════════════════════════════════════════
#  CLOCKS
# ══════════════════════════════════════════════════════════════════════

class SystemClock:
    """Wall-clock time in whole seconds."""

    def __init__(self, time_fn: Callable[[], float] = time.time):
        self._time_fn = time_fn

    def now(self) -> int:
        return int(self._time_fn())


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: int = 0):
        self._now = start

    def now(self) -> int:
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError("ManualClock cannot move backwards")
        self._now = timestamp

    def advance(self, seconds: int) -> int:
        self.set(self._now + seconds)
        return self._now


# ══════════════════════════════════════════════════════════════════════
#  EVENT SINK
# ══════════════════════════════════════════════════════════════════════

class InMemoryEventSink:
    """Collects emitted records in order."""

    def __init__(self) -> None:
        self._events: List[Any] = []

    def emit(self, event: Any) -> None:
        self._events.append(event)

    @property
    def events(self) -> List[Any]:
        return list(self._events)

    def last(self) -> Any:
        if not self._events:
            raise LookupError("No events emitted")
        return self._events[-1]

    def of_type(self, event_type: type) -> List[Any]:
        return [e for e in self._events if isinstance(e, event_type)]

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)
