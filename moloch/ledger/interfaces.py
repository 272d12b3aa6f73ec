"""
Collaborator Interfaces

Narrow protocols the governance engine consumes from its host:

  - Ledger     : caller identity and fungible balance movements
  - Clock      : current time in whole seconds
  - EventSink  : receives emitted records for observers

The engine never reaches past these; any host (a chain runtime, a test
double, a simulator) plugs in by implementing them structurally.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Ledger(Protocol):
    """
    Account system holding fungible balances.

    transfer() must either move the full amount or raise a LedgerError
    subclass leaving both balances untouched.
    """

    def transfer(self, source: str, dest: str, amount: int) -> None:
        """Move *amount* from *source* to *dest*."""
        ...

    def free_balance(self, account: str) -> int:
        """Spendable balance of *account*."""
        ...

    def verify_caller(self, account: str) -> str:
        """Confirm *account* is an authenticated caller; returns it."""
        ...


@runtime_checkable
class Clock(Protocol):
    """Monotonic wall clock."""

    def now(self) -> int:
        """Current time in seconds."""
        ...


@runtime_checkable
class EventSink(Protocol):
    """Observer notification channel."""

    def emit(self, event: Any) -> None:
        ...
