"""
Ragequit: voluntary exit.

A member burns shares and takes floor(guild_bank × shares / total_shares)
out of the guild bank. Exit is blocked while the member's latest YES vote
sits on an unprocessed proposal, and before any proposal at that index
has been queued.
"""

from typing import TYPE_CHECKING

from ..exceptions import InsufficientShares, PendingCommitment
from ..logger import get_logger
from .events import Ragequit
from .math import pro_rata

if TYPE_CHECKING:
    from .state import MolochState, TxContext

logger = get_logger(__name__)


def ragequit(state: "MolochState", ctx: "TxContext", caller: str, shares_to_burn: int) -> int:
    """
    Burn *shares_to_burn* of the caller's shares for a pro-rata payout.

    Returns:
        Amount paid out to the member.
    """
    registry = state.registry
    member = registry.member(caller)

    if not isinstance(shares_to_burn, int) or isinstance(shares_to_burn, bool) or shares_to_burn <= 0:
        raise InsufficientShares(f"Must burn a positive number of shares, got {shares_to_burn!r}")
    if shares_to_burn > member.shares:
        raise InsufficientShares(
            f"{caller} holds {member.shares} shares, cannot burn {shares_to_burn}"
        )

    queue = state.queue
    pending = member.highest_index_yes_vote
    if not queue.exists(pending):
        raise PendingCommitment(
            f"{caller} cannot ragequit before proposal #{pending} exists and is processed"
        )
    if not queue.get(pending).processed:
        raise PendingCommitment(
            f"{caller} cannot ragequit until proposal #{pending} is processed"
        )

    total_before = registry.total_shares
    amount = pro_rata(state.treasury.guild_bank, shares_to_burn, total_before)

    registry.burn(caller, shares_to_burn)
    state.treasury.withdraw_guild_bank(ctx.journal, caller, amount)

    ctx.emit(Ragequit(member=caller, shares_to_burn=shares_to_burn, amount=amount))
    logger.info(
        f"Ragequit: account={caller} burned {shares_to_burn}/{total_before} shares, amount={amount}"
    )
    return amount
