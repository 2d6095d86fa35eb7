# src/slashkeeper/consensus/slash_math.py
"""Pure slash arithmetic over unbonding and redelegation entries.

Nothing here touches storage: callers get back what to burn from each entry
and apply it through the staking module themselves.
"""
from decimal import Decimal
from typing import List, Sequence, Tuple, TypeVar, Union

from .staking import RedelegationEntry, UnbondingEntry

Entry = TypeVar("Entry", UnbondingEntry, RedelegationEntry)

def slash_amount(tokens: int, fraction: Decimal) -> int:
    """tokens * fraction, truncated toward zero"""
    return int(Decimal(tokens) * fraction)

def is_slashable(
    entry: Union[UnbondingEntry, RedelegationEntry],
    infraction_height: int,
    block_time: int
) -> bool:
    """Entry was created at or after the infraction and has not matured"""
    if entry.creation_height < infraction_height:
        return False
    return entry.completion_time > block_time

def compute_entry_burns(
    entries: Sequence[Entry],
    infraction_height: int,
    fraction: Decimal,
    block_time: int
) -> Tuple[List[Tuple[Entry, int]], int]:
    """Burn owed by each slashable entry, plus their sum.

    The burn is always a share of the entry's initial balance so that a
    partially completed or already slashed entry still owes its full part of
    the penalty. The sum counts that full burn even where the entry's
    remaining balance is smaller.
    """
    burns = []
    total = 0
    for entry in entries:
        if not is_slashable(entry, infraction_height, block_time):
            continue
        burn = slash_amount(entry.initial_balance, fraction)
        if burn == 0:
            continue
        burns.append((entry, burn))
        total += burn
    return burns, total

def remaining_validator_slash(base: int, unbonding_total: int, redelegation_total: int) -> int:
    """What is still owed by the validator itself, never negative"""
    return max(0, base - unbonding_total - redelegation_total)
