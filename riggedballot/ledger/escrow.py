"""
Conditional payments held by the ballot on behalf of a briber.

A bribe is recorded against the address of the voter. If that voter votes
for the proposal named in the bribe, the amount becomes a pending
withdrawal for the voter, which they collect with a separate call. Value
never leaves the ballot as a side effect of voting.
"""
from typing import Callable, Optional

from riggedballot.exceptions import (
    BribeeAlreadyVoted,
    BribeeIneligible,
    BribeTooHigh,
    NoPendingWithdrawal,
    ZeroBribe,
)
from riggedballot.ledger.records import Bribe
from riggedballot.ledger.state import BallotState
from riggedballot.warnings import BallotWarning, BribeForfeited, BribeIgnored

# 0.01 ether
MAX_BRIBE = 10**16


def place_bribe(
    state: BallotState,
    briber: str,
    bribee: str,
    proposal,
    amount: int,
    warn: Callable[[BallotWarning], None],
) -> Bribe:
    if amount == 0:
        raise ZeroBribe
    if amount > MAX_BRIBE:
        raise BribeTooHigh
    proposal = state.check_proposal(proposal)
    target = state.voters[bribee]
    if target.weight == 0:
        raise BribeeIneligible
    if target.voted:
        raise BribeeAlreadyVoted

    previous = state.bribes[bribee]
    if not previous.is_empty:
        warn(
            BribeForfeited(
                f"bribe of {previous.amount} wei from {previous.briber} to {bribee} "
                "is replaced and will not be refunded"
            )
        )

    bribe = Bribe(briber=briber, amount=amount, proposal=proposal)
    state.bribes[bribee] = bribe
    return bribe


def settle(
    state: BallotState, bribee: str, proposal: int, warn: Callable[[BallotWarning], None]
) -> Optional[int]:
    """
    Turn the bribe on `bribee` into a pending withdrawal if `proposal` is
    the proposal it asked for. Returns the settled amount, or None.
    """
    bribe = state.bribes[bribee]
    if bribe.is_empty:
        return None
    if bribe.proposal != proposal:
        warn(
            BribeIgnored(
                f"{bribee} voted for proposal {proposal}, "
                f"not proposal {bribe.proposal} as bribed by {bribe.briber}"
            )
        )
        return None

    state.pending_withdrawals[bribee] += bribe.amount
    state.bribes.reset(bribee)
    return bribe.amount


def take_pending(state: BallotState, caller: str) -> int:
    # the balance is cleared here, before any value goes out
    amount = state.pending_withdrawals[caller]
    if amount == 0:
        raise NoPendingWithdrawal
    state.pending_withdrawals.reset(caller)
    return amount
