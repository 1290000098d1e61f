from dataclasses import replace

from riggedballot.exceptions import AlreadyVoted, DelegationLoop, SelfDelegation
from riggedballot.ledger.state import BallotState
from riggedballot.utils import OrderedSet


def resolve_delegate(state: BallotState, delegator: str, to: str) -> str:
    """
    Follow the delegation chain starting at `to` and return its terminal.

    Raises `DelegationLoop` if the chain leads back to `delegator`. The
    walk keeps the addresses it has seen, so it stops even if the stored
    chain were malformed.
    """
    seen = OrderedSet([to])
    target = to
    while (next_hop := state.voters[target].delegate) is not None:
        if next_hop == delegator:
            raise DelegationLoop
        if next_hop in seen:
            path = " -> ".join(seen)
            raise DelegationLoop(hint=f"stored chain is cyclic: {path} -> {next_hop}")
        seen.add(next_hop)
        target = next_hop
    return target


def delegate(state: BallotState, caller: str, to: str) -> str:
    """
    Delegate the vote of `caller` to `to`, returning the terminal delegate.

    If the terminal already voted, the weight of `caller` counts for that
    vote right away. Otherwise the weight moves to the terminal, which
    casts it later together with its own.
    """
    sender = state.voters[caller]
    if sender.voted:
        raise AlreadyVoted("You already voted.")
    if to == caller:
        raise SelfDelegation

    target = resolve_delegate(state, caller, to)
    delegate_ = state.voters[target]

    if delegate_.voted:
        # the delegate already voted, so add to the tally directly
        state.add_votes(delegate_.vote, sender.weight)
        state.voters[caller] = replace(sender, voted=True, delegate=target, vote=delegate_.vote)
    else:
        state.voters[caller] = replace(sender, voted=True, delegate=target, weight=0)
        state.voters[target] = replace(delegate_, weight=delegate_.weight + sender.weight)
    return target
