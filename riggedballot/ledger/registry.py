from dataclasses import replace

from riggedballot.exceptions import AlreadyEnfranchised, AlreadyVoted, Unauthorized
from riggedballot.ledger.state import BallotState


# Give a `voter` the right to vote on this ballot.
# This may only be called by the `chairperson`.
def grant_right(state: BallotState, caller: str, voter: str):
    if caller != state.chairperson:
        raise Unauthorized
    record = state.voters[voter]
    if record.voted:
        raise AlreadyVoted("The voter already voted.")
    if record.weight != 0:
        raise AlreadyEnfranchised
    state.voters[voter] = replace(record, weight=1)
