from dataclasses import replace

from riggedballot.exceptions import AlreadyVoted, NoRight
from riggedballot.ledger.state import BallotState


# Give your vote (including votes delegated to you)
# to proposal `proposals[proposal].name`.
def vote(state: BallotState, caller: str, proposal) -> int:
    proposal = state.check_proposal(proposal)
    sender = state.voters[caller]
    if sender.weight == 0:
        raise NoRight
    if sender.voted:
        raise AlreadyVoted

    state.voters[caller] = replace(sender, voted=True, vote=proposal)
    state.add_votes(proposal, sender.weight)
    return sender.weight


# Computes the winning proposal taking all previous votes into account.
# Ties go to the proposal with the lowest index.
def winning_proposal(state: BallotState) -> int:
    winning_vote_count = 0
    winning_proposal = 0
    for i in range(state.num_proposals):
        vote_count = state.proposals[i].vote_count
        if vote_count > winning_vote_count:
            winning_vote_count = vote_count
            winning_proposal = i
    return winning_proposal


def winner_name(state: BallotState) -> bytes:
    return state.proposals[winning_proposal(state)].name
