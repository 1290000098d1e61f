"""
A ballot with delegation, where anyone can attach a bribe to a voter.

The chairperson grants voting rights, voters vote directly or delegate,
and a third party can escrow up to `MAX_BRIBE` for a voter. The bribe is
released to the voter, as a pending withdrawal, only if they vote for the
proposal the briber named.
"""
from riggedballot.contract import Contract, external, view
from riggedballot.events import BribeTaken, WithdrawalAvailable
from riggedballot.exceptions import EmptyProposalList
from riggedballot.ledger import delegation, escrow, registry, tally
from riggedballot.ledger.escrow import MAX_BRIBE  # noqa: F401
from riggedballot.ledger.records import Bribe, Proposal, Voter
from riggedballot.ledger.state import BallotState
from riggedballot.utils import string_to_bytes32, to_address


class RiggedBallot(Contract):
    # Setup global variables
    def __init__(self, proposal_names):
        names = [string_to_bytes32(name) for name in proposal_names]
        if len(names) == 0:
            raise EmptyProposalList
        self.state = BallotState(self.env.journal, self.msg.sender, names)

    @external
    def grant_right(self, voter):
        registry.grant_right(self.state, self.msg.sender, to_address(voter))

    # Delegate your vote to the voter `to`.
    @external
    def delegate(self, to):
        return delegation.delegate(self.state, self.msg.sender, to_address(to))

    @external
    def vote(self, proposal):
        sender = self.msg.sender
        tally.vote(self.state, sender, proposal)

        amount = escrow.settle(self.state, sender, proposal, self.warn)
        if amount is not None:
            self.emit(BribeTaken, sender, proposal)
            self.emit(WithdrawalAvailable, sender, amount)

    @external(payable=True)
    def bribe(self, bribee, proposal):
        escrow.place_bribe(
            self.state, self.msg.sender, to_address(bribee), proposal, self.msg.value, self.warn
        )

    @external
    def withdraw(self):
        amount = escrow.take_pending(self.state, self.msg.sender)
        self.env.send(self.msg.sender, amount)
        return amount

    @view
    def chairperson(self) -> str:
        return self.state.chairperson

    @view
    def num_proposals(self) -> int:
        return self.state.num_proposals

    @view
    def proposals(self, i: int) -> Proposal:
        return self.state.proposals[self.state.check_proposal(i)]

    @view
    def voters(self, addr) -> Voter:
        return self.state.voters[to_address(addr)]

    @view
    def bribes(self, addr) -> Bribe:
        return self.state.bribes[to_address(addr)]

    @view
    def pending_withdrawals(self, addr) -> int:
        return self.state.pending_withdrawals[to_address(addr)]

    @view
    def delegated(self, addr) -> bool:
        return self.voters(addr).delegate is not None

    @view
    def directly_voted(self, addr) -> bool:
        voter = self.voters(addr)
        return voter.voted and voter.delegate is None

    @view
    def winning_proposal(self) -> int:
        return tally.winning_proposal(self.state)

    @view
    def winner_name(self) -> bytes:
        return tally.winner_name(self.state)

    @view
    def escrow_balance(self) -> int:
        return self.env.get_balance(self.address)

    @view
    def check_invariants(self):
        self.state.check_invariants(self.escrow_balance())
