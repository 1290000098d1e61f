from collections import defaultdict

from riggedballot.exceptions import InvalidProposal, InvariantViolation
from riggedballot.ledger.records import Bribe, Proposal, Voter
from riggedballot.storage import Storage, StorageJournal


class BallotState:
    """
    The record set shared by every part of the ballot.

    `voters`, `bribes` and `pending_withdrawals` read as default records
    for addresses that were never written. `proposals` is fixed in length
    at construction; only vote counts change afterwards.
    """

    def __init__(self, journal: StorageJournal, chairperson: str, proposal_names: list[bytes]):
        self._chairperson = chairperson
        self.num_proposals = len(proposal_names)
        self.proposals = Storage(
            journal, initial={i: Proposal(name=name) for i, name in enumerate(proposal_names)}
        )
        self.voters = Storage(journal, default=Voter())
        self.bribes = Storage(journal, default=Bribe())
        self.pending_withdrawals = Storage(journal, default=0)

    @property
    def chairperson(self) -> str:
        return self._chairperson

    def check_proposal(self, proposal) -> int:
        # bool is an int subclass, but True is not a proposal index
        if isinstance(proposal, bool) or not isinstance(proposal, int):
            raise InvalidProposal(hint=f"proposal index must be an int, got {proposal!r}")
        if not 0 <= proposal < self.num_proposals:
            raise InvalidProposal(hint=f"valid indices are 0 to {self.num_proposals - 1}")
        return proposal

    def add_votes(self, proposal: int, weight: int):
        current = self.proposals[proposal]
        self.proposals[proposal] = Proposal(
            name=current.name, vote_count=current.vote_count + weight
        )

    def check_invariants(self, escrow_balance: int):
        """
        Raise `InvariantViolation` unless the record set is consistent.

        This walks every record, so it is meant for tests and audits rather
        than for every call.
        """
        # weight conservation: what voters cast is what proposals counted
        cast = defaultdict(int)
        for voter in self.voters.values():
            if voter.voted:
                cast[voter.vote] += voter.weight
        for i in range(self.num_proposals):
            if cast.pop(i, 0) != self.proposals[i].vote_count:
                raise InvariantViolation(f"vote count of proposal {i} does not match cast weight")
        if any(cast.values()):
            raise InvariantViolation(f"weight cast for unknown proposals: {dict(cast)}")

        # delegation chains are finite
        for address, voter in self.voters.items():
            if voter.delegate is not None and not voter.voted:
                raise InvariantViolation(f"{address} delegated without being marked as voted")
            seen = {address}
            current = voter.delegate
            while current is not None:
                if current in seen:
                    raise InvariantViolation(f"delegation chain of {address} is cyclic")
                seen.add(current)
                current = self.voters[current].delegate

        # escrow covers everything it may still have to pay out
        owed = sum(self.pending_withdrawals.values())
        escrowed = sum(bribe.amount for bribe in self.bribes.values())
        if escrow_balance < owed + escrowed:
            raise InvariantViolation(
                f"escrow holds {escrow_balance} wei but owes {owed} and escrows {escrowed}"
            )
