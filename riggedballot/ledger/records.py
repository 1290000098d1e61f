from dataclasses import asdict, dataclass
from typing import Optional


@dataclass(frozen=True)
class Proposal:
    # short name (up to 32 bytes)
    name: bytes
    # number of accumulated votes
    vote_count: int = 0


@dataclass(frozen=True)
class Voter:
    # weight is accumulated by delegation
    weight: int = 0
    # if true, that person already voted (which includes voting by delegating)
    voted: bool = False
    # person delegated to, always the terminal of the chain at delegation time
    delegate: Optional[str] = None
    # index of the voted proposal, which is not meaningful unless `voted` is True.
    vote: int = 0


@dataclass(frozen=True)
class Bribe:
    briber: Optional[str] = None
    amount: int = 0
    proposal: int = 0

    @property
    def is_empty(self) -> bool:
        return self.amount == 0


def as_dict(record) -> dict:
    return asdict(record)
