from dataclasses import dataclass, field
from functools import cached_property

from riggedballot.exceptions import ArgumentException
from riggedballot.utils import event_id


@dataclass(frozen=True)
class Event:
    """
    An event declaration, ex. `BribeTaken(address bribee, uint256 proposal)`.
    """

    name: str
    inputs: tuple[tuple[str, str], ...]

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(typ for _, typ in self.inputs)})"

    @cached_property
    def topic(self) -> bytes:
        return event_id(self.signature)

    def build(self, address: str, *args) -> "LogEntry":
        if len(args) != len(self.inputs):
            raise ArgumentException(
                f"{self.name} takes {len(self.inputs)} arguments, got {len(args)}"
            )
        values = {name: arg for (name, _), arg in zip(self.inputs, args)}
        return LogEntry(address=address, event=self.name, topic=self.topic, args=values)


# a very simple log representation
@dataclass
class LogEntry:
    address: str
    event: str
    topic: bytes
    args: dict = field(default_factory=dict)

    def as_dict(self):
        return {
            "address": self.address,
            "event": self.event,
            "topic": "0x" + self.topic.hex(),
            "args": dict(self.args),
        }


BribeTaken = Event("BribeTaken", (("bribee", "address"), ("proposal", "uint256")))
WithdrawalAvailable = Event("WithdrawalAvailable", (("bribee", "address"), ("amount", "uint256")))
