import functools
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from riggedballot.env import Env


class Message(NamedTuple):
    sender: str
    value: int
    to: str


def external(fn=None, *, payable=False):
    """
    Mark a contract method as a state-changing entry point.

    Calls go through the environment, which supplies `msg`, moves the
    attached value and applies the call atomically. Callers pass
    `sender=` and `value=` as keyword arguments.
    """
    if fn is None:
        return functools.partial(external, payable=payable)

    @functools.wraps(fn)
    def wrapper(self, *args, sender=None, value=0, **kwargs):
        return self.env.message_call(
            self, fn, *args, sender=sender, value=value, payable=payable, **kwargs
        )

    wrapper.is_external = True
    wrapper.is_payable = payable
    return wrapper


def view(fn):
    """
    Mark a contract method as read-only. Views run outside of any
    transaction and may be called from contract code.
    """
    fn.is_view = True
    return fn


class Contract:
    """
    Base class for contracts hosted by an `Env`.

    Instances are created with `env.deploy(cls, *args)`, which binds the
    instance to its environment and address and then runs `__init__` as the
    constructor, inside a transaction of its own.
    """

    env: "Env"
    address: str

    def _bind(self, env, address):
        self.env = env
        self.address = address

    @property
    def msg(self) -> Message:
        return self.env.current_message

    def emit(self, event, *args):
        self.env.log(event.build(self.address, *args))

    def warn(self, warning):
        self.env.warn(warning)

    def __repr__(self):
        return f"<{type(self).__name__} at {self.address}>"
