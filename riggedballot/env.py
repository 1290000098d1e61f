from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Optional

from riggedballot.contract import Contract, Message
from riggedballot.events import LogEntry
from riggedballot.exceptions import (
    ArgumentException,
    InsufficientBalance,
    LedgerPanic,
    NonPayable,
    UnknownContract,
)
from riggedballot.settings import Settings
from riggedballot.storage import Storage, StorageJournal
from riggedballot.utils import SizeLimits, address_from_bytes, keccak256, to_address
from riggedballot.warnings import BallotWarning, deliver


# object returned by `last_result` property
@dataclass
class ExecutionResult:
    is_success: bool
    logs: list[LogEntry] = field(default_factory=list)
    warnings: list[BallotWarning] = field(default_factory=list)


class Env:
    """
    In-process host for contracts.

    It provides the primitives a contract relies on: caller identity,
    native value and its transfer, atomic and serialized invocation of
    external calls, and an event log.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()

        self.journal = StorageJournal()
        self._balances = Storage(self.journal, default=0)
        self._contracts: dict[str, Contract] = {}
        self._receivers: dict[str, Callable[[int], None]] = {}
        self._nonces: dict[str, int] = {}

        self._call_stack: list[Message] = []
        self._log_frames: list[list[LogEntry]] = []
        self._warning_frames: list[list[BallotWarning]] = []
        self._last_result: Optional[ExecutionResult] = None

        self._accounts = [
            address_from_bytes(keccak256(f"{self.settings.seed}:{i}".encode()))
            for i in range(self.settings.num_accounts)
        ]
        for account in self._accounts:
            self.set_balance(account, self.settings.initial_balance)

    @property
    def accounts(self) -> list[str]:
        return list(self._accounts)

    @property
    def deployer(self) -> str:
        return self._accounts[0]

    @property
    def current_message(self) -> Message:
        if not self._call_stack:
            raise LedgerPanic("msg is only available inside a call")
        return self._call_stack[-1]

    @property
    def last_result(self) -> ExecutionResult:
        if self._last_result is None:
            raise ArgumentException("no call has been made yet")
        return self._last_result

    def get_balance(self, address: str) -> int:
        return self._balances[to_address(address)]

    def set_balance(self, address: str, value: int):
        if not 0 <= value <= SizeLimits.MAX_UINT256:
            raise ArgumentException(f"balance out of range: {value}")
        self._balances[to_address(address)] = value

    def get_contract(self, address: str) -> Contract:
        address = to_address(address)
        if address not in self._contracts:
            raise UnknownContract(f"no contract at {address}")
        return self._contracts[address]

    def set_receiver(self, address: str, hook: Optional[Callable[[int], None]]):
        """
        Register `hook` to run whenever `address` receives value from a
        contract. The hook runs inside the paying call and may call back
        into contracts. Pass `None` to remove it.
        """
        address = to_address(address)
        if hook is None:
            self._receivers.pop(address, None)
        else:
            self._receivers[address] = hook

    @contextmanager
    def anchor(self):
        """
        Run a block and then undo everything it did to this environment.
        """
        contracts = dict(self._contracts)
        receivers = dict(self._receivers)
        nonces = dict(self._nonces)
        last_result = self._last_result
        try:
            with self.journal.speculate():
                yield
        finally:
            self._contracts = contracts
            self._receivers = receivers
            self._nonces = nonces
            self._last_result = last_result

    def deploy(self, contract_cls: type[Contract], *args, sender=None, value=0, **kwargs):
        sender = self._resolve_sender(sender)
        # like an EVM transaction, a deployment uses up the nonce even if
        # the constructor reverts, so a failed deployment burns its address
        nonce = self._nonces.get(sender, 0)
        self._nonces[sender] = nonce + 1
        address = address_from_bytes(
            keccak256(bytes.fromhex(sender[2:]) + nonce.to_bytes(32, "big"))
        )

        contract = object.__new__(contract_cls)
        contract._bind(self, address)
        self.message_call(
            contract,
            contract_cls.__init__,
            *args,
            sender=sender,
            value=value,
            payable=getattr(contract_cls, "payable_constructor", False),
            **kwargs,
        )
        self._contracts[address] = contract
        return contract

    def message_call(self, contract, fn, *args, sender=None, value=0, payable=False, **kwargs):
        """
        Call `fn` on `contract` as a transaction from `sender` with `value`
        attached. Either all of its effects apply or none do.
        """
        sender = self._resolve_sender(sender)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ArgumentException(f"value must be a non-negative integer, got {value!r}")

        is_outermost = len(self._call_stack) == 0
        self._call_stack.append(Message(sender=sender, value=value, to=contract.address))
        self._log_frames.append([])
        self._warning_frames.append([])
        try:
            with self.journal.enter():
                if value and not payable:
                    raise NonPayable(f"{fn.__name__} does not accept value")
                if value:
                    self._transfer(sender, contract.address, value)
                ret = fn(contract, *args, **kwargs)
        except Exception:
            self._log_frames.pop()
            self._warning_frames.pop()
            if is_outermost:
                self._last_result = ExecutionResult(is_success=False)
            raise
        finally:
            self._call_stack.pop()

        logs = self._log_frames.pop()
        pending = self._warning_frames.pop()
        if not is_outermost:
            # reentrant call, logs and warnings belong to the enclosing call
            self._log_frames[-1].extend(logs)
            self._warning_frames[-1].extend(pending)
            return ret

        self._last_result = ExecutionResult(is_success=True, logs=logs, warnings=pending)
        # the call is committed at this point, whatever the warnings filter
        # does with these
        deliver(pending, stacklevel=3)
        return ret

    def send(self, to: str, amount: int):
        """
        Transfer `amount` from the executing contract to `to`, then run the
        receive hook of `to`, if any.
        """
        payer = self.current_message.to
        to = to_address(to)
        self._transfer(payer, to, amount)
        hook = self._receivers.get(to)
        if hook is not None:
            hook(amount)

    def log(self, entry: LogEntry):
        if not self._log_frames:
            raise LedgerPanic("events can only be emitted inside a call")
        self._log_frames[-1].append(entry)

    def warn(self, warning: BallotWarning):
        if not self._warning_frames:
            raise LedgerPanic("warnings can only be raised inside a call")
        self._warning_frames[-1].append(warning)

    def get_logs(self, contract: Contract, event_name: str = None):
        logs = [log for log in self.last_result.logs if log.address == contract.address]
        if event_name:
            return [log for log in logs if log.event == event_name]
        return logs

    def _transfer(self, src: str, dst: str, amount: int):
        balance = self._balances[src]
        if balance < amount:
            raise InsufficientBalance(f"{src} has {balance} wei, needs {amount}")
        self._balances[src] = balance - amount
        self._balances[dst] = self._balances[dst] + amount

    def _resolve_sender(self, sender) -> str:
        if sender is None:
            return self.deployer
        return to_address(sender)
