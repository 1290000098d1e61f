import pytest

from riggedballot.contract import Contract, external, view
from riggedballot.env import Env
from riggedballot.exceptions import (
    ArgumentException,
    InsufficientBalance,
    InvalidAddress,
    LedgerPanic,
    NonPayable,
    UnknownContract,
)
from riggedballot.settings import Settings
from riggedballot.storage import Storage
from riggedballot.warnings import BallotWarning, warnings_filter


class Counter(Contract):
    """Counts calls and forwards value, for exercising the environment."""

    def __init__(self, start=0):
        if start < 0:
            raise ValueError("negative start")
        self.counts = Storage(self.env.journal, default=0)
        self.counts["total"] = start

    @external
    def bump(self, fail=False):
        self.counts["total"] += 1
        if fail:
            raise ValueError("bump failed")
        return self.counts["total"]

    @external(payable=True)
    def deposit(self):
        self.counts[self.msg.sender] += self.msg.value

    @external
    def noisy(self, fail=False):
        self.warn(BallotWarning(f"bumped from {self.counts['total']}"))
        return self.bump(fail=fail)

    @external
    def pay_out(self, to, amount):
        self.env.send(to, amount)

    @view
    def total(self):
        return self.counts["total"]


@pytest.fixture
def counter(env):
    return env.deploy(Counter, 5)


def test_accounts_are_deterministic(settings):
    a = Env(settings)
    b = Env(settings)
    assert a.accounts == b.accounts
    assert len(a.accounts) == settings.num_accounts
    assert len(set(a.accounts)) == settings.num_accounts
    assert a.get_balance(a.deployer) == settings.initial_balance

    other = Env(Settings(num_accounts=2, seed="another seed"))
    assert other.accounts[0] != a.accounts[0]


def test_deploy(env, counter):
    assert counter.total() == 5
    assert env.get_contract(counter.address) is counter
    # a second deployment lands at a fresh address
    assert env.deploy(Counter).address != counter.address


def test_unknown_contract(env, accounts):
    with pytest.raises(UnknownContract):
        env.get_contract(accounts[1])


def test_calls_are_atomic(env, counter):
    assert counter.bump() == 6
    with pytest.raises(ValueError):
        counter.bump(fail=True)
    assert counter.total() == 6
    assert env.last_result.is_success is False


def test_value_transfer(env, counter, accounts):
    a1 = accounts[1]
    before = env.get_balance(a1)
    counter.deposit(sender=a1, value=100)
    assert env.get_balance(a1) == before - 100
    assert env.get_balance(counter.address) == 100
    assert counter.counts[a1] == 100


def test_value_rolls_back_on_failure(env, counter, accounts):
    a1 = accounts[1]
    before = env.get_balance(a1)
    with pytest.raises(NonPayable):
        counter.bump(sender=a1, value=100)
    assert env.get_balance(a1) == before
    assert env.get_balance(counter.address) == 0


def test_insufficient_balance(env, counter, accounts):
    a1 = accounts[1]
    env.set_balance(a1, 10)
    with pytest.raises(InsufficientBalance):
        counter.deposit(sender=a1, value=11)
    assert env.get_balance(a1) == 10


@pytest.mark.parametrize("value", [-1, True, 1.5])
def test_bad_value(counter, value):
    with pytest.raises(ArgumentException):
        counter.deposit(value=value)


def test_bad_sender(counter):
    with pytest.raises(InvalidAddress):
        counter.bump(sender="not an address")


def test_receiver_hook(env, counter, accounts):
    a1, a2 = accounts[1:3]
    counter.deposit(sender=a1, value=50)
    received = []
    env.set_receiver(a2, received.append)

    before = env.get_balance(a2)
    counter.pay_out(a2, 20)
    assert received == [20]
    assert env.get_balance(a2) == before + 20

    env.set_receiver(a2, None)
    counter.pay_out(a2, 20)
    assert received == [20]


def test_failing_receiver_reverts_payment(env, counter, accounts):
    a1, a2 = accounts[1:3]
    counter.deposit(sender=a1, value=50)

    def reject(amount):
        raise RuntimeError("no thanks")

    env.set_receiver(a2, reject)
    before = env.get_balance(a2)
    with pytest.raises(RuntimeError):
        counter.pay_out(a2, 20)
    assert env.get_balance(a2) == before
    assert env.get_balance(counter.address) == 50


def test_reentrant_failure_only_undoes_inner_call(env, counter, accounts):
    a1, a2 = accounts[1:3]
    counter.deposit(sender=a1, value=50)

    def reenter(amount):
        with pytest.raises(ValueError):
            counter.bump(fail=True)
        counter.bump()

    env.set_receiver(a2, reenter)
    counter.pay_out(a2, 10)
    assert counter.total() == 6
    assert env.last_result.is_success


def test_anchor(env, counter, accounts):
    a1 = accounts[1]
    before = env.get_balance(a1)
    with env.anchor():
        counter.bump()
        env.set_balance(a1, 0)
        deployed = env.deploy(Counter)
        assert counter.total() == 6
    assert counter.total() == 5
    assert env.get_balance(a1) == before
    with pytest.raises(UnknownContract):
        env.get_contract(deployed.address)


def test_msg_outside_call(counter):
    with pytest.raises(LedgerPanic):
        counter.msg


def test_last_result_before_any_call():
    with pytest.raises(ArgumentException):
        Env(Settings(num_accounts=1)).last_result


def test_failed_deployment_uses_up_its_address(settings):
    clean, burnt = Env(settings), Env(settings)
    with pytest.raises(ValueError):
        burnt.deploy(Counter, -1)
    assert burnt.last_result.is_success is False

    clean.deploy(Counter)
    assert burnt.deploy(Counter).address == clean.deploy(Counter).address


def test_warnings_are_delivered_after_commit(env, counter):
    with pytest.warns(BallotWarning, match="bumped from 5"):
        assert counter.noisy() == 6
    assert env.last_result.is_success
    assert [w.message for w in env.last_result.warnings] == ["bumped from 5"]


def test_reverted_call_drops_its_warnings(env, counter, recwarn):
    with pytest.raises(ValueError):
        counter.noisy(fail=True)
    assert len(recwarn) == 0
    assert counter.total() == 5


def test_warnings_as_errors_do_not_undo_the_call(env, counter):
    with warnings_filter("error"):
        with pytest.raises(BallotWarning):
            counter.noisy()
    assert counter.total() == 6
    assert env.last_result.is_success


def test_reentrant_warnings_belong_to_outer_call(env, counter, accounts):
    a1, a2 = accounts[1:3]
    counter.deposit(sender=a1, value=50)
    env.set_receiver(a2, lambda amount: counter.noisy())

    with pytest.warns(BallotWarning) as record:
        counter.pay_out(a2, 10)
    assert len(record) == 1
    assert len(env.last_result.warnings) == 1


def test_unknown_warnings_control():
    with pytest.raises(ArgumentException):
        with warnings_filter("loud"):
            pass
