import cbor2
import pytest

from riggedballot.codec import as_json_dict, dump_state, load_state
from riggedballot.env import Env
from riggedballot.exceptions import (
    ArgumentException,
    DelegationLoop,
    InvalidAddress,
    SnapshotError,
)
from riggedballot.utils import to_wei


@pytest.fixture
def busy_ballot(ballot, chair, accounts):
    a1, a2, a3, a4 = accounts[1:5]
    for a in (a1, a2, a3):
        ballot.grant_right(a, sender=chair)
    ballot.delegate(a2, sender=a1)
    ballot.bribe(a2, 1, sender=a4, value=to_wei("0.01"))
    ballot.bribe(a3, 0, sender=a4, value=to_wei("0.002"))
    ballot.vote(1, sender=a2)
    return ballot


def test_snapshot_restores_records(settings, busy_ballot, accounts):
    data = dump_state(busy_ballot)

    other_env = Env(settings)
    restored = load_state(other_env, data)

    assert restored.chairperson() == busy_ballot.chairperson()
    for a in accounts:
        assert restored.voters(a) == busy_ballot.voters(a)
        assert restored.bribes(a) == busy_ballot.bribes(a)
        assert restored.pending_withdrawals(a) == busy_ballot.pending_withdrawals(a)
    for i in range(3):
        assert restored.proposals(i) == busy_ballot.proposals(i)
    assert restored.escrow_balance() == busy_ballot.escrow_balance()
    restored.check_invariants()


def test_restored_ballot_keeps_working(settings, busy_ballot, accounts):
    a2, a3 = accounts[2:4]
    other_env = Env(settings)
    restored = load_state(other_env, dump_state(busy_ballot))

    restored.vote(0, sender=a3)
    assert restored.pending_withdrawals(a3) == to_wei("0.002")
    assert restored.withdraw(sender=a2) == to_wei("0.01")
    restored.check_invariants()


def test_json_view(busy_ballot):
    view = as_json_dict(busy_ballot)
    assert view["proposals"][1]["vote_count"] == 2
    assert view["proposals"][0]["name"].startswith("0x6669727374")  # "first"


def test_garbage(env):
    with pytest.raises(SnapshotError):
        load_state(env, b"\xff\xff\xff")
    with pytest.raises(SnapshotError):
        load_state(env, cbor2.dumps([1, 2, 3]))


def test_wrong_format(env, busy_ballot):
    snapshot = cbor2.loads(dump_state(busy_ballot))
    snapshot["format"] = 99
    with pytest.raises(SnapshotError):
        load_state(env, cbor2.dumps(snapshot))


def test_incompatible_major_version(env, busy_ballot):
    snapshot = cbor2.loads(dump_state(busy_ballot))
    snapshot["version"] = "999.0.0"
    with pytest.raises(SnapshotError) as excinfo:
        load_state(env, cbor2.dumps(snapshot))
    assert excinfo.value.hint

    snapshot["version"] = "not a version"
    with pytest.raises(SnapshotError):
        load_state(env, cbor2.dumps(snapshot))


def test_malformed_records(env, busy_ballot):
    snapshot = cbor2.loads(dump_state(busy_ballot))
    del snapshot["state"]["voters"]
    with pytest.raises(SnapshotError):
        load_state(env, cbor2.dumps(snapshot))

    snapshot = cbor2.loads(dump_state(busy_ballot))
    snapshot["state"]["chairperson"] = "nobody"
    with pytest.raises(InvalidAddress):
        load_state(env, cbor2.dumps(snapshot))


@pytest.fixture
def delegated_ballot(ballot, chair, accounts):
    a1, a2, a3, a4 = accounts[1:5]
    for a in (a1, a2, a3):
        ballot.grant_right(a, sender=chair)
    ballot.delegate(a2, sender=a1)
    ballot.bribe(a3, 2, sender=a4, value=to_wei("0.001"))
    return ballot


def test_addresses_inside_records_are_checksummed(settings, delegated_ballot, accounts):
    a1, a2, a3, a4 = accounts[1:5]
    snapshot = cbor2.loads(dump_state(delegated_ballot))
    snapshot["state"]["voters"][a1]["delegate"] = a2.lower()
    snapshot["state"]["bribes"][a3]["briber"] = a4.lower()

    restored = load_state(Env(settings), cbor2.dumps(snapshot))
    assert restored.voters(a1).delegate == a2
    assert restored.bribes(a3).briber == a4

    # the chain a1 -> a2 is still seen, so closing it fails
    with pytest.raises(DelegationLoop):
        restored.delegate(a1, sender=a2)
    assert restored.voters(a2).weight == 2
    restored.check_invariants()


def test_cyclic_chain_is_rejected(settings, delegated_ballot, accounts):
    a1, a2 = accounts[1:3]
    snapshot = cbor2.loads(dump_state(delegated_ballot))
    snapshot["state"]["voters"][a2] = {"weight": 0, "voted": True, "delegate": a1, "vote": 0}

    other_env = Env(settings)
    with pytest.raises(SnapshotError) as excinfo:
        load_state(other_env, cbor2.dumps(snapshot))
    assert "cyclic" in str(excinfo.value)
    # nothing was deployed
    with pytest.raises(ArgumentException):
        other_env.last_result


def test_inconsistent_tally_is_rejected(env, delegated_ballot):
    snapshot = cbor2.loads(dump_state(delegated_ballot))
    snapshot["state"]["proposals"][0]["vote_count"] = 5
    with pytest.raises(SnapshotError):
        load_state(env, cbor2.dumps(snapshot))
