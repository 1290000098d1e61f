"""
CBOR snapshots of a ballot's record set.

A snapshot is a CBOR map with a header and the records:

    {"format": 1, "version": "<riggedballot version>", "state": {...}}

Loading builds a fresh ballot in the target environment and writes the
records into it, so the restored instance behaves exactly like the
original from that point on.
"""
from dataclasses import replace

import cbor2
from packaging.version import InvalidVersion, Version

import riggedballot
from riggedballot.ballot import RiggedBallot
from riggedballot.exceptions import InvariantViolation, SnapshotError, tag_exceptions
from riggedballot.ledger.records import Bribe, Proposal, Voter, as_dict
from riggedballot.ledger.state import BallotState
from riggedballot.storage import StorageJournal
from riggedballot.utils import to_address

SNAPSHOT_FORMAT = 1


def as_state_dict(ballot: RiggedBallot) -> dict:
    state = ballot.state
    return {
        "address": ballot.address,
        "chairperson": state.chairperson,
        "proposals": [as_dict(state.proposals[i]) for i in range(state.num_proposals)],
        "voters": {addr: as_dict(v) for addr, v in state.voters.items()},
        "bribes": {addr: as_dict(b) for addr, b in state.bribes.items()},
        "pending_withdrawals": dict(state.pending_withdrawals),
        "escrow_balance": ballot.escrow_balance(),
    }


def as_json_dict(ballot: RiggedBallot) -> dict:
    # same as as_state_dict, with proposal names as hex strings
    ret = as_state_dict(ballot)
    for proposal in ret["proposals"]:
        proposal["name"] = "0x" + proposal["name"].hex()
    return ret


def dump_state(ballot: RiggedBallot) -> bytes:
    return cbor2.dumps(
        {
            "format": SNAPSHOT_FORMAT,
            "version": riggedballot.__version__,
            "state": as_state_dict(ballot),
        }
    )


def _check_header(snapshot):
    if not isinstance(snapshot, dict) or "state" not in snapshot:
        raise SnapshotError("not a ballot snapshot")
    if snapshot.get("format") != SNAPSHOT_FORMAT:
        raise SnapshotError(f"unsupported snapshot format: {snapshot.get('format')!r}")
    try:
        written_by = Version(snapshot["version"])
        current = Version(riggedballot.__version__)
    except (InvalidVersion, KeyError, TypeError) as e:
        raise SnapshotError(f"bad snapshot version: {e}") from e
    if written_by.major != current.major:
        raise SnapshotError(
            f"snapshot written by riggedballot {written_by} cannot be loaded by {current}",
            hint="load it with the same major version that wrote it",
        )


def _voter(fields) -> Voter:
    voter = Voter(**fields)
    if voter.delegate is not None:
        voter = replace(voter, delegate=to_address(voter.delegate))
    return voter


def _bribe(fields) -> Bribe:
    bribe = Bribe(**fields)
    if bribe.briber is not None:
        bribe = replace(bribe, briber=to_address(bribe.briber))
    return bribe


def _write_records(records: BallotState, proposals, voters, bribes, pending):
    for i, proposal in enumerate(proposals):
        records.proposals[i] = proposal
    for addr, voter in voters.items():
        records.voters[addr] = voter
    for addr, bribe in bribes.items():
        records.bribes[addr] = bribe
    for addr, amount in pending.items():
        records.pending_withdrawals[addr] = amount


def load_state(env, data: bytes) -> RiggedBallot:
    """
    Restore a snapshot into `env` as a new ballot instance, deployed by
    the chairperson recorded in the snapshot.

    The records are checked on their own first. A snapshot whose records
    could not have been produced by a ballot, such as one holding a
    delegation cycle, is rejected before anything is deployed.
    """
    try:
        snapshot = cbor2.loads(data)
    except cbor2.CBORDecodeError as e:
        raise SnapshotError(f"cannot decode snapshot: {e}") from e
    _check_header(snapshot)
    state = snapshot["state"]

    with tag_exceptions("malformed snapshot records", fallback_exception_type=SnapshotError):
        chairperson = to_address(state["chairperson"])
        proposals = [Proposal(**p) for p in state["proposals"]]
        voters = {to_address(a): _voter(v) for a, v in state["voters"].items()}
        bribes = {to_address(a): _bribe(b) for a, b in state["bribes"].items()}
        pending = {to_address(a): int(v) for a, v in state["pending_withdrawals"].items()}
        escrow_balance = int(state["escrow_balance"])
        names = [p.name for p in proposals]

        staged = BallotState(StorageJournal(), chairperson, names)
        _write_records(staged, proposals, voters, bribes, pending)

    try:
        staged.check_invariants(escrow_balance)
    except InvariantViolation as e:
        raise SnapshotError(f"inconsistent snapshot: {e.args[0]}") from e

    ballot = env.deploy(RiggedBallot, names, sender=chairperson)
    _write_records(ballot.state, proposals, voters, bribes, pending)
    env.set_balance(ballot.address, escrow_balance)
    return ballot
