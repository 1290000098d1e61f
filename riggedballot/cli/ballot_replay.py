#!/usr/bin/env python3
import argparse
import json
import sys
import warnings
from pathlib import Path

import riggedballot
from riggedballot.ballot import RiggedBallot
from riggedballot.codec import as_json_dict, dump_state, load_state
from riggedballot.env import Env
from riggedballot.exceptions import BallotException, ScenarioError
from riggedballot.settings import BALLOT_TRACEBACK_LIMIT, Settings
from riggedballot.utils import bytes32_to_string, parse_value, to_address
from riggedballot.warnings import describe, warnings_filter

format_options_help = """Format to print, one or more of:
receipts      - One receipt per transaction (default)
state         - The ballot's records after the replay
winner        - Index and name of the winning proposal
combined_json - All of the above format options combined as single JSON output
"""

combined_json_outputs = ["receipts", "state", "winner"]

# parameter kinds of each operation a scenario may use
OPERATIONS = {
    "grant_right": ("address",),
    "delegate": ("address",),
    "vote": ("proposal",),
    "bribe": ("address", "proposal"),
    "withdraw": (),
}


def _parse_cli_args():
    return _parse_args(sys.argv[1:])


def _parse_args(argv):
    warnings.simplefilter("always")

    parser = argparse.ArgumentParser(
        description="Replay transactions against a ballot with delegation and bribes",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("scenario", help="JSON scenario to replay")
    parser.add_argument("--version", action="version", version=riggedballot.__version__)
    parser.add_argument("-f", help=format_options_help, default="receipts", dest="format")
    parser.add_argument("--accounts", help="Number of funded accounts", type=int)
    parser.add_argument("--load", help="Start from a CBOR state snapshot", dest="load_path")
    parser.add_argument(
        "--snapshot", help="Write a CBOR state snapshot after the replay", dest="snapshot_path"
    )
    parser.add_argument(
        "--strict", help="Stop at the first failed transaction", action="store_true"
    )
    parser.add_argument(
        "--warnings-control",
        help="Turn ballot warnings into errors or silence them. Errors are reported\n"
        "after the replay, the transactions that raised them still apply",
        choices=["error", "none"],
    )
    parser.add_argument(
        "--traceback-limit",
        help="Set the traceback limit for error messages",
        type=int,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        help="Turn on verbose output. "
        "Currently an alias for --traceback-limit but "
        "may add more information in the future",
        action="store_true",
    )
    parser.add_argument("-o", help="Set the output path", dest="output_path")

    args = parser.parse_args(argv)

    if args.traceback_limit is not None:
        sys.tracebacklimit = args.traceback_limit
    elif BALLOT_TRACEBACK_LIMIT is not None:
        sys.tracebacklimit = BALLOT_TRACEBACK_LIMIT
    elif args.verbose:
        sys.tracebacklimit = 1000
    else:
        # errors are reported by name and reason, a python traceback only
        # gets in the way
        sys.tracebacklimit = 0

    output_formats = tuple(uniq(args.format.split(",")))
    for fmt in output_formats:
        if fmt not in combined_json_outputs + ["combined_json"]:
            raise ValueError(f"Unsupported format type {repr(fmt)}")

    settings = Settings() if args.accounts is None else Settings(num_accounts=args.accounts)
    if args.verbose:
        print(f"cli specified: `{settings}`", file=sys.stderr)

    scenario = json.loads(Path(args.scenario).read_text())
    env = Env(settings)

    ballot = None
    if args.load_path is not None:
        ballot = load_state(env, Path(args.load_path).read_bytes())

    # receipts record every warning, under "error" they fail the run once the
    # replay is done rather than interrupting it
    replay_control = "none" if args.warnings_control == "error" else args.warnings_control
    with warnings_filter(replay_control):
        ballot, receipts = replay(env, scenario, ballot=ballot, strict=args.strict)

    if args.snapshot_path is not None:
        Path(args.snapshot_path).write_bytes(dump_state(ballot))

    output = format_output(ballot, receipts, output_formats)

    if args.output_path:
        with open(args.output_path, "w") as f:
            _cli_helper(f, output_formats, output)
    else:
        f = sys.stdout
        _cli_helper(f, output_formats, output)

    failed = args.strict and any(r["status"] != "success" for r in receipts)
    if args.warnings_control == "error":
        for i, receipt in enumerate(receipts):
            for warning in receipt["warnings"]:
                print(f"transaction {i}: {warning['type']}: {warning['message']}", file=sys.stderr)
                failed = True
    if failed:
        sys.exit(1)


def uniq(seq):
    exists = set()
    ret = []
    for i in seq:
        if i in exists:
            continue
        exists.add(i)
        ret.append(i)
    return ret


def _cli_helper(f, output_formats, output):
    if output_formats == ("combined_json",):
        print(json.dumps(output), file=f)
        return

    for data in output.values():
        print(json.dumps(data), file=f)


def format_output(ballot, receipts, output_formats) -> dict:
    if "combined_json" in output_formats:
        output_formats = combined_json_outputs

    ret = {}
    for fmt in output_formats:
        if fmt == "receipts":
            ret["receipts"] = receipts
        elif fmt == "state":
            ret["state"] = as_json_dict(ballot)
        elif fmt == "winner":
            index = ballot.winning_proposal()
            ret["winner"] = {"index": index, "name": bytes32_to_string(ballot.winner_name())}
    return ret


def _account(env, ref) -> str:
    if isinstance(ref, int) and not isinstance(ref, bool):
        if not 0 <= ref < len(env.accounts):
            raise ScenarioError(f"no account with index {ref}")
        return env.accounts[ref]
    return to_address(ref)


def replay(env, scenario: dict, ballot=None, strict=False):
    """
    Run the transactions of `scenario` against `ballot`, deploying it
    first if none is given. Returns the ballot and one receipt per
    transaction.
    """
    if not isinstance(scenario, dict):
        raise ScenarioError("scenario must be a JSON object")

    if ballot is None:
        if "proposals" not in scenario:
            raise ScenarioError("scenario has no proposals and no snapshot was loaded")
        chairperson = _account(env, scenario.get("chairperson", 0))
        ballot = env.deploy(RiggedBallot, scenario["proposals"], sender=chairperson)

    receipts = []
    for i, tx in enumerate(scenario.get("transactions", [])):
        receipt = _apply(env, ballot, i, tx)
        receipts.append(receipt)
        if strict and receipt["status"] != "success":
            break
    return ballot, receipts


def _apply(env, ballot, i, tx) -> dict:
    if not isinstance(tx, dict) or tx.get("op") not in OPERATIONS:
        raise ScenarioError(
            f"transaction {i}: unknown operation {tx!r}",
            hint=f"operations are {', '.join(OPERATIONS)}",
        )
    op = tx["op"]
    kinds = OPERATIONS[op]
    raw_args = tx.get("args", [])
    if len(raw_args) != len(kinds):
        raise ScenarioError(f"transaction {i}: {op} takes {len(kinds)} arguments")

    sender = _account(env, tx.get("sender", 0))
    args = [_account(env, a) if kind == "address" else a for kind, a in zip(kinds, raw_args)]
    value = parse_value(tx.get("value", 0))

    receipt = {"op": op, "sender": sender, "args": args, "value": value}
    try:
        result = getattr(ballot, op)(*args, sender=sender, value=value)
    except BallotException as e:
        receipt["status"] = "reverted"
        receipt["error"] = {"type": type(e).__name__, "reason": e.message}
        receipt["events"] = []
        receipt["warnings"] = []
    else:
        receipt["status"] = "success"
        receipt["result"] = result
        receipt["events"] = [log.as_dict() for log in env.get_logs(ballot)]
        receipt["warnings"] = [describe(w) for w in env.last_result.warnings]
    return receipt
