"""
Diagnostics about calls that went through.

Ledger code hands its warnings to the environment, which keeps them with the
call that raised them. They are dropped if the call reverts and delivered
through the `warnings` module only once the outermost call has committed,
so no filter setting can change what a call does to the ledger. Under an
"error" filter the delivered warning is raised to the caller, but the call
it describes has already been applied.
"""
import contextlib
import warnings
from typing import Iterable, Optional

from riggedballot.exceptions import ArgumentException, _BaseBallotException


class BallotWarning(_BaseBallotException, Warning):
    pass


# filter action for each warnings control setting
FILTER_ACTIONS = {None: "default", "none": "ignore", "error": "error"}


@contextlib.contextmanager
def warnings_filter(warnings_control: Optional[str]):
    if warnings_control not in FILTER_ACTIONS:
        raise ArgumentException(f"unknown warnings control: {warnings_control!r}")
    # catch_warnings() restores the filters on the way out
    with warnings.catch_warnings():
        warnings.simplefilter(FILTER_ACTIONS[warnings_control], category=BallotWarning)
        yield


def deliver(pending: Iterable[BallotWarning], stacklevel: int = 2):
    for warning in pending:
        warnings.warn(warning, stacklevel=stacklevel + 1)


def describe(warning: BallotWarning) -> dict:
    return {"type": type(warning).__name__, "message": warning.message}


class BribeForfeited(BallotWarning):
    """
    Warn when a new bribe replaces one that was never settled. The value
    escrowed for the replaced bribe stays with the contract.
    """

    pass


class BribeIgnored(BallotWarning):
    """
    Warn when a bribee votes for a different proposal than the one they
    were bribed for. The bribe stays recorded but can no longer settle.
    """

    pass
