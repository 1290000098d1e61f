import contextlib
import copy


class _BaseBallotException(Exception):
    """
    Base ballot exception class.

    This exception is not raised directly. Other exceptions inherit it in
    order to share message and hint formatting.
    """

    # default message, overridden by subclasses with their revert reason
    reason = "Error Message not found."

    def __init__(self, message=None, *, hint=None):
        """
        Exception initializer.

        Arguments
        ---------
        message : str, optional
            Error message to display with the exception. Defaults to the
            class-level `reason`.
        hint : str | Callable[[], str], optional
            Extra help text appended to the message.
        """
        self._message = message if message is not None else self.reason
        self._hint = hint
        super().__init__(self._message)

    def with_hint(self, hint):
        """
        Creates a copy of this exception with a different hint.
        """
        exc = copy.copy(self)
        exc._hint = hint
        return exc

    @property
    def hint(self):
        # hints can be expensive to build, so wait until the message is
        # actually requested
        if callable(self._hint):
            return self._hint()
        return self._hint

    @property
    def message(self):
        msg = self._message
        if self.hint:
            msg += f"\n\n  (hint: {self.hint})"
        return msg

    def __str__(self):
        return self.message


class BallotException(_BaseBallotException):
    pass


class ArgumentException(BallotException):
    """Call to an operation with malformed arguments."""


class SnapshotError(BallotException):
    """A state snapshot cannot be decoded or is incompatible."""


class ScenarioError(BallotException):
    """A replay scenario is malformed."""


# platform failures


class EnvError(BallotException):
    """Failure raised by the execution environment rather than a contract."""


class InvalidAddress(EnvError, ArgumentException):
    """Address is not 20 bytes of hex."""


class InsufficientBalance(EnvError):
    """Account cannot cover a value transfer."""


class UnknownContract(EnvError):
    """No contract is deployed at the address."""


# contract rejections. every rejection aborts the whole operation.


class Reverted(BallotException):
    """
    Base class for named rejections raised by a contract operation.

    The execution environment rolls back all effects of the operation
    before the exception reaches the caller.
    """


class AuthorizationError(Reverted):
    pass


class StateConflict(Reverted):
    pass


class IntegrityViolation(Reverted):
    pass


class EligibilityError(Reverted):
    pass


class InputValidationError(Reverted):
    pass


class ResourceAbsence(Reverted):
    pass


class Unauthorized(AuthorizationError):
    """Non-chairperson attempting an admin-only action."""

    reason = "Only chairperson can give right to vote."


class AlreadyVoted(StateConflict):
    """The caller or target already voted (voting by delegation included)."""

    reason = "Already voted."


class AlreadyEnfranchised(StateConflict):
    reason = "the voter already has the right to vote"


class BribeeAlreadyVoted(StateConflict):
    reason = "the bribee already voted"


class SelfDelegation(IntegrityViolation):
    reason = "Self-delegation is disallowed."


class DelegationLoop(IntegrityViolation):
    """Delegation chain would come back to the delegator."""

    reason = "Found loop in delegation."


class NoRight(EligibilityError):
    reason = "Has no right to vote"


class BribeeIneligible(EligibilityError):
    reason = "the bribee has no right to vote"


class InvalidProposal(InputValidationError):
    reason = "this proposal doesn't exist"


class ZeroBribe(InputValidationError):
    reason = "can't bribe without money..."


class BribeTooHigh(InputValidationError):
    reason = "maximum bribe is 0.01 ETH"


class EmptyProposalList(InputValidationError):
    reason = "a ballot needs at least one proposal"


class NonPayable(InputValidationError):
    """Value attached to an operation that does not accept value."""

    reason = "operation does not accept value"


class NoPendingWithdrawal(ResourceAbsence):
    reason = "you don't have any pending withdrawals"


class BallotInternalException(_BaseBallotException):
    """
    Base ballot internal exception class.

    Internal exceptions mean the ledger reached a state that its own
    checks should have made impossible. Filing a bug report would be
    appropriate.
    """

    def __str__(self):
        return (
            f"{super().__str__()}\n\n"
            "This is an unhandled internal ledger error. "
            "Please create an issue to notify the developers!"
        )


class LedgerPanic(BallotInternalException):
    """General unexpected error while applying an operation."""


class InvariantViolation(BallotInternalException):
    """A ledger invariant does not hold after an operation."""


@contextlib.contextmanager
def tag_exceptions(note, fallback_exception_type=LedgerPanic):
    """
    Re-raise anything that is not a ballot exception as `fallback_exception_type`.
    """
    try:
        yield
    except _BaseBallotException:
        raise
    except Exception as e:
        tb = e.__traceback__
        raise fallback_exception_type(f"unhandled exception {e}, {note}").with_traceback(tb)
