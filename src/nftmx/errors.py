"""
Error taxonomy for the submission workflow.

Every failure surfaces as a ``WorkflowError`` subclass carrying the exit
code the CLI terminates with.  ``retryable`` marks errors that are safe to
retry unchanged (transport failures where the request never reached the
node).
"""

from __future__ import annotations

from typing import Optional


class WorkflowError(RuntimeError):
    exit_code: int = 1
    retryable: bool = False


class ConfigError(WorkflowError):
    exit_code = 2


class NetworkError(WorkflowError):
    exit_code = 3
    retryable = True


class AmbiguousBroadcastError(NetworkError):
    """The broadcast request was sent but no answer was received.

    The transaction may or may not have been accepted.  Query its status
    (by hash or by the sender's sequence) before building a new one.
    """

    exit_code = 11
    retryable = False


class ParseError(WorkflowError):
    exit_code = 4


class KeyDerivationError(WorkflowError):
    exit_code = 5


class ValidationError(WorkflowError):
    exit_code = 6

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class MissingFeeDenomError(ValidationError):
    def __init__(self, denom: str) -> None:
        super().__init__(
            f"fee.{denom}",
            f"no gas price for denomination '{denom}' in the fee schedule",
        )
        self.denom = denom


class SigningError(WorkflowError):
    exit_code = 7


class RejectedError(WorkflowError):
    exit_code = 9

    def __init__(self, message: str, code: int = 0, raw_log: str = "") -> None:
        super().__init__(message)
        self.code = code
        self.raw_log = raw_log


class SequenceMismatchError(RejectedError):
    exit_code = 8

    def __init__(
        self,
        message: str,
        code: int = 32,
        raw_log: str = "",
        expected: Optional[int] = None,
        got: Optional[int] = None,
    ) -> None:
        super().__init__(message, code=code, raw_log=raw_log)
        self.expected = expected
        self.got = got


class ExecutionError(WorkflowError):
    exit_code = 10

    def __init__(self, message: str, txhash: str = "", code: int = 0, raw_log: str = "") -> None:
        super().__init__(message)
        self.txhash = txhash
        self.code = code
        self.raw_log = raw_log
