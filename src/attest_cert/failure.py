"""
Failure description — structured error information for the failure track.

Every fallible operation in attest_cert returns a Result whose failure side
carries a FailureDescription: an ErrorCode from the closed taxonomy below,
a human-readable message and, when the failure came from the X.509 library,
the original exception for diagnostics.

Verification failure is deliberately its own code. A chain that does not
verify is an expected, security-relevant answer, not a malformed input.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique
from typing import Optional


@unique
class ErrorCode(Enum):
    """
    Structured error codes for the failure track.

    Input errors: UNKNOWN_FORMAT, DECODE_ERROR, INPUT_TOO_SHORT, UNRECOGNIZED_ENCODING
    Key/crypto errors: KEY_EXTRACTION_ERROR, VERIFICATION_FAILED
    Host errors: IO_ERROR
    """

    UNKNOWN_FORMAT = "UNKNOWN_FORMAT"
    """A format name other than "pem" or "der" was supplied."""

    DECODE_ERROR = "DECODE_ERROR"
    """Bytes are not a valid certificate in the attempted encoding."""

    KEY_EXTRACTION_ERROR = "KEY_EXTRACTION_ERROR"
    """The public key of a parsed certificate could not be decoded."""

    VERIFICATION_FAILED = "VERIFICATION_FAILED"
    """The signature check completed and the signature is not valid."""

    INPUT_TOO_SHORT = "INPUT_TOO_SHORT"
    """Buffer is shorter than the PEM marker, so the format cannot be identified."""

    UNRECOGNIZED_ENCODING = "UNRECOGNIZED_ENCODING"
    """Strict detection: neither a PEM marker nor a DER SEQUENCE tag."""

    IO_ERROR = "IO_ERROR"
    """A certificate file could not be read or written."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor carrying error code, message, optional exception, and timestamp.

    >>> desc = FailureDescription(ErrorCode.DECODE_ERROR, "Not a DER certificate")
    >>> desc.code
    <ErrorCode.DECODE_ERROR: 'DECODE_ERROR'>
    >>> desc.message
    'Not a DER certificate'
    """

    code: ErrorCode
    message: str
    exception: Optional[BaseException] = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @staticmethod
    def create(
        code: ErrorCode,
        message: str,
        exception: Optional[BaseException] = None,
    ) -> FailureDescription:
        return FailureDescription(code=code, message=message, exception=exception)

    def detail(self) -> str:
        """Message followed by the originating exception text, if any."""
        if self.exception is None:
            return self.message
        return f"{self.message}: {self.exception}"

    def full_stack_trace(self) -> str:
        """Full stack trace string including the message and exception chain."""
        if self.exception is None:
            return self.message
        tb = "".join(traceback.format_exception(type(self.exception), self.exception, self.exception.__traceback__))
        return f"{self.message}\n{tb}"
