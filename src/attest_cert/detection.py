"""
Format detection — classify raw bytes as PEM or DER and decode accordingly.

The heuristic looks at exactly the first 27 bytes of the buffer:

  b"-----BEGIN CERTIFICATE-----"  → PEM
  anything else                   → DER

DER is the fallback: there is no independent DER signature check unless
strict_der is requested, in which case a non-PEM buffer must start with the
ASN.1 SEQUENCE tag (0x30) that every DER certificate begins with.

A buffer shorter than the marker cannot be classified and is rejected with
INPUT_TOO_SHORT. No real certificate in either encoding is that short.
"""

from __future__ import annotations

import structlog

from attest_cert.domain.models import CertFormat, Certificate
from attest_cert.failure import ErrorCode
from attest_cert.result import Result

log = structlog.get_logger()

PEM_MARKER = b"-----BEGIN CERTIFICATE-----"
DER_SEQUENCE_TAG = 0x30


def identify_format(raw: bytes, *, strict_der: bool = False) -> Result[CertFormat]:
    """
    Identify the encoding of a certificate buffer from its first 27 bytes.

    Returns Result.failure(INPUT_TOO_SHORT) for buffers shorter than the PEM
    marker, and Result.failure(UNRECOGNIZED_ENCODING) in strict mode when the
    buffer is neither PEM nor starts with a DER SEQUENCE tag.
    """
    if len(raw) < len(PEM_MARKER):
        return Result.failure(
            ErrorCode.INPUT_TOO_SHORT,
            f"Certificate buffer is {len(raw)} bytes, "
            f"at least {len(PEM_MARKER)} are needed to identify its format",
        )

    if raw[: len(PEM_MARKER)] == PEM_MARKER:
        return Result.success(CertFormat.PEM)

    if strict_der and raw[0] != DER_SEQUENCE_TAG:
        return Result.failure(
            ErrorCode.UNRECOGNIZED_ENCODING,
            f"Buffer is neither PEM nor DER (first byte 0x{raw[0]:02x}, expected 0x30)",
        )

    return Result.success(CertFormat.DER)


def decode(raw: bytes, fmt: CertFormat) -> Result[Certificate]:
    """Decode a buffer whose encoding is already known."""
    match fmt:
        case CertFormat.PEM:
            return Certificate.from_pem(raw)
        case CertFormat.DER:
            return Certificate.from_der(raw)
    raise TypeError(f"unreachable: {fmt!r}")  # pragma: no cover


def from_bytes(raw: bytes, *, strict_der: bool = False) -> Result[Certificate]:
    """
    Decode a certificate of unknown encoding.

    This is the entry point for untrusted bytes:
      identify_format(raw) → from_pem(raw) | from_der(raw)

    Whichever failure occurs first (detection or decoding) is returned.
    """
    return (
        identify_format(raw, strict_der=strict_der)
        .flat_map(lambda fmt: decode(raw, fmt))
        .peek_failure(
            lambda err: log.warning(
                "certificate.decode_failed",
                code=err.code.value,
                reason=err.detail(),
                size=len(raw),
            )
        )
    )


class CertificateLoader:
    """
    Decode certificates from raw bytes with a fixed detection policy.

    Implements the CertificateDecoder port.
    """

    def __init__(self, strict_der: bool = False) -> None:
        self._strict_der = strict_der

    def load(self, raw: bytes) -> Result[Certificate]:
        return from_bytes(raw, strict_der=self._strict_der).peek(
            lambda cert: log.debug(
                "certificate.loaded",
                subject=cert.subject,
                issuer=cert.issuer,
                sha256=cert.fingerprint(),
            )
        )
