"""
Domain models — immutable values for certificates and their encodings.

Certificate wraps exactly one parsed cryptography.x509.Certificate. It can
only be obtained from a successful decode (from_pem / from_der) or by
wrapping an object the library has already parsed (from_x509), so a
Certificate in hand is always structurally valid.

All models are frozen dataclasses; they are safe to share between threads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric.types import CertificatePublicKeyTypes

from attest_cert.failure import ErrorCode
from attest_cert.result import Result


@unique
class CertFormat(Enum):
    """The two wire encodings of a certificate, with canonical lowercase names."""

    PEM = "pem"
    DER = "der"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str) -> Result[CertFormat]:
        """
        Parse a canonical format name.

        Matching is exact: "pem" and "der" only. Anything else is
        Result.failure(UNKNOWN_FORMAT).
        """
        for member in cls:
            if member.value == text:
                return Result.success(member)
        return Result.failure(
            ErrorCode.UNKNOWN_FORMAT,
            f"Unknown certificate format {text!r}, expected one of: pem, der",
        )

    @property
    def encoding(self) -> serialization.Encoding:
        return serialization.Encoding.PEM if self is CertFormat.PEM else serialization.Encoding.DER


@dataclass(frozen=True, slots=True)
class Certificate:
    """
    One parsed X.509 certificate.

    Equality and hashing follow the parsed certificate (its DER encoding),
    not the bytes it was originally read from: a PEM and a DER read of the
    same certificate compare equal.
    """

    _x509: x509.Certificate = field(repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self._x509, x509.Certificate):
            raise TypeError(
                f"Certificate wraps cryptography.x509.Certificate, got {type(self._x509).__name__}"
            )

    # ──────────────────────── Construction ────────────────────────

    @classmethod
    def from_pem(cls, data: bytes) -> Result[Certificate]:
        """
        Decode a PEM-armored certificate.

        Only the first CERTIFICATE block of the buffer is decoded; any further
        blocks (e.g. the rest of a concatenated chain) are ignored.
        """
        return Result.from_computation(
            lambda: cls._parsed(x509.load_pem_x509_certificate(data)),
            ErrorCode.DECODE_ERROR,
            "Failed to decode PEM certificate",
        )

    @classmethod
    def from_der(cls, data: bytes) -> Result[Certificate]:
        """Decode a DER-encoded certificate."""
        return Result.from_computation(
            lambda: cls._parsed(x509.load_der_x509_certificate(data)),
            ErrorCode.DECODE_ERROR,
            "Failed to decode DER certificate",
        )

    @classmethod
    def from_x509(cls, cert: x509.Certificate) -> Certificate:
        return cls(cert)

    @classmethod
    def _parsed(cls, cert: x509.Certificate) -> Certificate:
        # Names are decoded lazily by the library; force them here so a
        # malformed subject or issuer is a decode error, not a later raise.
        cert.subject.rfc4514_string()
        cert.issuer.rfc4514_string()
        return cls(cert)

    # ──────────────────────── Serialization ────────────────────────

    @property
    def x509(self) -> x509.Certificate:
        """The underlying parsed certificate."""
        return self._x509

    def encode(self, fmt: CertFormat) -> bytes:
        return self._x509.public_bytes(fmt.encoding)

    def to_pem(self) -> bytes:
        return self.encode(CertFormat.PEM)

    def to_der(self) -> bytes:
        return self.encode(CertFormat.DER)

    # ──────────────────────── Key material ────────────────────────

    def public_key(self) -> Result[CertificatePublicKeyTypes]:
        """
        Decode the subject public key.

        Returns Result.failure(KEY_EXTRACTION_ERROR) when the key uses an
        algorithm the library does not support or its encoding is malformed.
        """
        return Result.from_computation(
            self._x509.public_key,
            ErrorCode.KEY_EXTRACTION_ERROR,
            "Failed to extract public key from certificate",
        )

    # ──────────────────────── Log/display helpers ────────────────────────

    @property
    def subject(self) -> str:
        return self._x509.subject.rfc4514_string()

    @property
    def issuer(self) -> str:
        return self._x509.issuer.rfc4514_string()

    def fingerprint(self) -> str:
        """SHA-256 fingerprint of the certificate, as lowercase hex."""
        return self._x509.fingerprint(hashes.SHA256()).hex()

    def __repr__(self) -> str:
        return f"Certificate(subject={self.subject!r}, sha256={self.fingerprint()[:16]})"


@dataclass(frozen=True, slots=True)
class CertificatePair:
    """
    An ordered (signer, signee) edge of a trust chain.

    The signer's public key is expected to validate the signee's signature.
    For a self-signed root, signer and signee are the same certificate.
    """

    signer: Certificate
    signee: Certificate
