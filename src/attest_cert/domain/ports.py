"""
Ports — Protocol-based interfaces for the two seams of attest_cert.

  CertificateDecoder  raw bytes          → Result[Certificate]
  PairVerifier        (signer, signee)   → Result[CertificatePair]

Each port is a Protocol (structural typing) so callers can substitute a
fake in tests, or a different backend, without inheritance.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from attest_cert.domain.models import Certificate, CertificatePair
from attest_cert.result import Result


@runtime_checkable
class CertificateDecoder(Protocol):
    """
    Port: turn untrusted raw bytes into a Certificate.

    The implementation decides the encoding itself (PEM or DER).
    """

    def load(self, raw: bytes) -> Result[Certificate]: ...


@runtime_checkable
class PairVerifier(Protocol):
    """
    Port: check that the signer's public key validates the signee's signature.

    Returns the verified pair on success. A signature that does not validate
    is Result.failure(VERIFICATION_FAILED); an unusable signer key is
    Result.failure(KEY_EXTRACTION_ERROR).
    """

    def verify(self, pair: CertificatePair) -> Result[CertificatePair]: ...
