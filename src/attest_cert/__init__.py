"""
attest_cert — X.509 certificate handling for hardware attestation trust chains.

Decodes certificates from PEM or DER (detecting which), re-encodes them, and
checks whether one certificate's public key signs another, one edge of an
ARK → ASK → VCEK style chain at a time.

Built on the Railway-Oriented Programming (ROP) Result type for explicit,
composable error handling: every fallible call returns a Result.
"""

__version__ = "0.1.0"

from attest_cert.adapters.signature import CryptographyPairVerifier, verify
from attest_cert.detection import CertificateLoader, from_bytes, identify_format
from attest_cert.domain.models import CertFormat, Certificate, CertificatePair
from attest_cert.failure import ErrorCode, FailureDescription
from attest_cert.result import Failure, Result, Success

__all__ = [
    # Values
    "CertFormat",
    "Certificate",
    "CertificatePair",
    # Decoding
    "identify_format",
    "from_bytes",
    "CertificateLoader",
    # Verification
    "verify",
    "CryptographyPairVerifier",
    # Results & errors
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
]
