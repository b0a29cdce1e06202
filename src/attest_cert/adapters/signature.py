"""
Signature verification adapter — does the signer's key sign the signee?

Adapter layer — implements the PairVerifier port using cryptography (PyCA):

  signer.public_key()                      → KEY_EXTRACTION_ERROR on failure
    → key.verify(signee.signature,
                 signee.tbs_certificate_bytes,
                 <padding/hash from signee>) → VERIFICATION_FAILED on failure
      → Result.success(pair)

Only the signature is checked. Issuer/subject name chaining, validity
periods and extensions belong to the chain-building layer above this one.

Supported signer keys: RSA (PKCS#1 v1.5 and RSASSA-PSS signatures, as used
by the AMD SEV-SNP ARK/ASK/VCEK chain), ECDSA, Ed25519, Ed448 and DSA.
"""

from __future__ import annotations

import structlog
from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import dsa, ec, ed448, ed25519, padding, rsa
from cryptography.hazmat.primitives.asymmetric.types import CertificatePublicKeyTypes

from attest_cert.domain.models import CertificatePair
from attest_cert.failure import ErrorCode
from attest_cert.result import Result

log = structlog.get_logger()


def _check_signature(key: CertificatePublicKeyTypes, signee: x509.Certificate) -> None:
    """
    Verify signee's signature with key. Raises on any mismatch.

    InvalidSignature: the signature does not validate under the key.
    TypeError: the key type cannot produce the signee's signature algorithm.
    UnsupportedAlgorithm: the signee's signature/hash algorithm is unknown.
    """
    signature = signee.signature
    data = signee.tbs_certificate_bytes
    params = signee.signature_algorithm_parameters

    match key:
        case rsa.RSAPublicKey() if isinstance(params, (padding.PKCS1v15, padding.PSS)):
            hash_algorithm = signee.signature_hash_algorithm
            if hash_algorithm is None:
                raise TypeError("RSA signature without a hash algorithm")
            key.verify(signature, data, params, hash_algorithm)
        case ec.EllipticCurvePublicKey() if isinstance(params, ec.ECDSA):
            key.verify(signature, data, params)
        case ed25519.Ed25519PublicKey() | ed448.Ed448PublicKey() if params is None:
            key.verify(signature, data)
        case dsa.DSAPublicKey() if params is None:
            hash_algorithm = signee.signature_hash_algorithm
            if hash_algorithm is None:
                raise TypeError("DSA signature without a hash algorithm")
            key.verify(signature, data, hash_algorithm)
        case _:
            raise TypeError(
                f"{type(key).__name__} cannot check a signature made with "
                f"{signee.signature_algorithm_oid.dotted_string}"
            )


def verify(pair: CertificatePair) -> Result[CertificatePair]:
    """
    Check that pair.signer's public key validates pair.signee's signature.

    Returns Result.success(pair) when it does. Otherwise:
      - KEY_EXTRACTION_ERROR: the signer's public key cannot be decoded
      - VERIFICATION_FAILED: the signature does not validate, or cannot be
        evaluated with the signer's key type

    Neither certificate is modified.
    """
    return pair.signer.public_key().flat_map(lambda key: _verify_with_key(key, pair))


def _verify_with_key(key: CertificatePublicKeyTypes, pair: CertificatePair) -> Result[CertificatePair]:
    try:
        _check_signature(key, pair.signee.x509)
    except InvalidSignature as e:
        return Result.failure(
            ErrorCode.VERIFICATION_FAILED,
            "Signer certificate does not sign signee certificate",
            e,
        )
    except (TypeError, ValueError, UnsupportedAlgorithm) as e:
        return Result.failure(
            ErrorCode.VERIFICATION_FAILED,
            "Signee signature cannot be checked with the signer's key",
            e,
        )
    return Result.success(pair)


class CryptographyPairVerifier:
    """
    Verify (signer, signee) edges and log each outcome.

    Implements the PairVerifier port.
    """

    def verify(self, pair: CertificatePair) -> Result[CertificatePair]:
        return (
            verify(pair)
            .peek(
                lambda p: log.info(
                    "verify.passed",
                    signer=p.signer.subject,
                    signee=p.signee.subject,
                )
            )
            .peek_failure(
                lambda err: log.warning(
                    "verify.failed",
                    code=err.code.value,
                    reason=err.detail(),
                    signer=pair.signer.subject,
                    signee=pair.signee.subject,
                )
            )
        )
