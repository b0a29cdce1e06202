"""
Shared test fixtures and helpers for the attest-cert test suite.

Two kinds of certificates are used:
  - the real AMD ARK-Milan root (tests/fixtures/ark_milan.{pem,der}),
    a self-signed RSA-4096 certificate with an RSASSA-PSS/SHA-384 signature
  - a small chain generated once per session with cryptography builders:

      root (RSA-2048, self-signed, PKCS#1 v1.5 SHA-256)
        └── intermediate (EC P-384, signed by root with RSA-PSS SHA-384)
              └── leaf (EC P-256, signed by intermediate with ECDSA SHA-384)

    plus an unrelated root carrying the same subject name as `root`,
    and a self-signed Ed25519 certificate.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator

import pytest
import structlog
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa
from cryptography.x509.oid import NameOID

from attest_cert.domain.models import Certificate

FIXTURES_DIR = Path(__file__).parent / "fixtures"

RSA_ENCRYPTION_OID = bytes.fromhex("06092a864886f70d010101")
UNKNOWN_KEY_OID = bytes.fromhex("06092a864886f70d01017f")


def fixture_path(filename: str) -> Path:
    """
    Resolve the absolute path to a test fixture file.

    Raises FileNotFoundError if the fixture does not exist.
    """
    path = FIXTURES_DIR / filename
    if not path.exists():
        raise FileNotFoundError(f"Test fixture not found: {path}")
    return path


def _name(common_name: str) -> x509.Name:
    return x509.Name(
        [
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "attest-cert tests"),
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        ]
    )


def _build(
    subject: str,
    issuer: str,
    public_key,
    signing_key,
    algorithm: hashes.HashAlgorithm | None,
    rsa_padding: padding.AsymmetricPadding | None = None,
) -> Certificate:
    now = datetime.now(timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(_name(subject))
        .issuer_name(_name(issuer))
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=365))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
    )
    if rsa_padding is not None:
        cert = builder.sign(signing_key, algorithm, rsa_padding=rsa_padding)
    else:
        cert = builder.sign(signing_key, algorithm)
    return Certificate.from_x509(cert)


@dataclass(frozen=True)
class TestChain:
    """Generated certificates, see module docstring."""

    __test__ = False

    root: Certificate
    intermediate: Certificate
    leaf: Certificate
    unrelated_root: Certificate
    ed25519_root: Certificate


@pytest.fixture(scope="session")
def chain() -> TestChain:
    root_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    unrelated_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    intermediate_key = ec.generate_private_key(ec.SECP384R1())
    leaf_key = ec.generate_private_key(ec.SECP256R1())
    ed_key = ed25519.Ed25519PrivateKey.generate()

    root = _build("Test Root", "Test Root", root_key.public_key(), root_key, hashes.SHA256())
    intermediate = _build(
        "Test Intermediate",
        "Test Root",
        intermediate_key.public_key(),
        root_key,
        hashes.SHA384(),
        rsa_padding=padding.PSS(
            mgf=padding.MGF1(hashes.SHA384()),
            salt_length=padding.PSS.DIGEST_LENGTH,
        ),
    )
    leaf = _build(
        "Test Leaf",
        "Test Intermediate",
        leaf_key.public_key(),
        intermediate_key,
        hashes.SHA384(),
    )
    unrelated_root = _build(
        "Test Root", "Test Root", unrelated_key.public_key(), unrelated_key, hashes.SHA256()
    )
    ed25519_root = _build("Test Ed25519 Root", "Test Ed25519 Root", ed_key.public_key(), ed_key, None)

    return TestChain(
        root=root,
        intermediate=intermediate,
        leaf=leaf,
        unrelated_root=unrelated_root,
        ed25519_root=ed25519_root,
    )


@pytest.fixture()
def fixtures_dir() -> Path:
    """Return the absolute path to the test fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture(scope="session")
def ark_pem() -> bytes:
    return fixture_path("ark_milan.pem").read_bytes()


@pytest.fixture(scope="session")
def ark_der() -> bytes:
    return fixture_path("ark_milan.der").read_bytes()


@pytest.fixture(scope="session")
def unknown_key_der(ark_der: bytes) -> bytes:
    """
    ARK-Milan with its SubjectPublicKeyInfo algorithm rewritten to an unassigned OID.

    The certificate still parses; only its public key cannot be decoded.
    """
    assert ark_der.count(RSA_ENCRYPTION_OID) == 1
    return ark_der.replace(RSA_ENCRYPTION_OID, UNKNOWN_KEY_OID)


@pytest.fixture(scope="session")
def bad_subject_der(chain: TestChain) -> bytes:
    """
    The test leaf with its subject CN bytes replaced by invalid UTF-8.

    The outer DER structure is intact; only the subject name cannot be decoded.
    """
    der = chain.leaf.to_der()
    assert der.count(b"Test Leaf") == 1
    return der.replace(b"Test Leaf", b"Test\xff\xfeeaf")


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo any structlog configuration a test applied (e.g. via the CLI)."""
    yield
    structlog.reset_defaults()
