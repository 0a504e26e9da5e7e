"""
Shared test fixtures and helpers for the certinfo test suite.

Certificates are generated at test time with cryptography, so every test
works on real DER/PEM encodings without checked-in fixture files. Keys are
session-scoped because RSA generation is the slow part.
"""

from __future__ import annotations

import io
from collections.abc import Callable, Iterator, Sequence
from datetime import UTC, datetime, timedelta
from typing import TypeAlias
from unittest.mock import MagicMock

import pytest
from asn1crypto import pem
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from certinfo.domain.models import ParsedCertificate, RsaPublicKeyInfo
from certinfo.main import configure_structlog

NOT_BEFORE = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)
NOT_AFTER = NOT_BEFORE + timedelta(days=1)
FAKE_DIGEST = bytes(range(32))

PrivateKey: TypeAlias = rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey | ed25519.Ed25519PrivateKey
CertificateFactory: TypeAlias = Callable[..., bytes]


def build_certificate(
    key: PrivateKey,
    common_name: str = "test.example.com",
    extensions: Sequence[tuple[x509.ExtensionType, bool]] = (),
    serial_number: int = 1,
) -> bytes:
    """Build a self-signed certificate and return its DER encoding."""
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(serial_number)
        .not_valid_before(NOT_BEFORE)
        .not_valid_after(NOT_AFTER)
    )
    for extension, critical in extensions:
        builder = builder.add_extension(extension, critical=critical)

    algorithm = None if isinstance(key, ed25519.Ed25519PrivateKey) else hashes.SHA256()
    certificate = builder.sign(key, algorithm)
    return certificate.public_bytes(serialization.Encoding.DER)


def pem_armor(payload: bytes, label: str = "CERTIFICATE") -> bytes:
    """Wrap `payload` in PEM armor with the given label."""
    return pem.armor(label, payload)


def server_key_usage() -> x509.KeyUsage:
    """KeyUsage = {DigitalSignature, KeyEncipherment}."""
    return x509.KeyUsage(
        digital_signature=True,
        content_commitment=False,
        key_encipherment=True,
        data_encipherment=False,
        key_agreement=False,
        key_cert_sign=False,
        crl_sign=False,
        encipher_only=False,
        decipher_only=False,
    )


# ─────────────────────── Logging ───────────────────────


@pytest.fixture(autouse=True)
def _quiet_structlog() -> Iterator[io.StringIO]:
    """Send each test's log output to a throwaway buffer instead of stdout/stderr."""
    buffer = io.StringIO()
    configure_structlog("DEBUG", stream=buffer)
    yield buffer


# ─────────────────────── Keys ───────────────────────


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_key() -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def ed25519_key() -> ed25519.Ed25519PrivateKey:
    return ed25519.Ed25519PrivateKey.generate()


# ─────────────────────── Certificates ───────────────────────


@pytest.fixture(scope="session")
def self_signed_der(rsa_key: rsa.RSAPrivateKey) -> bytes:
    """
    The reference server certificate: CN=test.example.com,
    KeyUsage {DigitalSignature, KeyEncipherment}, ExtKeyUsage {ServerAuth},
    basic constraints present with CA=false.
    """
    return build_certificate(
        rsa_key,
        extensions=[
            (server_key_usage(), True),
            (x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), False),
            (x509.BasicConstraints(ca=False, path_length=None), True),
        ],
    )


@pytest.fixture(scope="session")
def self_signed_pem(self_signed_der: bytes) -> bytes:
    return pem_armor(self_signed_der)


@pytest.fixture()
def make_certificate(rsa_key: rsa.RSAPrivateKey) -> CertificateFactory:
    """Factory for RSA-signed certificates with custom extensions."""

    def _make(
        extensions: Sequence[tuple[x509.ExtensionType, bool]] = (),
        common_name: str = "test.example.com",
        serial_number: int = 1,
    ) -> bytes:
        return build_certificate(rsa_key, common_name, extensions, serial_number)

    return _make


# ─────────────────────── Fakes ───────────────────────


@pytest.fixture()
def fake_hasher() -> MagicMock:
    """Hasher fake returning the digest 00:01:02:...:1F."""
    hasher = MagicMock()
    hasher.digest.return_value = FAKE_DIGEST
    return hasher


@pytest.fixture()
def canned_certificate() -> ParsedCertificate:
    """A minimal parsed leaf certificate with every optional field empty."""
    return ParsedCertificate(
        raw=b"\x30\x03\x02\x01\x01",
        subject="CN=leaf.example.com,O=Example",
        issuer="CN=Example CA,O=Example",
        serial_number=0x010203,
        version=3,
        signature_algorithm="SHA256-RSA",
        public_key=RsaPublicKeyInfo(modulus=(1 << 2047) | 1),
        not_before=NOT_BEFORE,
        not_after=NOT_AFTER,
    )
