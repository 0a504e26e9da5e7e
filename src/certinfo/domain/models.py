"""
Domain models — immutable value objects for framed and parsed certificates.

ParsedCertificate is the field-access view the reporter renders. It is built
by the parser adapter from a real DER certificate, or directly by tests that
need a canned record. All collections are tuples so a record can never be
mutated after construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntFlag
from ipaddress import IPv4Address, IPv6Address
from typing import TypeAlias

CERTIFICATE_LABEL = "CERTIFICATE"


@dataclass(frozen=True, slots=True)
class PemBlock:
    """One decoded PEM block: the armor label and the base64-decoded payload."""

    label: str
    payload: bytes = field(repr=False)

    @property
    def is_certificate(self) -> bool:
        """True for CERTIFICATE and label variants such as TRUSTED CERTIFICATE."""
        return self.label == CERTIFICATE_LABEL or self.label.endswith(CERTIFICATE_LABEL)


class KeyUsage(IntFlag):
    """X.509 key usage bits, numbered in the order they are reported."""

    DIGITAL_SIGNATURE = 1 << 0
    CONTENT_COMMITMENT = 1 << 1
    KEY_ENCIPHERMENT = 1 << 2
    DATA_ENCIPHERMENT = 1 << 3
    KEY_AGREEMENT = 1 << 4
    CERT_SIGN = 1 << 5
    CRL_SIGN = 1 << 6
    ENCIPHER_ONLY = 1 << 7
    DECIPHER_ONLY = 1 << 8


# ─────────────────────── Public key variants ───────────────────────


@dataclass(frozen=True, slots=True)
class RsaPublicKeyInfo:
    modulus: int = field(repr=False)

    @property
    def bit_length(self) -> int:
        return self.modulus.bit_length()


@dataclass(frozen=True, slots=True)
class EcdsaPublicKeyInfo:
    curve: str | None = None


@dataclass(frozen=True, slots=True)
class Ed25519PublicKeyInfo:
    pass


@dataclass(frozen=True, slots=True)
class OtherPublicKeyInfo:
    """Any key type without a dedicated summary; type_tag is printed as-is."""

    type_tag: str


PublicKeyInfo: TypeAlias = (
    RsaPublicKeyInfo | EcdsaPublicKeyInfo | Ed25519PublicKeyInfo | OtherPublicKeyInfo
)


@dataclass(frozen=True, slots=True)
class ExtensionInfo:
    """An extension as it appears on the certificate: dotted OID and critical flag."""

    oid: str
    critical: bool = False


@dataclass(frozen=True, slots=True)
class ParsedCertificate:
    """
    Everything the report shows about one certificate.

    `max_path_len` distinguishes "unset" (None) from "explicitly zero" (0).
    `version` is 1-based (3 means X.509v3). `raw` is the exact encoding and
    is the fingerprint input.
    """

    raw: bytes = field(repr=False)
    subject: str
    issuer: str
    serial_number: int
    version: int
    signature_algorithm: str
    public_key: PublicKeyInfo
    not_before: datetime
    not_after: datetime
    is_ca: bool = False
    max_path_len: int | None = None
    key_usage: KeyUsage = KeyUsage(0)
    ext_key_usage: tuple[str, ...] = ()
    dns_names: tuple[str, ...] = ()
    email_addresses: tuple[str, ...] = ()
    ip_addresses: tuple[IPv4Address | IPv6Address, ...] = ()
    uris: tuple[str, ...] = ()
    subject_key_id: bytes = b""
    authority_key_id: bytes = b""
    ocsp_servers: tuple[str, ...] = ()
    crl_distribution_points: tuple[str, ...] = ()
    issuing_certificate_urls: tuple[str, ...] = ()
    policy_identifiers: tuple[str, ...] = ()
    extensions: tuple[ExtensionInfo, ...] = ()

    @property
    def max_path_len_zero(self) -> bool:
        return self.max_path_len == 0

    @property
    def can_verify_chains(self) -> bool:
        """
        Heuristic only: a CA, or a leaf that names at least one DNS/IP/email identity.

        This is NOT chain validation and must not be used as a security signal.
        """
        return self.is_ca or bool(self.dns_names or self.ip_addresses or self.email_addresses)
