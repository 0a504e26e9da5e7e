"""
Certificate reporter — render a ParsedCertificate as a fixed-order text report.

The report is a declarative pipeline: REPORT_FIELDS lists every line in the
order it is printed, each with a label and a value function. A field whose
value renders to an empty string is left out of the report entirely.

  Subject:             CN=test.example.com
  Issuer:              CN=test.example.com
  Serial:              01
  ...
  Fingerprint SHA-256: 3A:...:9F
  Can Verify Chains:   true

All value functions are total over ParsedCertificate: they never raise and
never mutate the record, so rendering the same record twice yields the same
text.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TypeAlias

from railway.failure import FailureDescription
from railway.result import Result

from certinfo.domain.models import (
    EcdsaPublicKeyInfo,
    Ed25519PublicKeyInfo,
    KeyUsage,
    OtherPublicKeyInfo,
    ParsedCertificate,
    PublicKeyInfo,
    RsaPublicKeyInfo,
)
from certinfo.domain.ports import Hasher

# Column at which values start; "Fingerprint SHA-256: " is the longest label.
LABEL_WIDTH = 21

_KEY_USAGE_NAMES: tuple[tuple[KeyUsage, str], ...] = (
    (KeyUsage.DIGITAL_SIGNATURE, "DigitalSignature"),
    (KeyUsage.CONTENT_COMMITMENT, "ContentCommitment"),
    (KeyUsage.KEY_ENCIPHERMENT, "KeyEncipherment"),
    (KeyUsage.DATA_ENCIPHERMENT, "DataEncipherment"),
    (KeyUsage.KEY_AGREEMENT, "KeyAgreement"),
    (KeyUsage.CERT_SIGN, "CertSign"),
    (KeyUsage.CRL_SIGN, "CRLSign"),
    (KeyUsage.ENCIPHER_ONLY, "EncipherOnly"),
    (KeyUsage.DECIPHER_ONLY, "DecipherOnly"),
)

EXT_KEY_USAGE_NAMES: dict[str, str] = {
    "2.5.29.37.0": "Any",
    "1.3.6.1.5.5.7.3.1": "ServerAuth",
    "1.3.6.1.5.5.7.3.2": "ClientAuth",
    "1.3.6.1.5.5.7.3.3": "CodeSigning",
    "1.3.6.1.5.5.7.3.4": "EmailProtection",
    "1.3.6.1.5.5.7.3.5": "IPSECEndSystem",
    "1.3.6.1.5.5.7.3.6": "IPSECTunnel",
    "1.3.6.1.5.5.7.3.7": "IPSECUser",
    "1.3.6.1.5.5.7.3.8": "TimeStamping",
    "1.3.6.1.5.5.7.3.9": "OCSPSigning",
    "1.3.6.1.4.1.311.10.3.3": "MS SGC",
    "2.16.840.1.113730.4.1": "Netscape SGC",
}

# scheme://userinfo@host, greedy up to the last "@" of the authority.
_URI_USERINFO = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*://)[^/?#]*@")


# ─────────────────────── Value formatting ───────────────────────


def hex_colon(data: bytes) -> str:
    """Uppercase hex octets joined by colons: b"\\x01\\x02" → "01:02", b"" → ""."""
    return ":".join(f"{octet:02X}" for octet in data)


def serial_hex(serial_number: int) -> str:
    """Colon-hex of the big-endian magnitude of an arbitrary-precision integer."""
    magnitude = abs(serial_number)
    return hex_colon(magnitude.to_bytes((magnitude.bit_length() + 7) // 8, "big"))


def one_line_name(name: str) -> str:
    """Collapse every run of whitespace (newlines included) to a single space."""
    return " ".join(name.split())


def format_timestamp(moment: datetime) -> str:
    """RFC 3339 in UTC with a four-digit year; naive datetimes are taken to be UTC already."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    moment = moment.astimezone(UTC)
    return f"{moment.year:04d}-{moment:%m-%dT%H:%M:%S}Z"


def public_key_summary(key: PublicKeyInfo) -> str:
    match key:
        case RsaPublicKeyInfo():
            return f"RSA ({key.bit_length} bits)"
        case EcdsaPublicKeyInfo(curve=curve) if curve:
            return f"ECDSA ({curve})"
        case EcdsaPublicKeyInfo():
            return "ECDSA"
        case Ed25519PublicKeyInfo():
            return "Ed25519"
        case OtherPublicKeyInfo(type_tag=tag):
            return tag
    return type(key).__name__


def key_usage_names(usage: KeyUsage) -> list[str]:
    return [name for flag, name in _KEY_USAGE_NAMES if usage & flag]


def ext_key_usage_names(oids: Iterable[str]) -> list[str]:
    return [EXT_KEY_USAGE_NAMES.get(oid, f"Unknown({oid})") for oid in oids]


def strip_uri_credentials(uri: str) -> str:
    """Drop the user-info part of a URI so embedded credentials are never printed."""
    return _URI_USERINFO.sub(r"\1", uri, count=1)


def printable(text: str) -> str:
    """Escape control and other non-printable characters so each value stays on one line."""
    if text.isprintable():
        return text
    return "".join(
        ch if ch.isprintable() else ch.encode("unicode_escape").decode("ascii")
        for ch in text
    )


def _bool(value: bool) -> str:
    return "true" if value else "false"


def _joined(values: Iterable[str], separator: str = ", ") -> str:
    return separator.join(values)


# ─────────────────────── Per-field values ───────────────────────


def _version(cert: ParsedCertificate) -> str:
    if not cert.version:
        return ""
    return f"{cert.version} (X.509v{cert.version})"


def _path_len(cert: ParsedCertificate) -> str:
    if cert.max_path_len_zero:
        return "0 (MaxPathLenZero)"
    if cert.max_path_len is not None and cert.max_path_len > 0:
        return str(cert.max_path_len)
    return ""


def _subject_alt_names(cert: ParsedCertificate) -> str:
    groups = (
        ("DNS", cert.dns_names),
        ("Email", cert.email_addresses),
        ("IP", tuple(str(ip) for ip in cert.ip_addresses)),
        ("URI", tuple(strip_uri_credentials(uri) for uri in cert.uris)),
    )
    return _joined(
        (f"{kind}={','.join(values)}" for kind, values in groups if values),
        separator=" | ",
    )


def _extensions(cert: ParsedCertificate) -> str:
    return _joined(
        f"{ext.oid} (critical)" if ext.critical else ext.oid for ext in cert.extensions
    )


# ─────────────────────── Rendering pipeline ───────────────────────

ValueFn: TypeAlias = Callable[[ParsedCertificate, Hasher], str]


@dataclass(frozen=True, slots=True)
class ReportField:
    """One labeled report line; omitted when its value is empty."""

    label: str
    value: ValueFn

    def render(self, cert: ParsedCertificate, hasher: Hasher) -> str | None:
        text = printable(self.value(cert, hasher))
        if not text:
            return None
        return f"{self.label + ':':<{LABEL_WIDTH}}{text}"


@dataclass(frozen=True, slots=True)
class ReportHeading:
    """A label-only line that introduces an indented group (Validity)."""

    label: str

    def render(self, cert: ParsedCertificate, hasher: Hasher) -> str | None:
        return f"{self.label}:"


REPORT_FIELDS: tuple[ReportField | ReportHeading, ...] = (
    ReportField("Subject", lambda c, _: one_line_name(c.subject)),
    ReportField("Issuer", lambda c, _: one_line_name(c.issuer)),
    ReportField("Serial", lambda c, _: serial_hex(c.serial_number)),
    ReportField("Version", lambda c, _: _version(c)),
    ReportField("Signature Algorithm", lambda c, _: c.signature_algorithm),
    ReportField("Public Key", lambda c, _: public_key_summary(c.public_key)),
    ReportHeading("Validity"),
    ReportField("  Not Before", lambda c, _: format_timestamp(c.not_before)),
    ReportField("  Not After", lambda c, _: format_timestamp(c.not_after)),
    ReportField("Is CA", lambda c, _: _bool(c.is_ca)),
    ReportField("Path Len", lambda c, _: _path_len(c)),
    ReportField("Key Usage", lambda c, _: _joined(key_usage_names(c.key_usage))),
    ReportField("Extended Key Usage", lambda c, _: _joined(ext_key_usage_names(c.ext_key_usage))),
    ReportField("Subject Alt Names", lambda c, _: _subject_alt_names(c)),
    ReportField("Subject Key ID", lambda c, _: hex_colon(c.subject_key_id)),
    ReportField("Authority Key ID", lambda c, _: hex_colon(c.authority_key_id)),
    ReportField("OCSP", lambda c, _: _joined(c.ocsp_servers)),
    ReportField("CRL Distribution", lambda c, _: _joined(c.crl_distribution_points)),
    ReportField("AIA Issuer URL", lambda c, _: _joined(c.issuing_certificate_urls)),
    ReportField("Policy OIDs", lambda c, _: _joined(c.policy_identifiers)),
    ReportField("Fingerprint SHA-256", lambda c, h: hex_colon(h.digest(c.raw))),
    ReportField("Extensions", lambda c, _: _extensions(c)),
    ReportField("Can Verify Chains", lambda c, _: _bool(c.can_verify_chains)),
)


def render_lines(cert: ParsedCertificate, hasher: Hasher) -> list[str]:
    """Apply REPORT_FIELDS in order, dropping the fields that render empty."""
    lines = (item.render(cert, hasher) for item in REPORT_FIELDS)
    return [line for line in lines if line is not None]


def render_certificate(cert: ParsedCertificate, hasher: Hasher) -> str:
    return "\n".join(render_lines(cert, hasher))


def failure_placeholder(index: int, error: FailureDescription) -> str:
    return f"#{index}: not a certificate: {printable(error.message)}"


def report(index: int, result: Result[ParsedCertificate], hasher: Hasher) -> str:
    """
    Render one candidate's outcome.

    A parsed certificate yields the full report body; a parse failure yields
    the single line "#<index>: not a certificate: <error message>".
    """
    return result.either(
        on_success=lambda cert: render_certificate(cert, hasher),
        on_failure=lambda error: failure_placeholder(index, error),
    )
