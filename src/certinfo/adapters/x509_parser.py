"""
X.509 parser adapter — DER bytes → ParsedCertificate.

Adapter layer — implements the CertificateParser port using two libraries:
  - cryptography (PyCA) for DER decoding, names, validity, signature
    algorithm and public key reconstruction
  - asn1crypto for the extension walk

Pipeline:
  DER bytes
    → cryptography: x509.load_der_x509_certificate()   (structure, names, key)
    → asn1crypto:   x509.Certificate.load()            (extensions, read as encoded)
    → ParsedCertificate (domain model)

Extensions are read with asn1crypto because cryptography refuses to build
its typed extension objects for encodings that are valid DER but violate its
own consistency rules (EncipherOnly without KeyAgreement, a pathLen on a
non-CA). Such a certificate is still reported in full, with every bit and
value exactly as encoded.

Every exception raised while decoding or walking the extensions is caught at
this boundary by Result.from_computation() and reported as a
VALIDATION_ERROR whose message carries the library's own description.
"""

from __future__ import annotations

from collections.abc import Iterable
from ipaddress import ip_address

import structlog
from asn1crypto import x509 as asn1_x509
from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from cryptography.x509.oid import SignatureAlgorithmOID
from railway import ErrorCode
from railway.failure import FailureDescription
from railway.result import Result

from certinfo.domain.models import (
    EcdsaPublicKeyInfo,
    Ed25519PublicKeyInfo,
    ExtensionInfo,
    KeyUsage,
    OtherPublicKeyInfo,
    ParsedCertificate,
    PublicKeyInfo,
    RsaPublicKeyInfo,
)

log = structlog.get_logger()

_SIGNATURE_ALGORITHM_NAMES: dict[x509.ObjectIdentifier, str] = {
    SignatureAlgorithmOID.RSA_WITH_MD5: "MD5-RSA",
    SignatureAlgorithmOID.RSA_WITH_SHA1: "SHA1-RSA",
    SignatureAlgorithmOID.RSA_WITH_SHA224: "SHA224-RSA",
    SignatureAlgorithmOID.RSA_WITH_SHA256: "SHA256-RSA",
    SignatureAlgorithmOID.RSA_WITH_SHA384: "SHA384-RSA",
    SignatureAlgorithmOID.RSA_WITH_SHA512: "SHA512-RSA",
    SignatureAlgorithmOID.DSA_WITH_SHA1: "DSA-SHA1",
    SignatureAlgorithmOID.DSA_WITH_SHA224: "DSA-SHA224",
    SignatureAlgorithmOID.DSA_WITH_SHA256: "DSA-SHA256",
    SignatureAlgorithmOID.ECDSA_WITH_SHA1: "ECDSA-SHA1",
    SignatureAlgorithmOID.ECDSA_WITH_SHA224: "ECDSA-SHA224",
    SignatureAlgorithmOID.ECDSA_WITH_SHA256: "ECDSA-SHA256",
    SignatureAlgorithmOID.ECDSA_WITH_SHA384: "ECDSA-SHA384",
    SignatureAlgorithmOID.ECDSA_WITH_SHA512: "ECDSA-SHA512",
    SignatureAlgorithmOID.ED25519: "Ed25519",
    SignatureAlgorithmOID.ED448: "Ed448",
}

# RSASSA-PSS is named after the hash carried in its parameters.
_PSS_NAMES_BY_HASH: dict[str, str] = {
    "sha256": "SHA256-RSAPSS",
    "sha384": "SHA384-RSAPSS",
    "sha512": "SHA512-RSAPSS",
}

_NIST_CURVE_NAMES: dict[str, str] = {
    "secp224r1": "P-224",
    "secp256r1": "P-256",
    "secp384r1": "P-384",
    "secp521r1": "P-521",
}

# asn1crypto's KeyUsage bit names → domain flags
_KEY_USAGE_FLAGS: dict[str, KeyUsage] = {
    "digital_signature": KeyUsage.DIGITAL_SIGNATURE,
    "non_repudiation": KeyUsage.CONTENT_COMMITMENT,
    "key_encipherment": KeyUsage.KEY_ENCIPHERMENT,
    "data_encipherment": KeyUsage.DATA_ENCIPHERMENT,
    "key_agreement": KeyUsage.KEY_AGREEMENT,
    "key_cert_sign": KeyUsage.CERT_SIGN,
    "crl_sign": KeyUsage.CRL_SIGN,
    "encipher_only": KeyUsage.ENCIPHER_ONLY,
    "decipher_only": KeyUsage.DECIPHER_ONLY,
}

_OCSP = "1.3.6.1.5.5.7.48.1"
_CA_ISSUERS = "1.3.6.1.5.5.7.48.2"


# ─────────────────────── Structure (cryptography) ───────────────────────


def _signature_algorithm_name(cert: x509.Certificate) -> str:
    oid = cert.signature_algorithm_oid
    if oid == SignatureAlgorithmOID.RSASSA_PSS:
        return _pss_name(cert)
    return _SIGNATURE_ALGORITHM_NAMES.get(oid, oid.dotted_string)


def _pss_name(cert: x509.Certificate) -> str:
    try:
        digest = cert.signature_hash_algorithm
    except UnsupportedAlgorithm:
        digest = None
    if digest is None:
        return SignatureAlgorithmOID.RSASSA_PSS.dotted_string
    return _PSS_NAMES_BY_HASH.get(digest.name, SignatureAlgorithmOID.RSASSA_PSS.dotted_string)


def _public_key_info(cert: x509.Certificate) -> PublicKeyInfo:
    try:
        key = cert.public_key()
    except UnsupportedAlgorithm:
        return OtherPublicKeyInfo(type_tag=cert.public_key_algorithm_oid.dotted_string)

    if isinstance(key, rsa.RSAPublicKey):
        return RsaPublicKeyInfo(modulus=key.public_numbers().n)
    if isinstance(key, ec.EllipticCurvePublicKey):
        return EcdsaPublicKeyInfo(curve=_NIST_CURVE_NAMES.get(key.curve.name, key.curve.name))
    if isinstance(key, ed25519.Ed25519PublicKey):
        return Ed25519PublicKeyInfo()
    return OtherPublicKeyInfo(type_tag=type(key).__name__)


# ─────────────────────── Extensions (asn1crypto) ───────────────────────


def _ia5(name: asn1_x509.GeneralName) -> str:
    """The encoded text of an IA5String general name (DNS, email, URI)."""
    return name.chosen.contents.decode("ascii")


def _uris(names: Iterable[asn1_x509.GeneralName]) -> tuple[str, ...]:
    return tuple(_ia5(name) for name in names if name.name == "uniform_resource_identifier")


def _extensions(cert: asn1_x509.Certificate) -> tuple[ExtensionInfo, ...]:
    """Every extension in encoded order. Raises ValueError on a repeated OID."""
    extensions = tuple(
        ExtensionInfo(oid=ext["extn_id"].dotted, critical=bool(ext["critical"].native))
        for ext in cert["tbs_certificate"]["extensions"]
    )
    oids = [ext.oid for ext in extensions]
    if len(set(oids)) != len(oids):
        raise ValueError("certificate contains duplicate extensions")
    return extensions


def _basic_constraints(cert: asn1_x509.Certificate) -> tuple[bool, int | None]:
    """(is_ca, max_path_len); a pathLen is kept even when cA is false."""
    constraints = cert.basic_constraints_value
    if constraints is None:
        return False, None
    return bool(constraints["ca"].native), constraints["path_len_constraint"].native


def _key_usage(cert: asn1_x509.Certificate) -> KeyUsage:
    """Every bit set in the extension, whatever the combination."""
    usage = cert.key_usage_value
    if usage is None:
        return KeyUsage(0)

    flags = KeyUsage(0)
    for name in usage.native:
        flags |= _KEY_USAGE_FLAGS.get(name, KeyUsage(0))
    return flags


def _ext_key_usage(cert: asn1_x509.Certificate) -> tuple[str, ...]:
    purposes = cert.extended_key_usage_value
    if purposes is None:
        return ()
    return tuple(purpose.dotted for purpose in purposes)


def _subject_alt_names(cert: asn1_x509.Certificate) -> dict[str, list[asn1_x509.GeneralName]]:
    san = cert.subject_alt_name_value
    grouped: dict[str, list[asn1_x509.GeneralName]] = {}
    for name in san if san is not None else ():
        grouped.setdefault(name.name, []).append(name)
    return grouped


def _key_identifiers(cert: asn1_x509.Certificate) -> tuple[bytes, bytes]:
    ski = cert.key_identifier_value
    aki = cert.authority_key_identifier_value
    subject_key_id = ski.native if ski is not None else b""
    authority_key_id = (aki["key_identifier"].native or b"") if aki is not None else b""
    return subject_key_id, authority_key_id


def _access_locations(cert: asn1_x509.Certificate, method: str) -> tuple[str, ...]:
    aia = cert.authority_information_access_value
    if aia is None:
        return ()
    return _uris(
        description["access_location"]
        for description in aia
        if description["access_method"].dotted == method
    )


def _crl_distribution_points(cert: asn1_x509.Certificate) -> tuple[str, ...]:
    points = cert.crl_distribution_points_value
    if points is None:
        return ()

    uris: list[str] = []
    for point in points:
        name = point["distribution_point"]
        if isinstance(name, asn1_x509.DistributionPointName) and name.name == "full_name":
            uris.extend(_uris(name.chosen))
    return tuple(uris)


def _policy_identifiers(cert: asn1_x509.Certificate) -> tuple[str, ...]:
    policies = cert.certificate_policies_value
    if policies is None:
        return ()
    return tuple(policy["policy_identifier"].dotted for policy in policies)


def _to_parsed_certificate(der: bytes) -> ParsedCertificate:
    """
    Decode `der` and extract every reported field.

    May raise (caught by from_computation): malformed DER, unknown version,
    malformed or duplicate extensions, non-ASCII or wrongly sized SAN entries.
    """
    cert = x509.load_der_x509_certificate(der)
    encoded = asn1_x509.Certificate.load(bytes(der))

    extensions = _extensions(encoded)
    is_ca, max_path_len = _basic_constraints(encoded)
    san = _subject_alt_names(encoded)
    subject_key_id, authority_key_id = _key_identifiers(encoded)

    return ParsedCertificate(
        raw=bytes(der),
        subject=cert.subject.rfc4514_string(),
        issuer=cert.issuer.rfc4514_string(),
        serial_number=cert.serial_number,
        version=cert.version.value + 1,
        signature_algorithm=_signature_algorithm_name(cert),
        public_key=_public_key_info(cert),
        not_before=cert.not_valid_before_utc,
        not_after=cert.not_valid_after_utc,
        is_ca=is_ca,
        max_path_len=max_path_len,
        key_usage=_key_usage(encoded),
        ext_key_usage=_ext_key_usage(encoded),
        dns_names=tuple(_ia5(name) for name in san.get("dns_name", ())),
        email_addresses=tuple(_ia5(name) for name in san.get("rfc822_name", ())),
        ip_addresses=tuple(ip_address(name.chosen.contents) for name in san.get("ip_address", ())),
        uris=_uris(san.get("uniform_resource_identifier", ())),
        subject_key_id=subject_key_id,
        authority_key_id=authority_key_id,
        ocsp_servers=_access_locations(encoded, _OCSP),
        crl_distribution_points=_crl_distribution_points(encoded),
        issuing_certificate_urls=_access_locations(encoded, _CA_ISSUERS),
        policy_identifiers=_policy_identifiers(encoded),
        extensions=extensions,
    )


def _describe_cause(error: FailureDescription) -> FailureDescription:
    """Append the underlying exception text so the placeholder says why parsing failed."""
    if error.exception is None:
        return error
    return FailureDescription(
        code=error.code,
        message=f"{error.message}: {error.exception}",
        exception=error.exception,
    )


# ─────────────────────── Public Parser Class ───────────────────────


class CryptographyCertificateParser:
    """
    Parse DER-encoded X.509 certificates with cryptography and asn1crypto.

    Implements the CertificateParser port. Stateless and safe to share
    between concurrent requests.
    """

    def parse(self, der: bytes) -> Result[ParsedCertificate]:
        """
        Parse one DER certificate into a ParsedCertificate.

        Returns Result.failure(VALIDATION_ERROR, "malformed certificate: ...")
        for anything cryptography or asn1crypto refuses to decode.
        """
        return (
            Result.from_computation(
                lambda: _to_parsed_certificate(der),
                ErrorCode.VALIDATION_ERROR,
                "malformed certificate",
            )
            .map_failure(_describe_cause)
            .peek(lambda cert: log.debug("parser.certificate_parsed", subject=cert.subject))
        )
