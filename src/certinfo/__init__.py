"""
certinfo — human-readable reports for X.509 certificates.

Splits an arbitrary blob (concatenated PEM blocks or one raw DER
certificate) into certificate candidates, parses each one, and renders a
deterministic, fixed-order text report per certificate: identity, validity,
key material, usage flags, alternative names, identifiers, revocation and
issuer hints, and a SHA-256 fingerprint.

Built on the Railway-Oriented Programming (ROP) helpers in `railway`: a
candidate that fails to parse is a value on the failure track, not an
exception, so one bad block never aborts a bundle.
"""

__version__ = "0.1.0"
