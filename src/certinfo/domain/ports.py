"""
Ports — Protocol-based interfaces for the capabilities the core consumes.

  Domain ← Ports (protocols) ← Adapters (implementations)

The reporter and the batch orchestration only ever see these protocols, so
tests can hand them fakes that return canned certificates or injected
failures. Adapters satisfy a port simply by implementing the method.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from railway.result import Result

from certinfo.domain.models import ParsedCertificate


@runtime_checkable
class CertificateParser(Protocol):
    """
    Port: decode one DER-encoded certificate.

    Returns Result.success(ParsedCertificate), or a failure whose message
    describes why the bytes are not a certificate. Must not raise.
    """

    def parse(self, der: bytes) -> Result[ParsedCertificate]: ...


@runtime_checkable
class Hasher(Protocol):
    """Port: SHA-256 digest of a byte string (the certificate fingerprint)."""

    def digest(self, data: bytes) -> bytes: ...
