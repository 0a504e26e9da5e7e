"""
Hashing adapter — SHA-256 fingerprints via cryptography's hash primitives.

Implements the Hasher port. A fresh hash context is created per call, so a
single instance can be shared by concurrent requests.
"""

from __future__ import annotations

from cryptography.hazmat.primitives import hashes


class Sha256Hasher:
    """SHA-256 digest of the certificate's encoded bytes."""

    def digest(self, data: bytes) -> bytes:
        context = hashes.Hash(hashes.SHA256())
        context.update(data)
        return context.finalize()
