"""
Blob framer — split an arbitrary input blob into certificate candidates.

Uses asn1crypto's PEM unarmoring to walk the blob block by block:

  raw bytes
    → asn1crypto: pem.detect()   (any BEGIN armor at all?)
    → asn1crypto: pem.unarmor(multiple=True)  → (label, headers, payload)...
    → keep payloads whose label is CERTIFICATE or ends with CERTIFICATE
    → none kept? the whole blob is one DER candidate

Framing never fails: malformed armor stops the scan and whatever was
collected up to that point (or the DER fallback) is returned.
"""

from __future__ import annotations

import structlog
from asn1crypto import pem

from certinfo.domain.models import PemBlock

log = structlog.get_logger()


def read_pem_blocks(raw: bytes) -> list[PemBlock]:
    """
    Decode PEM blocks from `raw` in order of appearance, whatever their label.

    Stops at the first malformed block (bad base64, non-ASCII header, missing
    END line) and returns the blocks decoded before it.
    """
    data = bytes(raw)
    if not pem.detect(data):
        return []

    blocks: list[PemBlock] = []
    try:
        for label, _headers, payload in pem.unarmor(data, multiple=True):
            blocks.append(PemBlock(label=label, payload=payload))
    except ValueError as e:
        log.debug("framer.scan_halted", blocks_decoded=len(blocks), reason=str(e))
    return blocks


def frame(raw: bytes) -> list[bytes]:
    """
    Return the ordered certificate candidates found in `raw`.

    Never empty: when no certificate-labeled PEM block is found, the single
    candidate is the entire input (assumed to be bare DER).
    """
    candidates: list[bytes] = []
    for block in read_pem_blocks(raw):
        if block.is_certificate:
            candidates.append(block.payload)
        else:
            log.debug("framer.block_skipped", label=block.label)

    if not candidates:
        log.debug("framer.der_fallback", size=len(raw))
        return [bytes(raw)]
    return candidates
