"""
Pipeline — batch orchestration from raw blob to the numbered report set.

Domain layer — no I/O. The parser and hasher are injected via ports.

  frame(raw)
    → for each candidate (numbered from 1):
        parser.parse(candidate)          → Result[ParsedCertificate]
        report(index, result, hasher)    → report body or placeholder line
    → join with one blank line between candidates

A candidate that fails to parse becomes a one-line placeholder and the batch
carries on: analyze everything you can, explain what you can't.
"""

from __future__ import annotations

import structlog

from certinfo.domain.ports import CertificateParser, Hasher
from certinfo.framer import frame
from certinfo.report import report

log = structlog.get_logger()

CANDIDATE_SEPARATOR = "\n\n"


def certificate_header(index: int) -> str:
    return f"===== Certificate #{index} ====="


def _render_candidate(
    index: int,
    candidate: bytes,
    parser: CertificateParser,
    hasher: Hasher,
) -> str:
    result = parser.parse(candidate).peek_failure(
        lambda error: log.info(
            "pipeline.candidate_rejected", index=index, error=error.message
        )
    )
    text = report(index, result, hasher)
    if result.is_success():
        return f"{certificate_header(index)}\n{text}"
    return text


def render_all(raw: bytes, parser: CertificateParser, hasher: Hasher) -> str:
    """
    Frame `raw`, parse every candidate and return the concatenated report set.

    Successful reports are preceded by "===== Certificate #<index> =====";
    failed candidates contribute only their placeholder line.
    """
    candidates = frame(raw)
    log.info("pipeline.started", candidates=len(candidates), size=len(raw))
    return CANDIDATE_SEPARATOR.join(
        _render_candidate(index, candidate, parser, hasher)
        for index, candidate in enumerate(candidates, start=1)
    )
