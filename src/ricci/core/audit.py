# ─────────────────────────────────────────────────────────────────────
# RICCI — Structured Signature Audit Logger
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
JSONL audit trail for emitted signatures.

Each record carries the signature type and category, the clamped
severity, the raw geometric signature and the literal evidence string, so
an auditor can re-check every comparison a detector made.

Usage::

    audit = SignatureAuditLogger()                    # logging only
    audit = SignatureAuditLogger("signatures.jsonl")  # plus file sink
    audit.log_signatures(engine.detect_all(point_id))
    for entry in audit.read_entries():
        ...
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from .types import Signature

SEVERITY_DIGITS = 4
SIGNATURE_DIGITS = 6


@dataclass
class AuditEntry:
    """One audited signature."""

    timestamp: str
    point_id: str
    signature_type: str
    category: str
    severity: float
    evidence: str
    geometric_signature: list[float] = field(default_factory=list)
    latency_ms: float = 0.0

    @classmethod
    def from_signature(cls, signature: Signature, latency_ms: float = 0.0) -> AuditEntry:
        return cls(
            timestamp=datetime.now(timezone.utc).isoformat(timespec="seconds"),
            point_id=signature.point_id,
            signature_type=signature.signature_type.value,
            category=signature.category.value,
            severity=round(signature.severity, SEVERITY_DIGITS),
            evidence=signature.evidence,
            geometric_signature=[
                round(v, SIGNATURE_DIGITS) for v in signature.geometric_signature
            ],
            latency_ms=round(latency_ms, 2),
        )

    def to_json(self) -> str:
        return json.dumps(asdict(self), separators=(",", ":"))


class SignatureAuditLogger:
    """Audit sink writing to a ``logging`` logger and, optionally, a JSONL file.

    Parameters
    ----------
    path : str | Path | None — JSONL file, appended to; None = logging only.
    logger_name : str — logger receiving one INFO record per signature.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        logger_name: str = "RICCI.Audit",
    ) -> None:
        self.path = Path(path) if path else None
        self._logger = logging.getLogger(logger_name)
        self._write_lock = threading.Lock()
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def _emit(self, entries: list[AuditEntry]) -> None:
        lines = [entry.to_json() for entry in entries]
        for line in lines:
            self._logger.info(line)
        if self.path is None or not lines:
            return
        with self._write_lock, self.path.open("a", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")

    def log_signature(self, signature: Signature, latency_ms: float = 0.0) -> AuditEntry:
        entry = AuditEntry.from_signature(signature, latency_ms)
        self._emit([entry])
        return entry

    def log_signatures(
        self, signatures: list[Signature], latency_ms: float = 0.0
    ) -> list[AuditEntry]:
        """Audit one detection call's signatures with a single file append."""
        entries = [AuditEntry.from_signature(s, latency_ms) for s in signatures]
        self._emit(entries)
        return entries

    def read_entries(self) -> Iterator[AuditEntry]:
        """Replay the file sink, oldest first; nothing when logging only."""
        if self.path is None or not self.path.exists():
            return
        with self.path.open(encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    yield AuditEntry(**json.loads(line))
