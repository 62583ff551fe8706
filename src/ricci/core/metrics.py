# ─────────────────────────────────────────────────────────────────────
# RICCI — Metrics & Observability
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
In-process detection metrics with Prometheus text exposition.

Usage::

    from ricci.core.metrics import metrics

    metrics.record_signature("FIELD_HYPERCOHERENCE", 0.87)
    with metrics.timer("geometry_duration_seconds"):
        ...
    print(metrics.prometheus_format())

Every metric the engine emits is declared once in ``METRIC_DEFINITIONS``;
names outside that table are created on first use with default buckets.
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

import numpy as np

SEVERITY_BUCKETS = (0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0)
DETECTION_DURATION_BUCKETS = (0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)
GEOMETRY_DURATION_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)
DEFAULT_BUCKETS = (0.1, 0.25, 0.5, 0.75, 0.9, 0.95, 0.99, 1.0)
HISTOGRAM_MAX_SAMPLES = 100_000
SUMMARY_QUANTILES = (0.5, 0.9, 0.99)

PROMETHEUS_PREFIX = "ricci_"
SIGNATURE_LABEL = "type"

# name -> (kind, help text, histogram buckets)
METRIC_DEFINITIONS: dict[str, tuple[str, str, tuple[float, ...]]] = {
    "detections_total": ("counter", "Detector category evaluations", ()),
    "signatures_total": ("counter", "Signatures emitted, by signature type", ()),
    "singular_matrix_total": (
        "counter",
        "Geometry computations aborted on a singular metric",
        (),
    ),
    "insufficient_data_total": ("counter", "Computations skipped for lack of samples", ()),
    "signature_severity": (
        "histogram",
        "Severity distribution of emitted signatures",
        SEVERITY_BUCKETS,
    ),
    "detection_duration_seconds": (
        "histogram",
        "Signature detection latency per call",
        DETECTION_DURATION_BUCKETS,
    ),
    "geometry_duration_seconds": (
        "histogram",
        "Metric/connection/curvature build latency",
        GEOMETRY_DURATION_BUCKETS,
    ),
}


@dataclass
class _Counter:
    """Monotonic counter; the empty label holds the unlabelled value."""

    by_label: dict[str, float] = field(default_factory=dict)

    def inc(self, amount: float = 1.0, label: str = "") -> None:
        self.by_label[label] = self.by_label.get(label, 0.0) + amount

    def total(self) -> float:
        return float(sum(self.by_label.values()))

    @property
    def labels(self) -> dict[str, float]:
        return {k: v for k, v in self.by_label.items() if k}


@dataclass
class _Histogram:
    """Bounded sample store with cumulative bucket counts."""

    buckets: tuple[float, ...] = DEFAULT_BUCKETS
    max_samples: int = HISTOGRAM_MAX_SAMPLES
    _values: list[float] = field(default_factory=list)

    def observe(self, value: float) -> None:
        self._values.append(float(value))
        if len(self._values) > self.max_samples:
            # keep the newer half
            del self._values[: len(self._values) - self.max_samples // 2]

    @property
    def count(self) -> int:
        return len(self._values)

    @property
    def total(self) -> float:
        return float(sum(self._values))

    @property
    def mean(self) -> float:
        return self.total / self.count if self._values else 0.0

    def quantile(self, q: float) -> float:
        """Lower nearest-rank quantile; 0.0 when empty."""
        if not self._values:
            return 0.0
        ordered = np.sort(np.asarray(self._values))
        return float(ordered[int(q * (len(ordered) - 1))])

    def bucket_counts(self) -> dict[str, int]:
        values = np.asarray(self._values)
        counts = {f"le_{b}": int(np.count_nonzero(values <= b)) for b in self.buckets}
        counts["le_+Inf"] = self.count
        return counts

    def clear(self) -> None:
        self._values.clear()


class MetricsCollector:
    """Thread-safe collector for detection counters and latency histograms.

    Parameters
    ----------
    enabled : bool — when False every recording call is a no-op.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._lock = threading.Lock()
        self._counters: dict[str, _Counter] = {}
        self._histograms: dict[str, _Histogram] = {}
        for name, (kind, _, buckets) in METRIC_DEFINITIONS.items():
            if kind == "counter":
                self._counters[name] = _Counter()
            else:
                self._histograms[name] = _Histogram(buckets=buckets)

    # ── Recording ─────────────────────────────────────────────────────

    def inc(self, name: str, amount: float = 1.0, label: str = "") -> None:
        if not self.enabled:
            return
        with self._lock:
            self._counters.setdefault(name, _Counter()).inc(amount, label)

    def observe(self, name: str, value: float) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._histograms.setdefault(name, _Histogram()).observe(value)

    def record_signature(self, signature_type: str, severity: float) -> None:
        """Count one emitted signature and record its severity."""
        self.inc("signatures_total", label=signature_type)
        self.observe("signature_severity", severity)

    @contextmanager
    def timer(self, histogram_name: str) -> Iterator[None]:
        """Record the wall time of the ``with`` body, also when it raises."""
        start = time.monotonic()
        try:
            yield
        finally:
            self.observe(histogram_name, time.monotonic() - start)

    # ── Reading ───────────────────────────────────────────────────────

    def get_metrics(self) -> dict:
        """Plain-dict view of every counter and histogram."""
        with self._lock:
            counters = {
                name: {"total": c.total(), "labels": c.labels}
                for name, c in self._counters.items()
            }
            histograms = {
                name: {
                    "count": h.count,
                    "total": h.total,
                    "mean": h.mean,
                    **{f"p{round(q * 100)}": h.quantile(q) for q in SUMMARY_QUANTILES},
                }
                for name, h in self._histograms.items()
            }
        return {"counters": counters, "histograms": histograms}

    def prometheus_format(self) -> str:
        """Prometheus text exposition; labelled counters use ``type="..."``."""
        lines: list[str] = []
        with self._lock:
            for name, c in self._counters.items():
                fqn = self._header(lines, name, "counter")
                labelled = c.labels
                for label, value in labelled.items():
                    lines.append(f'{fqn}{{{SIGNATURE_LABEL}="{label}"}} {value}')
                if "" in c.by_label or not labelled:
                    lines.append(f"{fqn} {c.by_label.get('', 0.0)}")
            for name, h in self._histograms.items():
                fqn = self._header(lines, name, "histogram")
                for bucket, count in h.bucket_counts().items():
                    lines.append(f'{fqn}_bucket{{le="{bucket[3:]}"}} {count}')
                lines.append(f"{fqn}_count {h.count}")
                lines.append(f"{fqn}_sum {h.total}")
        return "\n".join(lines) + "\n"

    @staticmethod
    def _header(lines: list[str], name: str, kind: str) -> str:
        fqn = PROMETHEUS_PREFIX + name
        description = METRIC_DEFINITIONS.get(name, (kind, name, ()))[1]
        lines.append(f"# HELP {fqn} {description}")
        lines.append(f"# TYPE {fqn} {kind}")
        return fqn

    def reset(self) -> None:
        """Zero every metric, keeping the declared set (for tests)."""
        with self._lock:
            for c in self._counters.values():
                c.by_label.clear()
            for h in self._histograms.values():
                h.clear()


# Module-level singleton
metrics = MetricsCollector()
