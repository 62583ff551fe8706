# ─────────────────────────────────────────────────────────────────────
# RICCI — Metrics & Observability Tests
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────

import threading
import time

import pytest

from ricci.core.metrics import HISTOGRAM_MAX_SAMPLES, MetricsCollector, _Histogram


class TestCounters:
    """Counter metric tests."""

    def test_increment(self, collector):
        collector.inc("detections_total")
        collector.inc("detections_total")
        m = collector.get_metrics()
        assert m["counters"]["detections_total"]["total"] == 2.0

    def test_increment_by_amount(self, collector):
        collector.inc("singular_matrix_total", 5.0)
        assert collector.get_metrics()["counters"]["singular_matrix_total"]["total"] == 5.0

    def test_labeled_counter(self, collector):
        collector.inc("signatures_total", label="FIELD_DISSOLUTION")
        collector.inc("signatures_total", label="FIELD_DISSOLUTION")
        collector.inc("signatures_total", label="SIGNAL_PROJECTION")
        m = collector.get_metrics()["counters"]["signatures_total"]
        assert m["labels"]["FIELD_DISSOLUTION"] == 2.0
        assert m["labels"]["SIGNAL_PROJECTION"] == 1.0
        assert m["total"] == 3.0

    def test_auto_create_counter(self, collector):
        collector.inc("custom_counter")
        assert collector.get_metrics()["counters"]["custom_counter"]["total"] == 1.0

    def test_thread_safety(self, collector):
        def bump():
            for _ in range(1000):
                collector.inc("detections_total")

        threads = [threading.Thread(target=bump) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert collector.get_metrics()["counters"]["detections_total"]["total"] == 4000.0


class TestHistograms:
    """Histogram metric tests."""

    def test_observe(self, collector):
        collector.observe("signature_severity", 0.2)
        collector.observe("signature_severity", 0.8)
        h = collector.get_metrics()["histograms"]["signature_severity"]
        assert h["count"] == 2
        assert h["mean"] == pytest.approx(0.5)

    def test_timer(self, collector):
        with collector.timer("geometry_duration_seconds"):
            time.sleep(0.01)
        h = collector.get_metrics()["histograms"]["geometry_duration_seconds"]
        assert h["count"] == 1
        assert h["total"] >= 0.005

    def test_summary_quantile_keys(self, collector):
        for v in (0.1, 0.2, 0.3):
            collector.observe("signature_severity", v)
        h = collector.get_metrics()["histograms"]["signature_severity"]
        assert h["p50"] == pytest.approx(0.2)
        assert {"p90", "p99"} <= set(h)

    def test_quantile_empty(self):
        assert _Histogram().quantile(0.5) == 0.0

    def test_bucket_counts_cumulative(self):
        h = _Histogram(buckets=(0.5, 1.0))
        for v in (0.1, 0.6, 0.9, 2.0):
            h.observe(v)
        assert h.bucket_counts() == {"le_0.5": 1, "le_1.0": 3, "le_+Inf": 4}

    def test_sample_cap(self):
        h = _Histogram(max_samples=10)
        for i in range(11):
            h.observe(float(i))
        assert h.count == 5
        assert h.quantile(1.0) == 10.0

    def test_default_cap(self):
        assert _Histogram().max_samples == HISTOGRAM_MAX_SAMPLES


class TestExposition:
    def test_prometheus_format(self, collector):
        collector.inc("detections_total")
        collector.inc("signatures_total", label="FIELD_HYPERCOHERENCE")
        collector.observe("signature_severity", 0.87)
        text = collector.prometheus_format()
        assert "# TYPE ricci_detections_total counter" in text
        assert "ricci_detections_total 1.0" in text
        assert 'ricci_signatures_total{type="FIELD_HYPERCOHERENCE"} 1.0' in text
        assert "# TYPE ricci_signature_severity histogram" in text
        assert 'ricci_signature_severity_bucket{le="0.9"} 1' in text
        assert 'ricci_signature_severity_bucket{le="0.8"} 0' in text
        assert "ricci_signature_severity_count 1" in text
        assert text.endswith("\n")

    def test_help_text(self, collector):
        text = collector.prometheus_format()
        assert "# HELP ricci_singular_matrix_total" in text


class TestLifecycle:
    def test_reset(self, collector):
        collector.inc("detections_total")
        collector.observe("signature_severity", 0.5)
        collector.reset()
        m = collector.get_metrics()
        assert m["counters"]["detections_total"]["total"] == 0.0
        assert m["histograms"]["signature_severity"]["count"] == 0

    def test_disabled_collector_is_noop(self):
        collector = MetricsCollector(enabled=False)
        collector.inc("detections_total")
        collector.observe("signature_severity", 0.5)
        with collector.timer("detection_duration_seconds"):
            pass
        m = collector.get_metrics()
        assert m["counters"]["detections_total"]["total"] == 0.0
        assert m["histograms"]["detection_duration_seconds"]["count"] == 0


class TestRecordSignature:
    def test_counts_and_observes(self, collector):
        collector.record_signature("COUPLING_DISPERSION", 0.6)
        collector.record_signature("COUPLING_DISPERSION", 0.4)
        m = collector.get_metrics()
        assert m["counters"]["signatures_total"]["labels"] == {"COUPLING_DISPERSION": 2.0}
        assert m["histograms"]["signature_severity"]["mean"] == pytest.approx(0.5)

    def test_timer_records_on_error(self, collector):
        with pytest.raises(RuntimeError):
            with collector.timer("detection_duration_seconds"):
                raise RuntimeError("boom")
        h = collector.get_metrics()["histograms"]["detection_duration_seconds"]
        assert h["count"] == 1
