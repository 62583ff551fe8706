# ─────────────────────────────────────────────────────────────────────
# RICCI — Shared Test Fixtures
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────

from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from ricci.core import MetricsCollector, RicciConfig
from ricci.core.types import CouplingEdge, ManifoldPoint
from ricci.engine import RicciEngine
from ricci.signatures.base import SignatureSnapshot
from ricci.store import InMemoryStore

FIELD_DIM = 16
ANALYSIS_DIM = 4
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _padded(values, n: int = FIELD_DIM) -> np.ndarray:
    out = np.zeros(n)
    values = np.asarray(values, dtype=np.float64)
    out[: values.shape[0]] = values
    return out


def _make_point(
    semantic=None,
    coherence=None,
    *,
    pid: str | None = None,
    actor: str | None = None,
    at: datetime | None = None,
    minutes_ago: float | None = None,
    seed: int = 0,
    **kwargs,
) -> ManifoldPoint:
    rng = np.random.default_rng(seed)
    if semantic is None:
        semantic = rng.normal(size=FIELD_DIM)
    if coherence is None:
        coherence = rng.uniform(0.0, 0.3, size=FIELD_DIM)
    if at is None:
        at = NOW - timedelta(minutes=minutes_ago or 0.0)
    if pid is not None:
        kwargs["id"] = pid
    return ManifoldPoint(
        semantic_field=_padded(semantic),
        coherence_field=_padded(coherence),
        actor_id=actor,
        created_at=at,
        **kwargs,
    )


def _make_edge(
    p: str,
    q: str,
    magnitude: float,
    *,
    at: datetime | None = None,
    minutes_ago: float | None = None,
) -> CouplingEdge:
    if at is None:
        at = NOW - timedelta(minutes=minutes_ago or 0.0)
    return CouplingEdge(point_p=p, point_q=q, magnitude=magnitude, computed_at=at)


@pytest.fixture
def now():
    """Fixed reference time (UTC) every test window is measured from."""
    return NOW


@pytest.fixture
def make_point():
    """Factory for 16-component points; short field lists are zero-padded."""
    return _make_point


@pytest.fixture
def make_edge():
    """Factory for coupling edges stamped relative to ``now``."""
    return _make_edge


@pytest.fixture
def config():
    """Small-dimension profile: 16-component fields, d = 4."""
    return RicciConfig.from_profile("test")


@pytest.fixture
def store():
    return InMemoryStore(field_dimension=FIELD_DIM, analysis_dimension=ANALYSIS_DIM)


@pytest.fixture
def collector():
    """Fresh MetricsCollector for each test."""
    return MetricsCollector()


@pytest.fixture
def engine(store, config, collector):
    return RicciEngine(store, config, collector=collector)


@pytest.fixture
def populated_store(store):
    """Five points of actor ``a1`` over the last hour plus two of actor ``a2``."""
    for i in range(5):
        store.add_point(_make_point(pid=f"a1-{i}", actor="a1", minutes_ago=50 - 10 * i, seed=i))
    for i in range(2):
        store.add_point(
            _make_point(pid=f"a2-{i}", actor="a2", minutes_ago=45 - 10 * i, seed=10 + i)
        )
    return store


@pytest.fixture
def make_snapshot():
    """Factory for detector snapshots as of ``now`` with d = 4, small window = 2."""

    def _make(point, **kwargs):
        kwargs.setdefault("as_of", NOW)
        kwargs.setdefault("analysis_dimension", ANALYSIS_DIM)
        kwargs.setdefault("small_window", 2)
        return SignatureSnapshot(point=point, **kwargs)

    return _make
