# ─────────────────────────────────────────────────────────────────────
# RICCI — Configuration Manager
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Runtime settings for RICCI, loadable from the environment, a YAML file or a named preset.

Usage::

    config = RicciConfig.from_env()
    config = RicciConfig.from_yaml("ricci.yaml")
    config = RicciConfig.from_profile("fast")

The analysis dimension ``d`` is the one place the tractability split
between stored field length and geometric analysis is decided: every
metric, connection, curvature and coupling computation only reads the
first ``d`` components of a field.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields

import yaml

from .exceptions import InvalidDimensionError

# Regularization constants shared by the kernel and the metric builder.
PIVOT_EPSILON = 1e-12
SINGULAR_THRESHOLD = 1e-10
DIAGONAL_REGULARIZATION = 1e-6
DETERMINANT_FLOOR = 1e-10
SEVERITY_EPSILON = 1e-10

DEFAULT_FIELD_DIMENSION = 2000
DEFAULT_ANALYSIS_DIMENSION = 100

# profile name -> field overrides on top of the dataclass defaults
PROFILES: dict[str, dict] = {
    "default": {},
    "fast": {"analysis_dimension": 32, "neighbor_count": 2, "metrics_enabled": False},
    "thorough": {"analysis_dimension": 100, "neighbor_count": 8},
    "test": {
        "field_dimension": 16,
        "analysis_dimension": 4,
        "small_window": 2,
        "neighbor_count": 3,
    },
}

_OPEN_UNIT_FIELDS = (
    "pivot_epsilon",
    "singular_threshold",
    "diagonal_regularization",
    "determinant_floor",
    "severity_epsilon",
)


@dataclass
class RicciConfig:
    """Central configuration for RICCI.

    Parameters
    ----------
    field_dimension : int — stored length of semantic/coherence fields.
    analysis_dimension : int — d, leading components used by geometry.
    small_window : int — leading components used by the projection bias proxy.
    neighbor_count : int — neighbourhood size for metric construction (≥ 2).
    metric_scale : float — diagonal bias added to the metric for conditioning.
    coupling_step : float — finite-difference step h for coupling tensors.
    default_dt : float — integrator time step when the caller passes none.
    coherence_threshold : float — autopoietic onset / nominal coherence.
    pivot_epsilon : float — kernel pivot floor.
    singular_threshold : float — |det g| below which the metric is bumped.
    diagonal_regularization : float — diagonal bump for near-singular metrics.
    determinant_floor : float — det floor used by semantic mass.
    severity_epsilon : float — ε added to detector denominators.
    metrics_enabled : bool — enable in-process metrics collection.
    log_level : str — logging level.
    log_json : bool — structured JSON logging.
    audit_log_path : str — JSONL signature audit file ("" = logging only).
    """

    # Dimensions
    field_dimension: int = DEFAULT_FIELD_DIMENSION
    analysis_dimension: int = DEFAULT_ANALYSIS_DIMENSION
    small_window: int = 10
    neighbor_count: int = 4

    # Geometry
    metric_scale: float = 1.0
    coupling_step: float = 1e-3
    default_dt: float = 0.01
    coherence_threshold: float = 0.7

    # Regularization
    pivot_epsilon: float = PIVOT_EPSILON
    singular_threshold: float = SINGULAR_THRESHOLD
    diagonal_regularization: float = DIAGONAL_REGULARIZATION
    determinant_floor: float = DETERMINANT_FLOOR
    severity_epsilon: float = SEVERITY_EPSILON

    # Observability
    metrics_enabled: bool = True
    log_level: str = "INFO"
    log_json: bool = False

    # Audit
    audit_log_path: str = ""

    # Informational; set by from_profile()
    profile: str = "default"

    def __post_init__(self) -> None:
        fd = self.field_dimension
        if fd < 1:
            raise InvalidDimensionError(f"field_dimension must be >= 1, got {fd}")
        for name in ("analysis_dimension", "small_window"):
            value = getattr(self, name)
            if not 1 <= value <= fd:
                raise InvalidDimensionError(
                    f"{name} must be in [1, field_dimension={fd}], got {value}"
                )
        if self.neighbor_count < 2:
            raise ValueError(f"neighbor_count must be >= 2, got {self.neighbor_count}")
        if self.metric_scale < 0.0:
            raise ValueError(f"metric_scale must be >= 0, got {self.metric_scale}")
        for name in ("coupling_step", "default_dt"):
            if getattr(self, name) <= 0.0:
                raise ValueError(f"{name} must be > 0, got {getattr(self, name)}")
        for name in _OPEN_UNIT_FIELDS:
            value = getattr(self, name)
            if not 0.0 < value < 1.0:
                raise ValueError(f"{name} must be in (0, 1), got {value}")

    @classmethod
    def from_env(cls, prefix: str = "RICCI_") -> RicciConfig:
        """Build a config from ``<prefix><FIELD>`` environment variables.

        Field names match case-insensitively, e.g. ``RICCI_ANALYSIS_DIMENSION=64``.
        Unrecognised variables under the prefix are ignored.
        """
        by_env_name = {f.name.upper(): f for f in fields(cls)}
        overrides: dict = {}
        for key, raw in os.environ.items():
            fld = by_env_name.get(key[len(prefix) :]) if key.startswith(prefix) else None
            if fld is None:
                continue
            try:
                overrides[fld.name] = _coerce(raw, str(fld.type))
            except (ValueError, TypeError) as exc:
                raise ValueError(f"Invalid value for env var {key}={raw!r}: {exc}") from exc
        return cls(**overrides)

    @classmethod
    def from_yaml(cls, path: str) -> RicciConfig:
        """Build a config from a YAML (or JSON) mapping; unknown keys are dropped."""
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            return cls()
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_profile(cls, name: str) -> RicciConfig:
        """Build one of the ``PROFILES`` presets.

        - ``"default"``: d = 100 over 2000-dimensional fields.
        - ``"fast"``: d = 32, minimal neighbourhoods, metrics off.
        - ``"thorough"``: d = 100, wider neighbourhoods.
        - ``"test"``: tiny fields for unit tests and notebooks.
        """
        try:
            overrides = PROFILES[name]
        except KeyError:
            raise ValueError(
                f"Unknown profile '{name}'. Choose from: {sorted(PROFILES)}"
            ) from None
        return cls(profile=name, **overrides)

    def configure_logging(self) -> None:
        """Set the level of the ``RICCI`` logger tree; swap in JSON output if asked."""
        tree = logging.getLogger("RICCI")
        level = self.log_level.upper()
        tree.setLevel(level if level in _LEVELS else logging.INFO)
        if self.log_json:
            handler = logging.StreamHandler()
            handler.setFormatter(_JsonFormatter())
            tree.handlers = [handler]

    def to_dict(self) -> dict:
        """Field values as a JSON-safe dict."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class _JsonFormatter(logging.Formatter):
    """One JSON object per record; carries ``point_id`` when the caller set it."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": record.created,
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        point_id = getattr(record, "point_id", None)
        if point_id:
            payload["point_id"] = point_id
        return json.dumps(payload)


_TRUE = frozenset({"true", "1", "yes"})
_FALSE = frozenset({"false", "0", "no"})


def _parse_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"invalid bool value: {raw!r} (expected true/false/1/0/yes/no)")


_PARSERS = {"bool": _parse_bool, "int": int, "float": float}


def _coerce(value: str, type_hint: str) -> object:
    """Parse an env var string for a field annotated as *type_hint*."""
    if type_hint in _PARSERS:
        return _PARSERS[type_hint](value)
    return value
