from __future__ import annotations
"""Run-time parameters of the NTC (Nestedness Temperature Calculator).

Every knob lives in one immutable ``NTCConfig`` so that a single run never
sees its parameters change half-way through.

>>> cfg = make_config(trials=20, sorting_method="NTC")
>>> cfg.trials, cfg.sorting_method
(20, 'NTC')
"""

import sys
from collections import namedtuple
from typing import Any, Dict

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULTS: Dict[str, Any] = {
    "trials": 50,               # random restarts of the sort/score loop
    "break_random": 10,         # stop after this many trials without gain
    "sorting_method": "SUM",    # 'SUM' (row/col sums) | 'NTC' (r-score)
    "area_variant": 2,          # 1, 2 or 3; 2 is the most accurate
    "p_min": 0.0005,
    "p_max": 99999.0,
    "delta_x": 0.001,           # spacing of the sampled isocline
    "do_geometry": True,
    "do_sorting": True,
    "debug": False,
    "random_state": None,
    "max_bisection_iter": 100,
    "max_sort_iter": 100,
    "tolerance": 0.001,
}

NTCConfig = namedtuple("NTCConfig", list(DEFAULTS), defaults=list(DEFAULTS.values()))

SORTING_METHODS = ("NTC", "SUM")
_LEGACY_SORT_CODES = {1: "NTC", 2: "SUM"}


def _normalise_sorting(method) -> str:
    if isinstance(method, int) and not isinstance(method, bool):
        if method not in _LEGACY_SORT_CODES:
            raise ValueError(f"sorting_method code must be 1 (NTC) or 2 (SUM), got {method}")
        return _LEGACY_SORT_CODES[method]
    name = str(method).upper()
    if name not in SORTING_METHODS:
        raise ValueError(f"sorting_method must be one of {SORTING_METHODS}, got {method!r}")
    return name


def validate_config(cfg: NTCConfig) -> NTCConfig:
    """Check every field; return a copy with ``sorting_method`` normalised."""
    if not 0 < cfg.p_min < cfg.p_max:
        raise ValueError(f"need 0 < p_min < p_max, got p_min={cfg.p_min}, p_max={cfg.p_max}")
    if not cfg.delta_x > 0:
        raise ValueError(f"delta_x must be positive, got {cfg.delta_x}")
    if cfg.delta_x >= 1:
        raise ValueError(f"delta_x must be smaller than the unit square, got {cfg.delta_x}")
    if int(cfg.trials) < 1:
        raise ValueError(f"trials must be >= 1, got {cfg.trials}")
    if int(cfg.break_random) < 0:
        raise ValueError(f"break_random must be >= 0, got {cfg.break_random}")
    if cfg.area_variant not in (1, 2, 3):
        raise ValueError(f"area_variant must be 1, 2 or 3, got {cfg.area_variant}")
    if int(cfg.max_bisection_iter) < 1 or int(cfg.max_sort_iter) < 1:
        raise ValueError("iteration caps must be >= 1")
    if not cfg.tolerance > 0:
        raise ValueError(f"tolerance must be positive, got {cfg.tolerance}")
    return cfg._replace(
        sorting_method=_normalise_sorting(cfg.sorting_method),
        trials=int(cfg.trials),
        break_random=int(cfg.break_random),
        max_bisection_iter=int(cfg.max_bisection_iter),
        max_sort_iter=int(cfg.max_sort_iter),
    )


def make_config(config: NTCConfig | None = None, **overrides) -> NTCConfig:
    """Build a validated config from an optional base plus keyword overrides."""
    unknown = set(overrides) - set(NTCConfig._fields)
    if unknown:
        raise ValueError(f"unknown NTC parameter(s): {', '.join(sorted(unknown))}")
    base = NTCConfig() if config is None else config
    return validate_config(base._replace(**overrides))


def debug_print(enabled: bool, msg: str) -> None:
    """Trace line on stderr when the run was configured with ``debug=True``."""
    if enabled:
        print(msg, file=sys.stderr)
