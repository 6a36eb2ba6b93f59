from __future__ import annotations
"""Stateless helpers built on the NTC geometry ⇢ reference matrices, the
isocline itself and the cells that break nestedness, without running the
ordering search.

Usage
-----
>>> import numpy as np
>>> from adapter import perfect_nested, find_unexpected_cells, compute_ntc
>>> M = perfect_nested(10, 8, 0.4)
>>> mask = find_unexpected_cells(M)
>>> nest = compute_ntc(np.random.default_rng(0).random((12, 9)) < 0.5, random_state=0)
"""

from typing import Tuple

import numpy as np

from NTC_algorithm import NestednessNTC, normalise_matrix
from NTC_config import make_config
from NTC_geometry import NonConvergenceError, build_geometry, fit_isocline
from NTC_temperature import unexpectedness_matrix

__all__ = [
    "compute_ntc",
    "perfect_nested",
    "find_unexpected_cells",
    "extract_isocline",
]

# ---------------------------------------------------------------------------
# Helper to validate a requested matrix size
# ---------------------------------------------------------------------------

def _check_shape(n_rows: int, n_cols: int) -> Tuple[int, int]:
    n_rows, n_cols = int(n_rows), int(n_cols)
    if n_rows < 2 or n_cols < 2:
        raise ValueError(f"need at least 2 rows and 2 columns, got {n_rows}×{n_cols}")
    return n_rows, n_cols


def _check_fill(fill: float) -> float:
    fill = float(fill)
    if not 0.0 <= fill <= 1.0:
        raise ValueError(f"fill must lie in [0, 1], got {fill}")
    return fill

# ---------------------------------------------------------------------------
# One-shot NTC
# ---------------------------------------------------------------------------

def compute_ntc(matrix, *, verbose: bool = True, **config) -> NestednessNTC:
    """Construct, detect and (optionally) print the report; return the estimator."""
    nest = NestednessNTC(matrix, **config)
    nest.detect()
    if verbose:
        print(nest.report(), end="")
    return nest

# ---------------------------------------------------------------------------
# Perfectly nested reference matrix
# ---------------------------------------------------------------------------

def perfect_nested(n_rows: int, n_cols: int, fill: float, **config) -> np.ndarray:
    """Cells above the isocline fitted to (*n_rows*, *n_cols*, *fill*) are 1.

    The bottom-left and top-right corners, which sit on the isocline, are
    set to 1 as anchors.
    """
    n_rows, n_cols = _check_shape(n_rows, n_cols)
    geometry = build_geometry(n_rows, n_cols, _check_fill(fill), make_config(**config))
    matrix = (geometry.d_matrix > 0).astype(int)
    matrix[n_rows - 1, 0] = 1
    matrix[0, n_cols - 1] = 1
    return matrix

# ---------------------------------------------------------------------------
# Unexpected cells
# ---------------------------------------------------------------------------

def find_unexpected_cells(matrix, **config) -> np.ndarray:
    """Boolean mask of absences above and presences below the isocline."""
    X = normalise_matrix(matrix)
    mask = np.zeros(X.shape, dtype=bool)
    if X.size == 0 or min(X.shape) < 2:
        return mask
    connectance = float(X.mean())
    if connectance in (0.0, 1.0):
        return mask
    geometry = build_geometry(X.shape[0], X.shape[1], connectance, make_config(**config))
    return unexpectedness_matrix(X, geometry) > 0

# ---------------------------------------------------------------------------
# Isocline samples
# ---------------------------------------------------------------------------

def extract_isocline(
    n_rows,
    n_cols: int | None = None,
    fill: float | None = None,
    *,
    cell_units: bool = False,
    **config,
) -> Tuple[np.ndarray, np.ndarray]:
    """Sampled isocline ``(x, y)`` for plotting.

    Call as ``extract_isocline(matrix)`` to use the matrix's own shape and
    fill, or ``extract_isocline(n_rows, n_cols, fill)``; the fill is then
    rounded to a whole number of cells. Coordinates are in the unit square,
    or in cell units (``0.5 + n·coord``) with ``cell_units=True``.
    """
    if n_cols is None:
        X = normalise_matrix(n_rows)
        n_rows, n_cols = _check_shape(*X.shape)
        connectance = float(X.mean())
    else:
        if fill is None:
            raise ValueError("fill is required when the shape is given explicitly")
        n_rows, n_cols = _check_shape(n_rows, n_cols)
        cells = n_rows * n_cols
        connectance = round(cells * _check_fill(fill)) / cells

    fit = fit_isocline(n_rows, n_cols, connectance, make_config(**config))
    if fit.status == "failed":
        raise NonConvergenceError(
            f"isocline fit did not reach fill {connectance:.6f} (stopped at {fit.calculated_fill:.6f})"
        )
    if cell_units:
        return 0.5 + n_cols * fit.X, 0.5 + n_rows * fit.Fxp
    return fit.X.copy(), fit.Fxp.copy()
