"""Geometry of the Nestedness Temperature Calculator.

Maps the cells of an ``n_rows × n_cols`` presence/absence matrix into the
unit square, fits the isocline of perfect nestedness to the matrix fill and
measures, for every cell, how far it sits from that isocline along the
cell's diagonal.

The isocline family is (Atmar & Patterson 1993; Rodríguez-Gironés &
Santamaría 2006)::

    F(x; p) = 0.5/n_rows + (n_rows-1)/n_rows * (1 - (1 - u)**p) ** (1/p)
    u       = (n_cols*x - 0.5) / (n_cols - 1)

and ``p`` is chosen so that the area above the curve equals the fill.

Nothing here depends on the *content* of the matrix, only on its shape and
connectance, so a ``GeometryContext`` is built once and shared by every
permutation that the optimiser scores.
"""

from __future__ import annotations

import math
from collections import namedtuple
from typing import Tuple

import numpy as np
from scipy.integrate import trapezoid

from NTC_config import NTCConfig, debug_print, make_config

__all__ = [
    "NTCComputationError",
    "NonConvergenceError",
    "IsoclineFit",
    "GeometryContext",
    "assign_positions",
    "x_grid",
    "isocline",
    "filled_area",
    "fit_isocline",
    "distance_tensors",
    "build_geometry",
]

MAX_DIAG = math.sqrt(2.0)
ON_ISOCLINE_EPS = 1e-9  # cells closer than this lie on the isocline


class NTCComputationError(ValueError):
    """A numerical step of the NTC produced no trustworthy value."""


class NonConvergenceError(NTCComputationError):
    """The isocline fit could not match the fill within its iteration cap."""


# status ∈ {'converged', 'clamped_min', 'clamped_max', 'failed'}
IsoclineFit = namedtuple(
    "IsoclineFit", ["p", "X", "Fxp", "calculated_fill", "status", "iterations"]
)

GeometryContext = namedtuple(
    "GeometryContext",
    [
        "n_rows",
        "n_cols",
        "connectance",
        "pos_x",
        "pos_y",
        "isocline",
        "d_matrix",   # signed distance to the isocline (negative below it)
        "D_matrix",   # length of the diagonal through the cell
    ],
)


# ---------------------------------------------------------------------------
# Unit-square coordinates
# ---------------------------------------------------------------------------

def assign_positions(n_rows: int, n_cols: int) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(pos_x, pos_y)``; row 1 is mapped to the top of the square."""
    i = np.arange(1, n_rows + 1, dtype=float)[:, None]
    j = np.arange(1, n_cols + 1, dtype=float)[None, :]
    pos_x = np.broadcast_to((j - 0.5) / n_cols, (n_rows, n_cols)).copy()
    pos_y = np.broadcast_to((n_rows - i + 0.5) / n_rows, (n_rows, n_cols)).copy()
    return pos_x, pos_y


def x_grid(n_cols: int, delta_x: float = 0.001) -> np.ndarray:
    """Evenly spaced samples from the first to the last column centre."""
    start = 0.5 / n_cols
    stop = (n_cols - 0.5) / n_cols
    num = max(int(round((stop - start) / delta_x)) + 1, 2)
    return np.linspace(start, stop, num)


# ---------------------------------------------------------------------------
# Isocline and the area above it
# ---------------------------------------------------------------------------

def isocline(X: np.ndarray, p: float, n_rows: int, n_cols: int) -> np.ndarray:
    # the end points of the grid are the first and last column centres;
    # keep rounding from moving u off 0 and 1
    u = np.clip((n_cols * X - 0.5) / (n_cols - 1), 0.0, 1.0)
    u[u < 1e-12] = 0.0
    u[u > 1.0 - 1e-12] = 1.0
    base = np.clip(1.0 - (1.0 - u) ** p, 0.0, 1.0)
    return 0.5 / n_rows + ((n_rows - 1) / n_rows) * base ** (1.0 / p)


def filled_area(
    p: float,
    X: np.ndarray,
    n_rows: int,
    n_cols: int,
    area_variant: int = 2,
) -> float:
    """Area above the isocline of parameter *p*.

    The three variants differ only in how they correct for the half cell
    that the sampled curve leaves out at each border; the correction only
    matters for small matrices.
    """
    integral = float(trapezoid(isocline(X, p, n_rows, n_cols), X))
    if area_variant == 1:
        return 1.0 - integral
    if area_variant == 2:
        return 1.0 - integral - (n_rows - 0.5) * 0.5 / (n_rows * n_cols)
    return (n_rows - 0.5) / (n_rows - 1) - integral * n_rows * n_cols / (
        (n_cols - 1) * (n_rows - 1)
    )


def fit_isocline(
    n_rows: int,
    n_cols: int,
    connectance: float,
    config: NTCConfig | None = None,
) -> IsoclineFit:
    """Find ``p`` whose isocline leaves ``connectance`` of the square above it.

    Doubling search from ``p_min`` until the area drops below the fill, then
    bisection on ``[p/2, p]``. When the doubling never brackets the fill
    inside ``(p_min, p_max)`` the parameter is clamped to the boundary it
    hit. A bisection that runs out of iterations is reported as ``'failed'``.
    """
    cfg = make_config(config)
    X = x_grid(n_cols, cfg.delta_x)

    def area(p: float) -> float:
        return filled_area(p, X, n_rows, n_cols, cfg.area_variant)

    p = cfg.p_min
    filled = 0.0
    iterations = 0
    while p < cfg.p_max:
        filled = area(p)
        if connectance > filled:
            break
        debug_print(cfg.debug, f"area = {filled:5.4f} p = {p:5.4f}")
        p *= 2

    if p <= cfg.p_min:
        status = "clamped_min"
        p = cfg.p_min
    elif p >= cfg.p_max:
        status = "clamped_max"
        p = cfg.p_max
        filled = area(p)
    else:
        status = "converged"
        upp, lowp = p, p / 2
        while abs(connectance - filled) > cfg.tolerance:
            if iterations >= cfg.max_bisection_iter:
                status = "failed"
                break
            iterations += 1
            p = (upp + lowp) / 2
            filled = area(p)
            if filled < connectance:
                upp = p
            else:
                lowp = p
            debug_print(cfg.debug, f"area = {filled:10.9f} p = {p:f}")

    return IsoclineFit(
        p=p,
        X=X,
        Fxp=isocline(X, p, n_rows, n_cols),
        calculated_fill=filled,
        status=status,
        iterations=iterations,
    )


# ---------------------------------------------------------------------------
# Per-cell distances
# ---------------------------------------------------------------------------

def distance_tensors(
    pos_x: np.ndarray,
    pos_y: np.ndarray,
    X: np.ndarray,
    Fxp: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(d_matrix, D_matrix)`` for the sampled isocline ``(X, Fxp)``.

    Each cell's diagonal ``y = x_cell + y_cell - x`` is intersected with the
    curve at the sample minimising ``|(x_cell + y_cell - X) - Fxp|``.
    """
    s = pos_x + pos_y
    # X + Fxp is strictly increasing, so the best sample neighbours the
    # insertion point of s
    g = X + Fxp
    hi = np.clip(np.searchsorted(g, s), 1, X.size - 1)
    lo = hi - 1
    diff_lo = np.abs((s - X[lo]) - Fxp[lo])
    diff_hi = np.abs((s - X[hi]) - Fxp[hi])
    idx = np.where(diff_hi < diff_lo, hi, lo)

    x_cross = X[idx]
    y_cross = s - x_cross
    d_matrix = np.hypot(pos_x - x_cross, pos_y - y_cross)
    d_matrix[d_matrix < ON_ISOCLINE_EPS] = 0.0
    d_matrix = np.where(pos_y < y_cross, -d_matrix, d_matrix)

    D_matrix = s * MAX_DIAG
    past_anti_diagonal = D_matrix > MAX_DIAG
    D_matrix[past_anti_diagonal] = np.abs(s[past_anti_diagonal] - 2.0) * MAX_DIAG
    return d_matrix, D_matrix


def build_geometry(
    n_rows: int,
    n_cols: int,
    connectance: float,
    config: NTCConfig | None = None,
) -> GeometryContext:
    """Positions, fitted isocline and distance tensors for one shape/fill."""
    if n_rows < 2 or n_cols < 2:
        raise ValueError(f"geometry needs at least 2 rows and 2 columns, got {n_rows}×{n_cols}")
    if not 0.0 <= connectance <= 1.0:
        raise ValueError(f"connectance must lie in [0, 1], got {connectance}")

    fit = fit_isocline(n_rows, n_cols, connectance, config)
    if fit.status == "failed":
        raise NonConvergenceError(
            f"isocline fit stopped at p={fit.p:g} with area {fit.calculated_fill:.6f} "
            f"for fill {connectance:.6f} after {fit.iterations} bisection steps"
        )

    pos_x, pos_y = assign_positions(n_rows, n_cols)
    d_matrix, D_matrix = distance_tensors(pos_x, pos_y, fit.X, fit.Fxp)
    for arr in (pos_x, pos_y, fit.X, fit.Fxp, d_matrix, D_matrix):
        arr.setflags(write=False)

    return GeometryContext(
        n_rows=n_rows,
        n_cols=n_cols,
        connectance=connectance,
        pos_x=pos_x,
        pos_y=pos_y,
        isocline=fit,
        d_matrix=d_matrix,
        D_matrix=D_matrix,
    )
