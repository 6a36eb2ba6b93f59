from __future__ import annotations

from typing import Tuple

import numpy as np

from NTC_geometry import GeometryContext, NTCComputationError

__all__ = [
    "K",
    "TemperatureRangeError",
    "unexpectedness_matrix",
    "unexpectedness",
    "temperature",
    "check_temperature",
    "score_matrix",
]

# 100 / 0.04145, Atmar & Patterson's normalisation of the unexpectedness
K = 2.4125e3


class TemperatureRangeError(NTCComputationError):
    """A temperature outside [0, 100] (or NaN) was produced."""


def unexpectedness_matrix(matrix: np.ndarray, geometry: GeometryContext) -> np.ndarray:
    """Per-cell contribution ``(d/D)**2`` of absences above and presences below the isocline."""
    d = geometry.d_matrix
    present = matrix != 0
    unexpected = (~present & (d > 0)) | (present & (d < 0))
    return unexpected * (d / geometry.D_matrix) ** 2


def unexpectedness(matrix: np.ndarray, geometry: GeometryContext) -> Tuple[np.ndarray, float]:
    u = unexpectedness_matrix(matrix, geometry)
    return u, float(u.sum()) / (geometry.n_rows * geometry.n_cols)


def temperature(unex: float) -> Tuple[float, float]:
    """``(T, N)`` for an aggregate unexpectedness; no clamping."""
    T = K * unex
    return T, (100.0 - T) / 100.0


def check_temperature(T: float) -> float:
    if not 0.0 <= T <= 100.0:  # also rejects NaN
        raise TemperatureRangeError(f"temperature {T!r} is outside [0, 100]")
    return T


def score_matrix(matrix: np.ndarray, geometry: GeometryContext) -> Tuple[float, float]:
    if matrix.shape != (geometry.n_rows, geometry.n_cols):
        raise ValueError(
            f"matrix shape {matrix.shape} does not match geometry "
            f"{geometry.n_rows}×{geometry.n_cols}"
        )
    _, unex = unexpectedness(matrix, geometry)
    return temperature(unex)
