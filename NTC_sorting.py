from __future__ import annotations

from collections import namedtuple
from typing import Callable, Dict

import numpy as np

__all__ = [
    "MatrixState",
    "initial_state",
    "reorder_rows",
    "reorder_cols",
    "r_score",
    "sort_by_ntc",
    "sort_by_sum",
    "randomize",
    "SORTERS",
]

# ---------------------------------------------------------------------------
# A matrix layout plus the original row/column behind every position
# ---------------------------------------------------------------------------
MatrixState = namedtuple("MatrixState", ["matrix", "index_rows", "index_cols"])


def initial_state(matrix: np.ndarray) -> MatrixState:
    n_rows, n_cols = matrix.shape
    return MatrixState(matrix, np.arange(n_rows), np.arange(n_cols))


def reorder_rows(state: MatrixState, order: np.ndarray) -> MatrixState:
    return state._replace(matrix=state.matrix[order, :], index_rows=state.index_rows[order])


def reorder_cols(state: MatrixState, order: np.ndarray) -> MatrixState:
    return state._replace(matrix=state.matrix[:, order], index_cols=state.index_cols[order])


# ---------------------------------------------------------------------------
# NTC heuristic
# ---------------------------------------------------------------------------

def r_score(matrix: np.ndarray, axis: str = "rows") -> np.ndarray:
    """r = ½·t − ½·s for every row (or column).

    s sums the squared 1-based positions of the presences, t the squared
    distances (from the far end) of the absences. Rows/columns with a low r
    belong near the nested corner.
    """
    present = (matrix != 0).astype(float)
    absent = 1.0 - present
    if axis == "rows":
        pos = np.arange(1, matrix.shape[1] + 1, dtype=float)
        s = present @ pos ** 2
        t = absent @ (matrix.shape[1] - pos + 1) ** 2
    elif axis == "cols":
        pos = np.arange(1, matrix.shape[0] + 1, dtype=float)
        s = pos ** 2 @ present
        t = (matrix.shape[0] - pos + 1) ** 2 @ absent
    else:
        raise ValueError(f"axis must be 'rows' or 'cols', got {axis!r}")
    return 0.5 * t - 0.5 * s


def _ntc_rows(state: MatrixState) -> MatrixState:
    return reorder_rows(state, np.argsort(r_score(state.matrix, "rows"), kind="stable"))


def _ntc_cols(state: MatrixState) -> MatrixState:
    return reorder_cols(state, np.argsort(r_score(state.matrix, "cols"), kind="stable"))


def sort_by_ntc(state: MatrixState) -> MatrixState:
    """Ascending r-score; the longer axis is reordered first."""
    n_rows, n_cols = state.matrix.shape
    if n_cols >= n_rows:
        return _ntc_rows(_ntc_cols(state))
    return _ntc_cols(_ntc_rows(state))


# ---------------------------------------------------------------------------
# Sum heuristic
# ---------------------------------------------------------------------------

def sort_by_sum(state: MatrixState) -> MatrixState:
    """Descending column sums, then descending row sums (ties keep their order)."""
    col_order = np.argsort(-state.matrix.sum(axis=0), kind="stable")
    row_order = np.argsort(-state.matrix.sum(axis=1), kind="stable")
    return reorder_rows(reorder_cols(state, col_order), row_order)


def randomize(state: MatrixState, rng: np.random.Generator) -> MatrixState:
    """Independent uniform permutations of the columns and of the rows."""
    n_rows, n_cols = state.matrix.shape
    col_order = rng.permutation(n_cols)
    row_order = rng.permutation(n_rows)
    return reorder_rows(reorder_cols(state, col_order), row_order)


SORTERS: Dict[str, Callable[[MatrixState], MatrixState]] = {
    "NTC": sort_by_ntc,
    "SUM": sort_by_sum,
}
