#!/usr/bin/env python3
"""NTC nestedness – Nestedness Temperature Calculator with BINMATNEST search
=========================================================================
Temperature ``T`` ∈ [0, 100] and nestedness ``N = (100 - T) / 100`` of a
binary presence/absence matrix (Atmar & Patterson 1993), minimised over
row/column orderings by repeated randomised sort-and-score trials
(Rodríguez-Gironés & Santamaría 2006).

Library use::

    >>> nest = NestednessNTC(matrix, random_state=0)
    >>> result = nest.detect()
    >>> print(nest.report())

Command line::

    python NTC_algorithm.py incidence.csv --trials 50 --seed 0

If the matrix path is omitted a random 20 × 15 demo matrix is generated.
"""

from __future__ import annotations

import argparse
import pathlib
import sys
from collections import namedtuple
from typing import Callable, List, Optional, Tuple

import numpy as np
import pandas as pd

from NTC_config import NTCConfig, debug_print, make_config
from NTC_geometry import GeometryContext, NTCComputationError, build_geometry
from NTC_sorting import SORTERS, MatrixState, initial_state, randomize
from NTC_temperature import check_temperature, score_matrix

# ---------------------------------------------------------------------------
#  Result types
# ---------------------------------------------------------------------------
# status ∈ {'empty', 'trivial', 'uniform', 'unsorted', 'done', 'fault'}
NTCResult = namedtuple(
    "NTCResult",
    ["N", "T", "status", "matrix", "index_rows", "index_cols", "trials_run", "error"],
    defaults=[0, None],
)

TrialResult = namedtuple(
    "TrialResult", ["T", "matrix", "index_rows", "index_cols", "iterations", "history"]
)


def normalise_matrix(matrix) -> np.ndarray:
    """Any 2-D numeric/boolean array-like → int {0, 1} array (``> 0`` is presence)."""
    X = np.asarray(matrix)
    if X.size == 0:
        return np.zeros((0, 0), dtype=int)
    if X.ndim != 2:
        raise ValueError(f"expected a 2-D matrix, got an array with {X.ndim} dimension(s)")
    return (X > 0).astype(int)


# ---------------------------------------------------------------------------
#  One trial: randomise, then sort/score until the temperature settles
# ---------------------------------------------------------------------------

def run_trial(
    state: MatrixState,
    geometry: GeometryContext,
    sorter: Callable[[MatrixState], MatrixState],
    rng: np.random.Generator,
    *,
    tolerance: float = 0.001,
    max_sort_iter: int = 100,
    debug: bool = False,
) -> TrialResult:
    state = randomize(state, rng)
    local_T = np.inf
    best = state
    history: List[float] = []

    iterations = 0
    while iterations < max_sort_iter:
        iterations += 1
        state = sorter(state)
        T, _ = score_matrix(state.matrix, geometry)
        debug_print(debug, f"TLocal = {local_T:f} T = {T:f}")

        if abs(local_T - T) <= tolerance or T > local_T:
            break
        local_T = T
        best = state
        history.append(T)

    check_temperature(local_T)
    return TrialResult(
        T=local_T,
        matrix=best.matrix,
        index_rows=best.index_rows,
        index_cols=best.index_cols,
        iterations=iterations,
        history=history,
    )


def optimise(
    state: MatrixState,
    geometry: GeometryContext,
    config: NTCConfig,
    rng: np.random.Generator,
) -> Tuple[Optional[TrialResult], int]:
    """Up to ``config.trials`` trials; keep the coolest, stop after a dry spell.

    A trial that raises ``NTCComputationError`` is skipped and counted as
    not improving. Every trial starts from *state* and draws its own seed
    from *rng*, so trials do not share mutable data.
    """
    sorter = SORTERS[config.sorting_method]
    best: Optional[TrialResult] = None
    failed_to_improve = 0
    trials_run = 0

    for _ in range(config.trials):
        if failed_to_improve > config.break_random:
            break
        trials_run += 1
        trial_rng = np.random.default_rng(int(rng.integers(0, 2**31 - 1)))
        try:
            trial = run_trial(
                state,
                geometry,
                sorter,
                trial_rng,
                tolerance=config.tolerance,
                max_sort_iter=config.max_sort_iter,
                debug=config.debug,
            )
        except NTCComputationError as exc:
            debug_print(config.debug, f"trial {trials_run} skipped: {exc}")
            failed_to_improve += 1
            continue

        debug_print(config.debug, f"trial {trials_run}: T = {trial.T:f}")
        if best is None or trial.T < best.T:
            best = trial
            failed_to_improve = 0
        else:
            failed_to_improve += 1

    return best, trials_run


# ---------------------------------------------------------------------------
#  Full pipeline
# ---------------------------------------------------------------------------

def detect_nestedness(
    matrix,
    config: NTCConfig | None = None,
    geometry: GeometryContext | None = None,
) -> Tuple[NTCResult, Optional[GeometryContext]]:
    """Run the NTC on *matrix*; return the result and the geometry it used.

    A *geometry* of the same shape is reused as is (unless ``do_geometry``
    asks for a fresh one), which is how matrices of equal size and similar
    fill share the costly isocline fit.
    """
    cfg = make_config(config)
    X = normalise_matrix(matrix)
    state = initial_state(X)
    n_rows, n_cols = X.shape

    if X.size == 0:
        return NTCResult(np.nan, np.nan, "empty", *state), geometry
    if n_rows == 1 or n_cols == 1:
        return NTCResult(0.0, np.nan, "trivial", *state), geometry

    connectance = float(X.mean())
    if connectance in (0.0, 1.0):
        return NTCResult(1.0, 0.0, "uniform", *state), geometry

    try:
        if cfg.do_geometry or geometry is None or (geometry.n_rows, geometry.n_cols) != X.shape:
            geometry = build_geometry(n_rows, n_cols, connectance, cfg)

        T, N = score_matrix(X, geometry)
        if not cfg.do_sorting:
            check_temperature(T)
            return NTCResult(N, T, "unsorted", *state, trials_run=0), geometry

        rng = np.random.default_rng(cfg.random_state)
        best, trials_run = optimise(state, geometry, cfg, rng)
        if best is None:
            raise NTCComputationError(f"none of {trials_run} trials produced a valid temperature")
    except NTCComputationError as exc:
        return NTCResult(np.nan, np.nan, "fault", *state, error=str(exc)), geometry

    return (
        NTCResult(
            N=(100.0 - best.T) / 100.0,
            T=best.T,
            status="done",
            matrix=best.matrix,
            index_rows=best.index_rows,
            index_cols=best.index_cols,
            trials_run=trials_run,
        ),
        geometry,
    )


def format_report(N: float, T: float, error: str | None = None) -> str:
    text = (
        "Nestedness NTC:\n"
        f"\tNTC (Nestedness value):     \t{N:16.4f}\n"
        f"\tT (Temperature value):      \t{T:16.4f}\n"
    )
    if error:
        text += f"\tError:                      \t{error}\n"
    return text


# ---------------------------------------------------------------------------
#  Stateful front end
# ---------------------------------------------------------------------------

class NestednessNTC:
    """NTC estimator bound to one matrix.

    ``matrix``, ``index_rows`` and ``index_cols`` always describe the current
    layout: ``index_rows[k]`` is the original row now shown at position k.
    After :meth:`detect` they hold the coolest ordering found.
    """

    def __init__(self, matrix, config: NTCConfig | None = None, **overrides):
        self.config = make_config(config, **overrides)
        self.geometry: Optional[GeometryContext] = None
        self.result: Optional[NTCResult] = None
        self.T = 0.0
        self.N = 0.0
        self.done = False
        self.set_matrix(matrix)

    def set_matrix(self, matrix) -> "NestednessNTC":
        """Swap in a new matrix, keeping any geometry already computed.

        Only worth it for a matrix of the same size and similar fill; pair it
        with ``do_geometry=False`` so :meth:`detect` skips the refit.
        """
        self._source = normalise_matrix(matrix)
        self.matrix = self._source
        self.n_rows, self.n_cols = self._source.shape
        self.connectance = float(self._source.mean()) if self._source.size else 0.0
        self.index_rows = np.arange(self.n_rows)
        self.index_cols = np.arange(self.n_cols)
        self.done = False
        return self

    def detect(self) -> NTCResult:
        result, self.geometry = detect_nestedness(self._source, self.config, self.geometry)
        self.result = result
        self.N, self.T = result.N, result.T
        self.matrix = result.matrix
        self.index_rows, self.index_cols = result.index_rows, result.index_cols
        self.done = result.status == "done"
        return result

    @property
    def p(self) -> float:
        return np.nan if self.geometry is None else self.geometry.isocline.p

    @property
    def calculated_fill(self) -> float:
        return np.nan if self.geometry is None else self.geometry.isocline.calculated_fill

    def report(self) -> str:
        error = self.result.error if self.result is not None else None
        return format_report(self.N, self.T, error)


# ---------------------------------------------------------------------------
#  CLI driver
# ---------------------------------------------------------------------------

def _load_matrix(path: pathlib.Path, labelled: bool) -> pd.DataFrame:
    sep = "\t" if path.suffix.lower() in {".tsv", ".txt"} else ","
    df = pd.read_csv(
        path,
        sep=sep,
        header=0 if labelled else None,
        index_col=0 if labelled else None,
    )
    df = df.apply(pd.to_numeric, errors="coerce")
    if df.isna().any().any():
        print("Non-numeric values found; coerced to NaN and dropped.", file=sys.stderr)
        df = df.dropna(axis=0, how="any")
    return df


def _ordered_labels(labels: List[str], order: np.ndarray) -> str:
    return ", ".join(str(labels[i]) for i in order)


def main(argv: List[str] | None = None) -> None:
    p = argparse.ArgumentParser(description="NTC nestedness temperature of a presence/absence matrix")
    p.add_argument("matrix", nargs="?", type=pathlib.Path,
                   help="CSV or TSV incidence matrix; if omitted, a random demo matrix is used.")
    p.add_argument("--labels", action="store_true",
                   help="first row and first column hold column/row names")
    p.add_argument("--trials", type=int, default=50, help="random restarts")
    p.add_argument("--break-random", type=int, default=10,
                   help="stop after this many trials without improvement")
    p.add_argument("--sorting", choices=["NTC", "SUM"], default="SUM", help="sorting heuristic")
    p.add_argument("--area", type=int, choices=[1, 2, 3], default=2, help="area formula")
    p.add_argument("--no-sorting", action="store_true", help="score the matrix as given")
    p.add_argument("--show-order", action="store_true", help="print the final row/column order")
    p.add_argument("--seed", type=int, default=None, help="Random seed")
    p.add_argument("--debug", action="store_true", help="trace the search on stderr")
    args = p.parse_args(argv)

    if args.matrix is None:
        print("[demo] generating random 20×15 matrix…", file=sys.stderr)
        df = pd.DataFrame((np.random.default_rng(args.seed).random((20, 15)) < 0.4).astype(int))
    else:
        df = _load_matrix(args.matrix, args.labels)
        print(f"Loaded {args.matrix} with shape {df.shape}", file=sys.stderr)

    try:
        nest = NestednessNTC(
            df.to_numpy(),
            trials=args.trials,
            break_random=args.break_random,
            sorting_method=args.sorting,
            area_variant=args.area,
            do_sorting=not args.no_sorting,
            random_state=args.seed,
            debug=args.debug,
        )
    except ValueError as exc:
        raise SystemExit(f"Error: {exc}")

    nest.detect()
    print(nest.report(), end="")
    if args.show_order and nest.index_rows.size:
        print("Rows   :", _ordered_labels(df.index.tolist(), nest.index_rows))
        print("Columns:", _ordered_labels(df.columns.tolist(), nest.index_cols))


if __name__ == "__main__":
    main()
