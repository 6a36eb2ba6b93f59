from pathlib import Path

import numpy as np
import pandas as pd
import pytest

import adapter

CHECKERBOARD_5x5 = (np.indices((5, 5)).sum(axis=0) % 2 == 0).astype(int)


def test_compute_ntc_on_sample_matrix(capsys):
    data_path = Path(__file__).with_name("data") / "sample_matrix.csv"
    X = pd.read_csv(data_path, index_col=0).values
    nest = adapter.compute_ntc(X, random_state=0)
    assert nest.done
    assert 0 <= nest.T <= 100
    assert nest.N == (100 - nest.T) / 100
    assert "T (Temperature value)" in capsys.readouterr().out
    # the species found at every site ends up first
    assert nest.index_rows[0] == 1
    assert nest.matrix[0].all()


def test_compute_ntc_quiet(capsys):
    adapter.compute_ntc(CHECKERBOARD_5x5, verbose=False, random_state=0)
    assert capsys.readouterr().out == ""


def test_perfect_nested_5x5():
    M = adapter.perfect_nested(5, 5, 0.5)
    assert M.tolist() == [
        [1, 1, 1, 1, 1],
        [1, 1, 1, 0, 0],
        [1, 1, 0, 0, 0],
        [1, 0, 0, 0, 0],
        [1, 0, 0, 0, 0],
    ]


def test_perfect_nested_anchors_corners():
    M = adapter.perfect_nested(7, 4, 0.3)
    assert M.shape == (7, 4)
    assert M[6, 0] == 1 and M[0, 3] == 1
    assert set(np.unique(M)) <= {0, 1}


@pytest.mark.parametrize("rows, cols, fill", [(5, 5, 0.5), (6, 9, 0.6)])
def test_perfect_nested_has_no_unexpected_cells(rows, cols, fill):
    mask = adapter.find_unexpected_cells(adapter.perfect_nested(rows, cols, fill))
    assert mask.shape == (rows, cols)
    assert mask.dtype == bool
    assert not mask.any()


def test_checkerboard_has_unexpected_cells():
    mask = adapter.find_unexpected_cells(CHECKERBOARD_5x5)
    assert mask.any()
    assert mask.sum() < mask.size


@pytest.mark.parametrize("matrix", [np.ones((3, 3)), [[1, 0, 1]], np.zeros((0, 0))])
def test_find_unexpected_cells_degenerate(matrix):
    assert not adapter.find_unexpected_cells(matrix).any()


def test_extract_isocline_stays_in_unit_square():
    x, y = adapter.extract_isocline(10, 10, 0.3)
    assert x.shape == y.shape
    assert np.all((x >= 0) & (x <= 1))
    assert np.all((y >= 0) & (y <= 1))
    assert np.all(np.diff(y) >= 0)


def test_extract_isocline_from_matrix_matches_explicit_shape():
    M = adapter.perfect_nested(5, 5, 0.5)  # 12 of 25 cells
    x1, y1 = adapter.extract_isocline(M)
    x2, y2 = adapter.extract_isocline(5, 5, 0.48)
    np.testing.assert_allclose(x1, x2)
    np.testing.assert_allclose(y1, y2)


def test_extract_isocline_in_cell_units():
    x, y = adapter.extract_isocline(10, 10, 0.3, cell_units=True)
    assert x[0] == pytest.approx(1.0)
    assert x[-1] == pytest.approx(10.0)
    assert y[0] == pytest.approx(1.0)
    assert y[-1] == pytest.approx(10.0)


def test_extract_isocline_argument_checks():
    with pytest.raises(ValueError):
        adapter.extract_isocline(5, 5)
    with pytest.raises(ValueError):
        adapter.extract_isocline(5, 5, 1.5)
    with pytest.raises(ValueError):
        adapter.extract_isocline(1, 5, 0.5)
