import numpy as np
import pytest

import NTC_sorting as srt


def _consistent(state, original):
    """The layout must be the original matrix seen through the indices."""
    assert sorted(state.index_rows) == list(range(original.shape[0]))
    assert sorted(state.index_cols) == list(range(original.shape[1]))
    assert np.array_equal(state.matrix, original[np.ix_(state.index_rows, state.index_cols)])


def test_initial_state_is_identity():
    M = np.array([[1, 0, 1], [0, 1, 0]])
    state = srt.initial_state(M)
    assert list(state.index_rows) == [0, 1]
    assert list(state.index_cols) == [0, 1, 2]
    _consistent(state, M)


def test_r_score_by_hand():
    M = np.array([[1, 0, 1], [0, 1, 0]])
    np.testing.assert_allclose(srt.r_score(M, 'rows'), [-3.0, 3.0])
    np.testing.assert_allclose(srt.r_score(M, 'cols'), [0.0, 0.0, 0.0])


def test_r_score_rejects_unknown_axis():
    with pytest.raises(ValueError):
        srt.r_score(np.eye(3), 'diagonal')


def test_sort_by_sum_orders_and_tracks_indices():
    M = np.array([[0, 0, 1], [1, 1, 1], [0, 1, 1]])
    state = srt.sort_by_sum(srt.initial_state(M))
    assert state.matrix.tolist() == [[1, 1, 1], [1, 1, 0], [1, 0, 0]]
    assert list(state.index_rows) == [1, 2, 0]
    assert list(state.index_cols) == [2, 1, 0]
    _consistent(state, M)


def test_sort_by_sum_keeps_ties_in_place():
    M = np.array([[1, 0], [0, 1]])
    state = srt.sort_by_sum(srt.initial_state(M))
    assert list(state.index_rows) == [0, 1]
    assert list(state.index_cols) == [0, 1]


def test_sort_by_ntc_moves_full_row_to_top():
    M = np.array([
        [0, 0, 1, 0, 0],
        [1, 0, 1, 0, 1],
        [1, 1, 1, 1, 1],
        [0, 0, 1, 0, 1],
        [1, 1, 1, 0, 1],
    ])
    state = srt.sort_by_ntc(srt.initial_state(M))
    assert state.matrix[0].all()
    _consistent(state, M)


def test_randomize_is_seeded_permutation():
    M = (np.arange(24).reshape(4, 6) % 3 == 0).astype(int)
    a = srt.randomize(srt.initial_state(M), np.random.default_rng(5))
    b = srt.randomize(srt.initial_state(M), np.random.default_rng(5))
    _consistent(a, M)
    assert np.array_equal(a.index_rows, b.index_rows)
    assert np.array_equal(a.index_cols, b.index_cols)


def test_reorders_compose():
    M = np.arange(12).reshape(3, 4)
    state = srt.initial_state(M)
    state = srt.reorder_rows(state, np.array([2, 0, 1]))
    state = srt.reorder_cols(state, np.array([3, 1, 0, 2]))
    state = srt.reorder_rows(state, np.array([1, 2, 0]))
    _consistent(state, M)


def test_sorters_registry():
    assert set(srt.SORTERS) == {'NTC', 'SUM'}
