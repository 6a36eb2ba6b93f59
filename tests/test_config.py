import pytest

from NTC_config import DEFAULTS, NTCConfig, make_config


def test_defaults():
    cfg = make_config()
    assert cfg.trials == 50
    assert cfg.break_random == 10
    assert cfg.sorting_method == 'SUM'
    assert cfg.area_variant == 2
    assert cfg.p_min == 0.0005
    assert cfg.p_max == 99999
    assert cfg.delta_x == 0.001
    assert cfg.do_geometry and cfg.do_sorting
    assert not cfg.debug
    assert set(NTCConfig._fields) == set(DEFAULTS)


def test_config_is_immutable():
    cfg = make_config()
    with pytest.raises(AttributeError):
        cfg.trials = 3


@pytest.mark.parametrize('method, expected', [
    ('sum', 'SUM'), ('NTC', 'NTC'), (1, 'NTC'), (2, 'SUM'),
])
def test_sorting_method_aliases(method, expected):
    assert make_config(sorting_method=method).sorting_method == expected


@pytest.mark.parametrize('overrides', [
    {'p_min': 0},
    {'p_min': -1},
    {'p_min': 5, 'p_max': 1},
    {'delta_x': 0},
    {'delta_x': -0.01},
    {'delta_x': 2},
    {'trials': 0},
    {'break_random': -1},
    {'area_variant': 4},
    {'sorting_method': 'random'},
    {'sorting_method': 3},
    {'max_bisection_iter': 0},
    {'max_sort_iter': 0},
    {'tolerance': 0},
    {'colour': 'red'},
])
def test_invalid_configuration(overrides):
    with pytest.raises(ValueError):
        make_config(**overrides)


def test_overrides_stack_on_base():
    base = make_config(trials=7)
    cfg = make_config(base, debug=True)
    assert cfg.trials == 7
    assert cfg.debug
