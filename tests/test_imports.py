import importlib
import pytest

MODULES = [
    'adapter',
    'NTC_algorithm',
    'NTC_config',
    'NTC_geometry',
    'NTC_sorting',
    'NTC_temperature',
]

DEPENDENCIES = {
    'NTC_algorithm': ['pandas'],
    'NTC_geometry': ['scipy'],
}

@pytest.mark.parametrize('module', MODULES)
def test_imports(module):
    for dep in DEPENDENCIES.get(module, []):
        pytest.importorskip(dep)
    importlib.import_module(module)
