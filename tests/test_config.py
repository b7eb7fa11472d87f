"""Tests for configuration loading and the shipped component configuration."""

import pytest
import yaml

from shared_utils import get_config_value, load_config, save_config, validate_config
from shared_utils.config_utils import CONFIG_ENV_VAR

from urban_thermal.core.sensors import ModisLSTProduct, SensorPolicy
from urban_thermal.core.temporal_compositing import seasons_from_config


@pytest.fixture
def shipped_config():
    return load_config(component_name='urban_thermal')


def test_load_explicit_path(tmp_path):
    path = tmp_path / 'custom.yaml'
    path.write_text(yaml.safe_dump({'analysis': {'scale': 500}}))
    config = load_config(path)
    assert config['analysis']['scale'] == 500
    assert config['_meta']['config_file'].endswith('custom.yaml')


def test_load_from_environment(tmp_path, monkeypatch):
    path = tmp_path / 'env.yaml'
    path.write_text(yaml.safe_dump({'study_period': {'start_year': 2001, 'end_year': 2002}}))
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    assert load_config()['study_period']['start_year'] == 2001


def test_missing_config_raises(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / 'absent.yaml')


def test_validate_config_reports_missing_sections():
    with pytest.raises(ValueError):
        validate_config({'analysis': {}}, ['study_period', 'analysis'])
    assert validate_config({'study_period': {}, 'analysis': {}}, ['study_period', 'analysis'])


def test_get_config_value():
    config = {'analysis': {'scale': 1000}}
    assert get_config_value(config, 'analysis.scale') == 1000
    assert get_config_value(config, 'analysis.missing', 7) == 7
    assert get_config_value(config, 'analysis.scale.deeper', 'x') == 'x'


def test_save_config_strips_metadata(tmp_path):
    save_config({'analysis': {'scale': 1000}, '_meta': {'config_file': 'x'}}, tmp_path / 'out.yaml')
    saved = yaml.safe_load((tmp_path / 'out.yaml').read_text())
    assert saved == {'analysis': {'scale': 1000}}


class TestShippedConfig:

    def test_seasons(self, shipped_config):
        summer, winter = seasons_from_config(shipped_config)
        assert summer.name == 'Summer'
        assert str(summer.window(2004)[0]) == '2004-03-01'
        assert [str(d) for d in winter.window(2004)] == ['2003-12-01', '2004-03-01']

    def test_sensor_policy(self, shipped_config):
        policy = SensorPolicy.from_config(shipped_config['landsat'])
        assert policy.collections_for(2004) == ('LT05',)
        assert policy.collections_for(2014) == ('LC08',)
        assert policy.collections_for(2024) == ('LC08', 'LC09')

    def test_modis_product(self, shipped_config):
        product = ModisLSTProduct.from_config(shipped_config['modis_lst'])
        assert product.band_names == ('LST_Day_1km', 'QC_Day')
        assert product.lst.scale == pytest.approx(0.02)
        assert product.qc_bitfield.threshold == 1

    def test_analysis_defaults(self, shipped_config):
        assert shipped_config['analysis']['scale'] == 1000
        assert shipped_config['analysis']['correlation_years'] == [2004, 2014, 2024]
        assert shipped_config['export']['max_pixels_cap'] == pytest.approx(1e13)

