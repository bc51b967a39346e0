import pytest

from utils.config_loader import Config
from utils.exceptions import ConfigurationError


def test_dotted_get(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("pipeline:\n  settle_delay: 0.25\nserial:\n  baud_rate: 9600\n")

    config = Config(str(path))

    assert config.get('pipeline.settle_delay') == 0.25
    assert config.get('serial.baud_rate') == 9600
    assert config.get('serial.port', 'COM3') == 'COM3'
    assert config.get('serial.baud_rate.extra', 'x') == 'x'


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        Config(str(tmp_path / 'missing.yaml'))


def test_malformed_file(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("pipeline: [unclosed\n")

    with pytest.raises(ConfigurationError):
        Config(str(path))


def test_empty_file_and_reload(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("")
    config = Config(str(path))
    assert config.get('ai.backend', 'tflite') == 'tflite'

    path.write_text("ai:\n  backend: simulated\n")
    config.reload()

    assert config.get('ai.backend') == 'simulated'
