import json
import logging

import pytest

from imagetoolkit.compression import Strategy
from imagetoolkit.config import ToolkitConfig, load_config, save_config
from imagetoolkit.errors import ConfigError
from imagetoolkit.log import get_logger, setup_logging


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(tmp_path / 'nope.json')

    assert config.compressor.default_quality == 80
    assert config.advisor.enabled is False


def test_save_and_load(tmp_path):
    path = tmp_path / 'imagetoolkit.json'
    config = ToolkitConfig()
    config.compressor.default_quality = 70
    config.compressor.default_strategy = Strategy.SIZE_PRIORITY
    config.advisor.model = 'local-vl'
    config.advisor.api_key = 'secret'

    assert save_config(config, path)
    loaded = load_config(path)

    assert loaded.compressor.default_quality == 70
    assert loaded.compressor.default_strategy is Strategy.SIZE_PRIORITY
    assert loaded.advisor.model == 'local-vl'
    assert 'secret' not in path.read_text()


def test_partial_file_keeps_other_defaults(tmp_path):
    path = tmp_path / 'imagetoolkit.json'
    path.write_text(json.dumps({'compressor': {'target_iterations': 12}}))

    config = load_config(path)

    assert config.compressor.target_iterations == 12
    assert config.compressor.heuristic_iterations == 7
    assert config.advisor.endpoint == 'https://api.openai.com/v1'


@pytest.mark.parametrize("content", [
    "{broken",
    "[1, 2]",
    json.dumps({'compressor': {'colour': 'blue'}}),
    json.dumps({'advisor': 'yes'}),
    json.dumps({'compressor': {'default_quality': 300}}),
])
def test_invalid_config_raises(tmp_path, content):
    path = tmp_path / 'imagetoolkit.json'
    path.write_text(content)

    with pytest.raises(ConfigError):
        load_config(path)


def test_save_to_missing_directory_returns_false(tmp_path):
    assert save_config(ToolkitConfig(), tmp_path / 'missing' / 'cfg.json') is False


def test_setup_logging_writes_to_file(tmp_path):
    log_file = tmp_path / 'toolkit.log'

    setup_logging(logging.DEBUG, log_file)
    setup_logging(logging.DEBUG, log_file)
    get_logger('engine').debug("hello from the engine")

    logger = logging.getLogger('imagetoolkit')
    assert len(logger.handlers) == 1
    for handler in logger.handlers:
        handler.flush()
    assert "hello from the engine" in log_file.read_text()


def test_setup_logging_accepts_level_name():
    logger = setup_logging('warning')
    assert logger.level == logging.WARNING
