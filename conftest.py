import logging

import numpy as np
import pytest
from PIL import Image

from imagetoolkit import log


@pytest.fixture(autouse=True)
def reset_logging():
    """Detach handlers added by setup_logging during a test."""
    yield
    logger = logging.getLogger(log.LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    log._configured = False


@pytest.fixture
def noise_image_path(tmp_path):
    """A 400x300 noisy photo-like PNG (large, compresses poorly)."""
    rng = np.random.default_rng(42)
    gradient = np.linspace(0, 200, 400, dtype=np.float64)[None, :, None]
    pixels = gradient + rng.integers(0, 56, size=(300, 400, 3))
    path = tmp_path / 'noise.png'
    Image.fromarray(pixels.astype(np.uint8)).save(path)
    return path


@pytest.fixture
def small_image_path(tmp_path):
    path = tmp_path / 'small.jpg'
    Image.new('RGB', (16, 16), (120, 30, 200)).save(path, quality=90)
    return path


@pytest.fixture
def text_image_path(tmp_path):
    """Black bars on white, like a scanned page."""
    img = Image.new('RGB', (300, 200), 'white')
    pixels = np.asarray(img).copy()
    for row in range(20, 180, 30):
        pixels[row:row + 8, 20:280] = 0
    path = tmp_path / 'text.png'
    Image.fromarray(pixels).save(path)
    return path
