"""Image toolkit: smart compression plus crop, convert, filter, watermark and splice tools"""

from .compression import (
    CompressionResult,
    CompressorConfig,
    ContentAdvisor,
    ContentHint,
    SmartCompressor,
    Strategy,
    smart_compress,
)
from .config import ToolkitConfig, load_config, save_config
from .convert import convert_image
from .crop import crop_image, resize_image, save_image
from .filters import apply_adjustments, apply_preset_filter
from .splice import splice_images
from .utils import format_file_size
from .watermark import (
    add_image_watermark,
    add_text_watermark,
    add_tiled_image_watermark,
    add_tiled_text_watermark,
)

__version__ = "1.0.0"

__all__ = [
    'CompressionResult',
    'CompressorConfig',
    'ContentAdvisor',
    'ContentHint',
    'SmartCompressor',
    'Strategy',
    'smart_compress',
    'ToolkitConfig',
    'load_config',
    'save_config',
    'convert_image',
    'crop_image',
    'resize_image',
    'save_image',
    'apply_adjustments',
    'apply_preset_filter',
    'splice_images',
    'format_file_size',
    'add_image_watermark',
    'add_text_watermark',
    'add_tiled_image_watermark',
    'add_tiled_text_watermark',
]
