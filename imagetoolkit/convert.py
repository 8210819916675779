"""Image format conversion"""

import tempfile
import time
from pathlib import Path
from typing import Optional, Union

from PIL import Image

from .compression.encoders import get_encoder
from .compression.result import EncoderOptions
from .errors import OperationError
from .log import get_logger

logger = get_logger("convert")

# Formats that can be written, by file extension
OUTPUT_FORMATS = {
    'jpg': 'JPEG',
    'png': 'PNG',
    'webp': 'WEBP',
}

FALLBACK_EXTENSION = 'jpg'
JPEG_QUALITY = 92


def resolve_format(fmt: str) -> str:
    """Map a requested format to a writable extension (jpg fallback)."""
    ext = fmt.lower().lstrip('.')
    if ext == 'jpeg':
        ext = 'jpg'
    if ext not in OUTPUT_FORMATS:
        logger.warning("%s is not supported for output, converting to JPG", fmt.upper())
        return FALLBACK_EXTENSION
    return ext


def _output_path(output_dir: Path, ext: str) -> Path:
    stamp = int(time.time() * 1000)
    path = output_dir / f"img_{stamp}.{ext}"
    counter = 1
    while path.exists():
        path = output_dir / f"img_{stamp}_{counter}.{ext}"
        counter += 1
    return path


def convert_image(
    source: Union[str, Path],
    fmt: str = 'jpg',
    output_dir: Optional[Union[str, Path]] = None,
) -> Path:
    """
    Convert an image file to another format.

    Args:
        source: Source image path
        fmt: Target format ('jpg', 'png', 'webp'; others fall back to jpg)
        output_dir: Output directory (temp dir if None)

    Returns:
        Path of the converted file, named img_<timestamp>.<ext>

    Raises:
        OperationError: If the source cannot be read or written
    """
    ext = resolve_format(fmt)
    encoder = get_encoder(OUTPUT_FORMATS[ext])
    quality = JPEG_QUALITY if ext == 'jpg' else 100

    output_dir = Path(output_dir) if output_dir is not None else Path(tempfile.gettempdir())

    try:
        with Image.open(source) as image:
            encoded = encoder.encode(image, EncoderOptions(quality=quality))
        output_dir.mkdir(parents=True, exist_ok=True)
        target = _output_path(output_dir, ext)
        target.write_bytes(encoded)
    except OSError as e:
        raise OperationError(f"Could not convert {source} to {ext}: {e}") from e

    logger.info("Converted %s to %s (%d bytes)", source, target, len(encoded))
    return target
