"""Cropping, resizing and saving"""

from pathlib import Path
from typing import Union

from PIL import Image

from .errors import OperationError

Number = Union[int, float]


def _absolute(value: Number, extent: int) -> int:
    """Values below 1 are fractions of ``extent``."""
    if 0 <= value < 1:
        return int(round(value * extent))
    return int(value)


def crop_image(image: Image.Image, x: Number, y: Number, width: Number, height: Number) -> Image.Image:
    """
    Crop image to a rectangle.

    Each value below 1 is read as a fraction of the image dimension, so
    ``crop_image(img, 0.25, 0.25, 0.5, 0.5)`` keeps the centre quarter.

    Args:
        image: PIL Image object
        x: Left coordinate
        y: Top coordinate
        width: Crop width
        height: Crop height

    Returns:
        Cropped PIL Image
    """
    x1 = _absolute(x, image.width)
    y1 = _absolute(y, image.height)
    x2 = x1 + _absolute(width, image.width)
    y2 = y1 + _absolute(height, image.height)

    # Clamp to image bounds
    x1 = max(0, min(x1, image.width))
    y1 = max(0, min(y1, image.height))
    x2 = max(0, min(x2, image.width))
    y2 = max(0, min(y2, image.height))

    if x2 <= x1 or y2 <= y1:
        raise OperationError(f"Invalid crop rectangle: ({x}, {y}, {width}, {height})")

    return image.crop((x1, y1, x2, y2))


def resize_image(
    image: Image.Image,
    width: int,
    height: int,
    maintain_aspect: bool = True
) -> Image.Image:
    """
    Resize image to specified dimensions.

    Args:
        image: PIL Image object
        width: Target width
        height: Target height
        maintain_aspect: If True, fit within the box keeping aspect ratio

    Returns:
        Resized PIL Image
    """
    if width <= 0 or height <= 0:
        raise OperationError(f"Invalid dimensions: {width}x{height}")

    if maintain_aspect:
        resized = image.copy()
        resized.thumbnail((width, height), Image.Resampling.LANCZOS)
        return resized
    return image.resize((width, height), Image.Resampling.LANCZOS)


def flatten_alpha(image: Image.Image, color: str = 'white') -> Image.Image:
    """Composite transparency onto a solid background and return RGB."""
    if image.mode in ('RGBA', 'LA', 'P'):
        rgba = image.convert('RGBA')
        background = Image.new('RGB', image.size, color)
        background.paste(rgba, mask=rgba.split()[-1])
        return background
    if image.mode != 'RGB':
        return image.convert('RGB')
    return image


def save_image(
    image: Image.Image,
    filepath: Path,
    format: str = 'JPEG',
    quality: int = 92
) -> Path:
    """
    Save image to file with specified format and quality.

    Args:
        image: PIL Image object
        filepath: Output file path
        format: Output format (JPEG, PNG, WEBP)
        quality: Quality for JPEG/WEBP (0-100), ignored for PNG

    Returns:
        The path written

    Raises:
        OperationError: If format is unsupported
    """
    format = format.upper()
    if format == 'JPG':
        format = 'JPEG'

    if format not in ('JPEG', 'PNG', 'WEBP'):
        raise OperationError(f"Unsupported format: {format}")

    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    if format == 'JPEG':
        flatten_alpha(image).save(filepath, format=format, quality=quality, optimize=True)
    elif format == 'PNG':
        image.save(filepath, format=format, optimize=True)
    else:
        image.save(filepath, format=format, quality=quality)

    return filepath
