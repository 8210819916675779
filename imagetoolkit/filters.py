"""Colour adjustments and preset filters.

Amounts follow CSS filter semantics: ``brightness(1.1)`` multiplies,
``sepia(0.8)`` blends 80% towards sepia, ``hue-rotate(180)`` is in degrees.
"""

from typing import Callable, Dict, List, Tuple

import numpy as np
from PIL import Image, ImageEnhance, ImageFilter

from .errors import OperationError

# Sepia colour matrix (W3C filter effects)
SEPIA_MATRIX = np.array([
    [0.393, 0.769, 0.189],
    [0.349, 0.686, 0.168],
    [0.272, 0.534, 0.131],
])

GRAYSCALE_WEIGHTS = np.array([0.2126, 0.7152, 0.0722])

FilterStep = Tuple[str, float]

# Preset name -> ordered filter steps
PRESET_FILTERS: Dict[str, List[FilterStep]] = {
    'none': [],
    'vintage': [('sepia', 0.8)],
    'grayscale': [('grayscale', 1.0)],
    'high-contrast': [('contrast', 1.5)],
    'vivid': [('saturate', 1.8)],
    'cool': [('hue-rotate', 180)],
    'warm': [('sepia', 0.3), ('saturate', 1.5)],
    'blur': [('blur', 3)],
    'japanese': [('brightness', 1.1), ('contrast', 0.9), ('saturate', 0.8)],
    'american': [('contrast', 1.2), ('sepia', 0.2)],
}


def _split_alpha(image: Image.Image):
    if image.mode in ('RGBA', 'LA', 'P'):
        rgba = image.convert('RGBA')
        return rgba.convert('RGB'), rgba.split()[3]
    if image.mode != 'RGB':
        return image.convert('RGB'), None
    return image, None


def _join_alpha(rgb: Image.Image, alpha) -> Image.Image:
    if alpha is None:
        return rgb
    rgb = rgb.convert('RGBA')
    rgb.putalpha(alpha)
    return rgb


def _blend_matrix(image: Image.Image, matrix: np.ndarray, amount: float) -> Image.Image:
    """Blend ``amount`` of a 3x3 colour matrix into the image."""
    amount = max(0.0, min(1.0, amount))
    transform = (1 - amount) * np.eye(3) + amount * matrix
    pixels = np.asarray(image, dtype=np.float64)
    out = pixels @ transform.T
    return Image.fromarray(np.clip(out, 0, 255).astype(np.uint8))


def sepia(image: Image.Image, amount: float = 1.0) -> Image.Image:
    return _blend_matrix(image, SEPIA_MATRIX, amount)


def grayscale(image: Image.Image, amount: float = 1.0) -> Image.Image:
    return _blend_matrix(image, np.tile(GRAYSCALE_WEIGHTS, (3, 1)), amount)


def hue_rotate(image: Image.Image, degrees: float) -> Image.Image:
    """Rotate hue by ``degrees`` in HSV space."""
    if degrees % 360 == 0:
        return image
    hsv = np.asarray(image.convert('HSV'), dtype=np.int32).copy()
    shift = int(round((degrees % 360) / 360 * 256))
    hsv[..., 0] = (hsv[..., 0] + shift) % 256
    channels = [Image.fromarray(hsv[..., i].astype(np.uint8)) for i in range(3)]
    return Image.merge('HSV', channels).convert('RGB')


def brightness(image: Image.Image, factor: float) -> Image.Image:
    return ImageEnhance.Brightness(image).enhance(factor)


def contrast(image: Image.Image, factor: float) -> Image.Image:
    return ImageEnhance.Contrast(image).enhance(factor)


def saturate(image: Image.Image, factor: float) -> Image.Image:
    return ImageEnhance.Color(image).enhance(factor)


def blur(image: Image.Image, radius: float) -> Image.Image:
    if radius <= 0:
        return image
    return image.filter(ImageFilter.GaussianBlur(radius))


_FILTERS: Dict[str, Callable[[Image.Image, float], Image.Image]] = {
    'sepia': sepia,
    'grayscale': grayscale,
    'hue-rotate': hue_rotate,
    'brightness': brightness,
    'contrast': contrast,
    'saturate': saturate,
    'blur': blur,
}


def apply_filters(image: Image.Image, steps: List[FilterStep]) -> Image.Image:
    """Apply filter steps in order, preserving transparency."""
    rgb, alpha = _split_alpha(image)
    for name, amount in steps:
        func = _FILTERS.get(name)
        if func is None:
            raise OperationError(f"Unknown filter: {name}")
        rgb = func(rgb, amount)
    return _join_alpha(rgb, alpha)


def apply_adjustments(
    image: Image.Image,
    brightness: float = 100,
    contrast: float = 100,
    saturate: float = 100,
    blur: float = 0,
    hue_rotate: float = 0,
) -> Image.Image:
    """
    Apply manual adjustments.

    Args:
        image: PIL Image object
        brightness: Brightness in percent (100 = unchanged)
        contrast: Contrast in percent (100 = unchanged)
        saturate: Saturation in percent (100 = unchanged)
        blur: Gaussian blur radius in pixels
        hue_rotate: Hue rotation in degrees

    Returns:
        Adjusted PIL Image
    """
    steps: List[FilterStep] = [
        ('brightness', brightness / 100),
        ('contrast', contrast / 100),
        ('saturate', saturate / 100),
    ]
    if blur > 0:
        steps.append(('blur', blur))
    if hue_rotate > 0:
        steps.append(('hue-rotate', hue_rotate))
    return apply_filters(image, steps)


def apply_preset_filter(image: Image.Image, name: str) -> Image.Image:
    """
    Apply a named preset filter.

    Args:
        image: PIL Image object
        name: One of PRESET_FILTERS

    Returns:
        Filtered PIL Image (a copy for 'none')
    """
    steps = PRESET_FILTERS.get(name)
    if steps is None:
        raise OperationError(
            f"Unknown preset filter: {name}. Available: {', '.join(PRESET_FILTERS)}"
        )
    if not steps:
        return image.copy()
    return apply_filters(image, steps)
