"""Text and image watermarks.

Positions use a 3x3 grid numbered 1-9 left to right, top to bottom
(1 = top-left, 5 = centre, 9 = bottom-right), inset by ``PADDING`` pixels.
"""

import math
from typing import Iterable, List, Optional, Tuple

from PIL import Image, ImageColor, ImageDraw, ImageFont

from .errors import OperationError

PADDING = 20
DEFAULT_POSITION = 9


def _load_font(font_size: int) -> ImageFont.ImageFont:
    return ImageFont.load_default(size=font_size)


def _rgba(color: str, opacity: float) -> Tuple[int, int, int, int]:
    try:
        r, g, b = ImageColor.getrgb(color)[:3]
    except ValueError as e:
        raise OperationError(f"Invalid colour: {color}") from e
    return (r, g, b, int(round(255 * max(0.0, min(1.0, opacity)))))


def grid_origin(
    position: int,
    canvas_size: Tuple[int, int],
    item_size: Tuple[int, int],
) -> Optional[Tuple[int, int]]:
    """
    Top-left corner of an item placed at a grid position.

    Args:
        position: Grid position 1-9
        canvas_size: (width, height) of the image
        item_size: (width, height) of the watermark

    Returns:
        (x, y), or None for an unknown position
    """
    if position not in range(1, 10):
        return None

    width, height = canvas_size
    item_w, item_h = item_size
    column = (position - 1) % 3
    row = (position - 1) // 3

    xs = (PADDING, (width - item_w) // 2, width - item_w - PADDING)
    ys = (PADDING, (height - item_h) // 2, height - item_h - PADDING)
    return xs[column], ys[row]


def _text_tile(text: str, font, fill) -> Image.Image:
    """Render text on a transparent tile sized to its bounding box."""
    probe = ImageDraw.Draw(Image.new('RGBA', (1, 1)))
    left, top, right, bottom = probe.textbbox((0, 0), text, font=font)
    tile = Image.new('RGBA', (max(1, right - left), max(1, bottom - top)), (0, 0, 0, 0))
    ImageDraw.Draw(tile).text((-left, -top), text, font=font, fill=fill)
    return tile


def _with_opacity(mark: Image.Image, opacity: float) -> Image.Image:
    mark = mark.convert('RGBA')
    alpha = mark.split()[3].point(lambda a: int(a * max(0.0, min(1.0, opacity))))
    mark.putalpha(alpha)
    return mark


def _composite(image: Image.Image, overlay: Image.Image) -> Image.Image:
    base = image.convert('RGBA')
    result = Image.alpha_composite(base, overlay)
    if image.mode != 'RGBA':
        return result.convert('RGB')
    return result


def _place(image: Image.Image, tile: Image.Image, positions: Iterable[int]) -> Image.Image:
    overlay = Image.new('RGBA', image.size, (0, 0, 0, 0))
    for position in positions:
        origin = grid_origin(position, image.size, tile.size)
        if origin is not None:
            overlay.alpha_composite(tile, dest=_clip_origin(origin))
    return _composite(image, overlay)


def _clip_origin(origin: Tuple[int, int]) -> Tuple[int, int]:
    # alpha_composite rejects negative destinations
    return max(0, origin[0]), max(0, origin[1])


def _normalize_single(position: int) -> List[int]:
    return [position if position in range(1, 10) else DEFAULT_POSITION]


def add_text_watermark(
    image: Image.Image,
    text: str,
    font_size: int = 24,
    color: str = '#FFFFFF',
    opacity: float = 0.7,
    position: int = DEFAULT_POSITION,
) -> Image.Image:
    """Draw ``text`` once at a grid position (unknown positions use 9)."""
    return add_text_watermark_multi(
        image, text, font_size, color, opacity, _normalize_single(position)
    )


def add_text_watermark_multi(
    image: Image.Image,
    text: str,
    font_size: int = 24,
    color: str = '#FFFFFF',
    opacity: float = 0.7,
    positions: Iterable[int] = (1, 9),
) -> Image.Image:
    """
    Draw ``text`` at several grid positions.

    Args:
        image: PIL Image object
        text: Watermark text
        font_size: Font size in pixels
        color: Text colour (name or hex)
        opacity: 0.0-1.0
        positions: Grid positions; unknown ones are skipped

    Returns:
        Watermarked PIL Image
    """
    if not text:
        raise OperationError("Watermark text is empty")
    tile = _text_tile(text, _load_font(font_size), _rgba(color, opacity))
    return _place(image, tile, positions)


def add_image_watermark(
    image: Image.Image,
    mark: Image.Image,
    scale: float = 0.2,
    opacity: float = 0.7,
    position: int = DEFAULT_POSITION,
) -> Image.Image:
    """Paste ``mark`` once at a grid position (unknown positions use 9)."""
    return add_image_watermark_multi(image, mark, scale, opacity, _normalize_single(position))


def add_image_watermark_multi(
    image: Image.Image,
    mark: Image.Image,
    scale: float = 0.2,
    opacity: float = 0.7,
    positions: Iterable[int] = (1, 9),
) -> Image.Image:
    """
    Paste a scaled, translucent copy of ``mark`` at several grid positions.

    Args:
        image: PIL Image object
        mark: Watermark image
        scale: Scale factor applied to the watermark's own size
        opacity: 0.0-1.0
        positions: Grid positions; unknown ones are skipped

    Returns:
        Watermarked PIL Image
    """
    tile = _scaled_mark(mark, scale, opacity)
    return _place(image, tile, positions)


def _scaled_mark(mark: Image.Image, scale: float, opacity: float) -> Image.Image:
    if scale <= 0:
        raise OperationError(f"Watermark scale must be positive, got {scale}")
    size = (max(1, int(mark.width * scale)), max(1, int(mark.height * scale)))
    return _with_opacity(mark.resize(size, Image.Resampling.LANCZOS), opacity)


def _tile(image: Image.Image, tile: Image.Image, spacing: int, rotation: float) -> Image.Image:
    """Repeat a rotated tile over a grid covering the image diagonal."""
    if spacing <= 0:
        raise OperationError(f"Spacing must be positive, got {spacing}")

    # PIL rotates counter-clockwise, canvas rotation is clockwise
    rotated = tile.rotate(-rotation, expand=True, resample=Image.Resampling.BICUBIC)
    half_w, half_h = rotated.width // 2, rotated.height // 2

    diagonal = math.sqrt(image.width ** 2 + image.height ** 2)
    count = math.ceil(diagonal / spacing) + 2

    overlay = Image.new('RGBA', image.size, (0, 0, 0, 0))
    for row in range(-1, count):
        for col in range(-1, count):
            # Tile centred on (col * spacing, row * spacing)
            overlay.paste(rotated, (col * spacing - half_w, row * spacing - half_h), rotated)
    return _composite(image, overlay)


def add_tiled_text_watermark(
    image: Image.Image,
    text: str,
    font_size: int = 24,
    color: str = '#FFFFFF',
    opacity: float = 0.3,
    spacing: int = 150,
    rotation: float = -30,
) -> Image.Image:
    """Repeat rotated ``text`` across the whole image."""
    if not text:
        raise OperationError("Watermark text is empty")
    tile = _text_tile(text, _load_font(font_size), _rgba(color, opacity))
    return _tile(image, tile, spacing, rotation)


def add_tiled_image_watermark(
    image: Image.Image,
    mark: Image.Image,
    scale: float = 0.2,
    opacity: float = 0.3,
    spacing: int = 150,
    rotation: float = -30,
) -> Image.Image:
    """Repeat a rotated, scaled ``mark`` across the whole image."""
    return _tile(image, _scaled_mark(mark, scale, opacity), spacing, rotation)
