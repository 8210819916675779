"""Multi-image splicing (horizontal strip, vertical strip or grid)"""

import math
from typing import List, Sequence, Tuple

from PIL import Image, ImageChops, ImageDraw

from .errors import OperationError

SPLICE_MODES = ('horizontal', 'vertical', 'grid')

# Cell width in grid mode; height follows the first image's aspect ratio
GRID_CELL_WIDTH = 300

Box = Tuple[int, int, int, int]  # (x, y, width, height)


def compute_layout(
    sizes: Sequence[Tuple[int, int]],
    mode: str = 'grid',
    spacing: int = 10,
    grid_cols: int = 3,
) -> Tuple[Tuple[int, int], List[Box]]:
    """
    Compute canvas size and per-image boxes.

    Horizontal scales every image to the tallest height, vertical to the
    widest width, grid uses fixed-width cells.

    Args:
        sizes: (width, height) of each image, in order
        mode: 'horizontal', 'vertical' or 'grid'
        spacing: Gap between images in pixels
        grid_cols: Columns in grid mode

    Returns:
        ((canvas_width, canvas_height), [(x, y, w, h), ...])
    """
    if not sizes:
        raise OperationError("Nothing to splice")
    if mode not in SPLICE_MODES:
        raise OperationError(f"Unknown splice mode: {mode}. Use one of {', '.join(SPLICE_MODES)}")
    if spacing < 0:
        raise OperationError(f"Spacing must be >= 0, got {spacing}")
    if any(w <= 0 or h <= 0 for w, h in sizes):
        raise OperationError("Images must have non-zero dimensions")

    count = len(sizes)
    boxes: List[Box] = []

    if mode == 'horizontal':
        item_h = max(h for _, h in sizes)
        x = 0
        for w, h in sizes:
            scaled_w = int(round(item_h * w / h))
            boxes.append((x, 0, scaled_w, item_h))
            x += scaled_w + spacing
        return (x - spacing, item_h), boxes

    if mode == 'vertical':
        item_w = max(w for w, _ in sizes)
        y = 0
        for w, h in sizes:
            scaled_h = int(round(item_w * h / w))
            boxes.append((0, y, item_w, scaled_h))
            y += scaled_h + spacing
        return (item_w, y - spacing), boxes

    if grid_cols < 1:
        raise OperationError(f"grid_cols must be >= 1, got {grid_cols}")

    first_w, first_h = sizes[0]
    item_w = GRID_CELL_WIDTH
    item_h = int(round(GRID_CELL_WIDTH * first_h / first_w))
    cols = min(grid_cols, count)
    rows = math.ceil(count / grid_cols)

    for index in range(count):
        col = index % grid_cols
        row = index // grid_cols
        boxes.append((col * (item_w + spacing), row * (item_h + spacing), item_w, item_h))

    canvas = (item_w * cols + spacing * (cols - 1), item_h * rows + spacing * (rows - 1))
    return canvas, boxes


def _rounded_mask(size: Tuple[int, int], radius: int) -> Image.Image:
    width, height = size
    radius = min(radius, width // 2, height // 2)
    mask = Image.new('L', size, 0)
    ImageDraw.Draw(mask).rounded_rectangle((0, 0, width - 1, height - 1), radius=radius, fill=255)
    return mask


def splice_images(
    images: Sequence[Image.Image],
    mode: str = 'grid',
    spacing: int = 10,
    corner_radius: int = 0,
    background: str = '#ffffff',
    grid_cols: int = 3,
) -> Image.Image:
    """
    Splice several images into one.

    Args:
        images: PIL Images, in order
        mode: 'horizontal', 'vertical' or 'grid'
        spacing: Gap between images in pixels
        corner_radius: Rounded corner radius for each image (0 = square)
        background: Background colour (name or hex)
        grid_cols: Columns in grid mode

    Returns:
        Spliced RGB image
    """
    canvas_size, boxes = compute_layout(
        [img.size for img in images], mode, spacing, grid_cols
    )

    try:
        canvas = Image.new('RGB', canvas_size, background)
    except ValueError as e:
        raise OperationError(f"Invalid background colour: {background}") from e

    for img, (x, y, w, h) in zip(images, boxes):
        tile = img.convert('RGBA').resize((w, h), Image.Resampling.LANCZOS)
        mask = tile.split()[3]
        if corner_radius > 0:
            mask = ImageChops.darker(mask, _rounded_mask((w, h), corner_radius))
        canvas.paste(tile.convert('RGB'), (x, y), mask)

    return canvas
