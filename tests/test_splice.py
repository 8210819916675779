import pytest
from PIL import Image

from imagetoolkit.errors import OperationError
from imagetoolkit.splice import compute_layout, splice_images


def test_horizontal_layout():
    canvas, boxes = compute_layout([(100, 50), (50, 50)], 'horizontal', spacing=10)

    assert canvas == (160, 50)
    assert boxes == [(0, 0, 100, 50), (110, 0, 50, 50)]


def test_horizontal_scales_to_tallest():
    canvas, boxes = compute_layout([(100, 50), (100, 100)], 'horizontal', spacing=0)

    assert boxes[0] == (0, 0, 200, 100)
    assert canvas == (300, 100)


def test_vertical_layout():
    canvas, boxes = compute_layout([(100, 50), (50, 50)], 'vertical', spacing=10)

    assert canvas == (100, 160)
    assert boxes[1] == (0, 60, 100, 100)


def test_grid_layout():
    canvas, boxes = compute_layout([(100, 50)] * 4, 'grid', spacing=10, grid_cols=3)

    assert canvas == (920, 310)
    assert boxes[3] == (0, 160, 300, 150)


def test_grid_with_fewer_images_than_columns():
    canvas, _ = compute_layout([(100, 100)] * 2, 'grid', spacing=10, grid_cols=3)
    assert canvas == (610, 300)


@pytest.mark.parametrize("sizes, mode, spacing, cols", [
    ([], 'grid', 10, 3),
    ([(10, 10)], 'diagonal', 10, 3),
    ([(10, 10)], 'grid', -1, 3),
    ([(10, 10)], 'grid', 10, 0),
    ([(0, 10)], 'horizontal', 10, 3),
])
def test_invalid_layouts(sizes, mode, spacing, cols):
    with pytest.raises(OperationError):
        compute_layout(sizes, mode, spacing, cols)


def test_splice_with_rounded_corners():
    images = [Image.new('RGB', (100, 50), (255, 0, 0)), Image.new('RGB', (50, 50), (0, 0, 255))]

    out = splice_images(images, 'horizontal', spacing=10, corner_radius=20, background='#ffffff')

    assert out.size == (160, 50)
    assert out.getpixel((0, 0)) == (255, 255, 255)
    assert out.getpixel((50, 25)) == (255, 0, 0)
    assert out.getpixel((105, 25)) == (255, 255, 255)
    assert out.getpixel((135, 25)) == (0, 0, 255)


def test_splice_bad_background():
    with pytest.raises(OperationError):
        splice_images([Image.new('RGB', (10, 10))], 'grid', background='sparkly')
