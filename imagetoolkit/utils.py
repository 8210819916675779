"""Utility functions for image files"""

from pathlib import Path
from PIL import Image

# Supported input formats
SUPPORTED_FORMATS = {'.jpg', '.jpeg', '.png', '.webp', '.gif', '.bmp'}


def validate_image_file(filepath: Path) -> bool:
    """
    Validate if file is a readable, supported image.

    Args:
        filepath: Path to image file

    Returns:
        True if valid image file, False otherwise
    """
    filepath = Path(filepath)
    if not filepath.is_file():
        return False

    if filepath.suffix.lower() not in SUPPORTED_FORMATS:
        return False

    try:
        with Image.open(filepath) as img:
            img.verify()
        return True
    except (OSError, SyntaxError):
        return False


def format_file_size(size: int) -> str:
    """
    Format a byte count for display.

    Args:
        size: Size in bytes

    Returns:
        "N B", "x.xx KB" or "x.xx MB"
    """
    if size < 1024:
        return f"{size} B"
    elif size < 1024 * 1024:
        return f"{size / 1024:.2f} KB"
    return f"{size / (1024 * 1024):.2f} MB"
