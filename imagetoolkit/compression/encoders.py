"""Pillow-backed encoders and the file primitives driven by the compressor.

The smart compressor only talks to two ports: an ``Encoder`` that writes a
copy of an image at a given quality, and a ``SizeProbe`` that measures a
handle. ``JpegFileEncoder`` and ``FileSizeProbe`` implement them on files.
"""

import os
import tempfile
import uuid
from abc import ABC, abstractmethod
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from PIL import Image, UnidentifiedImageError

from ..errors import EncoderError, SizeProbeError
from ..log import get_logger
from .result import EncoderOptions

logger = get_logger("encoders")

PathLike = Union[str, os.PathLike]


class Encoder(Protocol):
    """Compress-at-quality primitive."""

    def compress(self, source: Any, quality: int) -> Any:
        ...


class SizeProbe(Protocol):
    """Size-of primitive, in bytes."""

    def size_of(self, handle: Any) -> int:
        ...


class BaseEncoder(ABC):
    """Abstract base class for format-specific encoders."""

    format_name: str
    supports_quality: bool = True
    supports_transparency: bool = False
    file_extension: str

    @abstractmethod
    def encode(self, image: Image.Image, options: EncoderOptions) -> bytes:
        """Encode image to bytes.

        Args:
            image: PIL Image to encode
            options: Encoding options

        Returns:
            Encoded image bytes
        """

    def prepare_image(self, image: Image.Image) -> Image.Image:
        """Prepare image for encoding (mode conversion, etc)."""
        return image


class JpegEncoder(BaseEncoder):
    """Baseline or progressive JPEG encoder."""

    format_name = "JPEG"
    file_extension = ".jpg"

    def encode(self, image: Image.Image, options: EncoderOptions) -> bytes:
        image = self.prepare_image(image)

        buffer = BytesIO()
        image.save(
            buffer,
            format='JPEG',
            quality=options.quality,
            optimize=options.optimize,
            progressive=options.progressive,
            subsampling=options.chroma_subsampling,
        )
        return buffer.getvalue()

    def prepare_image(self, image: Image.Image) -> Image.Image:
        """Flatten transparency onto white and convert to RGB."""
        if image.mode in ('RGBA', 'LA', 'P'):
            rgba = image.convert('RGBA')
            background = Image.new('RGB', image.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[3])
            return background
        elif image.mode != 'RGB':
            return image.convert('RGB')
        return image


class WebpEncoder(BaseEncoder):
    """Lossy WebP encoder."""

    format_name = "WEBP"
    supports_transparency = True
    file_extension = ".webp"

    def encode(self, image: Image.Image, options: EncoderOptions) -> bytes:
        image = self.prepare_image(image)

        buffer = BytesIO()
        image.save(buffer, format='WEBP', quality=options.quality)
        return buffer.getvalue()

    def prepare_image(self, image: Image.Image) -> Image.Image:
        if image.mode == 'P':
            if 'transparency' in image.info:
                return image.convert('RGBA')
            return image.convert('RGB')
        elif image.mode not in ('RGB', 'RGBA'):
            return image.convert('RGB')
        return image


class PngEncoder(BaseEncoder):
    """PNG encoder (lossless, no quality setting)."""

    format_name = "PNG"
    supports_quality = False
    supports_transparency = True
    file_extension = ".png"

    def encode(self, image: Image.Image, options: EncoderOptions) -> bytes:
        buffer = BytesIO()
        image.save(buffer, format='PNG', optimize=True)
        return buffer.getvalue()


# Encoder registry
_ENCODERS: Dict[str, BaseEncoder] = {
    'JPEG': JpegEncoder(),
    'WEBP': WebpEncoder(),
    'PNG': PngEncoder(),
}


def get_encoder(format_name: str) -> Optional[BaseEncoder]:
    """Get encoder for format (JPEG, WEBP, PNG), or None if unsupported."""
    name = format_name.upper()
    if name == 'JPG':
        name = 'JPEG'
    return _ENCODERS.get(name)


def get_available_formats() -> List[str]:
    """Get list of available format names."""
    return list(_ENCODERS.keys())


class JpegFileEncoder:
    """Compress-at-quality primitive working on image files.

    Every call writes a new file; the caller owns cleanup of the ones it
    does not keep.
    """

    def __init__(
        self,
        output_dir: Optional[PathLike] = None,
        options: Optional[EncoderOptions] = None,
    ):
        """Initialize the encoder.

        Args:
            output_dir: Directory for compressed files (temp dir if None)
            options: Base encoding options (quality is overridden per call)
        """
        if output_dir is None:
            output_dir = tempfile.mkdtemp(prefix="imagetoolkit_")
        self.output_dir = Path(output_dir)
        self.options = options or EncoderOptions()
        self._encoder = JpegEncoder()

    def compress(self, source: PathLike, quality: int) -> Path:
        """Write ``source`` as a JPEG at ``quality`` and return the new path.

        Raises:
            EncoderError: If the source is unreadable or quality is invalid
        """
        if not 0 <= quality <= 100:
            raise EncoderError(f"Quality out of range: {quality}")

        options = EncoderOptions(
            quality=quality,
            chroma_subsampling=self.options.chroma_subsampling,
            progressive=self.options.progressive,
            optimize=self.options.optimize,
        )

        try:
            with Image.open(source) as image:
                encoded = self._encoder.encode(image, options)
            self.output_dir.mkdir(parents=True, exist_ok=True)
            target = self.output_dir / f"{Path(source).stem}_q{quality}_{uuid.uuid4().hex[:8]}.jpg"
            target.write_bytes(encoded)
        except (OSError, UnidentifiedImageError, ValueError) as e:
            raise EncoderError(f"Could not compress {source} at quality {quality}: {e}") from e

        logger.debug("Encoded %s at quality %d -> %d bytes", source, quality, len(encoded))
        return target


class FileSizeProbe:
    """Size-of primitive for files on disk."""

    def size_of(self, handle: PathLike) -> int:
        """Return the size of ``handle`` in bytes.

        Raises:
            SizeProbeError: If the path cannot be stat'ed
        """
        try:
            return Path(handle).stat().st_size
        except OSError as e:
            raise SizeProbeError(f"Could not read size of {handle}: {e}") from e
