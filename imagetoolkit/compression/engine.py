"""Smart compressor: bounded quality search toward a size target."""

import time
from dataclasses import dataclass
from typing import Any, Optional, Union

from ..log import get_logger
from .config import CompressorConfig
from .encoders import Encoder, FileSizeProbe, JpegFileEncoder, SizeProbe
from .progress import ProgressCallback, ProgressObserver, as_observer
from .result import CompressionResult, ContentHint, clamp_quality
from .strategy import initial_bounds, select_policy

logger = get_logger("engine")


@dataclass
class _Candidate:
    image: Any
    quality: int
    size_bytes: int


class SmartCompressor:
    """Searches for a JPEG quality that meets a size target or heuristic.

    Features:
    - Short-circuit when the source already fits the target
    - Hint-seeded search bounds (quality/balanced/size priority)
    - Bounded number of encodes, attempts strictly sequential
    - Deterministic fallback so a result is always returned

    Primitive failures (EncoderError, SizeProbeError) propagate unchanged.
    """

    def __init__(
        self,
        encoder: Encoder,
        size_probe: SizeProbe,
        config: Optional[CompressorConfig] = None,
    ):
        """Initialize compressor.

        Args:
            encoder: Compress-at-quality primitive
            size_probe: Size-of primitive
            config: Defaults and iteration budgets
        """
        self.encoder = encoder
        self.size_probe = size_probe
        self.config = config or CompressorConfig()

    def compress(
        self,
        source: Any,
        target_size_kb: float = 0,
        on_progress: Optional[Union[ProgressObserver, ProgressCallback]] = None,
        hint: Optional[ContentHint] = None,
    ) -> CompressionResult:
        """Compress ``source`` to a target size or by strategy heuristic.

        Args:
            source: Image handle understood by the encoder and size probe
            target_size_kb: Target size in KB (0 = no target, use strategy)
            on_progress: Callback ``(quality, attempt)`` or observer
            hint: Optional content hint seeding the strategy and bounds

        Returns:
            CompressionResult (never None)
        """
        start_time = time.time()
        observer = as_observer(on_progress)
        target_bytes = target_size_kb * 1024 if target_size_kb and target_size_kb > 0 else 0

        original_size = self.size_probe.size_of(source)

        if target_bytes and original_size <= target_bytes:
            logger.info(
                "Source already %.1f KB <= target %.1f KB, skipping compression",
                original_size / 1024, target_size_kb,
            )
            return CompressionResult(
                image=source,
                quality=100,
                size_bytes=original_size,
                original_size_bytes=original_size,
                strategy=hint.strategy if hint else self.config.default_strategy,
                short_circuited=True,
                message=f"Already under target ({original_size / 1024:.1f} KB)",
            )

        strategy = hint.strategy if hint else self.config.default_strategy
        bounds = initial_bounds(hint, self.config)
        policy = select_policy(target_bytes, strategy, original_size)
        max_iterations = self.config.iteration_budget(bool(target_bytes))

        logger.debug(
            "Searching %s with strategy %s, bounds [%d, %d], budget %d",
            source, strategy.value, bounds.min_quality, bounds.max_quality, max_iterations,
        )

        best: Optional[_Candidate] = None
        iterations = 0

        while iterations < max_iterations and not bounds.exhausted:
            iterations += 1
            quality = bounds.midpoint

            observer.on_attempt(quality, iterations)

            compressed = self.encoder.compress(source, quality)
            size = self.size_probe.size_of(compressed)

            accepted = policy.evaluate(quality, size, bounds)
            logger.debug(
                "Attempt %d: quality %d -> %.1f KB (%s), bounds now [%d, %d]",
                iterations, quality, size / 1024,
                "accepted" if accepted else "rejected",
                bounds.min_quality, bounds.max_quality,
            )
            if accepted:
                best = _Candidate(compressed, quality, size)

        used_fallback = best is None
        if used_fallback:
            fallback_quality = hint.suggested_quality if hint else self.config.default_quality
            fallback_quality = clamp_quality(fallback_quality)
            logger.info("No candidate accepted, falling back to quality %d", fallback_quality)

            compressed = self.encoder.compress(source, fallback_quality)
            best = _Candidate(compressed, fallback_quality, self.size_probe.size_of(compressed))

        elapsed_ms = int((time.time() - start_time) * 1000)
        message = self._build_message(best, original_size, target_size_kb, used_fallback)
        logger.info("%s after %d attempts in %d ms", message, iterations, elapsed_ms)

        return CompressionResult(
            image=best.image,
            quality=best.quality,
            size_bytes=best.size_bytes,
            original_size_bytes=original_size,
            strategy=strategy,
            iterations=iterations,
            used_fallback=used_fallback,
            message=message,
        )

    def compress_at_quality(self, source: Any, quality: int) -> CompressionResult:
        """Compress once at a fixed quality, without any search.

        Args:
            source: Image handle
            quality: Quality 0-100

        Returns:
            CompressionResult for the single encode
        """
        original_size = self.size_probe.size_of(source)
        compressed = self.encoder.compress(source, quality)
        size = self.size_probe.size_of(compressed)

        return CompressionResult(
            image=compressed,
            quality=quality,
            size_bytes=size,
            original_size_bytes=original_size,
            iterations=1,
            message=f"Encoded at quality {quality}: {size / 1024:.1f} KB",
        )

    def _build_message(
        self,
        best: _Candidate,
        original_size: int,
        target_size_kb: float,
        used_fallback: bool,
    ) -> str:
        """Build human-readable result message."""
        size_kb = best.size_bytes / 1024

        if used_fallback:
            return f"Fallback compression to {size_kb:.1f} KB at quality {best.quality}"
        if target_size_kb and target_size_kb > 0:
            return (
                f"Compressed to {size_kb:.1f} KB (target {target_size_kb:.1f} KB) "
                f"at quality {best.quality}"
            )
        saved = (1 - best.size_bytes / original_size) * 100 if original_size else 0.0
        return f"Compressed to {size_kb:.1f} KB ({saved:.1f}% saved) at quality {best.quality}"


def smart_compress(
    path,
    target_size_kb: float = 0,
    on_progress: Optional[Union[ProgressObserver, ProgressCallback]] = None,
    hint: Optional[ContentHint] = None,
    output_dir=None,
    config: Optional[CompressorConfig] = None,
) -> CompressionResult:
    """Smart-compress an image file with the Pillow JPEG primitives.

    Args:
        path: Source image file
        target_size_kb: Target size in KB (0 = heuristic mode)
        on_progress: Callback ``(quality, attempt)`` or observer
        hint: Optional content hint
        output_dir: Where compressed attempts are written (temp dir if None)
        config: Compressor configuration

    Returns:
        CompressionResult whose ``image`` is the selected file path
    """
    compressor = SmartCompressor(JpegFileEncoder(output_dir), FileSizeProbe(), config)
    return compressor.compress(path, target_size_kb, on_progress, hint)
