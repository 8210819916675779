"""Compression request/result dataclasses."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Strategy(str, Enum):
    """Search strategy recommended for an image."""
    QUALITY_PRIORITY = "quality-priority"
    BALANCED = "balanced"
    SIZE_PRIORITY = "size-priority"

    @classmethod
    def parse(cls, value: Any) -> "Strategy":
        """Map a strategy name to a member, defaulting to BALANCED."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.BALANCED


def clamp_quality(quality: int) -> int:
    """Clamp a quality value into [0, 100]."""
    return max(0, min(100, int(quality)))


@dataclass
class ContentHint:
    """Advisory classification of an image, used to seed the search.

    Attributes:
        strategy: Search strategy (quality-priority, balanced, size-priority)
        suggested_quality: Suggested JPEG quality, clamped to 0-100
        image_type: Classifier label (portrait, text, photo...)
        reason: Human-readable explanation from the classifier
        tips: Extra advice from the classifier
    """
    strategy: Strategy = Strategy.BALANCED
    suggested_quality: int = 80
    image_type: Optional[str] = None
    reason: str = ""
    tips: str = ""

    def __post_init__(self):
        self.strategy = Strategy.parse(self.strategy)
        self.suggested_quality = clamp_quality(self.suggested_quality)

    @classmethod
    def from_analysis(cls, payload: Optional[Dict[str, Any]]) -> Optional["ContentHint"]:
        """Build a hint from a classifier response.

        Accepts the ``{success, recommendation: {...}}`` envelope with either
        snake_case or camelCase keys.

        Returns:
            ContentHint, or None when the analysis failed or is unusable
        """
        if not isinstance(payload, dict) or not payload.get("success"):
            return None

        recommendation = payload.get("recommendation")
        if not isinstance(recommendation, dict):
            return None

        raw_quality = recommendation.get(
            "suggested_quality", recommendation.get("suggestedQuality")
        )
        if isinstance(raw_quality, bool):
            return None
        try:
            quality = int(raw_quality)
        except (TypeError, ValueError, OverflowError):
            return None

        return cls(
            strategy=Strategy.parse(recommendation.get("strategy")),
            suggested_quality=quality,
            image_type=payload.get("image_type", payload.get("imageType")),
            reason=recommendation.get("reason") or "",
            tips=recommendation.get("tips") or "",
        )


@dataclass
class CompressionResult:
    """Outcome of a smart or fixed-quality compression.

    Attributes:
        image: Handle of the selected image (a Path for file primitives)
        quality: Quality used to produce it (100 when short-circuited)
        size_bytes: Measured size of the selected image
        original_size_bytes: Size of the source image
        strategy: Strategy that drove the search
        iterations: Number of search attempts made
        used_fallback: True if no attempt was accepted
        short_circuited: True if the source already met the target
        message: Human-readable status message
    """
    image: Any
    quality: int
    size_bytes: int
    original_size_bytes: int = 0
    strategy: Strategy = Strategy.BALANCED
    iterations: int = 0
    used_fallback: bool = False
    short_circuited: bool = False
    message: str = ""

    @property
    def size_kb(self) -> float:
        """Get result size in kilobytes."""
        return self.size_bytes / 1024

    @property
    def compression_ratio(self) -> float:
        """Fraction of the original size saved (0.0 when unknown)."""
        if self.original_size_bytes <= 0:
            return 0.0
        return 1 - self.size_bytes / self.original_size_bytes

    def to_dict(self) -> Dict[str, Any]:
        """Return the ``{path, quality, size}`` shape used by UI callers."""
        return {
            "path": str(self.image),
            "quality": self.quality,
            "size": self.size_bytes,
        }


@dataclass
class EncoderOptions:
    """Options for JPEG encoding.

    Attributes:
        quality: Compression quality (0-100)
        chroma_subsampling: JPEG chroma mode (0=4:4:4, 1=4:2:2, 2=4:2:0)
        progressive: Enable progressive encoding
        optimize: Let Pillow optimise the Huffman tables
    """
    quality: int = 80
    chroma_subsampling: int = 2
    progressive: bool = False
    optimize: bool = True

    def __post_init__(self):
        """Validate options."""
        if not 0 <= self.quality <= 100:
            raise ValueError(f"quality must be 0-100, got {self.quality}")
        if self.chroma_subsampling not in (0, 1, 2):
            raise ValueError("chroma_subsampling must be 0, 1, or 2")
