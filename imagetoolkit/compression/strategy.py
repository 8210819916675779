"""Search bounds and acceptance policies for the smart compressor.

Each policy looks at one attempt (quality, resulting size), says whether the
attempt becomes the new best candidate, and narrows the quality interval.

Target mode: converge on the highest quality whose output fits the target.
Heuristic modes: no target, so the attempt size is compared against bands
relative to the original size:

    quality-priority  accept above 80% of the original
    size-priority     always accept; push quality back up below 30%
    balanced          accept below 50%, reject above 70%, in-band 50-70%
                      is accepted but the search keeps probing downwards
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from .config import CompressorConfig
from .result import ContentHint, Strategy


@dataclass
class SearchBounds:
    """Inclusive quality interval of the current search."""
    min_quality: int
    max_quality: int

    @property
    def exhausted(self) -> bool:
        return self.max_quality < self.min_quality

    @property
    def midpoint(self) -> int:
        return (self.min_quality + self.max_quality) // 2

    def raise_floor(self, quality: int) -> None:
        """Search above ``quality`` next."""
        self.min_quality = quality + 1

    def lower_ceiling(self, quality: int) -> None:
        """Search below ``quality`` next."""
        self.max_quality = quality - 1


def initial_bounds(
    hint: Optional[ContentHint],
    config: Optional[CompressorConfig] = None,
) -> SearchBounds:
    """Derive the starting interval from the content hint.

    Without a hint the configured default bounds are used. With a hint the
    interval is anchored on its suggested quality S:

        quality-priority  [max(60, S-15), min(100, S+10)]
        size-priority     [10, min(80, S)]
        balanced          [max(50, S-20), min(95, S+15)]

    The result may be crossed (min > max) for extreme values of S.
    """
    if config is None:
        config = CompressorConfig()

    if hint is None:
        return SearchBounds(config.default_min_quality, config.default_max_quality)

    suggested = hint.suggested_quality

    if hint.strategy is Strategy.QUALITY_PRIORITY:
        return SearchBounds(max(60, suggested - 15), min(100, suggested + 10))
    elif hint.strategy is Strategy.SIZE_PRIORITY:
        return SearchBounds(10, min(80, suggested))
    else:
        return SearchBounds(max(50, suggested - 20), min(95, suggested + 15))


class SearchPolicy(ABC):
    """Acceptance/bisection rule applied after each attempt."""

    @abstractmethod
    def evaluate(self, quality: int, size_bytes: int, bounds: SearchBounds) -> bool:
        """Narrow ``bounds`` in place.

        Args:
            quality: Quality of the attempt
            size_bytes: Measured size of the attempt
            bounds: Current search interval

        Returns:
            True if the attempt becomes the new best candidate
        """


class TargetSizePolicy(SearchPolicy):
    """Highest quality whose output is at most ``target_bytes``."""

    def __init__(self, target_bytes: float):
        self.target_bytes = target_bytes

    def evaluate(self, quality: int, size_bytes: int, bounds: SearchBounds) -> bool:
        if size_bytes <= self.target_bytes:
            bounds.raise_floor(quality)
            return True
        bounds.lower_ceiling(quality)
        return False


class HeuristicPolicy(SearchPolicy):
    """Base for policies that compare against the original size."""

    def __init__(self, original_bytes: int):
        self.original_bytes = original_bytes

    def ratio(self, size_bytes: int) -> float:
        if self.original_bytes <= 0:
            return 0.0
        return size_bytes / self.original_bytes


class QualityPriorityPolicy(HeuristicPolicy):
    """Stay close to the original size."""

    KEEP_RATIO = 0.8

    def evaluate(self, quality: int, size_bytes: int, bounds: SearchBounds) -> bool:
        if self.ratio(size_bytes) > self.KEEP_RATIO:
            bounds.raise_floor(quality)
            return True
        bounds.lower_ceiling(quality)
        return False


class SizePriorityPolicy(HeuristicPolicy):
    """Compress hard; every attempt is recorded."""

    ROOM_RATIO = 0.3

    def evaluate(self, quality: int, size_bytes: int, bounds: SearchBounds) -> bool:
        if self.ratio(size_bytes) < self.ROOM_RATIO:
            bounds.raise_floor(quality)
        else:
            bounds.lower_ceiling(quality)
        return True


class BalancedPolicy(HeuristicPolicy):
    """Aim for 50-70% of the original size.

    An in-band attempt replaces any earlier in-band one, so the last
    in-band attempt wins.
    """

    LOW_RATIO = 0.5
    HIGH_RATIO = 0.7

    def evaluate(self, quality: int, size_bytes: int, bounds: SearchBounds) -> bool:
        ratio = self.ratio(size_bytes)
        if ratio < self.LOW_RATIO:
            bounds.raise_floor(quality)
            return True
        elif ratio > self.HIGH_RATIO:
            bounds.lower_ceiling(quality)
            return False
        bounds.lower_ceiling(quality)
        return True


def select_policy(
    target_bytes: float,
    strategy: Strategy,
    original_bytes: int,
) -> SearchPolicy:
    """Pick the acceptance policy for a search.

    Args:
        target_bytes: Explicit target in bytes (0 = heuristic mode)
        strategy: Strategy from the hint or the config default
        original_bytes: Size of the source image

    Returns:
        Configured SearchPolicy
    """
    if target_bytes > 0:
        return TargetSizePolicy(target_bytes)
    if strategy is Strategy.QUALITY_PRIORITY:
        return QualityPriorityPolicy(original_bytes)
    elif strategy is Strategy.SIZE_PRIORITY:
        return SizePriorityPolicy(original_bytes)
    return BalancedPolicy(original_bytes)
