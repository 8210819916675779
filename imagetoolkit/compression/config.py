"""Tunable defaults for the smart compressor."""

from dataclasses import asdict, dataclass
from typing import Any, Dict

from ..errors import ConfigError
from .result import Strategy


@dataclass
class CompressorConfig:
    """Configuration for the smart compressor.

    Attributes:
        default_quality: Fallback quality when no hint is available
        default_strategy: Strategy used when no hint is available
        default_min_quality: Lower search bound without a hint
        default_max_quality: Upper search bound without a hint
        target_iterations: Attempt budget with an explicit target size
        heuristic_iterations: Attempt budget without a target size
    """
    default_quality: int = 80
    default_strategy: Strategy = Strategy.BALANCED
    default_min_quality: int = 10
    default_max_quality: int = 100
    target_iterations: int = 10
    heuristic_iterations: int = 7

    def __post_init__(self):
        self.default_strategy = Strategy.parse(self.default_strategy)

        for name in ('default_quality', 'default_min_quality', 'default_max_quality'):
            value = getattr(self, name)
            if not isinstance(value, int) or not 0 <= value <= 100:
                raise ConfigError(f"{name} must be an integer 0-100, got {value!r}")

        if self.default_min_quality > self.default_max_quality:
            raise ConfigError(
                f"default_min_quality ({self.default_min_quality}) exceeds "
                f"default_max_quality ({self.default_max_quality})"
            )

        for name in ('target_iterations', 'heuristic_iterations'):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 1:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")

    def iteration_budget(self, has_target: bool) -> int:
        """Maximum number of attempts for a search."""
        return self.target_iterations if has_target else self.heuristic_iterations

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['default_strategy'] = self.default_strategy.value
        return data
