"""Progress observers notified after each quality is chosen."""

from typing import Callable, List, Optional, Protocol, Tuple, Union

from ..log import get_logger

logger = get_logger("progress")

ProgressCallback = Callable[[int, int], None]


class ProgressObserver(Protocol):
    """Receives ``(quality, attempt)`` before each encode. Must not block."""

    def on_attempt(self, quality: int, attempt: int) -> None:
        ...


class NullProgress:
    """Observer that ignores every attempt."""

    def on_attempt(self, quality: int, attempt: int) -> None:
        pass


class LoggingProgress:
    """Observer that writes attempts to the package log."""

    def on_attempt(self, quality: int, attempt: int) -> None:
        logger.info("Attempt %d: trying quality %d", attempt, quality)


class RecordingProgress:
    """Observer that keeps every attempt in order."""

    def __init__(self):
        self.attempts: List[Tuple[int, int]] = []

    def on_attempt(self, quality: int, attempt: int) -> None:
        self.attempts.append((quality, attempt))


class _CallbackProgress:
    def __init__(self, callback: ProgressCallback):
        self._callback = callback

    def on_attempt(self, quality: int, attempt: int) -> None:
        self._callback(quality, attempt)


def as_observer(
    progress: Optional[Union[ProgressObserver, ProgressCallback]],
) -> ProgressObserver:
    """Wrap a plain callback (or None) as a ProgressObserver."""
    if progress is None:
        return NullProgress()
    if hasattr(progress, 'on_attempt'):
        return progress
    if callable(progress):
        return _CallbackProgress(progress)
    raise TypeError(f"Progress must be callable or have on_attempt(), got {type(progress).__name__}")
