"""Exceptions raised by the image toolkit."""


class ImageToolkitError(Exception):
    """Base class for all toolkit errors."""


class EncoderError(ImageToolkitError):
    """The compress-at-quality primitive failed."""


class SizeProbeError(ImageToolkitError):
    """The size probe could not read the image."""


class ConfigError(ImageToolkitError):
    """Invalid or unreadable configuration."""


class AnalysisError(ImageToolkitError):
    """Content classification failed. Handled inside the advisor."""


class OperationError(ImageToolkitError):
    """Invalid arguments for a single-pass image operation."""
