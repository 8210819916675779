"""Smart image compression: quality search, strategies and primitives."""

from .result import CompressionResult, ContentHint, EncoderOptions, Strategy
from .config import CompressorConfig
from .engine import SmartCompressor, smart_compress
from .encoders import (
    Encoder,
    SizeProbe,
    JpegFileEncoder,
    FileSizeProbe,
    get_encoder,
    get_available_formats,
)
from .strategy import SearchBounds, initial_bounds, select_policy
from .progress import ProgressObserver, LoggingProgress, RecordingProgress
from .content_advisor import AdvisorConfig, ContentAdvisor

__all__ = [
    'CompressionResult',
    'ContentHint',
    'EncoderOptions',
    'Strategy',
    'CompressorConfig',
    'SmartCompressor',
    'smart_compress',
    'Encoder',
    'SizeProbe',
    'JpegFileEncoder',
    'FileSizeProbe',
    'get_encoder',
    'get_available_formats',
    'SearchBounds',
    'initial_bounds',
    'select_policy',
    'ProgressObserver',
    'LoggingProgress',
    'RecordingProgress',
    'AdvisorConfig',
    'ContentAdvisor',
]
