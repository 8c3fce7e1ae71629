"""
Format dispatcher for Compactor.

Maps a declared MIME type to exactly one strategy through FileFormat.
There is no fallback between categories: an image that fails stays failed.
"""

from typing import Dict, Optional

from . import get_compressor
from .base import FileCompressor
from .formats import FileFormat
from .settings import CompressionSettings, DEFAULT_SETTINGS
from processors.results import Result, normalize
from utilities import Print


class Dispatcher:
    """
    Routes buffers to the strategy registered for their format.

    Strategies are built once at construction and hold only read-only
    settings, so one dispatcher can serve concurrent calls.

    Attributes:
        settings: Settings passed to every strategy
        strategies: Strategy instance per FileFormat
    """

    def __init__(self, settings: Optional[CompressionSettings] = None):
        self.settings = settings if settings is not None else DEFAULT_SETTINGS
        self.strategies: Dict[FileFormat, FileCompressor] = {}

        by_name: Dict[str, FileCompressor] = {}
        for file_format in FileFormat:
            if file_format.strategy not in by_name:
                by_name[file_format.strategy] = get_compressor(file_format.strategy, self.settings)
            self.strategies[file_format] = by_name[file_format.strategy]

    def strategy_for(self, mime_type: str) -> FileCompressor:
        """
        Strategy handling a MIME type.

        Raises:
            UnsupportedMimeType: If the type is not explicitly mapped
        """
        return self.strategies[FileFormat.from_mime(mime_type)]

    def compress(self, buffer: bytes, mime_type: str) -> Result:
        """
        Compress a buffer with the strategy for its declared MIME type.

        Args:
            buffer: Raw input bytes
            mime_type: Declared MIME type

        Returns:
            Normalized result; compression_ratio is never negative

        Raises:
            UnsupportedMimeType: If no strategy handles mime_type
            CompressionError subclass: If the strategy fails
        """
        strategy = self.strategy_for(mime_type)
        Print("DEBUG", f"Dispatching {len(buffer):,} bytes of {mime_type} to '{strategy.name}'")
        return normalize(strategy.compress(buffer, mime_type))


def compress(buffer: bytes, mime_type: str, settings: Optional[CompressionSettings] = None) -> Result:
    """One-shot helper: build a dispatcher and compress a single buffer."""
    return Dispatcher(settings).compress(buffer, mime_type)
