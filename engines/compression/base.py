"""
File Compressor Protocol for Compactor

Defines the contract that all format-specific compression strategies must implement.
"""

from typing import Protocol, Union

from processors.results import CompressionResult, EstimatedResult


class FileCompressor(Protocol):
    """
    Protocol for file compression strategies.

    Strategies are responsible for:
    - Decoding the input buffer with their format library
    - Choosing encoder settings from CompressionSettings
    - Returning a result that owns a fresh output buffer
    """

    def compress(self, buffer: bytes, mime_type: str) -> Union[CompressionResult, EstimatedResult]:
        """
        Compress a buffer.

        Args:
            buffer: Raw input bytes, fully read into memory
            mime_type: Declared MIME type (already mapped to this strategy)

        Returns:
            CompressionResult with measured sizes, or EstimatedResult when
            the strategy did not transform the bytes

        Raises:
            CompressionError subclass: If the format library fails
        """
        ...

    @property
    def name(self) -> str:
        """
        Strategy identifier for logging and debugging.

        Returns:
            Unique name of this strategy (e.g., 'image', 'pdf', 'document')
        """
        ...
