"""
Result model and ratio calculator.

Every strategy returns one of two tagged variants:

- CompressionResult: sizes measured on a real output buffer.
- EstimatedResult: the buffer was returned untouched and the ratio is a
  synthetic estimate. Callers must check ``result.estimated`` before
  treating the numbers as measured savings.

Ratios are whole percentages rounded half up, so 12.5% reports as 13.
"""

import math
from dataclasses import dataclass, replace
from typing import ClassVar, Union


def compute_ratio(original_size: int, compressed_size: int) -> int:
    """
    Percentage size reduction, rounded half up.

    Returns 0 for an empty original; may be negative when the output grew.
    """
    if original_size <= 0:
        return 0
    return math.floor(100 * (original_size - compressed_size) / original_size + 0.5)


def total_ratio(true_original_size: int, compressed_size: int) -> int:
    """
    Ratio against the size the user actually uploaded, floored at 0.

    Used when the bytes that reached the pipeline were already shrunk
    client-side, so the strategy's own input size understates the savings.
    """
    return max(0, compute_ratio(true_original_size, compressed_size))


def file_type_for(mime_type: str) -> str:
    """Coarse file category: 'pdf', 'image' or 'document'."""
    if mime_type == "application/pdf":
        return "pdf"
    if mime_type.startswith("image/"):
        return "image"
    return "document"


@dataclass(frozen=True)
class CompressionResult:
    """Measured output of a strategy. compressed_size always equals len(buffer)."""

    buffer: bytes
    original_size: int
    compressed_size: int
    compression_ratio: int
    mime_type: str

    estimated: ClassVar[bool] = False

    def __post_init__(self):
        if self.compressed_size != len(self.buffer):
            raise ValueError(
                f"compressed_size {self.compressed_size} does not match buffer length {len(self.buffer)}"
            )

    @classmethod
    def measure(cls, buffer: bytes, original_size: int, mime_type: str, min_ratio: int = 0) -> "CompressionResult":
        """Build a result from an output buffer, flooring the ratio at min_ratio."""
        compressed_size = len(buffer)
        ratio = max(min_ratio, compute_ratio(original_size, compressed_size))
        return cls(
            buffer=buffer,
            original_size=original_size,
            compressed_size=compressed_size,
            compression_ratio=ratio,
            mime_type=mime_type,
        )


@dataclass(frozen=True)
class EstimatedResult:
    """
    Estimate-only output: ``buffer`` is the unmodified input.

    ``estimated_size`` is derived from the synthetic ratio and is NOT the
    length of any real file; ``compressed_size`` stays the true buffer length.
    """

    buffer: bytes
    original_size: int
    estimated_size: int
    compression_ratio: int
    mime_type: str

    estimated: ClassVar[bool] = True

    @property
    def compressed_size(self) -> int:
        return len(self.buffer)


Result = Union[CompressionResult, EstimatedResult]


def normalize(result: Result) -> Result:
    """Apply the 0% floor; negative ratios come from recompression growth."""
    if result.compression_ratio >= 0:
        return result
    return replace(result, compression_ratio=0)
