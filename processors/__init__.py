"""
Processors for Compactor

Result normalization and pre-flight validation around the compression strategies.
"""

from .results import (
    CompressionResult,
    EstimatedResult,
    compute_ratio,
    file_type_for,
    normalize,
    total_ratio,
)
from .validation import validate

__all__ = [
    'CompressionResult',
    'EstimatedResult',
    'compute_ratio',
    'file_type_for',
    'normalize',
    'total_ratio',
    'validate',
]
