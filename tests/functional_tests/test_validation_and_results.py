"""
Validation gate and result model tests.

This test verifies:
1. The 10 MiB ceiling is inclusive of the limit and exclusive above it
2. Only the five supported MIME types pass the gate
3. Ratios round half up and are floored where policy says so
4. The total ratio uses the caller's original size

Usage:
    pytest tests/functional_tests/test_validation_and_results.py
"""

import pytest

from engines.compression.errors import SizeExceeded, UnsupportedType, ValidationError
from engines.compression.formats import SUPPORTED_MIME_TYPES
from engines.compression.settings import CompressionSettings
from processors.results import (
    CompressionResult,
    EstimatedResult,
    compute_ratio,
    file_type_for,
    normalize,
    total_ratio,
)
from processors.validation import validate


def test_size_at_limit_is_accepted():
    validate(10_485_760, "application/pdf", "exact.pdf")


def test_size_one_byte_over_limit_is_rejected():
    with pytest.raises(SizeExceeded) as excinfo:
        validate(10_485_761, "image/png", "big.png")
    assert excinfo.value.limit == 10 * 1024 * 1024
    assert "big.png" in str(excinfo.value)


def test_gif_is_rejected_regardless_of_size():
    for size in (0, 1, 10_485_760):
        with pytest.raises(UnsupportedType):
            validate(size, "image/gif", "anim.gif")


@pytest.mark.parametrize("mime_type", SUPPORTED_MIME_TYPES)
def test_supported_types_pass(mime_type):
    validate(1024, mime_type, "file")


def test_size_is_checked_before_type():
    with pytest.raises(SizeExceeded):
        validate(20 * 1024 * 1024, "image/gif", "huge.gif")


def test_validation_errors_are_value_errors():
    with pytest.raises(ValueError):
        validate(1, "text/plain")
    assert issubclass(SizeExceeded, ValidationError)


def test_limits_come_from_settings():
    settings = CompressionSettings(max_file_size=100, allowed_mime_types=("image/png",))
    validate(100, "image/png", settings=settings)
    with pytest.raises(SizeExceeded):
        validate(101, "image/png", settings=settings)
    with pytest.raises(UnsupportedType):
        validate(10, "application/pdf", settings=settings)


def test_compute_ratio_rounds_half_up():
    assert compute_ratio(200, 175) == 13   # 12.5%
    assert compute_ratio(1000, 750) == 25
    assert compute_ratio(100, 100) == 0


def test_compute_ratio_can_be_negative_and_handles_empty_input():
    assert compute_ratio(100, 150) == -50
    assert compute_ratio(0, 0) == 0


def test_measure_applies_floor_and_matches_buffer_length():
    result = CompressionResult.measure(b"x" * 120, 100, "image/png")
    assert result.compressed_size == 120
    assert result.compression_ratio == 0

    floored = CompressionResult.measure(b"x" * 100, 100, "application/pdf", min_ratio=1)
    assert floored.compression_ratio == 1


def test_result_rejects_size_mismatch():
    with pytest.raises(ValueError):
        CompressionResult(b"abc", 10, 4, 60, "image/png")


def test_normalize_floors_negative_ratio():
    grown = CompressionResult(b"x" * 150, 100, 150, -50, "image/jpeg")
    assert normalize(grown).compression_ratio == 0
    assert normalize(grown).buffer == grown.buffer

    fine = CompressionResult(b"x" * 50, 100, 50, 50, "image/jpeg")
    assert normalize(fine) is fine


def test_estimated_result_is_tagged():
    result = EstimatedResult(b"abcd", 4, 3, 25, "application/pdf")
    assert result.estimated is True
    assert result.compressed_size == 4
    assert CompressionResult.estimated is False


def test_total_ratio_against_true_original():
    # Client shrank 1000 -> 600 before upload, pipeline produced 400
    assert total_ratio(1000, 400) == 60
    assert compute_ratio(600, 400) == 33
    assert total_ratio(100, 300) == 0


def test_file_type_for():
    assert file_type_for("application/pdf") == "pdf"
    assert file_type_for("image/jpeg") == "image"
    assert file_type_for("image/png") == "image"
    assert file_type_for(SUPPORTED_MIME_TYPES[-1]) == "document"
