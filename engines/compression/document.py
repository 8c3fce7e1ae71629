"""
DOCX compression strategy for Compactor

Two modes, selected by CompressionSettings.docx_mode:

- "estimate" (default): the package is checked for a parseable
  word/document.xml, then a ratio is drawn uniformly from the configured
  range. The bytes are returned unchanged inside an EstimatedResult, so
  callers can tell the numbers are not measured.

- "repack": every ZIP member is re-deflated at the configured level and
  the smaller of repacked/original is returned as a measured
  CompressionResult.
"""

import io
import math
import random
import zipfile
import zlib
from typing import Optional, Union

from lxml import etree

from . import register_compressor
from .errors import DocumentProcessingError
from .formats import MIME_DOCX
from .settings import CompressionSettings
from processors.results import CompressionResult, EstimatedResult
from utilities import Print

MAIN_PART = "word/document.xml"
CONTENT_TYPES_PART = "[Content_Types].xml"

# What zipfile raises for members it cannot decompress
ARCHIVE_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError, RuntimeError, NotImplementedError)


@register_compressor("document")
class DocumentCompressorFactory:
    """Factory for creating DOCX compressor instances."""

    @staticmethod
    def create(settings: CompressionSettings) -> "DocumentCompressor":
        return DocumentCompressor(settings)


class DocumentCompressor:
    """
    OOXML word-processing package handling.

    Attributes:
        mode: 'estimate' or 'repack'
        estimate_range: Inclusive (low, high) bounds for synthetic ratios
        zip_level: Deflate level used by repack mode
    """

    def __init__(self, settings: CompressionSettings, rng: Optional[random.Random] = None):
        self.mode = settings.docx_mode
        self.estimate_range = settings.docx_estimate_range
        self.zip_level = settings.docx_zip_level
        self._rng = rng if rng is not None else random.Random(settings.docx_seed)

    def compress(self, buffer: bytes, mime_type: str = MIME_DOCX) -> Union[EstimatedResult, CompressionResult]:
        """
        Compress (or estimate) a DOCX buffer.

        Args:
            buffer: Raw .docx bytes
            mime_type: Ignored; output is always the DOCX MIME type

        Returns:
            EstimatedResult in estimate mode, CompressionResult in repack mode

        Raises:
            DocumentProcessingError: If the buffer is not a readable DOCX package
        """
        paragraphs = self.inspect(buffer)
        Print("DEBUG", f"DOCX parsed: {paragraphs} paragraphs")

        if self.mode == "repack":
            return self._repack(buffer)
        return self._estimate(buffer)

    def inspect(self, buffer: bytes) -> int:
        """
        Confirm the package is a parseable DOCX.

        Returns:
            Number of w:p paragraphs in the main document part
        """
        try:
            with zipfile.ZipFile(io.BytesIO(buffer)) as archive:
                main_part = archive.read(MAIN_PART) if MAIN_PART in archive.namelist() else None
        except ARCHIVE_ERRORS as e:
            raise DocumentProcessingError(f"DOCX is not a readable ZIP package: {e}") from e

        if main_part is None:
            raise DocumentProcessingError(f"DOCX package has no {MAIN_PART}")

        try:
            root = etree.fromstring(main_part)
        except etree.XMLSyntaxError as e:
            raise DocumentProcessingError(f"DOCX main part is not well-formed XML: {e}") from e

        return len(root.xpath('//*[local-name()="p"]'))

    def _estimate(self, buffer: bytes) -> EstimatedResult:
        original_size = len(buffer)
        low, high = self.estimate_range
        ratio = self._rng.randint(low, high)
        estimated_size = math.floor(original_size * (1 - ratio / 100))

        Print("WARNING", f"DOCX size is an estimate only ({ratio}%), bytes are unchanged")
        return EstimatedResult(
            buffer=buffer,
            original_size=original_size,
            estimated_size=estimated_size,
            compression_ratio=ratio,
            mime_type=MIME_DOCX,
        )

    def _repack(self, buffer: bytes) -> CompressionResult:
        original_size = len(buffer)
        out = io.BytesIO()

        try:
            with zipfile.ZipFile(io.BytesIO(buffer)) as source:
                members = source.infolist()
                # [Content_Types].xml must come first for some readers
                members.sort(key=lambda info: info.filename != CONTENT_TYPES_PART)

                with zipfile.ZipFile(out, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=self.zip_level) as target:
                    for info in members:
                        if info.is_dir():
                            continue
                        entry = zipfile.ZipInfo(info.filename, date_time=info.date_time)
                        entry.compress_type = zipfile.ZIP_DEFLATED
                        entry.external_attr = info.external_attr
                        target.writestr(entry, source.read(info.filename), compresslevel=self.zip_level)
        except ARCHIVE_ERRORS + (OSError,) as e:
            raise DocumentProcessingError(f"DOCX repack failed: {e}") from e

        repacked = out.getvalue()
        Print("DEBUG", f"DOCX repack: {original_size:,} -> {len(repacked):,} bytes")

        if len(repacked) >= original_size:
            Print("INFO", "Repacked DOCX is not smaller, keeping original bytes")
            repacked = buffer

        return CompressionResult.measure(repacked, original_size, MIME_DOCX)

    @property
    def name(self) -> str:
        """Compressor identifier."""
        return "document"
