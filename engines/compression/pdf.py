"""
pikepdf-based PDF compression strategy for Compactor

Savings come from container-level re-serialization only:
- Objects are packed into compressed object streams (PDF 1.5+)
- Uncompressed streams are Flate-compressed

Embedded images are NOT recompressed. A scanned PDF made of DCT images
will usually shrink very little, and the reported ratio is floored at 1%
regardless.

Escalation: when the primary pass saves less than the configured
threshold, each escalation profile is tried in order and the smallest
output wins. A profile that fails is logged and skipped.
"""

import io

import pikepdf
from pikepdf import ObjectStreamMode

from . import register_compressor
from .errors import PdfProcessingError
from .formats import MIME_PDF
from .settings import CompressionSettings, SerializationProfile
from processors.results import CompressionResult, compute_ratio
from utilities import Print


@register_compressor("pdf")
class PdfCompressorFactory:
    """Factory for creating PDF compressor instances."""

    @staticmethod
    def create(settings: CompressionSettings) -> "PdfCompressor":
        return PdfCompressor(settings)


class PdfCompressor:
    """
    Structural PDF re-serialization with an ordered list of fallback profiles.

    Attributes:
        primary: Profile used for the first pass
        escalation_profiles: Profiles tried when the first pass is weak
        escalation_threshold: Ratio (%) below which escalation runs
        min_ratio: Floor applied to the reported ratio
    """

    def __init__(self, settings: CompressionSettings):
        self.primary = settings.pdf_primary_profile
        self.escalation_profiles = tuple(settings.pdf_escalation_profiles)
        self.escalation_threshold = settings.pdf_escalation_threshold
        self.min_ratio = settings.pdf_min_ratio

    def compress(self, buffer: bytes, mime_type: str = MIME_PDF) -> CompressionResult:
        """
        Compress a PDF buffer.

        Args:
            buffer: Raw PDF bytes
            mime_type: Ignored; output is always application/pdf

        Returns:
            CompressionResult with ratio floored at min_ratio

        Raises:
            PdfProcessingError: If the PDF cannot be parsed or serialized
        """
        original_size = len(buffer)

        try:
            with pikepdf.open(io.BytesIO(buffer)) as pdf:
                Print("DEBUG", f"Opened PDF: {len(pdf.pages)} pages, version {pdf.pdf_version}")
                best = self._serialize(pdf, self.primary)
                ratio = compute_ratio(original_size, len(best))
                Print("DEBUG", f"Pass '{self.primary.name}': {original_size:,} -> {len(best):,} bytes ({ratio}%)")

                if ratio < self.escalation_threshold:
                    best = self._escalate(pdf, best, original_size)
        except (pikepdf.PdfError, OSError, ValueError) as e:
            raise PdfProcessingError(f"PDF compression failed: {e}") from e

        return CompressionResult.measure(best, original_size, MIME_PDF, min_ratio=self.min_ratio)

    def _escalate(self, pdf: pikepdf.Pdf, best: bytes, original_size: int) -> bytes:
        """Try each escalation profile, keeping the smallest output."""
        for profile in self.escalation_profiles:
            Print("ATTEMPT", f"Escalating PDF compression with profile '{profile.name}'")
            try:
                candidate = self._serialize(pdf, profile)
            except (pikepdf.PdfError, OSError, ValueError) as e:
                Print("WARNING", f"Profile '{profile.name}' failed, keeping previous result: {e}")
                continue

            ratio = compute_ratio(original_size, len(candidate))
            Print("DEBUG", f"Pass '{profile.name}': {original_size:,} -> {len(candidate):,} bytes ({ratio}%)")
            if len(candidate) < len(best):
                best = candidate
        return best

    def _serialize(self, pdf: pikepdf.Pdf, profile: SerializationProfile) -> bytes:
        out = io.BytesIO()
        pdf.save(
            out,
            object_stream_mode=ObjectStreamMode.generate if profile.object_streams else ObjectStreamMode.preserve,
            compress_streams=profile.compress_streams,
            recompress_flate=profile.recompress_flate,
            linearize=profile.linearize,
        )
        return out.getvalue()

    @property
    def name(self) -> str:
        """Compressor identifier."""
        return "pdf"
