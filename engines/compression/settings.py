"""
Compression settings for Compactor.

All thresholds and quality tiers are carried by an explicit
CompressionSettings value handed to the dispatcher at construction time.
The module-level constants are the documented defaults.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .formats import SUPPORTED_MIME_TYPES

KIB = 1024
MIB = 1024 * 1024

# Validation gate
MAX_FILE_SIZE = 10 * MIB

# Image strategy
PNG_JPEG_TRIAL_THRESHOLD = 500 * KIB
PNG_JPEG_TRIAL_QUALITY = 85
JPEG_QUALITY_TIERS: Tuple[Tuple[int, int], ...] = (
    # (size strictly above, quality)
    (1 * MIB, 75),
    (500 * KIB, 80),
)
JPEG_DEFAULT_QUALITY = 85

# PDF strategy
PDF_ESCALATION_THRESHOLD = 5
PDF_MIN_RATIO = 1

# Document strategy
DOCX_MODES = ("estimate", "repack")
DOCX_ESTIMATE_RANGE = (15, 39)
DOCX_ZIP_LEVEL = 9

# Batch processing
MAX_WORKERS = 4
TIMEOUT_SECONDS = 60.0
MAX_FILES_PER_BATCH = 5


@dataclass(frozen=True)
class SerializationProfile:
    """
    One way of re-serializing a PDF with pikepdf.

    Attributes:
        name: Identifier used in log lines
        object_streams: Pack objects into compressed object streams
        compress_streams: Flate-compress uncompressed streams
        recompress_flate: Decode and re-deflate existing Flate streams
        linearize: Write a linearized ("fast web view") file
    """
    name: str
    object_streams: bool = True
    compress_streams: bool = True
    recompress_flate: bool = False
    linearize: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "SerializationProfile":
        return cls(
            name=data['name'],
            object_streams=data.get('object_streams', True),
            compress_streams=data.get('compress_streams', True),
            recompress_flate=data.get('recompress_flate', False),
            linearize=data.get('linearize', False),
        )


PRIMARY_PDF_PROFILE = SerializationProfile(name="object-streams")
ESCALATION_PDF_PROFILES: Tuple[SerializationProfile, ...] = (
    SerializationProfile(name="recompress-flate", recompress_flate=True),
)


@dataclass(frozen=True)
class CompressionSettings:
    """Thresholds, quality tiers and strategy options for one dispatcher."""

    max_file_size: int = MAX_FILE_SIZE
    allowed_mime_types: Tuple[str, ...] = SUPPORTED_MIME_TYPES

    png_jpeg_trial_threshold: int = PNG_JPEG_TRIAL_THRESHOLD
    png_jpeg_trial_quality: int = PNG_JPEG_TRIAL_QUALITY
    jpeg_quality_tiers: Tuple[Tuple[int, int], ...] = JPEG_QUALITY_TIERS
    jpeg_default_quality: int = JPEG_DEFAULT_QUALITY

    pdf_primary_profile: SerializationProfile = PRIMARY_PDF_PROFILE
    pdf_escalation_profiles: Tuple[SerializationProfile, ...] = ESCALATION_PDF_PROFILES
    pdf_escalation_threshold: int = PDF_ESCALATION_THRESHOLD
    pdf_min_ratio: int = PDF_MIN_RATIO

    docx_mode: str = "estimate"
    docx_estimate_range: Tuple[int, int] = DOCX_ESTIMATE_RANGE
    docx_zip_level: int = DOCX_ZIP_LEVEL
    docx_seed: Optional[int] = None

    max_workers: int = MAX_WORKERS
    timeout_seconds: float = TIMEOUT_SECONDS
    max_files_per_batch: int = MAX_FILES_PER_BATCH

    def __post_init__(self):
        if self.docx_mode not in DOCX_MODES:
            raise ValueError(f"docx_mode must be one of {DOCX_MODES}, got '{self.docx_mode}'")
        low, high = self.docx_estimate_range
        if not (0 <= low <= high < 100):
            raise ValueError(f"docx_estimate_range must satisfy 0 <= low <= high < 100, got {self.docx_estimate_range}")
        for _, quality in self.jpeg_quality_tiers:
            if not (1 <= quality <= 100):
                raise ValueError(f"JPEG quality must be 1-100, got {quality}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {self.timeout_seconds}")
        if self.max_files_per_batch < 1:
            raise ValueError(f"max_files_per_batch must be at least 1, got {self.max_files_per_batch}")

    @classmethod
    def from_config(cls, config: dict) -> "CompressionSettings":
        """
        Build settings from a loaded config.json dictionary.

        Missing sections and keys fall back to the defaults above.

        Args:
            config: Dictionary with optional 'validation', 'image', 'pdf',
                'document' and 'processing' sections

        Returns:
            CompressionSettings instance
        """
        validation = config.get('validation', {})
        image = config.get('image', {})
        pdf = config.get('pdf', {})
        document = config.get('document', {})
        processing = config.get('processing', {})

        tiers = image.get('jpeg_quality_tiers')
        if tiers is not None:
            tiers = tuple(
                (int(tier['above']), int(tier['quality']))
                for tier in sorted(tiers, key=lambda t: t['above'], reverse=True)
            )
        else:
            tiers = JPEG_QUALITY_TIERS

        escalation = pdf.get('escalation_profiles')
        if escalation is not None:
            escalation = tuple(SerializationProfile.from_dict(p) for p in escalation)
        else:
            escalation = ESCALATION_PDF_PROFILES

        primary = pdf.get('primary_profile')
        primary = SerializationProfile.from_dict(primary) if primary else PRIMARY_PDF_PROFILE

        return cls(
            max_file_size=validation.get('max_file_size', MAX_FILE_SIZE),
            allowed_mime_types=tuple(validation.get('allowed_mime_types', SUPPORTED_MIME_TYPES)),
            png_jpeg_trial_threshold=image.get('png_jpeg_trial_threshold', PNG_JPEG_TRIAL_THRESHOLD),
            png_jpeg_trial_quality=image.get('png_jpeg_trial_quality', PNG_JPEG_TRIAL_QUALITY),
            jpeg_quality_tiers=tiers,
            jpeg_default_quality=image.get('jpeg_default_quality', JPEG_DEFAULT_QUALITY),
            pdf_primary_profile=primary,
            pdf_escalation_profiles=escalation,
            pdf_escalation_threshold=pdf.get('escalation_threshold', PDF_ESCALATION_THRESHOLD),
            pdf_min_ratio=pdf.get('min_ratio', PDF_MIN_RATIO),
            docx_mode=document.get('mode', 'estimate'),
            docx_estimate_range=tuple(document.get('estimate_range', DOCX_ESTIMATE_RANGE)),
            docx_zip_level=document.get('zip_level', DOCX_ZIP_LEVEL),
            docx_seed=document.get('seed'),
            max_workers=processing.get('max_workers', MAX_WORKERS),
            timeout_seconds=float(processing.get('timeout_seconds', TIMEOUT_SECONDS)),
            max_files_per_batch=processing.get('max_files_per_batch', MAX_FILES_PER_BATCH),
        )


DEFAULT_SETTINGS = CompressionSettings()
