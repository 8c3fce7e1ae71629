"""
Exception taxonomy for the Compactor compression pipeline.

Validation and dispatch errors are raised before any strategy runs and are
never retried. Processing errors wrap the underlying library failure
(Pillow, pikepdf, zipfile/lxml) and keep it as ``__cause__``.
"""


class CompressionError(Exception):
    """Base class for every error raised by the compression core."""


class ValidationError(CompressionError, ValueError):
    """A file was rejected by the validation gate."""

    def __init__(self, reason: str, name: str = ""):
        self.reason = reason
        self.name = name
        super().__init__(f"{name}: {reason}" if name else reason)


class SizeExceeded(ValidationError):
    """Declared size is above the configured ceiling."""

    def __init__(self, size: int, limit: int, name: str = ""):
        self.size = size
        self.limit = limit
        super().__init__(f"file is {size:,} bytes, limit is {limit:,} bytes", name)


class UnsupportedType(ValidationError):
    """Declared MIME type is not in the allowed set."""

    def __init__(self, mime_type: str, name: str = ""):
        self.mime_type = mime_type
        super().__init__(f"unsupported file type '{mime_type}'", name)


class BatchLimitExceeded(ValidationError):
    """File arrived after the batch already held the maximum number of files."""

    def __init__(self, limit: int, name: str = ""):
        self.limit = limit
        super().__init__(f"batch is limited to {limit} files", name)


class UnsupportedMimeType(CompressionError, ValueError):
    """The dispatcher has no strategy for this MIME type."""

    def __init__(self, mime_type: str):
        self.mime_type = mime_type
        super().__init__(f"No compression strategy for MIME type '{mime_type}'")


class ImageProcessingError(CompressionError, RuntimeError):
    """Pillow could not decode or encode the image."""


class PdfProcessingError(CompressionError, RuntimeError):
    """pikepdf could not parse or serialize the document."""


class DocumentProcessingError(CompressionError, RuntimeError):
    """The buffer is not a readable OOXML word-processing package."""


class CompressionTimeout(CompressionError, TimeoutError):
    """A single file exceeded its wall-clock budget."""

    def __init__(self, name: str, seconds: float):
        self.name = name
        self.seconds = seconds
        super().__init__(f"{name}: compression exceeded {seconds:g}s budget")
