"""
Supported file formats and their MIME types.

Dispatch goes through the closed FileFormat enum rather than raw MIME
strings, so every format has exactly one strategy.
"""

from enum import Enum
from typing import Dict

from .errors import UnsupportedMimeType

MIME_PDF = "application/pdf"
MIME_JPEG = "image/jpeg"
MIME_JPG = "image/jpg"
MIME_PNG = "image/png"
MIME_DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

SUPPORTED_MIME_TYPES = (MIME_PDF, MIME_JPEG, MIME_JPG, MIME_PNG, MIME_DOCX)


class FileFormat(Enum):
    """Input format, with the registered strategy name that handles it."""

    PNG = ("png", "image")
    JPEG = ("jpeg", "image")
    PDF = ("pdf", "pdf")
    DOCX = ("docx", "document")

    def __init__(self, label: str, strategy: str):
        self.label = label
        self.strategy = strategy

    @property
    def mime_type(self) -> str:
        """Canonical MIME type for this format."""
        return _CANONICAL_MIME[self]

    @classmethod
    def from_mime(cls, mime_type: str) -> "FileFormat":
        """
        Resolve a declared MIME type.

        Raises:
            UnsupportedMimeType: If the type is not explicitly mapped
        """
        try:
            return _MIME_TO_FORMAT[mime_type]
        except KeyError:
            raise UnsupportedMimeType(mime_type) from None


_MIME_TO_FORMAT: Dict[str, FileFormat] = {
    MIME_JPEG: FileFormat.JPEG,
    MIME_JPG: FileFormat.JPEG,
    MIME_PNG: FileFormat.PNG,
    MIME_PDF: FileFormat.PDF,
    MIME_DOCX: FileFormat.DOCX,
}

_CANONICAL_MIME: Dict[FileFormat, str] = {
    FileFormat.JPEG: MIME_JPEG,
    FileFormat.PNG: MIME_PNG,
    FileFormat.PDF: MIME_PDF,
    FileFormat.DOCX: MIME_DOCX,
}

# Extensions used when writing results to disk
MIME_EXTENSIONS: Dict[str, str] = {
    MIME_JPEG: ".jpg",
    MIME_PNG: ".png",
    MIME_PDF: ".pdf",
    MIME_DOCX: ".docx",
}
