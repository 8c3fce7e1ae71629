"""
Validation gate run before any compression strategy.

Works on declared metadata only (size, MIME type, name); the buffer is
never opened here.
"""

from engines.compression.errors import SizeExceeded, UnsupportedType
from engines.compression.settings import CompressionSettings, DEFAULT_SETTINGS


def validate(size: int, mime_type: str, name: str = "", settings: CompressionSettings = DEFAULT_SETTINGS) -> None:
    """
    Check a file against the size ceiling and the allowed MIME set.

    Args:
        size: Declared size in bytes
        mime_type: Declared MIME type
        name: File name, used only in the error message
        settings: Limits to check against

    Raises:
        SizeExceeded: If size is above settings.max_file_size
        UnsupportedType: If mime_type is not in settings.allowed_mime_types
    """
    if size > settings.max_file_size:
        raise SizeExceeded(size, settings.max_file_size, name)

    if mime_type not in settings.allowed_mime_types:
        raise UnsupportedType(mime_type, name)
