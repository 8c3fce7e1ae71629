"""
Image compression strategy for Compactor (PNG and JPEG)

PNG input is always re-encoded losslessly. Large PNGs additionally get a
JPEG trial, and the smaller candidate wins even if that changes the output
type to image/jpeg.

JPEG input is re-encoded once, progressive with optimized Huffman tables,
at a quality picked from the input size tier. JPEG stays JPEG.

Requirements:
- Pillow (pip install Pillow)
"""

import io

from PIL import Image, UnidentifiedImageError

from . import register_compressor
from .errors import ImageProcessingError
from .formats import FileFormat, MIME_JPEG, MIME_PNG
from .settings import CompressionSettings
from processors.results import CompressionResult
from utilities import Print, human_size


def select_jpeg_quality(size: int, settings: CompressionSettings) -> int:
    """
    Pick the JPEG quality for an input of the given size.

    Tiers are checked from the largest threshold down; the first tier whose
    threshold the size strictly exceeds wins.
    """
    for threshold, quality in sorted(settings.jpeg_quality_tiers, reverse=True):
        if size > threshold:
            return quality
    return settings.jpeg_default_quality


@register_compressor("image")
class ImageCompressorFactory:
    """Factory for creating image compressor instances."""

    @staticmethod
    def create(settings: CompressionSettings) -> "ImageCompressor":
        return ImageCompressor(settings)


class ImageCompressor:
    """
    Pillow-based recompression for PNG and JPEG uploads.

    Attributes:
        settings: Thresholds and quality tiers
    """

    def __init__(self, settings: CompressionSettings):
        self.settings = settings

    def compress(self, buffer: bytes, mime_type: str) -> CompressionResult:
        """
        Compress a PNG or JPEG buffer.

        Args:
            buffer: Raw image bytes
            mime_type: image/png, image/jpeg or image/jpg

        Returns:
            CompressionResult; mime_type is image/jpeg when a PNG was converted

        Raises:
            ImageProcessingError: If Pillow cannot decode or encode the image
        """
        image_format = FileFormat.from_mime(mime_type)
        original_size = len(buffer)
        image = self._open(buffer)

        if image_format is FileFormat.PNG:
            output, output_mime = self._compress_png(image, original_size)
        else:
            quality = select_jpeg_quality(original_size, self.settings)
            Print("DEBUG", f"JPEG input {human_size(original_size)} -> quality {quality}")
            output = self._encode_jpeg(image, quality)
            output_mime = MIME_JPEG

        result = CompressionResult.measure(output, original_size, output_mime)
        Print("DEBUG",
            f"{image_format.label.upper()}: {original_size:,} -> {result.compressed_size:,} bytes "
            f"({result.compression_ratio}%, {output_mime})"
        )
        return result

    def _compress_png(self, image: Image.Image, original_size: int):
        """Lossless PNG re-encode, plus a JPEG trial for large inputs."""
        png_bytes = self._encode_png(image)

        if original_size <= self.settings.png_jpeg_trial_threshold:
            return png_bytes, MIME_PNG

        jpeg_bytes = self._encode_jpeg(image, self.settings.png_jpeg_trial_quality)
        Print("DEBUG", f"PNG trial: png={len(png_bytes):,} jpeg={len(jpeg_bytes):,} bytes")

        if len(jpeg_bytes) < len(png_bytes):
            Print("INFO", f"PNG converted to JPEG ({human_size(len(jpeg_bytes))} < {human_size(len(png_bytes))})")
            return jpeg_bytes, MIME_JPEG
        return png_bytes, MIME_PNG

    def _open(self, buffer: bytes) -> Image.Image:
        try:
            image = Image.open(io.BytesIO(buffer))
            image.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise ImageProcessingError(f"Could not decode image: {e}") from e
        return image

    def _encode_png(self, image: Image.Image) -> bytes:
        buffer = io.BytesIO()
        try:
            image.save(buffer, format='PNG', optimize=True, compress_level=9)
        except (OSError, ValueError) as e:
            raise ImageProcessingError(
                f"PNG encoding failed: {e}\n"
                f"Image: {image.size}, mode: {image.mode}"
            ) from e
        return buffer.getvalue()

    def _encode_jpeg(self, image: Image.Image, quality: int) -> bytes:
        buffer = io.BytesIO()
        try:
            image = self._convert_to_rgb(image)
            image.save(
                buffer,
                format='JPEG',
                quality=quality,
                optimize=True,
                progressive=True
            )
        except (OSError, ValueError) as e:
            raise ImageProcessingError(
                f"JPEG encoding failed: {e}\n"
                f"Image: {image.size}, mode: {image.mode}, quality: {quality}"
            ) from e
        return buffer.getvalue()

    def _convert_to_rgb(self, image: Image.Image) -> Image.Image:
        """Flatten alpha onto white and drop palettes; JPEG has no alpha channel."""
        if image.mode in ('RGB', 'L', 'CMYK'):
            return image

        if image.mode == 'P':
            image = image.convert('RGBA')
        if image.mode == 'LA':
            image = image.convert('RGBA')

        if image.mode == 'RGBA':
            background = Image.new('RGB', image.size, (255, 255, 255))
            background.paste(image, mask=image.split()[3])
            return background

        return image.convert('RGB')

    @property
    def name(self) -> str:
        """Compressor identifier."""
        return "image"
