"""
Shared fixtures for Compactor functional tests.

Every input is generated in memory: noise images with Pillow, PDFs with
pikepdf and DOCX packages with zipfile. Noise is used for images because
it defeats PNG's deflate and so gives predictable sizes.
"""

import io
import random
import zipfile

import pikepdf
import pytest
from PIL import Image


def noise_image(width: int, height: int, mode: str = 'RGB', seed: int = 0) -> Image.Image:
    """Uniform random pixels, reproducible per seed."""
    channels = {'RGB': 3, 'RGBA': 4, 'L': 1}[mode]
    data = random.Random(seed).randbytes(width * height * channels)
    return Image.frombytes(mode, (width, height), data)


def encode(image: Image.Image, fmt: str, **options) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt, **options)
    return buffer.getvalue()


def build_pdf(pages: int = 5, repeat: int = 200) -> bytes:
    """Uncompressed PDF with repetitive content streams and no object streams."""
    pdf = pikepdf.new()
    for i in range(pages):
        page = pdf.add_blank_page(page_size=(612, 792))
        text = f"BT /F1 12 Tf 72 720 Td (Compactor page {i}) Tj ET\n".encode()
        page.obj.Contents = pdf.make_stream(text * repeat)

    out = io.BytesIO()
    pdf.save(out, compress_streams=False, object_stream_mode=pikepdf.ObjectStreamMode.disable)
    return out.getvalue()


CONTENT_TYPES_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
    '<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
    '<Default Extension="xml" ContentType="application/xml"/>'
    '<Override PartName="/word/document.xml" '
    'ContentType="application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"/>'
    '</Types>'
)

RELS_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
    '<Relationship Id="rId1" '
    'Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument" '
    'Target="word/document.xml"/>'
    '</Relationships>'
)


def document_xml(paragraphs: int) -> str:
    body = ''.join(
        f'<w:p><w:r><w:t>Paragraph {i}: the quick brown fox jumps over the lazy dog.</w:t></w:r></w:p>'
        for i in range(paragraphs)
    )
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">'
        f'<w:body>{body}</w:body></w:document>'
    )


def build_docx(paragraphs: int = 300, main_part: str = None, include_main: bool = True,
               compression: int = zipfile.ZIP_STORED) -> bytes:
    """Minimal DOCX package, stored without compression unless asked otherwise."""
    out = io.BytesIO()
    with zipfile.ZipFile(out, 'w', compression=compression) as archive:
        archive.writestr('[Content_Types].xml', CONTENT_TYPES_XML)
        archive.writestr('_rels/.rels', RELS_XML)
        if include_main:
            archive.writestr('word/document.xml', main_part if main_part is not None else document_xml(paragraphs))
    return out.getvalue()


@pytest.fixture
def small_png() -> bytes:
    """~200 KB noise PNG, below the JPEG trial threshold."""
    return encode(noise_image(256, 256), 'PNG')


@pytest.fixture
def large_png() -> bytes:
    """~780 KB noise PNG, above the JPEG trial threshold."""
    return encode(noise_image(512, 512, seed=1), 'PNG')


@pytest.fixture
def large_jpeg() -> bytes:
    """Multi-megabyte noise JPEG saved at maximum quality."""
    return encode(noise_image(800, 800, seed=2), 'JPEG', quality=100, subsampling=0)


@pytest.fixture
def small_jpeg() -> bytes:
    return encode(noise_image(120, 120, seed=3), 'JPEG', quality=95)


@pytest.fixture
def pdf_bytes() -> bytes:
    return build_pdf()


@pytest.fixture
def docx_bytes() -> bytes:
    return build_docx()
