"""
Batch Pipeline Integration Test

This test verifies:
1. Rejected and failing files are skipped, the rest of the batch completes
2. Counts of attempted vs. processed files are reported
3. The total ratio is computed against the caller's original size
4. A file that exceeds its time budget fails with CompressionTimeout,
   and the budget runs from submission rather than from when it is awaited
5. Files past max_files_per_batch are rejected, the rest still compress
6. The CLI writes compressed files and returns the documented exit codes

Usage:
    pytest tests/functional_tests/test_pipeline.py
"""

import json
import time

import pytest

from conftest import build_docx, encode, noise_image
from compactor import CompressionPipeline, UploadedFile, main, output_path_for
from engines.compression.formats import MIME_DOCX
from engines.compression.settings import CompressionSettings
from utilities import Print


def test_batch_isolates_failures(small_png, pdf_bytes):
    Print("HEADER", "Testing batch isolation")
    pipeline = CompressionPipeline(settings=CompressionSettings())
    uploads = [
        UploadedFile("photo.png", "image/png", small_png),
        UploadedFile("anim.gif", "image/gif", b"GIF89a"),
        UploadedFile("broken.pdf", "application/pdf", b"not a pdf"),
        UploadedFile("report.pdf", "application/pdf", pdf_bytes),
    ]

    report = pipeline.process_batch(uploads)

    assert report.total == 4
    assert report.processed == 2
    assert report.succeeded
    assert [f.name for f in report.files] == ["photo.png", "report.pdf"]
    assert {f.name: f.error_type for f in report.failures} == {
        "anim.gif": "UnsupportedType",
        "broken.pdf": "PdfProcessingError",
    }
    assert report.files[1].file_type == "pdf"
    assert report.files[1].compression_ratio >= 1


def test_oversized_file_is_rejected_before_compression(small_png):
    pipeline = CompressionPipeline(settings=CompressionSettings(max_file_size=len(small_png) - 1))

    report = pipeline.process_batch([UploadedFile("photo.png", "image/png", small_png)])

    assert not report.succeeded
    assert report.failures[0].error_type == "SizeExceeded"


def test_total_ratio_uses_true_original_size(small_png):
    pipeline = CompressionPipeline(settings=CompressionSettings())
    upload = UploadedFile("pre-shrunk.png", "image/png", small_png, original_size=len(small_png) * 10)

    report = pipeline.process_batch([upload])

    file_report = report.files[0]
    assert file_report.original_size == len(small_png) * 10
    assert file_report.compression_ratio >= 89


def test_estimated_docx_is_reported_as_estimate(docx_bytes):
    pipeline = CompressionPipeline(settings=CompressionSettings(docx_seed=3))

    report = pipeline.process_batch([UploadedFile("notes.docx", MIME_DOCX, docx_bytes)])

    file_report = report.files[0]
    assert file_report.estimated is True
    assert file_report.buffer == docx_bytes
    assert file_report.compressed_size < len(docx_bytes)
    assert file_report.file_type == "document"


def test_timeout_fails_only_the_slow_file(small_png, monkeypatch):
    pipeline = CompressionPipeline(settings=CompressionSettings(timeout_seconds=1.0, max_workers=2))
    real_compress = pipeline.dispatcher.compress

    def slow_for_pdf(buffer, mime_type):
        if mime_type == "application/pdf":
            time.sleep(3)
        return real_compress(buffer, mime_type)

    monkeypatch.setattr(pipeline.dispatcher, "compress", slow_for_pdf)

    report = pipeline.process_batch([
        UploadedFile("slow.pdf", "application/pdf", b"%PDF-1.4"),
        UploadedFile("photo.png", "image/png", small_png),
    ])

    assert [f.name for f in report.files] == ["photo.png"]
    assert report.failures[0].name == "slow.pdf"
    assert report.failures[0].error_type == "CompressionTimeout"


def test_timeout_budget_counts_from_submission(small_jpeg, monkeypatch):
    pipeline = CompressionPipeline(settings=CompressionSettings(timeout_seconds=0.5, max_workers=2))
    real_compress = pipeline.dispatcher.compress
    def delayed(buffer, mime_type):
        time.sleep(3.0 if mime_type == "application/pdf" else 0.9)
        return real_compress(buffer, mime_type)

    monkeypatch.setattr(pipeline.dispatcher, "compress", delayed)

    report = pipeline.process_batch([
        UploadedFile("slow.pdf", "application/pdf", b"%PDF-1.4"),
        UploadedFile("queued.jpg", "image/jpeg", small_jpeg),
    ])

    # queued.jpg finishes at ~0.9s, past its 0.5s deadline, even though it
    # is only awaited after slow.pdf has already used up 0.5s
    assert report.files == []
    assert [(f.name, f.error_type) for f in report.failures] == [
        ("slow.pdf", "CompressionTimeout"),
        ("queued.jpg", "CompressionTimeout"),
    ]


def test_files_past_batch_limit_are_rejected(small_jpeg):
    pipeline = CompressionPipeline(settings=CompressionSettings(max_files_per_batch=2))
    uploads = [UploadedFile(f"photo{i}.jpg", "image/jpeg", small_jpeg) for i in range(4)]

    report = pipeline.process_batch(uploads)

    assert report.total == 4
    assert [f.name for f in report.files] == ["photo0.jpg", "photo1.jpg"]
    assert [(f.name, f.error_type) for f in report.failures] == [
        ("photo2.jpg", "BatchLimitExceeded"),
        ("photo3.jpg", "BatchLimitExceeded"),
    ]


def test_batch_limit_counts_rejected_files(small_jpeg):
    pipeline = CompressionPipeline(settings=CompressionSettings(max_files_per_batch=2))

    report = pipeline.process_batch([
        UploadedFile("anim.gif", "image/gif", b"GIF89a"),
        UploadedFile("photo.jpg", "image/jpeg", small_jpeg),
        UploadedFile("late.jpg", "image/jpeg", small_jpeg),
    ])

    assert [f.name for f in report.files] == ["photo.jpg"]
    assert {f.name: f.error_type for f in report.failures} == {
        "anim.gif": "UnsupportedType",
        "late.jpg": "BatchLimitExceeded",
    }


def test_batch_limit_must_be_positive():
    with pytest.raises(ValueError):
        CompressionSettings(max_files_per_batch=0)


def test_compress_file_single(small_jpeg):
    pipeline = CompressionPipeline(settings=CompressionSettings())
    file_report = pipeline.compress_file(UploadedFile("a.jpg", "image/jpeg", small_jpeg))
    assert file_report.mime_type == "image/jpeg"
    assert file_report.compressed_size == len(file_report.buffer)


def test_status():
    status = CompressionPipeline(settings=CompressionSettings()).status()
    assert status["max_file_size"] == 10 * 1024 * 1024
    assert status["max_files"] == 5
    assert "image/png" in status["supported_mime_types"]


def test_report_to_dict_is_json_serializable(small_png):
    report = CompressionPipeline(settings=CompressionSettings()).process_batch(
        [UploadedFile("photo.png", "image/png", small_png)]
    )
    data = json.loads(json.dumps(report.to_dict()))
    assert data["processed"] == 1
    assert data["total"] == 1
    assert "buffer" not in data["files"][0]


def test_output_path_for(tmp_path):
    assert output_path_for(tmp_path, tmp_path / "scan.png", "image/jpeg").name == "scan.jpg"
    assert output_path_for(tmp_path, tmp_path / "scan.png", "image/png").name == "scan.png"
    assert output_path_for(tmp_path, tmp_path / "photo.jpeg", "image/jpeg").name == "photo.jpeg"


def test_cli_writes_outputs(tmp_path, capsys):
    large = tmp_path / "big.png"
    large.write_bytes(encode(noise_image(512, 512, seed=9), 'PNG'))
    notes = tmp_path / "notes.docx"
    notes.write_bytes(build_docx())
    out_dir = tmp_path / "out"

    code = main([str(large), str(notes), "--output-dir", str(out_dir), "--json"])

    assert code == 0
    assert (out_dir / "big.jpg").exists()
    # Estimates are not written to disk
    assert not (out_dir / "notes.docx").exists()
    printed = capsys.readouterr().out
    assert '"processed": 2' in printed


def test_cli_repack_mode_writes_docx(tmp_path):
    notes = tmp_path / "notes.docx"
    notes.write_bytes(build_docx())
    out_dir = tmp_path / "out"

    assert main([str(notes), "--output-dir", str(out_dir), "--docx-mode", "repack"]) == 0
    assert (out_dir / "notes.docx").stat().st_size < notes.stat().st_size


def test_cli_exit_codes(tmp_path):
    assert main([str(tmp_path / "missing.png"), "--output-dir", str(tmp_path)]) == 1
    assert main([str(tmp_path / "x.png"), "--config", str(tmp_path / "nope.json")]) == 2

    gif = tmp_path / "anim.gif"
    gif.write_bytes(b"GIF89a")
    assert main([str(gif), "--output-dir", str(tmp_path / "out")]) == 1
