#!/usr/bin/env python3
"""
Compactor: per-format file compression for PDF, JPEG/PNG and DOCX uploads.

This is the main orchestrator that wires the validation gate and the
format dispatcher into a batch pipeline with per-file error isolation.

Architecture:
- Factory pattern for strategies (engines/compression registry)
- Protocol-based contract for strategies
- Closed FileFormat enum for dispatch
- Explicit CompressionSettings value built from config.json

Batch semantics:
- Every file is validated, then compressed on a worker thread
- A failing or timed-out file is recorded and skipped, never fatal
- The batch succeeds if at least one file compressed

Usage:
    from compactor import CompressionPipeline, UploadedFile

    pipeline = CompressionPipeline()
    report = pipeline.process_batch([UploadedFile("a.png", "image/png", data)])

Or from command line:
    python compactor.py photo.png report.pdf --output-dir out/
"""

import json
import mimetypes
import time
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from engines.compression.dispatcher import Dispatcher
from engines.compression.errors import BatchLimitExceeded, CompressionTimeout
from engines.compression.formats import MIME_EXTENSIONS, SUPPORTED_MIME_TYPES
from engines.compression.settings import CompressionSettings
from processors.results import Result, file_type_for, total_ratio
from processors.validation import validate
from utilities import Print, CPU_and_Mem_usage, human_size

__version__ = "0.3.0"

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config" / "config.json"

# mimetypes has no entry for .jpg -> image/jpeg on every platform
mimetypes.add_type("image/jpeg", ".jpg")
mimetypes.add_type(
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document", ".docx"
)


@dataclass
class UploadedFile:
    """
    One file handed to the pipeline.

    Attributes:
        name: Original file name
        mime_type: Declared MIME type
        data: Full file contents
        original_size: Size before any client-side pre-shrink (default: len(data))
    """
    name: str
    mime_type: str
    data: bytes
    original_size: Optional[int] = None

    @property
    def true_original_size(self) -> int:
        return self.original_size if self.original_size is not None else len(self.data)


@dataclass
class FileReport:
    """Outcome for one successfully compressed file."""
    name: str
    original_size: int
    compressed_size: int
    compression_ratio: int
    mime_type: str
    file_type: str
    estimated: bool
    buffer: bytes = field(repr=False)

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'original_size': self.original_size,
            'compressed_size': self.compressed_size,
            'compression_ratio': self.compression_ratio,
            'mime_type': self.mime_type,
            'file_type': self.file_type,
            'estimated': self.estimated,
        }


@dataclass
class FileFailure:
    """A file that was rejected or failed to compress."""
    name: str
    error: str
    error_type: str

    def to_dict(self) -> dict:
        return {'name': self.name, 'error': self.error, 'error_type': self.error_type}


@dataclass
class BatchReport:
    """Per-batch counts and per-file outcomes."""
    total: int
    files: List[FileReport] = field(default_factory=list)
    failures: List[FileFailure] = field(default_factory=list)
    processing_time: float = 0.0

    @property
    def processed(self) -> int:
        return len(self.files)

    @property
    def succeeded(self) -> bool:
        return self.processed > 0

    def to_dict(self) -> dict:
        return {
            'success': self.succeeded,
            'processed': self.processed,
            'total': self.total,
            'files': [f.to_dict() for f in self.files],
            'failures': [f.to_dict() for f in self.failures],
            'processing_time': self.processing_time,
        }


def load_config(config_path: Optional[Path] = None) -> dict:
    """
    Load configuration from JSON file.

    An explicit path must exist. Without one, config/config.json next to
    this module is used when present, otherwise built-in defaults.
    """
    if config_path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            Print("DEBUG", "No config.json found, using built-in defaults")
            return {}
        config_path = DEFAULT_CONFIG_PATH

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        config = json.load(f)

    Print("DEBUG", f"Loaded configuration v{config.get('version', 'unknown')} from {config_path}")
    return config


def build_report(upload: UploadedFile, result: Result) -> FileReport:
    """Turn a strategy result into a FileReport against the true original size."""
    original_size = upload.true_original_size
    if result.estimated:
        final_size = result.estimated_size
    else:
        final_size = result.compressed_size

    return FileReport(
        name=upload.name,
        original_size=original_size,
        compressed_size=final_size,
        compression_ratio=total_ratio(original_size, final_size),
        mime_type=result.mime_type,
        file_type=file_type_for(result.mime_type),
        estimated=result.estimated,
        buffer=result.buffer,
    )


class CompressionPipeline:
    """
    Batch orchestrator around the validation gate and the dispatcher.

    Attributes:
        settings: CompressionSettings shared by every file
        dispatcher: Format dispatcher built from settings
    """

    def __init__(self, settings: Optional[CompressionSettings] = None, config_path: Optional[Path] = None):
        """
        Initialize pipeline.

        Args:
            settings: Explicit settings; when None they are read from config
            config_path: Path to config.json. If None, uses default location.
        """
        if settings is None:
            settings = CompressionSettings.from_config(load_config(config_path))
        self.settings = settings
        self.dispatcher = Dispatcher(settings)

    def status(self) -> dict:
        """Supported formats and limits, for health/status endpoints."""
        return {
            'status': 'active',
            'version': __version__,
            'supported_mime_types': list(self.settings.allowed_mime_types),
            'max_file_size': self.settings.max_file_size,
            'max_files': self.settings.max_files_per_batch,
            'docx_mode': self.settings.docx_mode,
        }

    def compress_file(self, upload: UploadedFile) -> FileReport:
        """
        Validate and compress a single file on the calling thread.

        Raises:
            ValidationError: If the file is rejected by the validation gate
            CompressionError subclass: If the strategy fails
        """
        validate(len(upload.data), upload.mime_type, upload.name, self.settings)
        result = self.dispatcher.compress(upload.data, upload.mime_type)
        return build_report(upload, result)

    def process_batch(self, uploads: Sequence[UploadedFile]) -> BatchReport:
        """
        Compress a batch of files in parallel with per-file isolation.

        Validation runs up front on the calling thread; files past
        max_files_per_batch are rejected like any other invalid file.
        Accepted files are compressed on a thread pool, each with its own
        wall-clock deadline counted from submission. Reports keep the input
        order.

        Args:
            uploads: Files to process

        Returns:
            BatchReport with successes and failures
        """
        start_time = time.monotonic()
        report = BatchReport(total=len(uploads))
        Print("STARTING", f"Compressing {len(uploads)} file{'s' if len(uploads) != 1 else ''}")

        limit = self.settings.max_files_per_batch
        if len(uploads) > limit:
            Print("WARNING", f"Batch of {len(uploads)} files exceeds the limit of {limit}, extra files are rejected")

        accepted = []
        for index, upload in enumerate(uploads):
            try:
                if index >= limit:
                    raise BatchLimitExceeded(limit, upload.name)
                validate(len(upload.data), upload.mime_type, upload.name, self.settings)
            except Exception as e:
                self._record_failure(report, upload, e)
                continue
            Print("DEBUG", f"Validation OK: {upload.name}")
            accepted.append(upload)

        if accepted:
            executor = ThreadPoolExecutor(max_workers=self.settings.max_workers)
            try:
                futures = []
                for upload in accepted:
                    deadline = time.monotonic() + self.settings.timeout_seconds
                    future = executor.submit(self.dispatcher.compress, upload.data, upload.mime_type)
                    futures.append((upload, future, deadline))
                for upload, future, deadline in futures:
                    self._collect(report, upload, future, deadline)
            finally:
                # Timed-out tasks keep running on their thread; don't block on them
                executor.shutdown(wait=False, cancel_futures=True)

        report.processing_time = time.monotonic() - start_time
        Print("COMPLETED", f"Processed {report.processed}/{report.total} files in {report.processing_time:.2f}s")
        Print("DEBUG", CPU_and_Mem_usage())
        return report

    def _collect(self, report: BatchReport, upload: UploadedFile, future: Future, deadline: float) -> None:
        """Wait for one file's future until its deadline and record the outcome."""
        try:
            try:
                result = future.result(timeout=max(0.0, deadline - time.monotonic()))
            except FutureTimeoutError:
                future.cancel()
                raise CompressionTimeout(upload.name, self.settings.timeout_seconds) from None
            file_report = build_report(upload, result)
        except Exception as e:
            self._record_failure(report, upload, e)
            return

        report.files.append(file_report)
        suffix = " (estimated)" if file_report.estimated else ""
        Print("SUCCESS",
            f"{upload.name}: {human_size(file_report.original_size)} -> "
            f"{human_size(file_report.compressed_size)} ({file_report.compression_ratio}%){suffix}"
        )

    def _record_failure(self, report: BatchReport, upload: UploadedFile, error: Exception) -> None:
        report.failures.append(FileFailure(upload.name, str(error), type(error).__name__))
        Print("FAILURE", f"{upload.name}: {type(error).__name__}: {error}")


def guess_mime_type(path: Path) -> str:
    """MIME type from the file extension, or application/octet-stream."""
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or "application/octet-stream"


def output_path_for(output_dir: Path, source: Path, mime_type: str) -> Path:
    """Output file name: same stem, extension matching the output MIME type."""
    extension = MIME_EXTENSIONS.get(mime_type, source.suffix)
    if source.suffix.lower() in (".jpeg", ".jpg") and extension == ".jpg":
        extension = source.suffix
    return output_dir / f"{source.stem}{extension}"


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description='Compactor: compress PDF, JPEG/PNG and DOCX files',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Supported types: {', '.join(SUPPORTED_MIME_TYPES)}

Examples:
  compactor photo.png --output-dir out/
  compactor a.pdf b.jpg c.docx --output-dir out/ --json
  compactor notes.docx --output-dir out/ --docx-mode repack
        """
    )

    parser.add_argument('inputs', type=Path, nargs='+', help='Files to compress')
    parser.add_argument('--output-dir', '-o', type=Path, default=Path('compressed'), help='Output directory (default: ./compressed)')
    parser.add_argument('--config', type=Path, default=None, help='Path to config.json')
    parser.add_argument('--docx-mode', choices=['estimate', 'repack'], default=None, help='Override DOCX handling')
    parser.add_argument('--json', action='store_true', help='Print the batch report as JSON')

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        if args.docx_mode:
            config.setdefault('document', {})['mode'] = args.docx_mode
        settings = CompressionSettings.from_config(config)
    except (FileNotFoundError, ValueError, KeyError) as e:
        Print("FAILURE", f"Configuration error: {e}")
        return 2

    try:
        uploads = []
        for path in args.inputs:
            if not path.is_file():
                Print("WARNING", f"Skipping missing file: {path}")
                continue
            uploads.append(UploadedFile(path.name, guess_mime_type(path), path.read_bytes()))

        if not uploads:
            Print("FAILURE", "No input files to process")
            return 1

        pipeline = CompressionPipeline(settings=settings)
        report = pipeline.process_batch(uploads)

        args.output_dir.mkdir(parents=True, exist_ok=True)
        for file_report in report.files:
            if file_report.estimated:
                Print("INFO", f"{file_report.name}: estimate only, not written")
                continue
            target = output_path_for(args.output_dir, Path(file_report.name), file_report.mime_type)
            target.write_bytes(file_report.buffer)
            Print("INFO", f"Saved: {target}")

        if args.json:
            print(json.dumps(report.to_dict(), indent=2))

        return 0 if report.succeeded else 1

    except KeyboardInterrupt:
        Print("WARNING", "Interrupted by user")
        return 130


if __name__ == "__main__":
    import sys
    sys.exit(main())
