"""Ingest pipeline orchestration."""

from __future__ import annotations

import time
from typing import Iterator, Protocol, Sequence

from doctalk.core.config import Settings, get_settings
from doctalk.core.errors import (
    FOLDER_TOO_LARGE,
    TOO_MANY_FILES,
    DocTalkError,
    IngestionError,
    safe_error_message,
)
from doctalk.core.logging import get_logger, log_context
from doctalk.core.metrics import CHUNKS_CREATED, INGEST_DURATION, INGESTED_FILES
from doctalk.drive.client import DriveFile
from doctalk.ingest.chunker import RecursiveTextSplitter, chunk_document
from doctalk.ingest.extractors import SUPPORTED_MIME_TYPES, ExtractorRegistry
from doctalk.ingest.types import DocumentMetadata, ExtractionResult, IngestStats
from doctalk.models.events import (
    CompleteEvent,
    ErrorEvent,
    FileErrorEvent,
    FileSkippedEvent,
    IngestionEvent,
    ProgressEvent,
    StartedEvent,
)
from doctalk.vectorstore.base import VectorStore

logger = get_logger(__name__)

_MB = 1024 * 1024


class FileSource(Protocol):
    def list_files(self, folder_id: str) -> Sequence[DriveFile]: ...

    def get_folder_name(self, folder_id: str) -> str: ...

    def export_file(self, file_id: str, export_mime_type: str) -> str: ...

    def download_file(self, file_id: str) -> bytes: ...


class IngestPipeline:
    """Coordinate listing, extraction, chunking, and persistence for one folder.

    Files are handled one at a time and every outcome is reported as an event,
    so the stream order matches processing order. A failure inside one file is
    reported and the pipeline moves on; only setup and quota failures end the
    run early.
    """

    def __init__(
        self,
        source: FileSource,
        store: VectorStore,
        settings: Settings | None = None,
        extractors: ExtractorRegistry | None = None,
        splitter: RecursiveTextSplitter | None = None,
    ) -> None:
        self.source = source
        self.store = store
        self.settings = settings or get_settings()
        self.extractors = extractors or ExtractorRegistry()
        self.splitter = splitter or RecursiveTextSplitter(
            chunk_size=self.settings.chunk_size,
            chunk_overlap=self.settings.chunk_overlap,
            separators=self.settings.separators,
        )

    def events(self, folder_id: str, namespace_key: str) -> Iterator[IngestionEvent]:
        """Run ingestion, turning a fatal failure into a single ``error`` event."""
        try:
            yield from self.ingest_folder(folder_id, namespace_key)
        except DocTalkError as exc:
            logger.error(
                "Ingest of folder %s failed: %s (%s)",
                folder_id,
                exc.message,
                exc.code,
                extra=log_context(namespace=namespace_key, code=exc.code),
            )
            yield ErrorEvent(message=safe_error_message(exc), code=exc.code)
        except Exception:
            logger.exception("Ingest of folder %s failed unexpectedly", folder_id, extra=log_context(namespace=namespace_key))
            yield ErrorEvent(message="An unexpected error occurred during ingestion")

    def ingest_folder(self, folder_id: str, namespace_key: str) -> Iterator[IngestionEvent]:
        """Yield progress events; raises on setup or quota failures."""
        files = list(self.source.list_files(folder_id))
        folder_name = self.source.get_folder_name(folder_id)
        self._enforce_quotas(files)

        stats = IngestStats(total_files=len(files))
        started_at = time.perf_counter()
        logger.info(
            "Ingesting %s files from folder %s",
            len(files),
            folder_id,
            extra=log_context(namespace=namespace_key, total_files=len(files)),
        )
        yield StartedEvent(total_files=stats.total_files, folder_name=folder_name)

        for drive_file in files:
            try:
                event = self._process_file(drive_file, folder_id, namespace_key, stats)
            except Exception as exc:
                logger.exception("Failed to ingest %s", drive_file.name, extra=log_context(file_id=drive_file.id))
                stats.failed += 1
                INGESTED_FILES.labels(status="error").inc()
                event = FileErrorEvent(file_name=drive_file.name, error=str(exc) or type(exc).__name__)
            yield event

        INGEST_DURATION.observe(time.perf_counter() - started_at)
        logger.info("Finished folder %s", folder_id, extra=log_context(namespace=namespace_key, **stats.to_dict()))
        yield CompleteEvent(
            total_files=stats.total_files,
            files_processed=stats.processed,
            chunks_created=stats.chunks,
            skipped=stats.skipped,
            errors=stats.failed,
            folder_name=folder_name,
        )

    # Internal helpers -------------------------------------------------

    def _enforce_quotas(self, files: Sequence[DriveFile]) -> None:
        limit = self.settings.max_files
        if len(files) > limit:
            raise IngestionError(
                f"This folder has too many files ({len(files)}, limit is {limit})",
                TOO_MANY_FILES,
            )
        total_size = sum(drive_file.size or 0 for drive_file in files)
        ceiling = self.settings.max_aggregate_size_bytes
        if total_size > ceiling:
            raise IngestionError(
                f"This folder is too large (estimated {round(total_size / _MB)}MB, "
                f"limit is {round(ceiling / _MB)}MB)",
                FOLDER_TOO_LARGE,
            )

    def _process_file(
        self,
        drive_file: DriveFile,
        folder_id: str,
        namespace_key: str,
        stats: IngestStats,
    ) -> IngestionEvent:
        size_limit = self.settings.max_file_size_bytes
        if drive_file.size is not None and drive_file.size > size_limit:
            return self._skip(
                stats,
                drive_file,
                f"File too large ({round(drive_file.size / _MB)}MB, limit is {round(size_limit / _MB)}MB)",
            )
        if drive_file.mime_type not in SUPPORTED_MIME_TYPES:
            return self._skip(stats, drive_file, f"Unsupported file type ({drive_file.mime_type})")

        extraction = self._extract(drive_file)
        if extraction.skipped:
            return self._skip(stats, drive_file, extraction.reason or "Could not extract text")

        chunks = chunk_document(
            extraction.text,
            DocumentMetadata(
                file_id=drive_file.id,
                file_name=drive_file.name,
                file_url=drive_file.web_view_link,
                mime_type=drive_file.mime_type,
                folder_id=folder_id,
            ),
            splitter=self.splitter,
            page_offsets=extraction.page_offsets,
        )
        self.store.upsert_chunks(namespace_key, chunks)

        stats.processed += 1
        stats.chunks += len(chunks)
        INGESTED_FILES.labels(status="processed").inc()
        CHUNKS_CREATED.inc(len(chunks))
        logger.debug("Stored %s chunks for %s", len(chunks), drive_file.name)
        return ProgressEvent(
            files_processed=stats.processed,
            total_files=stats.total_files,
            current_file=drive_file.name,
            chunks_created=stats.chunks,
        )

    def _extract(self, drive_file: DriveFile) -> ExtractionResult:
        export_format = SUPPORTED_MIME_TYPES[drive_file.mime_type]
        if export_format is not None:
            content: str | bytes = self.source.export_file(drive_file.id, export_format)
        else:
            content = self.source.download_file(drive_file.id)
        return self.extractors.extract(content, drive_file.mime_type, drive_file.name)

    def _skip(self, stats: IngestStats, drive_file: DriveFile, reason: str) -> FileSkippedEvent:
        stats.skipped += 1
        INGESTED_FILES.labels(status="skipped").inc()
        logger.info("Skipping %s: %s", drive_file.name, reason, extra=log_context(file_id=drive_file.id))
        return FileSkippedEvent(file_name=drive_file.name, reason=reason)


__all__ = ["IngestPipeline", "FileSource"]
