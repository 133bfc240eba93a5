"""Sync cycle orchestration and the periodic sync loop.

One cycle: load credentials, fetch and filter documents, save transcripts
(so notes can link to them), then save notes as individual files or merge
them into daily note sections. Records are processed strictly one after
another against a cycle-scoped identity cache; vault reads and writes run
in a worker thread via ``asyncio.to_thread`` so the event loop stays free.
A lock keeps cycles from overlapping.

Usage::

    orchestrator = SyncOrchestrator()
    report = await orchestrator.run_cycle()

    periodic = PeriodicSync(orchestrator, interval=1800)
    periodic.start()
    ...
    await periodic.stop()
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, date, datetime

from granola_sync.core.config import Settings, get_settings
from granola_sync.core.exceptions import GranolaAPIError, GranolaSyncError, SyncInProgressError
from granola_sync.core.models import ArtifactKind, GranolaDocument, SyncReport, TranscriptEntry
from granola_sync.core.utils import filter_documents_by_date
from granola_sync.services.daily_notes import (
    DailyNoteBuilder,
    DailyNoteResolver,
    NoteLinkData,
    SectionBoundary,
    SectionWriter,
)
from granola_sync.services.document_processor import DocumentProcessor, NoteData
from granola_sync.services.granola import CredentialProvider, GranolaClient
from granola_sync.services.storage import (
    FileSyncService,
    IdentityCache,
    LiveBuffer,
    PathResolver,
    VaultFileStore,
)

logger = logging.getLogger(__name__)

Notifier = Callable[[str], Awaitable[None]]

_FETCH_ERROR_MESSAGES = {
    "auth": "Authentication failed. Your access token may have expired. "
    "Please open the Granola app to sign in again.",
    "not_found": "API endpoint not found. Please check for updates.",
    "server": "Granola API server error. Please try again later.",
    "network": "Failed to reach the Granola API. Please check your internet connection.",
}


def fetch_error_message(exc: GranolaSyncError) -> str:
    """User-facing text for a fetch-fatal error."""
    if isinstance(exc, GranolaAPIError):
        return _FETCH_ERROR_MESSAGES.get(exc.category, exc.detail)
    return exc.detail


async def _log_notification(message: str) -> None:
    logger.warning("Granola sync: %s", message)


class SyncOrchestrator:
    """Runs sync cycles; at most one at a time.

    Args:
        settings: Application settings (defaults to ``get_settings()``).
        credentials: Access token source.
        client: Granola API client.
        store: Vault file store rooted at ``settings.vault_path``.
        live_buffer: Editor buffer accessor for daily note merges.
        notify: Async callback receiving one message per fetch-fatal error.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        credentials: CredentialProvider | None = None,
        client: GranolaClient | None = None,
        store: VaultFileStore | None = None,
        live_buffer: LiveBuffer | None = None,
        notify: Notifier | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._credentials = credentials or CredentialProvider(self._settings)
        self._client = client or GranolaClient(self._settings)
        self._store = store or VaultFileStore(self._settings.vault_path)
        self._live_buffer = live_buffer
        self._notify = notify or _log_notification
        self._lock = asyncio.Lock()
        self.last_report: SyncReport | None = None

    @property
    def running(self) -> bool:
        return self._lock.locked()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def store(self) -> VaultFileStore:
        return self._store

    async def aclose(self) -> None:
        await self._client.aclose()

    async def run_cycle(self, force: bool = False) -> SyncReport:
        """Run one full sync cycle.

        Raises:
            SyncInProgressError: If another cycle is still running.
        """
        if self._lock.locked():
            raise SyncInProgressError()
        async with self._lock:
            report = await self._run(force or self._settings.force_overwrite)
        self.last_report = report
        return report

    async def trigger(self) -> SyncReport | None:
        """Scheduler entry point: skips instead of raising when busy."""
        if self._lock.locked():
            logger.info("Sync cycle still running, skipping scheduled trigger")
            return None
        return await self.run_cycle()

    async def _run(self, force: bool) -> SyncReport:
        s = self._settings
        report = SyncReport(started_at=datetime.now(UTC))
        logger.info("Sync cycle started (force=%s)", force)

        if not s.sync_notes and not s.sync_transcripts:
            logger.warning("Neither notes nor transcripts are enabled, nothing to sync")
            report.finished_at = datetime.now(UTC)
            return report

        try:
            token = await self._credentials.load()
            documents = await self._client.fetch_documents(token)
        except GranolaSyncError as exc:
            logger.error("Sync aborted: %s", exc.detail)
            report.error = fetch_error_message(exc)
            await self._notify(report.error)
            report.finished_at = datetime.now(UTC)
            return report

        report.fetched = len(documents)
        documents = filter_documents_by_date(documents, s.sync_days_back)
        report.processed = len(documents)

        resolver = PathResolver(s)
        cache = IdentityCache(self._store)
        await asyncio.to_thread(cache.rebuild)
        file_sync = FileSyncService(self._store, resolver, cache)
        processor = DocumentProcessor(s, resolver)
        failures: list[str] = []

        transcript_paths: dict[str, str] = {}
        linked_transcripts: dict[str, tuple[list[TranscriptEntry], str]] = {}
        combined_entries: dict[str, list[TranscriptEntry]] = {}
        if s.sync_transcripts:
            for doc in documents:
                try:
                    entries = await self._client.fetch_transcript(token, doc.id)
                    if not entries:
                        continue
                    if s.transcript_handling == "combined":
                        combined_entries[doc.id] = entries
                        continue
                    note_path = self._companion_note_path(doc, cache, resolver)
                    artifact = processor.prepare_transcript(doc, entries, note_path)
                    report.tally(await asyncio.to_thread(file_sync.save, artifact, force))
                    entry = cache.find(doc.id, ArtifactKind.transcript)
                    if entry is not None:
                        transcript_paths[doc.id] = entry.path
                        if note_path:
                            linked_transcripts[doc.id] = (entries, note_path)
                except Exception as exc:
                    report.failed += 1
                    failures.append(f"transcript {doc.id}: {exc}")

        if s.sync_notes:
            if s.save_as_individual_files:
                saved: list[tuple[GranolaDocument, str]] = []
                for doc in documents:
                    try:
                        artifact = processor.prepare_note(
                            doc,
                            transcript_path=transcript_paths.get(doc.id),
                            transcript_entries=combined_entries.get(doc.id),
                        )
                        report.tally(await asyncio.to_thread(file_sync.save, artifact, force))
                        entry = cache.find(doc.id, ArtifactKind.note)
                        if entry is not None:
                            saved.append((doc, entry.path))
                    except Exception as exc:
                        report.failed += 1
                        failures.append(f"note {doc.id}: {exc}")
                await self._relink_transcripts(
                    saved, linked_transcripts, processor, file_sync, failures
                )
                if s.link_from_daily_notes and saved:
                    await self._link_from_daily_notes(saved, processor, report, failures, force)
            else:
                await self._merge_daily_notes(documents, processor, report, failures, force)

        if failures:
            logger.debug("%d record(s) failed: %s", len(failures), "; ".join(failures))

        report.finished_at = datetime.now(UTC)
        logger.info(
            "Sync cycle finished: %d fetched, %d created, %d updated, %d unchanged, "
            "%d skipped, %d failed, %d daily note(s) updated",
            report.fetched, report.created, report.updated, report.unchanged,
            report.skipped, report.failed, report.daily_notes_updated,
        )
        return report

    def _companion_note_path(
        self,
        doc: GranolaDocument,
        cache: IdentityCache,
        resolver: PathResolver,
    ) -> str | None:
        """Where the note for ``doc`` lives (or will live), for back-links."""
        s = self._settings
        if not (s.sync_notes and s.save_as_individual_files):
            return None
        entry = cache.find(doc.id, ArtifactKind.note)
        if entry is not None:
            return entry.path
        return resolver.resolve_path(doc, ArtifactKind.note)

    async def _relink_transcripts(
        self,
        saved: list[tuple[GranolaDocument, str]],
        linked_transcripts: dict[str, tuple[list[TranscriptEntry], str]],
        processor: DocumentProcessor,
        file_sync: FileSyncService,
        failures: list[str],
    ) -> None:
        """Point transcript back-links at the note's actual path.

        A transcript is saved before its note, so its ``note`` link is a
        prediction; a collision-suffixed note makes that prediction wrong.
        """
        for doc, note_path in saved:
            linked = linked_transcripts.get(doc.id)
            if linked is None or linked[1] == note_path:
                continue
            entries, _ = linked
            try:
                artifact = processor.prepare_transcript(doc, entries, note_path)
                await asyncio.to_thread(file_sync.save, artifact, True)
                logger.debug("Re-linked transcript of %s to %s", doc.id, note_path)
            except Exception as exc:
                failures.append(f"transcript link {doc.id}: {exc}")

    async def _merge_daily_notes(
        self,
        documents: list[GranolaDocument],
        processor: DocumentProcessor,
        report: SyncReport,
        failures: list[str],
        force: bool,
    ) -> None:
        s = self._settings
        builder = DailyNoteBuilder(processor)
        resolver = DailyNoteResolver(self._store, s)
        writer = SectionWriter(self._store, self._live_buffer)
        boundary = SectionBoundary.from_heading(s.daily_note_section_heading)

        def merge_day(day: date, notes: list[NoteData]) -> bool:
            path = resolver.get_or_create(day)
            if not force:
                existing = builder.extract_existing_notes(
                    writer.read_text(path), boundary.heading_text
                )
                if existing and builder.section_is_current(existing, notes):
                    logger.debug("Daily note %s is up to date", path)
                    return False
            body = builder.build_section_body(notes, boundary.heading_text)
            return writer.update_section(path, boundary, body, force)

        for day, notes in builder.build_daily_notes_map(documents).items():
            try:
                if await asyncio.to_thread(merge_day, day, notes):
                    report.daily_notes_updated += 1
            except Exception as exc:
                report.failed += 1
                failures.append(f"daily note {day.isoformat()}: {exc}")

    async def _link_from_daily_notes(
        self,
        saved: list[tuple[GranolaDocument, str]],
        processor: DocumentProcessor,
        report: SyncReport,
        failures: list[str],
        force: bool,
    ) -> None:
        s = self._settings
        builder = DailyNoteBuilder(processor)
        resolver = DailyNoteResolver(self._store, s)
        writer = SectionWriter(self._store, self._live_buffer)
        boundary = SectionBoundary.from_heading(s.daily_note_link_heading)

        def link_day(day: date, links: list[NoteLinkData]) -> bool:
            path = resolver.get_or_create(day)
            body = builder.build_links_section_body(links)
            return writer.update_section(path, boundary, body, force)

        for day, links in builder.build_links_map(saved).items():
            try:
                if await asyncio.to_thread(link_day, day, links):
                    report.daily_notes_updated += 1
            except Exception as exc:
                report.failed += 1
                failures.append(f"daily note links {day.isoformat()}: {exc}")


class PeriodicSync:
    """Fires ``orchestrator.trigger()`` every ``interval`` seconds.

    Args:
        orchestrator: The orchestrator to trigger.
        interval: Seconds between cycles (defaults to ``sync_interval``).
    """

    def __init__(self, orchestrator: SyncOrchestrator, interval: float | None = None) -> None:
        self._orchestrator = orchestrator
        self._interval = (
            interval if interval is not None else orchestrator.settings.sync_interval
        )
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Launch the background loop."""
        self._stop_event.clear()
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        """Signal the loop to stop and wait for it to finish."""
        self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None

    async def _loop(self) -> None:
        logger.info("Periodic sync started (every %ss)", self._interval)
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except TimeoutError:
                pass  # Interval elapsed
            if self._stop_event.is_set():
                break
            try:
                await self._orchestrator.trigger()
            except Exception:
                logger.exception("Periodic sync cycle crashed")
        logger.info("Periodic sync stopped")
