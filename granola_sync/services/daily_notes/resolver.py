"""Get-or-create lookup of the daily note for a calendar day."""

import logging
from datetime import date

from granola_sync.core.config import Settings, get_settings
from granola_sync.services.storage.file_store import VaultFileStore
from granola_sync.services.storage.path_resolver import join_path

logger = logging.getLogger(__name__)


class DailyNoteResolver:
    """Maps a date to its daily note file using ``daily_note_folder`` and
    ``daily_note_format``."""

    def __init__(self, store: VaultFileStore, settings: Settings | None = None) -> None:
        self._store = store
        self._settings = settings or get_settings()

    def path_for(self, day: date) -> str:
        name = day.strftime(self._settings.daily_note_format or "%Y-%m-%d")
        return join_path(self._settings.daily_note_folder, f"{name}.md")

    def get_or_create(self, day: date) -> str:
        """Path of the daily note for ``day``, creating an empty file if missing."""
        path = self.path_for(day)
        if not self._store.exists(path):
            self._store.write(path, "")
            logger.info("Created daily note %s", path)
        return path
