"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

SubfolderPattern = Literal["none", "day", "month", "year-month", "year-quarter", "custom"]


class Settings(BaseSettings):
    """granola-sync settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        vault_path: Root directory of the vault all relative paths live under.
        save_as_individual_files: True = one file per meeting, False = sections
            merged into daily notes.
        transcript_handling: "combined" appends the transcript to the note,
            "same-location" stores it next to the note, "custom-location" uses
            its own folder settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Vault ---
    vault_path: str = "vault"

    # --- Granola API ---
    granola_api_url: str = "https://api.granola.ai"
    granola_documents_limit: int = 100  # Page size for get-documents
    granola_max_documents: int = 500  # Hard cap across pages
    granola_request_timeout: float = 30.0
    credentials_path: str = ""  # Empty = Granola desktop app default location
    client_version: str = "1.0.0"

    # --- Notes ---
    sync_notes: bool = True
    save_as_individual_files: bool = False
    base_folder_type: Literal["custom", "daily-notes"] = "custom"
    custom_base_folder: str = "Granola"
    subfolder_pattern: SubfolderPattern = "none"
    custom_subfolder_pattern: str = ""  # Variables: {year} {month} {day} {quarter}
    filename_pattern: str = "{title}"  # Variables: {title} {date} {time} {year} {month} {day}
    link_from_daily_notes: bool = False
    daily_note_link_heading: str = "## Meetings"
    daily_note_section_heading: str = "## Granola Notes"
    include_attendees: bool = True
    attendees_field_name: str = "attendees"

    # --- Transcripts ---
    sync_transcripts: bool = False
    transcript_handling: Literal["combined", "same-location", "custom-location"] = (
        "custom-location"
    )
    custom_transcript_base_folder: str = "Granola/Transcripts"
    transcript_subfolder_pattern: SubfolderPattern = "none"
    custom_transcript_subfolder_pattern: str = ""
    transcript_filename_pattern: str = "{title}-transcript"
    create_link_from_note_to_transcript: bool = True

    # --- Daily notes ---
    # strftime format; "/" separators nest the daily note in folders
    daily_note_folder: str = ""
    daily_note_format: str = "%Y-%m-%d"

    # --- Automatic sync ---
    is_sync_enabled: bool = False
    sync_interval: int = 30 * 60  # Seconds between periodic cycles
    sync_days_back: int = 7  # 0 = sync every fetched document
    force_overwrite: bool = False

    # --- Application ---
    app_host: str = "127.0.0.1"
    app_port: int = 8765
    log_level: str = "INFO"  # Python logging level


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
