"""
Storage module - Vault file I/O, path resolution and identity-based sync.
"""

from granola_sync.services.storage.file_store import LiveBuffer, VaultFileStore
from granola_sync.services.storage.file_sync import FileSyncService, is_remote_newer
from granola_sync.services.storage.identity_cache import IdentityCache, IdentityCacheEntry
from granola_sync.services.storage.migration import migrate_legacy_frontmatter
from granola_sync.services.storage.path_resolver import (
    PathResolver,
    sanitize_filename,
    title_or_default,
)

__all__ = [
    "FileSyncService",
    "IdentityCache",
    "IdentityCacheEntry",
    "LiveBuffer",
    "PathResolver",
    "VaultFileStore",
    "is_remote_newer",
    "migrate_legacy_frontmatter",
    "sanitize_filename",
    "title_or_default",
]
