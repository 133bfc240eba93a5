#!/usr/bin/env python3
"""
granola-sync one-shot sync

Runs a single sync cycle against the configured vault and prints the
report. Exits with status 1 when the cycle aborted before processing any
document (missing credentials, API unreachable, invalid payload).

Usage::

    python scripts/sync_once.py --vault ~/Notes --force
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path for ``granola_sync`` imports
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from granola_sync.core.config import get_settings  # noqa: E402
from granola_sync.services.orchestrator import SyncOrchestrator  # noqa: E402
from granola_sync.services.storage import migrate_legacy_frontmatter  # noqa: E402


async def run(vault: str | None, force: bool) -> int:
    """Run one cycle and print its counters.

    Returns:
        Exit code: 0 on success, 1 on a fetch-fatal error.
    """
    settings = get_settings()
    if vault:
        settings = settings.model_copy(update={"vault_path": str(Path(vault).expanduser())})

    orchestrator = SyncOrchestrator(settings=settings)
    try:
        migrated = migrate_legacy_frontmatter(orchestrator.store)
        if migrated:
            print(f"Migrated frontmatter in {migrated} file(s)")
        report = await orchestrator.run_cycle(force=force)
    finally:
        await orchestrator.aclose()

    if report.error:
        print(f"Sync failed: {report.error}")
        return 1

    print(
        f"Done: {report.fetched} fetched, {report.processed} in range, "
        f"{report.created} created, {report.updated} updated, "
        f"{report.unchanged} unchanged, {report.skipped} skipped, "
        f"{report.failed} failed, {report.daily_notes_updated} daily note(s) updated."
    )
    return 0


def main() -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Run one Granola sync cycle")
    parser.add_argument(
        "--vault",
        type=str,
        default=None,
        help="Vault directory (overrides VAULT_PATH)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite files even when unchanged or newer locally",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print(f"granola-sync one-shot sync (vault: {args.vault or get_settings().vault_path})\n")
    return asyncio.run(run(vault=args.vault, force=args.force))


if __name__ == "__main__":
    sys.exit(main())
