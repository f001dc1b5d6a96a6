"""Bring persisted state and imported bundles up to the current record version."""

import logging
from collections.abc import Callable

import pydantic

from notestore.exceptions import MigrationError, UnsupportedFutureVersion
from notestore.schemas.export import ExportData
from notestore.schemas.note import NoteMetadata
from notestore.services.workspace import ContentStore

logger = logging.getLogger(__name__)

# Version 0: notes carried inline with their content
# Version 1: note metadata only, content in workspace files
VERSION_SEPARATE_FILES = 1
CURRENT_VERSION = 1


def parse_record(raw: bytes | str) -> ExportData:
    try:
        return ExportData.model_validate_json(raw)
    except pydantic.ValidationError as e:
        raise MigrationError(f"Failed to parse JSON data: {e}") from e


def _extract_inline_content(data: ExportData, workspace: ContentStore) -> ExportData:
    """Write inline note content to workspace files and keep only metadata in the record."""
    converted: dict[str, NoteMetadata] = {}
    written = 0
    for note in data.notes:
        try:
            workspace.save(note.id, note.kind, note.content)
            written += 1
        except OSError as e:
            # The note survives with its content lost; one bad file must not abort the migration
            logger.error(
                "Failed to write note content during migration",
                extra={"note_id": note.id, "error": str(e)},
            )
        converted[note.id] = note.metadata()

    kept = [m for m in data.note_metadata if m.id not in converted]
    if data.notes:
        logger.info("Extracted %s of %s inline notes to workspace", written, len(data.notes))
    return data.model_copy(
        update={
            "notes": [],
            "note_metadata": kept + list(converted.values()),
            "version": VERSION_SEPARATE_FILES,
        }
    )


# Keyed by the version a step upgrades from; every step returns a record one version up.
MIGRATIONS: dict[int, Callable[[ExportData, ContentStore], ExportData]] = {
    0: _extract_inline_content,
}


def migrate(data: ExportData, workspace: ContentStore) -> ExportData:
    if data.version > CURRENT_VERSION:
        raise UnsupportedFutureVersion(data.version, CURRENT_VERSION)

    while data.version < CURRENT_VERSION:
        logger.info("Migrating state from version %s to %s", data.version, data.version + 1)
        data = MIGRATIONS[data.version](data, workspace)

    return data.model_copy(update={"version": CURRENT_VERSION})
