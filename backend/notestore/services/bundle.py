"""Export bundle: the whole tree as gzip-compressed JSON with note content inline."""

import copy
import gzip
import logging
import tempfile
import zlib

from notestore.exceptions import BundleError
from notestore.schemas.export import ExportData, LegacyExportData, LegacyNote
from notestore.services.notes_tree import NoteTree
from notestore.services.workspace import ContentStore
from notestore.services.workspace_migrate import migrate, parse_record

logger = logging.getLogger(__name__)

# Bundles use the inline-content shape so every older installation can import them
EXPORT_VERSION = 0


def export_bundle(tree: NoteTree) -> bytes:
    structure = tree.get_structure()
    record = LegacyExportData(
        version=EXPORT_VERSION,
        folders=structure.folders,
        notes=[LegacyNote.from_note(note) for note in structure.notes],
        note_metadata=[],
        collaboration_invites=copy.deepcopy(tree.collaboration_invites),
    )
    data = gzip.compress(record.model_dump_json().encode("utf-8"))
    logger.info("Exported bundle", extra={"folders": len(record.folders), "notes": len(record.notes), "size": len(data)})
    return data


def read_bundle(blob: bytes) -> ExportData:
    try:
        raw = gzip.decompress(blob)
    except (OSError, EOFError, zlib.error) as e:
        raise BundleError(f"Failed to decompress data: {e}") from e
    return parse_record(raw)


def import_bundle(tree: NoteTree, blob: bytes) -> None:
    """Merge a bundle into the tree.

    Inline content is extracted into a staging directory and the merge runs on
    a clone. Staged content is moved into the workspace, and the live tables
    replaced, only once parsing, migration and reconciliation have succeeded.
    """
    record = read_bundle(blob)
    tree.data_dir.mkdir(parents=True, exist_ok=True)
    with tempfile.TemporaryDirectory(prefix=".import-", dir=tree.data_dir) as staging_dir:
        staging = ContentStore(staging_dir)
        migrated = migrate(record, staging)

        staged = tree.clone()
        staged.apply_record(migrated)
        staged.reconcile(pending=staging)

        moved = tree.workspace.take_over(staging)
        tree.adopt(staged)
        tree.save_to_disk()
    logger.info(
        "Imported bundle",
        extra={
            "version": record.version,
            "folders": len(record.folders),
            "notes": len(record.notes) + len(record.note_metadata),
            "content_files": moved,
        },
    )
