"""Folder/note tree for one node, persisted to {data_dir}/state.json."""

import copy
import logging
import time
from collections.abc import Iterator
from pathlib import Path

from notestore.exceptions import (
    ContentNotFound,
    CycleDetected,
    FolderNotFound,
    InvalidInvitee,
    InvalidInviter,
    MigrationError,
    NoInvite,
    NoteNotFound,
    ParentNotFound,
    Unauthorized,
)
from notestore.schemas.export import ExportData
from notestore.schemas.folder import Folder
from notestore.schemas.note import Invite, Note, NoteKind, NoteMetadata, PublicNote, Structure
from notestore.services.workspace import ContentStore
from notestore.services.workspace_migrate import CURRENT_VERSION, migrate, parse_record

logger = logging.getLogger(__name__)

STATE_FILE = "state.json"

_last_id = 0


def generate_id() -> str:
    """Nanosecond timestamp, bumped when the clock has not moved since the last id."""
    global _last_id
    now = time.time_ns()
    if now <= _last_id:
        now = _last_id + 1
    _last_id = now
    return str(now)


def _id_order(item_id: str) -> tuple[int, str]:
    # Timestamp ids sort numerically when compared by length first
    return (len(item_id), item_id)


class NoteTree:
    def __init__(self, data_dir: str | Path, node_id: str):
        self.data_dir = Path(data_dir)
        self.node_id = node_id
        self.workspace = ContentStore(self.data_dir)
        self.folders: dict[str, Folder] = {}
        self.notes: dict[str, NoteMetadata] = {}
        self.root_items: set[str] = set()
        # note_id -> {invitee_node_id -> inviter_node_id}
        self.collaboration_invites: dict[str, dict[str, str]] = {}

    @property
    def state_path(self) -> Path:
        return self.data_dir / STATE_FILE

    # Persistence

    def to_record(self) -> ExportData:
        return ExportData(
            version=CURRENT_VERSION,
            folders=[self.folders[i] for i in sorted(self.folders, key=_id_order)],
            notes=[],
            note_metadata=[self.notes[i] for i in sorted(self.notes, key=_id_order)],
            collaboration_invites=copy.deepcopy(self.collaboration_invites),
        )

    def save_to_disk(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        tmp = self.state_path.with_suffix(".json.tmp")
        tmp.write_text(self.to_record().model_dump_json(), encoding="utf-8")
        tmp.replace(self.state_path)

    @classmethod
    def load(cls, data_dir: str | Path, node_id: str) -> "NoteTree":
        """Load state from disk. A missing or unreadable record yields an empty tree."""
        tree = cls(data_dir, node_id)
        if not tree.state_path.exists():
            return tree
        try:
            raw = parse_record(tree.state_path.read_bytes())
            record = migrate(raw, tree.workspace)
            tree.apply_record(record)
            changed = tree.reconcile()
            if changed or raw.version < CURRENT_VERSION:
                tree.save_to_disk()
        except (MigrationError, OSError) as e:
            logger.error("Error loading state, starting fresh", extra={"path": str(tree.state_path), "error": str(e)})
            tree._set_aside_unreadable_state()
            return cls(data_dir, node_id)

        logger.info(
            "Loaded state",
            extra={"folders": len(tree.folders), "notes": len(tree.notes), "version": raw.version},
        )
        return tree

    def _set_aside_unreadable_state(self) -> None:
        target = self.state_path.with_name(f"{STATE_FILE}.unreadable-{time.time_ns()}")
        try:
            self.state_path.replace(target)
        except OSError as e:
            logger.error("Failed to set aside unreadable state", extra={"error": str(e)})
        else:
            logger.warning("Unreadable state kept at %s", target)

    def apply_record(self, record: ExportData) -> None:
        """Merge a migrated record into the tables. Imported ids overwrite existing ones."""
        for folder in record.folders:
            self.folders[folder.id] = folder
        for metadata in record.note_metadata:
            self.notes[metadata.id] = metadata
        # Records that still carry inline notes keep them as metadata plus workspace content
        for note in record.notes:
            self.workspace.save(note.id, note.kind, note.content)
            self.notes[note.id] = note.metadata()
        for note_id, invites in record.collaboration_invites.items():
            self.collaboration_invites.setdefault(note_id, {}).update(invites)
        self._rebuild_root_items()

    def clone(self) -> "NoteTree":
        other = NoteTree(self.data_dir, self.node_id)
        other.folders = copy.deepcopy(self.folders)
        other.notes = copy.deepcopy(self.notes)
        other.root_items = set(self.root_items)
        other.collaboration_invites = copy.deepcopy(self.collaboration_invites)
        return other

    def adopt(self, other: "NoteTree") -> None:
        """Take over the tables of a clone that was modified successfully."""
        self.folders = other.folders
        self.notes = other.notes
        self.root_items = other.root_items
        self.collaboration_invites = other.collaboration_invites

    # Consistency

    def _rebuild_root_items(self) -> None:
        self.root_items = {f.id for f in self.folders.values() if f.parent_id is None} | {
            n.id for n in self.notes.values() if n.folder_id is None
        }

    def _ancestors(self, folder_id: str) -> Iterator[str]:
        seen: set[str] = set()
        current = self.folders[folder_id].parent_id
        while current is not None and current not in seen and current in self.folders:
            yield current
            seen.add(current)
            current = self.folders[current].parent_id

    def reconcile(self, pending: ContentStore | None = None) -> bool:
        """Repair state that did not come from this tree's own operations.

        Content already staged in ``pending`` counts as present. Returns True
        when the structured record changed and needs persisting.
        """
        changed = False

        for folder in self.folders.values():
            if folder.parent_id is not None and folder.parent_id not in self.folders:
                logger.warning("Folder parent missing, moving to root", extra={"folder_id": folder.id})
                folder.parent_id = None
                changed = True
        for folder_id in sorted(self.folders, key=_id_order):
            if folder_id in self._ancestors(folder_id):
                logger.warning("Folder parent cycle, moving to root", extra={"folder_id": folder_id})
                self.folders[folder_id].parent_id = None
                changed = True

        for note in self.notes.values():
            if note.folder_id is not None and note.folder_id not in self.folders:
                logger.warning("Note folder missing, moving to root", extra={"note_id": note.id})
                note.folder_id = None
                changed = True
            collaborators = list(dict.fromkeys(c for c in note.collaborators if c != self.node_id))
            if collaborators != note.collaborators:
                note.collaborators = collaborators
                changed = True
            staged = pending is not None and pending.exists(note.id, note.kind)
            if not staged and not self.workspace.exists(note.id, note.kind):
                logger.warning("Note content missing, starting empty", extra={"note_id": note.id})
                self.workspace.save(note.id, note.kind, b"")

        # Unreferenced files may belong to a record that was set aside, so they stay on disk
        unreferenced = [
            path
            for path, note_id in self.workspace.stored_files().items()
            if note_id not in self.notes or path != self.workspace.note_path(note_id, self.notes[note_id].kind)
        ]
        if unreferenced:
            logger.info("Leaving unreferenced note content in place", extra={"files": len(unreferenced)})

        for note_id in list(self.collaboration_invites):
            if note_id not in self.notes or not self.collaboration_invites[note_id]:
                del self.collaboration_invites[note_id]
                changed = True

        roots_before = self.root_items
        self._rebuild_root_items()
        return changed or roots_before != self.root_items

    def check_invariants(self) -> list[str]:
        problems: list[str] = []
        for folder in self.folders.values():
            if folder.parent_id is not None and folder.parent_id not in self.folders:
                problems.append(f"folder {folder.id} has missing parent {folder.parent_id}")
            if folder.id in self._ancestors(folder.id):
                problems.append(f"folder {folder.id} is its own ancestor")
        for note in self.notes.values():
            if note.folder_id is not None and note.folder_id not in self.folders:
                problems.append(f"note {note.id} has missing folder {note.folder_id}")
            if self.node_id in note.collaborators:
                problems.append(f"note {note.id} lists its owner as collaborator")
            if len(set(note.collaborators)) != len(note.collaborators):
                problems.append(f"note {note.id} has duplicate collaborators")
        expected = {f.id for f in self.folders.values() if f.parent_id is None} | {
            n.id for n in self.notes.values() if n.folder_id is None
        }
        if expected != self.root_items:
            problems.append(f"root items {sorted(self.root_items)} != {sorted(expected)}")
        return problems

    # Content

    def materialize(self, metadata: NoteMetadata, best_effort: bool = True) -> Note:
        if best_effort:
            try:
                content = self.workspace.load(metadata.id, metadata.kind)
            except (ContentNotFound, OSError) as e:
                logger.warning("Note content unavailable", extra={"note_id": metadata.id, "error": str(e)})
                content = b""
        else:
            content = self.workspace.load(metadata.id, metadata.kind)
        return metadata.with_content(content)

    def can_write(self, metadata: NoteMetadata, requester: str | None) -> bool:
        return requester is not None and (requester == self.node_id or requester in metadata.collaborators)

    # Folders

    def _get_folder(self, folder_id: str) -> Folder:
        folder = self.folders.get(folder_id)
        if folder is None:
            raise FolderNotFound()
        return folder

    def _check_parent(self, parent_id: str | None) -> None:
        if parent_id is not None and parent_id not in self.folders:
            raise ParentNotFound()

    def create_folder(self, name: str, parent_id: str | None = None) -> Folder:
        self._check_parent(parent_id)
        folder = Folder(id=generate_id(), name=name, parent_id=parent_id)
        self.folders[folder.id] = folder
        if parent_id is None:
            self.root_items.add(folder.id)
        self.save_to_disk()
        return folder

    def rename_folder(self, folder_id: str, name: str) -> Folder:
        folder = self._get_folder(folder_id)
        folder.name = name
        self.save_to_disk()
        return folder

    def delete_folder(self, folder_id: str) -> None:
        """Remove a folder. Its direct children move to root; nothing else is deleted."""
        self._get_folder(folder_id)
        del self.folders[folder_id]
        self.root_items.discard(folder_id)
        for note in self.notes.values():
            if note.folder_id == folder_id:
                note.folder_id = None
                self.root_items.add(note.id)
        for subfolder in self.folders.values():
            if subfolder.parent_id == folder_id:
                subfolder.parent_id = None
                self.root_items.add(subfolder.id)
        self.save_to_disk()

    def move_folder(self, folder_id: str, parent_id: str | None) -> Folder:
        folder = self._get_folder(folder_id)
        self._check_parent(parent_id)
        if parent_id is not None and (parent_id == folder_id or folder_id in self._ancestors(parent_id)):
            raise CycleDetected()

        if folder.parent_id is None:
            self.root_items.discard(folder_id)
        folder.parent_id = parent_id
        if parent_id is None:
            self.root_items.add(folder_id)
        self.save_to_disk()
        return folder

    # Notes

    def _get_note(self, note_id: str) -> NoteMetadata:
        metadata = self.notes.get(note_id)
        if metadata is None:
            raise NoteNotFound()
        return metadata

    def create_note(self, name: str, folder_id: str | None = None, kind: NoteKind = NoteKind.MARKDOWN) -> Note:
        self._check_parent(folder_id)
        metadata = NoteMetadata(id=generate_id(), name=name, folder_id=folder_id, kind=kind)
        # Content first, then the metadata commit
        self.workspace.save(metadata.id, kind, b"")
        self.notes[metadata.id] = metadata
        if folder_id is None:
            self.root_items.add(metadata.id)
        self.save_to_disk()
        return metadata.with_content(b"")

    def rename_note(self, note_id: str, name: str) -> Note:
        metadata = self._get_note(note_id)
        metadata.name = name
        self.save_to_disk()
        return self.materialize(metadata)

    def move_note(self, note_id: str, folder_id: str | None) -> Note:
        metadata = self._get_note(note_id)
        self._check_parent(folder_id)
        if metadata.folder_id is None:
            self.root_items.discard(note_id)
        metadata.folder_id = folder_id
        if folder_id is None:
            self.root_items.add(note_id)
        self.save_to_disk()
        return self.materialize(metadata)

    def delete_note(self, note_id: str) -> None:
        metadata = self._get_note(note_id)
        del self.notes[note_id]
        self.root_items.discard(note_id)
        self.collaboration_invites.pop(note_id, None)
        self.save_to_disk()
        self.workspace.delete(note_id, metadata.kind)

    def get_note(self, note_id: str, requester: str | None) -> Note | PublicNote:
        """Full note for the owner and collaborators, redacted view for anyone else if public."""
        metadata = self.notes.get(note_id)
        if metadata is None:
            raise Unauthorized()
        if self.can_write(metadata, requester):
            return self.materialize(metadata, best_effort=False)
        if metadata.is_public:
            return self.materialize(metadata, best_effort=False).redacted()
        raise Unauthorized()

    def get_public_note(self, note_id: str) -> PublicNote:
        metadata = self.notes.get(note_id)
        if metadata is None or not metadata.is_public:
            raise NoteNotFound()
        return self.materialize(metadata, best_effort=False).redacted()

    def list_public_notes(self) -> list[PublicNote]:
        return [
            self.materialize(self.notes[i]).redacted()
            for i in sorted(self.notes, key=_id_order)
            if self.notes[i].is_public
        ]

    def update_note_content(self, note_id: str, content: bytes, requester: str | None) -> None:
        metadata = self.notes.get(note_id)
        if metadata is None or not self.can_write(metadata, requester):
            raise Unauthorized()
        self.workspace.save(note_id, metadata.kind, content)

    def set_note_public(self, note_id: str, is_public: bool) -> Note:
        metadata = self._get_note(note_id)
        metadata.is_public = is_public
        self.save_to_disk()
        return self.materialize(metadata)

    # Collaboration

    def _clear_invite(self, note_id: str, invitee: str) -> None:
        invites = self.collaboration_invites.get(note_id)
        if invites is None:
            return
        invites.pop(invitee, None)
        if not invites:
            del self.collaboration_invites[note_id]

    def invite_collaborator(self, note_id: str, invitee: str) -> Note:
        metadata = self._get_note(note_id)
        if invitee == self.node_id:
            raise InvalidInvitee()
        self.collaboration_invites.setdefault(note_id, {})[invitee] = self.node_id
        self.save_to_disk()
        return self.materialize(metadata)

    def remove_collaborator(self, note_id: str, node: str) -> Note:
        metadata = self._get_note(note_id)
        metadata.collaborators = [c for c in metadata.collaborators if c != node]
        self._clear_invite(note_id, node)
        self.save_to_disk()
        return self.materialize(metadata)

    def _pending_invite(self, note_id: str, inviter: str, invitee: str) -> None:
        invites = self.collaboration_invites.get(note_id, {})
        if invitee not in invites:
            raise NoInvite()
        if invites[invitee] != inviter:
            raise InvalidInviter()

    def accept_invite(self, note_id: str, inviter: str, invitee: str) -> Note:
        self._pending_invite(note_id, inviter, invitee)
        metadata = self._get_note(note_id)
        if invitee != self.node_id and invitee not in metadata.collaborators:
            metadata.collaborators.append(invitee)
        self._clear_invite(note_id, invitee)
        self.save_to_disk()
        return self.materialize(metadata)

    def reject_invite(self, note_id: str, inviter: str, invitee: str) -> None:
        self._pending_invite(note_id, inviter, invitee)
        self._clear_invite(note_id, invitee)
        self.save_to_disk()

    def get_invites(self, node: str) -> list[Invite]:
        invites: list[Invite] = []
        for note_id in sorted(self.collaboration_invites, key=_id_order):
            metadata = self.notes.get(note_id)
            inviter = self.collaboration_invites[note_id].get(node)
            if metadata is not None and inviter is not None:
                invites.append(Invite(note_id=note_id, inviter_node_id=inviter, note_name=metadata.name))
        return invites

    # Queries

    def get_structure(self) -> Structure:
        return Structure(
            folders=[self.folders[i] for i in sorted(self.folders, key=_id_order)],
            notes=[self.materialize(self.notes[i]) for i in sorted(self.notes, key=_id_order)],
        )
