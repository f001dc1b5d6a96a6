from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from notestore.schemas.folder import Folder
from notestore.schemas.note import Note, NoteKind, NoteMetadata
from notestore.schemas.types import Blob, ItemId, NodeId


class ExportData(BaseModel):
    """Persisted record and export bundle body.

    Version 0 carries notes inline in ``notes``; version 1 keeps only
    ``note_metadata`` and stores content beside the record.
    """

    model_config = ConfigDict(extra="ignore")

    version: int = Field(ge=0)
    folders: list[Folder] = []
    notes: list[Note] = []
    note_metadata: list[NoteMetadata] = []
    # note_id -> {invitee_node_id -> inviter_node_id}
    collaboration_invites: dict[str, dict[str, str]] = {}


# Older installations only know these spellings
LEGACY_KIND_NAMES: dict[NoteKind, str] = {
    NoteKind.MARKDOWN: "Markdown",
    NoteKind.DRAWING: "Tldraw",
}


class LegacyNote(BaseModel):
    """Inline note as version 0 readers expect it: ``note_type`` instead of ``kind``."""

    id: ItemId
    name: str
    folder_id: ItemId | None = None
    note_type: Literal["Markdown", "Tldraw"]
    content: Blob = b""
    is_public: bool = False
    collaborators: list[NodeId] = []

    @classmethod
    def from_note(cls, note: Note) -> "LegacyNote":
        return cls(
            id=note.id,
            name=note.name,
            folder_id=note.folder_id,
            note_type=LEGACY_KIND_NAMES[note.kind],
            content=note.content,
            is_public=note.is_public,
            collaborators=note.collaborators,
        )


class LegacyExportData(BaseModel):
    """Bundle body in the version 0 shape, written on export."""

    version: int = 0
    folders: list[Folder] = []
    notes: list[LegacyNote] = []
    note_metadata: list[NoteMetadata] = []
    collaboration_invites: dict[str, dict[str, str]] = {}
