from enum import Enum
from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field

from notestore.schemas.folder import Folder
from notestore.schemas.types import Blob, ItemId, NodeId


class NoteKind(str, Enum):
    MARKDOWN = "Markdown"
    DRAWING = "Drawing"


def _legacy_kind(value: Any) -> Any:
    # Older records call drawings by the editor's name
    if value == "Tldraw":
        return NoteKind.DRAWING
    return value


Kind = Annotated[NoteKind, BeforeValidator(_legacy_kind)]


class NoteMetadata(BaseModel):
    """Everything about a note except its content, which lives in the workspace."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: ItemId
    name: str
    folder_id: ItemId | None = None
    kind: Kind = Field(
        default=NoteKind.MARKDOWN,
        validation_alias=AliasChoices("kind", "note_type"),
    )
    is_public: bool = False
    collaborators: list[NodeId] = []

    def with_content(self, content: bytes) -> "Note":
        return Note(**self.model_dump(), content=content)


class Note(NoteMetadata):
    content: Blob = b""

    def metadata(self) -> NoteMetadata:
        return NoteMetadata(**self.model_dump(exclude={"content"}))

    def redacted(self) -> "PublicNote":
        return PublicNote(
            id=self.id,
            name=self.name,
            kind=self.kind,
            content=self.content,
            is_public=self.is_public,
        )


class PublicNote(BaseModel):
    """Read-only view served to anyone: no folder placement, no collaborator list."""

    id: ItemId
    name: str
    kind: NoteKind
    content: Blob = b""
    is_public: bool = True


class Invite(BaseModel):
    note_id: ItemId
    inviter_node_id: NodeId
    note_name: str


class Structure(BaseModel):
    folders: list[Folder] = []
    notes: list[Note] = []
