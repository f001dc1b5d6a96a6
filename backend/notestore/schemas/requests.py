"""Request variants accepted by the dispatcher, one per tree operation, tagged by ``op``."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from notestore.schemas.note import Kind, NoteKind
from notestore.schemas.types import Blob, ItemId, NodeId


class CreateFolder(BaseModel):
    op: Literal["create_folder"] = "create_folder"
    name: str
    parent_id: ItemId | None = None


class RenameFolder(BaseModel):
    op: Literal["rename_folder"] = "rename_folder"
    id: ItemId
    name: str


class DeleteFolder(BaseModel):
    op: Literal["delete_folder"] = "delete_folder"
    id: ItemId


class MoveFolder(BaseModel):
    op: Literal["move_folder"] = "move_folder"
    id: ItemId
    parent_id: ItemId | None = None


class CreateNote(BaseModel):
    op: Literal["create_note"] = "create_note"
    name: str
    folder_id: ItemId | None = None
    kind: Kind = NoteKind.MARKDOWN


class RenameNote(BaseModel):
    op: Literal["rename_note"] = "rename_note"
    id: ItemId
    name: str


class DeleteNote(BaseModel):
    op: Literal["delete_note"] = "delete_note"
    id: ItemId


class MoveNote(BaseModel):
    op: Literal["move_note"] = "move_note"
    id: ItemId
    folder_id: ItemId | None = None


class GetNote(BaseModel):
    op: Literal["get_note"] = "get_note"
    id: ItemId


class UpdateNoteContent(BaseModel):
    op: Literal["update_note_content"] = "update_note_content"
    id: ItemId
    content: Blob


class SetNotePublic(BaseModel):
    op: Literal["set_note_public"] = "set_note_public"
    id: ItemId
    is_public: bool


class InviteCollaborator(BaseModel):
    op: Literal["invite_collaborator"] = "invite_collaborator"
    note_id: ItemId
    node_id: NodeId


class RemoveCollaborator(BaseModel):
    op: Literal["remove_collaborator"] = "remove_collaborator"
    note_id: ItemId
    node_id: NodeId


class AcceptInvite(BaseModel):
    op: Literal["accept_invite"] = "accept_invite"
    note_id: ItemId
    inviter_node_id: NodeId


class RejectInvite(BaseModel):
    op: Literal["reject_invite"] = "reject_invite"
    note_id: ItemId
    inviter_node_id: NodeId


class GetStructure(BaseModel):
    op: Literal["get_structure"] = "get_structure"


class GetInvites(BaseModel):
    op: Literal["get_invites"] = "get_invites"


class ExportAll(BaseModel):
    op: Literal["export_all"] = "export_all"


class ImportAll(BaseModel):
    op: Literal["import_all"] = "import_all"
    bundle: Blob


Request = Annotated[
    Union[
        CreateFolder,
        RenameFolder,
        DeleteFolder,
        MoveFolder,
        CreateNote,
        RenameNote,
        DeleteNote,
        MoveNote,
        GetNote,
        UpdateNoteContent,
        SetNotePublic,
        InviteCollaborator,
        RemoveCollaborator,
        AcceptInvite,
        RejectInvite,
        GetStructure,
        GetInvites,
        ExportAll,
        ImportAll,
    ],
    Field(discriminator="op"),
]

request_adapter: TypeAdapter[Request] = TypeAdapter(Request)


class Bundle(BaseModel):
    data: Blob


class ApiResponse(BaseModel):
    """Either ``ok`` carries the payload or ``err`` carries a message for the client."""

    op: str
    ok: Any = None
    err: str | None = None

    @property
    def is_ok(self) -> bool:
        return self.err is None
