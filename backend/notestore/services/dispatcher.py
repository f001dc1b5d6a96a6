"""Request dispatcher: maps each request variant to a tree operation and wraps the result."""

import logging
from typing import Any

from notestore.exceptions import NoteStoreError, Unauthorized
from notestore.schemas.requests import (
    AcceptInvite,
    ApiResponse,
    Bundle,
    CreateFolder,
    CreateNote,
    DeleteFolder,
    DeleteNote,
    ExportAll,
    GetInvites,
    GetNote,
    GetStructure,
    ImportAll,
    InviteCollaborator,
    MoveFolder,
    MoveNote,
    RejectInvite,
    RemoveCollaborator,
    RenameFolder,
    RenameNote,
    Request,
    SetNotePublic,
    UpdateNoteContent,
    request_adapter,
)
from notestore.services import bundle
from notestore.services.notes_tree import NoteTree

logger = logging.getLogger(__name__)

# Only the node that owns the tree may reshape it, manage sharing, or move whole bundles
OWNER_ONLY: frozenset[type] = frozenset(
    {
        CreateFolder,
        RenameFolder,
        DeleteFolder,
        MoveFolder,
        CreateNote,
        RenameNote,
        DeleteNote,
        MoveNote,
        SetNotePublic,
        InviteCollaborator,
        RemoveCollaborator,
        GetStructure,
        ExportAll,
        ImportAll,
    }
)

MUTATIONS: frozenset[type] = frozenset(
    {
        CreateFolder,
        RenameFolder,
        DeleteFolder,
        MoveFolder,
        CreateNote,
        RenameNote,
        DeleteNote,
        MoveNote,
        UpdateNoteContent,
        SetNotePublic,
        InviteCollaborator,
        RemoveCollaborator,
        AcceptInvite,
        RejectInvite,
        ImportAll,
    }
)


def parse_request(payload: Any) -> Request:
    """Build a request from a decoded JSON object or raw JSON text."""
    if isinstance(payload, (str, bytes, bytearray)):
        return request_adapter.validate_json(payload)
    return request_adapter.validate_python(payload)


def is_mutation(request: Request) -> bool:
    return type(request) in MUTATIONS


class Dispatcher:
    """Single entry point for requests from the API channel and direct callers.

    Business failures come back in ``ApiResponse.err``; storage errors (OSError)
    propagate and fail the whole request.
    """

    def __init__(self, tree: NoteTree):
        self.tree = tree

    def handle(self, request: Request, requester: str | None = None) -> ApiResponse:
        try:
            if type(request) in OWNER_ONLY and requester != self.tree.node_id:
                raise Unauthorized()
            result = self._dispatch(request, requester)
        except NoteStoreError as e:
            logger.info("Request rejected", extra={"op": request.op, "requester": requester, "error": e.message})
            return ApiResponse(op=request.op, err=e.message)
        return ApiResponse(op=request.op, ok=result)

    def _dispatch(self, request: Request, requester: str | None) -> Any:
        tree = self.tree

        if isinstance(request, CreateFolder):
            return tree.create_folder(request.name, request.parent_id)
        if isinstance(request, RenameFolder):
            return tree.rename_folder(request.id, request.name)
        if isinstance(request, DeleteFolder):
            return tree.delete_folder(request.id)
        if isinstance(request, MoveFolder):
            return tree.move_folder(request.id, request.parent_id)

        if isinstance(request, CreateNote):
            return tree.create_note(request.name, request.folder_id, request.kind)
        if isinstance(request, RenameNote):
            return tree.rename_note(request.id, request.name)
        if isinstance(request, DeleteNote):
            return tree.delete_note(request.id)
        if isinstance(request, MoveNote):
            return tree.move_note(request.id, request.folder_id)
        if isinstance(request, GetNote):
            return tree.get_note(request.id, requester)
        if isinstance(request, UpdateNoteContent):
            return tree.update_note_content(request.id, request.content, requester)
        if isinstance(request, SetNotePublic):
            return tree.set_note_public(request.id, request.is_public)

        if isinstance(request, InviteCollaborator):
            return tree.invite_collaborator(request.note_id, request.node_id)
        if isinstance(request, RemoveCollaborator):
            return tree.remove_collaborator(request.note_id, request.node_id)

        # Invite handling acts on behalf of whoever is asking
        if isinstance(request, (AcceptInvite, RejectInvite, GetInvites)) and requester is None:
            raise Unauthorized()
        if isinstance(request, AcceptInvite):
            return tree.accept_invite(request.note_id, request.inviter_node_id, requester)
        if isinstance(request, RejectInvite):
            return tree.reject_invite(request.note_id, request.inviter_node_id, requester)
        if isinstance(request, GetInvites):
            return tree.get_invites(requester)

        if isinstance(request, GetStructure):
            return tree.get_structure()
        if isinstance(request, ExportAll):
            return Bundle(data=bundle.export_bundle(tree))
        if isinstance(request, ImportAll):
            return bundle.import_bundle(tree, request.bundle)

        raise TypeError(f"Unhandled request type: {type(request).__name__}")
