"""Unauthenticated read-only access to notes marked public."""

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from notestore.dependencies import get_tree
from notestore.exceptions import NoteStoreError
from notestore.middleware.rate_limit import public_limiter
from notestore.schemas.note import PublicNote
from notestore.schemas.types import ItemId
from notestore.services.notes_tree import NoteTree

router = APIRouter(prefix="/public", tags=["public"])


class PublicNoteRequest(BaseModel):
    note_id: ItemId


def _public_note(tree: NoteTree, note_id: str) -> PublicNote:
    try:
        return tree.get_public_note(note_id)
    except NoteStoreError:
        raise HTTPException(status_code=404, detail="Note not found")


@router.get("", response_model=list[PublicNote])
@public_limiter
async def list_public_notes(
    request: Request,
    tree: NoteTree = Depends(get_tree),
) -> list[PublicNote]:
    return tree.list_public_notes()


@router.get("/{note_id}", response_model=PublicNote)
@public_limiter
async def get_public_note(
    request: Request,
    note_id: str,
    tree: NoteTree = Depends(get_tree),
) -> PublicNote:
    return _public_note(tree, note_id)


@router.post("", response_model=PublicNote)
@public_limiter
async def post_public_note(
    request: Request,
    data: PublicNoteRequest,
    tree: NoteTree = Depends(get_tree),
) -> PublicNote:
    return _public_note(tree, data.note_id)
