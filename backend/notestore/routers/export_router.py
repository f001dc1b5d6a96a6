"""Export endpoints: whole-tree bundle as a gzip download, and its import."""

import io
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from notestore.dependencies import get_tree, require_owner
from notestore.exceptions import MigrationError
from notestore.routers.websocket import push_structure
from notestore.services import bundle
from notestore.services.notes_tree import NoteTree

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/export", tags=["export"])


@router.get("/bundle")
async def download_bundle(
    _: str = Depends(require_owner),
    tree: NoteTree = Depends(get_tree),
):
    data = bundle.export_bundle(tree)
    return StreamingResponse(
        io.BytesIO(data),
        media_type="application/gzip",
        headers={"Content-Disposition": "attachment; filename=notes-export.json.gz"},
    )


@router.post("/import", status_code=204)
async def upload_bundle(
    request: Request,
    _: str = Depends(require_owner),
    tree: NoteTree = Depends(get_tree),
) -> None:
    data = await request.body()
    if not data:
        raise HTTPException(status_code=400, detail="Missing request body")
    try:
        bundle.import_bundle(tree, data)
    except MigrationError as e:
        logger.warning("Bundle import rejected", extra={"error": e.message})
        raise HTTPException(status_code=400, detail=e.message)
    await push_structure(tree)
