from notestore.schemas.auth import TokenData
from notestore.schemas.export import ExportData
from notestore.schemas.folder import Folder
from notestore.schemas.note import Invite, Note, NoteKind, NoteMetadata, PublicNote, Structure
from notestore.schemas.requests import ApiResponse, Bundle, Request, request_adapter

__all__ = [
    "TokenData",
    "ExportData",
    "Folder",
    "Invite",
    "Note",
    "NoteKind",
    "NoteMetadata",
    "PublicNote",
    "Structure",
    "ApiResponse",
    "Bundle",
    "Request",
    "request_adapter",
]
