import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from notestore.services.auth import decode_token
from notestore.services.dispatcher import Dispatcher
from notestore.services.notes_tree import NoteTree

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_tree(request: Request) -> NoteTree:
    return request.app.state.tree


def get_dispatcher(tree: NoteTree = Depends(get_tree)) -> Dispatcher:
    return Dispatcher(tree)


async def get_requester(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    """Node identity carried by the bearer token."""
    try:
        token_data = decode_token(credentials.credentials)
    except Exception as e:
        logger.warning("Invalid token", extra={"error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return token_data.node_id


async def require_owner(
    requester: str = Depends(get_requester),
    tree: NoteTree = Depends(get_tree),
) -> str:
    if requester != tree.node_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the owning node may do this")
    return requester
