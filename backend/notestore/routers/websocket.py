"""WebSocket channel that pushes the current tree structure to subscribers."""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from notestore.schemas.requests import ApiResponse
from notestore.services.auth import decode_token
from notestore.services.notes_tree import NoteTree

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


class ConnectionManager:
    def __init__(self):
        self.active_connections: dict[str, list[WebSocket]] = {}

    async def connect(self, node_id: str, websocket: WebSocket):
        await websocket.accept()
        if node_id not in self.active_connections:
            self.active_connections[node_id] = []
        self.active_connections[node_id].append(websocket)
        logger.debug("Node connected to WS", extra={"node_id": node_id})

    def disconnect(self, node_id: str, websocket: WebSocket):
        if node_id in self.active_connections:
            if websocket in self.active_connections[node_id]:
                self.active_connections[node_id].remove(websocket)
            if not self.active_connections[node_id]:
                del self.active_connections[node_id]
        logger.debug("Node disconnected from WS", extra={"node_id": node_id})

    async def send(self, node_id: str, message: dict):
        if node_id in self.active_connections:
            disconnected = []
            for connection in self.active_connections[node_id]:
                try:
                    await connection.send_json(message)
                except Exception:
                    logger.debug("Dropping dead WS connection", extra={"node_id": node_id})
                    disconnected.append(connection)
            for conn in disconnected:
                self.disconnect(node_id, conn)

    async def broadcast(self, message: dict):
        for node_id in list(self.active_connections):
            await self.send(node_id, message)


manager = ConnectionManager()


def structure_message(tree: NoteTree) -> dict:
    return ApiResponse(op="get_structure", ok=tree.get_structure()).model_dump(mode="json")


async def push_structure(tree: NoteTree) -> None:
    """Fan the current structure out to every live subscriber."""
    if manager.active_connections:
        await manager.broadcast(structure_message(tree))


@router.websocket("/ws")
async def websocket_structure(websocket: WebSocket):
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=4001)
        return
    try:
        node_id = decode_token(token).node_id
    except Exception:
        await websocket.close(code=4001)
        return

    tree: NoteTree = websocket.app.state.tree
    if node_id != tree.node_id:
        await websocket.close(code=4003)
        return

    await manager.connect(node_id, websocket)
    try:
        await websocket.send_json(structure_message(tree))
        while True:
            # Inbound frames only keep the channel alive
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(node_id, websocket)
