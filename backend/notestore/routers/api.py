"""Typed request channel: one POST body per tree operation."""

import logging
from typing import Any

import pydantic
from fastapi import APIRouter, Body, Depends
from fastapi.exceptions import RequestValidationError

from notestore.dependencies import get_dispatcher, get_requester
from notestore.routers.websocket import push_structure
from notestore.services.dispatcher import Dispatcher, is_mutation, parse_request

logger = logging.getLogger(__name__)

router = APIRouter(tags=["api"])


@router.post("/api")
async def handle_api_request(
    payload: Any = Body(...),
    requester: str = Depends(get_requester),
    dispatcher: Dispatcher = Depends(get_dispatcher),
) -> dict:
    try:
        note_request = parse_request(payload)
    except pydantic.ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))

    response = dispatcher.handle(note_request, requester)
    if response.is_ok and is_mutation(note_request):
        await push_structure(dispatcher.tree)
    return response.model_dump(mode="json")
