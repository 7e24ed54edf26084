from typing import Optional
import asyncio
import json

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from ..controller import UIController
from ..deps import get_controller, get_session
from ..gemini import ProviderError
from ..surfaces import PageSession


router = APIRouter()

KEEPALIVE_SEC = 15.0


class OpenSessionRequest(BaseModel):
    theme: Optional[str] = None
    autostart: bool = True


class SessionSnapshot(BaseModel):
    session_id: str
    theme: Optional[str]
    origin: str
    destination: str
    caption: str
    caption_visible: bool
    directions_result: str
    directions_visible: bool
    map_src: str


class RecommendRequest(BaseModel):
    prompt: str


class DirectionsRequest(BaseModel):
    origin: str
    destination: str


def _bad_gateway(e: ProviderError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"Generation failed: {str(e)}",
    )


@router.post("", response_model=SessionSnapshot, status_code=status.HTTP_201_CREATED)
async def open_session(
    req: Optional[OpenSessionRequest] = None,
    controller: UIController = Depends(get_controller),
) -> SessionSnapshot:
    req = req or OpenSessionRequest()
    session = controller.open_session(req.theme, start=req.autostart)
    return SessionSnapshot(**session.snapshot())


@router.get("/{session_id}", response_model=SessionSnapshot)
async def snapshot(session: PageSession = Depends(get_session)) -> SessionSnapshot:
    return SessionSnapshot(**session.snapshot())


@router.get("/{session_id}/events")
async def events(
    request: Request,
    session: PageSession = Depends(get_session),
    controller: UIController = Depends(get_controller),
) -> StreamingResponse:
    async def stream():
        queue = session.subscribe()
        try:
            while not await request.is_disconnected():
                try:
                    state = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SEC)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield f"data: {json.dumps(state)}\n\n"
        finally:
            controller.close_subscription(session, queue)

    return StreamingResponse(stream(), media_type="text/event-stream")


@router.post("/{session_id}/presets/{index}", response_model=SessionSnapshot)
async def run_preset(
    index: int,
    session: PageSession = Depends(get_session),
    controller: UIController = Depends(get_controller),
) -> SessionSnapshot:
    try:
        await controller.run_preset(session, index)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown preset: {index}",
        )
    except ProviderError as e:
        raise _bad_gateway(e)
    return SessionSnapshot(**session.snapshot())


@router.post("/{session_id}/recommend", response_model=SessionSnapshot)
async def recommend(
    req: RecommendRequest,
    session: PageSession = Depends(get_session),
    controller: UIController = Depends(get_controller),
) -> SessionSnapshot:
    try:
        await controller.recommend(session, req.prompt)
    except ProviderError as e:
        raise _bad_gateway(e)
    return SessionSnapshot(**session.snapshot())


@router.post("/{session_id}/directions", response_model=SessionSnapshot)
async def directions(
    req: DirectionsRequest,
    session: PageSession = Depends(get_session),
    controller: UIController = Depends(get_controller),
) -> SessionSnapshot:
    try:
        await controller.directions(session, req.origin, req.destination)
    except ProviderError as e:
        raise _bad_gateway(e)
    return SessionSnapshot(**session.snapshot())
