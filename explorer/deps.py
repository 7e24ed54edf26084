from fastapi import HTTPException, Request, status

from .controller import UIController
from .surfaces import PageSession


def get_controller(request: Request) -> UIController:
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Controller not initialized",
        )
    return controller


def get_session(session_id: str, request: Request) -> PageSession:
    controller = get_controller(request)
    try:
        return controller.sessions.get(session_id)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown session: {session_id}",
        )
