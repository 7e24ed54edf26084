from typing import List, Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from ..controller import UIController
from ..deps import get_controller
from ..page import render_page


router = APIRouter()


class Preset(BaseModel):
    index: int
    label: str
    prompt: str


@router.get("/", response_class=HTMLResponse)
async def index(
    controller: UIController = Depends(get_controller),
    sec_ch_prefers_color_scheme: Optional[str] = Header(default=None),
) -> HTMLResponse:
    session = controller.open_session(controller.theme_for(sec_ch_prefers_color_scheme))
    # Ask the browser to send the color-scheme hint on later requests
    headers = {
        "Accept-CH": "Sec-CH-Prefers-Color-Scheme",
        "Vary": "Sec-CH-Prefers-Color-Scheme",
    }
    return HTMLResponse(render_page(session, controller.presets), headers=headers)


@router.get("/presets", response_model=List[Preset])
async def presets(controller: UIController = Depends(get_controller)) -> List[Preset]:
    return [Preset(index=i, label=label, prompt=prompt) for i, (label, prompt) in enumerate(controller.presets)]
