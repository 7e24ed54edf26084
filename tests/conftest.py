from typing import Any, Dict, List, Optional

import pytest

from explorer.controller import UIController
from explorer.gemini import FunctionCall, ResponseChunk
from explorer.handlers import DirectionsHandler, ErrorPolicy, RecommendationHandler
from explorer.maps import MapRenderer
from explorer.surfaces import PageSession


class FakeGenerativeClient:
    """Records calls and replays canned chunks / text."""

    def __init__(
        self,
        chunks: Optional[List[ResponseChunk]] = None,
        text: str = "",
        stream_error: Optional[Exception] = None,
        once_error: Optional[Exception] = None,
    ) -> None:
        self.chunks = chunks or []
        self.text = text
        self.stream_error = stream_error
        self.once_error = once_error
        self.stream_calls: List[Dict[str, Any]] = []
        self.once_calls: List[Dict[str, Any]] = []

    async def stream_generate(self, model, full_prompt, temperature=2.0, tool_declarations=None):
        self.stream_calls.append(
            {
                "model": model,
                "prompt": full_prompt,
                "temperature": temperature,
                "tools": list(tool_declarations or []),
            }
        )
        for chunk in self.chunks:
            yield chunk
        if self.stream_error is not None:
            raise self.stream_error

    async def generate_once(self, model, prompt):
        self.once_calls.append({"model": model, "prompt": prompt})
        if self.once_error is not None:
            raise self.once_error
        return self.text


def place_chunk(location: Optional[str], caption: Optional[str], text: str = "") -> ResponseChunk:
    args = {}
    if location is not None:
        args["location"] = location
    if caption is not None:
        args["caption"] = caption
    return ResponseChunk(text=text, function_calls=[FunctionCall(name="recommendPlace", args=args)])


@pytest.fixture
def renderer() -> MapRenderer:
    return MapRenderer("test-key")


@pytest.fixture
def session() -> PageSession:
    return PageSession("s1")


@pytest.fixture
def make_controller(renderer):
    def _make(
        recommend_policy: ErrorPolicy = ErrorPolicy.SWALLOW,
        directions_policy: ErrorPolicy = ErrorPolicy.PROPAGATE,
        **client_kwargs: Any,
    ):
        client = FakeGenerativeClient(**client_kwargs)
        controller = UIController(
            RecommendationHandler(client, renderer, error_policy=recommend_policy),
            DirectionsHandler(client, renderer, error_policy=directions_policy),
            default_origin="Bren Mercury",
            default_destination="Chartered Beverly Hills",
        )
        return controller, client

    return _make


@pytest.fixture
def fake_client_cls():
    return FakeGenerativeClient


@pytest.fixture
def make_place_chunk():
    return place_chunk
