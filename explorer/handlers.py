from contextlib import aclosing
from enum import Enum
from typing import Any, AsyncIterator, Optional, Protocol, Sequence
import logging

from .gemini import DEFAULT_MODEL, DEFAULT_TEMPERATURE, ProviderError, ResponseChunk
from .maps import MapRenderer
from .prompts import SYSTEM_INSTRUCTIONS, compose, travel_time_question
from .surfaces import PageSession, RequestToken
from .tools import RecommendPlace, UnknownToolCall, parse_function_call, recommend_place_declaration


logger = logging.getLogger(__name__)

CALCULATING = "Calculating..."


class GenerativeClient(Protocol):
    def stream_generate(
        self,
        model: str,
        full_prompt: str,
        temperature: float = ...,
        tool_declarations: Optional[Sequence[Any]] = ...,
    ) -> AsyncIterator[ResponseChunk]: ...

    async def generate_once(self, model: str, prompt: str) -> str: ...


class ErrorPolicy(str, Enum):
    SWALLOW = "swallow"
    PROPAGATE = "propagate"

    @classmethod
    def parse(cls, value: Optional[str], default: "ErrorPolicy") -> "ErrorPolicy":
        if not value:
            return default
        try:
            return cls(value.strip().lower())
        except ValueError:
            logger.warning("Unknown error policy %r, using %s", value, default.value)
            return default


class RecommendationHandler:
    """Streams a recommendation and shows the first place the model picks."""

    def __init__(
        self,
        client: GenerativeClient,
        renderer: MapRenderer,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        error_policy: ErrorPolicy = ErrorPolicy.SWALLOW,
        system_instructions: str = SYSTEM_INSTRUCTIONS,
    ) -> None:
        self.client = client
        self.renderer = renderer
        self.model = model
        self.temperature = temperature
        self.error_policy = error_policy
        self.system_instructions = system_instructions

    async def handle(self, session: PageSession, prompt: str) -> None:
        token = session.begin_request()
        try:
            await self._stream(session, token, prompt)
        except ProviderError:
            if self.error_policy is ErrorPolicy.PROPAGATE:
                raise
            logger.exception("Recommendation failed for session %s", session.id)

    async def _stream(self, session: PageSession, token: RequestToken, prompt: str) -> None:
        full_prompt = compose(self.system_instructions, prompt)
        shown: Optional[RecommendPlace] = None
        first_chunk = True
        stream = self.client.stream_generate(
            self.model,
            full_prompt,
            self.temperature,
            [recommend_place_declaration],
        )
        async with aclosing(stream) as chunks:
            async for chunk in chunks:
                if not token.is_current:
                    logger.info("Recommendation for session %s superseded, closing stream", session.id)
                    break
                if first_chunk:
                    session.write(token, directions_visible=False, caption="", caption_visible=False)
                    first_chunk = False
                for call in chunk.function_calls:
                    if shown is not None:
                        logger.info("Ignoring extra %s call in session %s", call.name, session.id)
                        continue
                    invocation = parse_function_call(call)
                    if isinstance(invocation, UnknownToolCall):
                        logger.warning("Ignoring unknown function call %r", invocation.name)
                        continue
                    shown = invocation
                    self.renderer.render_place(session, token, invocation.location)
                    session.write(token, caption=invocation.caption, caption_visible=True)


class DirectionsHandler:
    """Asks the model for a driving time and shows a directions map."""

    def __init__(
        self,
        client: GenerativeClient,
        renderer: MapRenderer,
        model: str = DEFAULT_MODEL,
        error_policy: ErrorPolicy = ErrorPolicy.PROPAGATE,
    ) -> None:
        self.client = client
        self.renderer = renderer
        self.model = model
        self.error_policy = error_policy

    async def handle(self, session: PageSession, origin: str, destination: str) -> None:
        if not origin.strip() or not destination.strip():
            return

        token = session.begin_request()
        session.write(
            token,
            caption_visible=False,
            directions_result=CALCULATING,
            directions_visible=True,
        )
        try:
            text = await self.client.generate_once(self.model, travel_time_question(origin, destination))
        except ProviderError:
            # Never leave the placeholder behind
            session.write(token, directions_result="", directions_visible=False)
            if self.error_policy is ErrorPolicy.PROPAGATE:
                raise
            logger.exception("Directions failed for session %s", session.id)
            return
        except BaseException:
            # Cancellation and unexpected SDK errors always propagate
            session.write(token, directions_result="", directions_visible=False)
            raise

        if session.write(token, directions_result=text):
            self.renderer.render_directions(session, token, origin, destination)
