from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Sequence
import json
import logging
import time

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions


logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
# High temperature for answer variety
DEFAULT_TEMPERATURE = 2.0

# SDK errors surface either as google.api_core exceptions (transport, auth, quota)
# or as ValueError / response exceptions when the payload cannot be read.
_PROVIDER_FAILURES = (
    google_exceptions.GoogleAPIError,
    genai.types.BlockedPromptException,
    genai.types.StopCandidateException,
    ValueError,
)


class ProviderError(Exception):
    """Raised when the generation API cannot produce a usable response."""


@dataclass
class FunctionCall:
    name: str
    args: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ResponseChunk:
    text: str = ""
    function_calls: List[FunctionCall] = field(default_factory=list)


def to_response_chunk(response: Any) -> ResponseChunk:
    """Flatten one SDK response (or stream chunk) into text and function calls."""
    texts: List[str] = []
    calls: List[FunctionCall] = []
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            text = getattr(part, "text", "")
            if text:
                texts.append(text)
            fn = getattr(part, "function_call", None)
            if fn is not None and getattr(fn, "name", ""):
                args = {key: value for key, value in (fn.args or {}).items()}
                calls.append(FunctionCall(name=fn.name, args=args))
    return ResponseChunk(text="".join(texts), function_calls=calls)


def _log_call(fn: str, start_time: float, ok: bool, model: str) -> None:
    latency_ms = (time.monotonic() - start_time) * 1000
    log_data = {
        "ts": datetime.utcnow().isoformat(),
        "tool": "gemini",
        "fn": fn,
        "model": model,
        "latency_ms": f"{latency_ms:.2f}",
        "ok": ok,
    }
    logger.info(json.dumps(log_data))


class GeminiClient:
    """Thin async wrapper around the google-generativeai SDK.

    The client owns the API key. Neither call retries: a failure is raised as
    ProviderError and the caller decides what to do with it.
    """

    def __init__(
        self,
        api_key: str,
        model_factory: Callable[[str], Any] = genai.GenerativeModel,
    ) -> None:
        genai.configure(api_key=api_key)
        self._model_factory = model_factory

    async def stream_generate(
        self,
        model: str,
        full_prompt: str,
        temperature: float = DEFAULT_TEMPERATURE,
        tool_declarations: Optional[Sequence[Any]] = None,
    ) -> AsyncIterator[ResponseChunk]:
        """Yield chunks in arrival order until the provider closes the stream."""
        start_time = time.monotonic()
        tools = None
        if tool_declarations:
            tools = [genai.protos.Tool(function_declarations=list(tool_declarations))]
        ok = False
        try:
            response = await self._model_factory(model).generate_content_async(
                full_prompt,
                generation_config={"temperature": temperature},
                tools=tools,
                stream=True,
            )
            async for chunk in response:
                yield to_response_chunk(chunk)
            ok = True
        except _PROVIDER_FAILURES as e:
            raise ProviderError(f"Gemini stream failed: {str(e)}") from e
        finally:
            _log_call("stream_generate", start_time, ok, model)

    async def generate_once(self, model: str, prompt: str) -> str:
        start_time = time.monotonic()
        ok = False
        try:
            response = await self._model_factory(model).generate_content_async(prompt)
            text = response.text
            ok = True
        except _PROVIDER_FAILURES as e:
            raise ProviderError(f"Gemini request failed: {str(e)}") from e
        finally:
            _log_call("generate_once", start_time, ok, model)
        return text
