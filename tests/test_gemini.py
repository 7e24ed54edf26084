from types import SimpleNamespace
import asyncio

import pytest
from google.api_core import exceptions as google_exceptions

from explorer.gemini import GeminiClient, ProviderError, to_response_chunk
from explorer.tools import recommend_place_declaration


def _part(text="", name="", args=None):
    return SimpleNamespace(text=text, function_call=SimpleNamespace(name=name, args=args or {}))


def _response(*parts):
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))])


class _Stream:
    def __init__(self, chunks, error=None):
        self._chunks = list(chunks)
        self._error = error

    def __aiter__(self):
        return self._iter()

    async def _iter(self):
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error


class _FakeModel:
    def __init__(self, name, result):
        self.name = name
        self.result = result
        self.calls = []

    async def generate_content_async(self, contents, **kwargs):
        self.calls.append((contents, kwargs))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def _client(result):
    models = []

    def factory(name):
        model = _FakeModel(name, result)
        models.append(model)
        return model

    return GeminiClient("test-key", model_factory=factory), models


async def _collect(aiter):
    return [chunk async for chunk in aiter]


def test_chunk_flattens_text_and_calls():
    chunk = to_response_chunk(
        _response(
            _part(text="Socotra is odd. "),
            _part(name="recommendPlace", args={"location": "Socotra, Yemen", "caption": "Dragon trees."}),
        )
    )
    assert chunk.text == "Socotra is odd. "
    assert len(chunk.function_calls) == 1
    assert chunk.function_calls[0].name == "recommendPlace"
    assert chunk.function_calls[0].args["location"] == "Socotra, Yemen"


def test_chunk_without_candidates_is_empty():
    chunk = to_response_chunk(SimpleNamespace(candidates=[]))
    assert chunk.text == ""
    assert chunk.function_calls == []


def test_stream_generate_passes_temperature_and_tools():
    client, models = _client(_Stream([_response(_part(text="a")), _response(_part(text="b"))]))
    chunks = asyncio.run(_collect(client.stream_generate("gemini-2.5-flash", "prompt", 2.0, [recommend_place_declaration])))

    assert [c.text for c in chunks] == ["a", "b"]
    model = models[0]
    assert model.name == "gemini-2.5-flash"
    contents, kwargs = model.calls[0]
    assert contents == "prompt"
    assert kwargs["stream"] is True
    assert kwargs["generation_config"] == {"temperature": 2.0}
    assert kwargs["tools"][0].function_declarations[0].name == "recommendPlace"


def test_stream_generate_without_tools():
    client, models = _client(_Stream([]))
    assert asyncio.run(_collect(client.stream_generate("m", "p", 0.5))) == []
    assert models[0].calls[0][1]["tools"] is None


def test_stream_failure_midway_raises_provider_error():
    client, _ = _client(_Stream([_response(_part(text="a"))], error=google_exceptions.ServiceUnavailable("down")))
    with pytest.raises(ProviderError):
        asyncio.run(_collect(client.stream_generate("m", "p")))


def test_stream_open_failure_raises_provider_error():
    client, _ = _client(google_exceptions.PermissionDenied("bad key"))
    with pytest.raises(ProviderError):
        asyncio.run(_collect(client.stream_generate("m", "p")))


def test_generate_once_returns_full_text():
    client, models = _client(SimpleNamespace(text="About 4.5 hours by car."))
    assert asyncio.run(client.generate_once("m", "How long?")) == "About 4.5 hours by car."
    assert models[0].calls[0] == ("How long?", {})


def test_generate_once_quota_error():
    client, _ = _client(google_exceptions.ResourceExhausted("quota"))
    with pytest.raises(ProviderError) as exc:
        asyncio.run(client.generate_once("m", "p"))
    assert "quota" in str(exc.value)
