"""Function declarations offered to the model and parsing of its calls.

The model may answer a recommendation prompt with a structured call instead of
(or in addition to) prose. Calls are parsed into a small tagged union: one
class per known function name with typed arguments, plus ``UnknownToolCall``
for anything else. Callers match on the class, never on raw dicts.
"""

from typing import Any, Dict, Literal, Union

import google.generativeai as genai
from pydantic import BaseModel, StrictStr, ValidationError

from .gemini import FunctionCall, ProviderError


RECOMMEND_PLACE = "recommendPlace"


class MalformedToolInvocation(ProviderError):
    """A known function was called without its required arguments."""


recommend_place_declaration = genai.protos.FunctionDeclaration(
    name=RECOMMEND_PLACE,
    description="Shows the user a map of the place provided.",
    parameters=genai.protos.Schema(
        type_=genai.protos.Type.OBJECT,
        properties={
            "location": genai.protos.Schema(
                type_=genai.protos.Type.STRING,
                description="Give a specific place, including country name.",
            ),
            "caption": genai.protos.Schema(
                type_=genai.protos.Type.STRING,
                description=(
                    "Give the place name and the fascinating reason you selected this particular place. "
                    "Keep the caption to one or two sentences maximum"
                ),
            ),
        },
        required=["location", "caption"],
    ),
)


class RecommendPlace(BaseModel):
    kind: Literal["recommendPlace"] = RECOMMEND_PLACE
    location: StrictStr
    caption: StrictStr


class UnknownToolCall(BaseModel):
    kind: Literal["unknown"] = "unknown"
    name: str
    args: Dict[str, Any] = {}


ToolInvocation = Union[RecommendPlace, UnknownToolCall]


def parse_function_call(call: FunctionCall) -> ToolInvocation:
    if call.name == RECOMMEND_PLACE:
        try:
            return RecommendPlace(
                location=call.args.get("location"),
                caption=call.args.get("caption"),
            )
        except ValidationError as e:
            missing = ", ".join(str(err["loc"][0]) for err in e.errors())
            raise MalformedToolInvocation(f"{RECOMMEND_PLACE} call is missing or has invalid: {missing}") from e
    return UnknownToolCall(name=call.name, args=dict(call.args))
