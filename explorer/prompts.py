"""Prompt text for the travel guide and the canned preset prompts."""

from typing import List, Tuple


SYSTEM_INSTRUCTIONS = (
    "Act as a helpful global travel agent with a deep fascination for the world. "
    "Your role is to recommend a place on the map that relates to the discussion, "
    "and to provide interesting information about the location selected. "
    "Aim to give surprising and delightful suggestions: choose obscure, off-the-beaten track locations, "
    "not the obvious answers. Do not answer harmful or unsafe questions.\n\n"
    "First, explain why a place is interesting, in a two sentence answer. "
    "Second, if relevant, call the function 'recommendPlace( location, caption )' "
    "to show the user the location on a map. "
    "You can expand on your answer if the user asks for more information."
)

# (label, prompt)
PRESETS: List[Tuple[str, str]] = [
    ("❄️ Cold", "Where is somewhere really cold?"),
    ("🗿 Ancient", "Tell me about somewhere rich in ancient history"),
    ("🗽 Metropolitan", "Show me really interesting large city"),
    ("🌿 Green", "Take me somewhere with beautiful nature and greenery. What makes it special?"),
    (
        "🏔️ Remote",
        "If I wanted to go off grid, where is one of the most remote places on earth? How would I get there?",
    ),
    ("🌌 Surreal", "Think of a totally surreal location, where is it? What makes it so surreal?"),
]


def compose(system_instructions: str, user_prompt: str) -> str:
    return f"{system_instructions} {user_prompt}"


def travel_time_question(origin: str, destination: str) -> str:
    return (
        f"What is the estimated travel time by car between {origin} and {destination}? "
        "Answer in a single, short sentence."
    )
