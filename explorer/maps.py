from urllib.parse import quote

from .config import CONFIG
from .surfaces import PageSession, RequestToken


# Same unreserved set as JavaScript's encodeURIComponent
_SAFE = "-_.!~*'()"


def _encode(value: str) -> str:
    return quote(value, safe=_SAFE)


def place_map_url(api_key: str, location: str, base: str = CONFIG.maps_embed_base) -> str:
    return f"{base}/place?key={api_key}&q={_encode(location)}"


def directions_map_url(api_key: str, origin: str, destination: str, base: str = CONFIG.maps_embed_base) -> str:
    return f"{base}/directions?key={api_key}&origin={_encode(origin)}&destination={_encode(destination)}"


class MapRenderer:
    """Assigns embed URLs to a session's map frame.

    The embed is fetched by the browser once the frame source changes, so an
    unknown place shows up as a "not found" map rather than an error here.
    """

    def __init__(self, api_key: str, base: str = CONFIG.maps_embed_base) -> None:
        self.api_key = api_key
        self.base = base

    def render_place(self, session: PageSession, token: RequestToken, location: str) -> bool:
        return session.write(token, map_src=place_map_url(self.api_key, location, self.base))

    def render_directions(self, session: PageSession, token: RequestToken, origin: str, destination: str) -> bool:
        return session.write(token, map_src=directions_map_url(self.api_key, origin, destination, self.base))
