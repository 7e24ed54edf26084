from typing import List, Optional, Tuple
import asyncio
import logging

from .config import CONFIG, _Config
from .gemini import GeminiClient, ProviderError
from .handlers import DirectionsHandler, ErrorPolicy, RecommendationHandler
from .maps import MapRenderer
from .prompts import PRESETS
from .surfaces import PageSession, SessionStore


logger = logging.getLogger(__name__)


class UIController:
    """Composition root for the page: presets, theme, defaults and handlers."""

    def __init__(
        self,
        recommendations: RecommendationHandler,
        directions: DirectionsHandler,
        sessions: Optional[SessionStore] = None,
        default_origin: str = CONFIG.default_origin,
        default_destination: str = CONFIG.default_destination,
        presets: List[Tuple[str, str]] = PRESETS,
    ) -> None:
        self.recommendations = recommendations
        self.directions_handler = directions
        self.sessions = sessions if sessions is not None else SessionStore()
        self.default_origin = default_origin
        self.default_destination = default_destination
        self.presets = presets

    @staticmethod
    def theme_for(prefers_color_scheme: Optional[str]) -> Optional[str]:
        # Dark is the page default and needs no theme attribute
        if prefers_color_scheme and prefers_color_scheme.strip().strip('"').lower() == "dark":
            return None
        return "light"

    def open_session(self, theme: Optional[str] = None, start: bool = True) -> PageSession:
        """Create a page session with default inputs.

        With ``start`` the first directions request is scheduled on the running
        loop right away, so a freshly opened page already shows a route.
        """
        session = self.sessions.create(theme, self.default_origin, self.default_destination)
        if start:
            session.startup_task = asyncio.create_task(self._initial_directions(session))
        return session

    async def _initial_directions(self, session: PageSession) -> None:
        try:
            await self.directions(session, session.origin, session.destination)
        except ProviderError:
            logger.exception("Initial directions request failed for session %s", session.id)

    def close_subscription(self, session: PageSession, queue: asyncio.Queue) -> None:
        """Drop an event stream; the session goes with its last stream."""
        session.unsubscribe(queue)
        if not session.has_subscribers:
            self.sessions.discard(session.id)

    async def run_preset(self, session: PageSession, index: int) -> None:
        if not 0 <= index < len(self.presets):
            raise KeyError(index)
        label, prompt = self.presets[index]
        logger.info("Preset %s requested in session %s", label, session.id)
        await self.recommendations.handle(session, prompt)

    async def recommend(self, session: PageSession, prompt: str) -> None:
        await self.recommendations.handle(session, prompt)

    async def directions(self, session: PageSession, origin: str, destination: str) -> None:
        session.set_inputs(origin, destination)
        await self.directions_handler.handle(session, origin, destination)


def build_controller(config: _Config = CONFIG) -> UIController:
    api_key = config.require_api_key()
    client = GeminiClient(api_key)
    renderer = MapRenderer(config.maps_api_key or api_key, config.maps_embed_base)
    recommendations = RecommendationHandler(
        client,
        renderer,
        model=config.gemini_model,
        temperature=config.temperature,
        error_policy=ErrorPolicy.parse(config.recommend_error_policy, ErrorPolicy.SWALLOW),
    )
    directions = DirectionsHandler(
        client,
        renderer,
        model=config.gemini_model,
        error_policy=ErrorPolicy.parse(config.directions_error_policy, ErrorPolicy.PROPAGATE),
    )
    return UIController(
        recommendations,
        directions,
        sessions=SessionStore(ttl_sec=config.session_ttl_sec, max_sessions=config.max_sessions),
        default_origin=config.default_origin,
        default_destination=config.default_destination,
    )
