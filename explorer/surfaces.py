"""Per-page display state and the active-request token.

A ``PageSession`` owns the surfaces one browser page shows: the caption, the
directions result and the map frame. Handlers only write through
``PageSession.write`` with the token they got from ``begin_request``; once a
newer request has begun, writes made with an older token are dropped. Every
accepted write pushes a fresh snapshot to the session's subscribers.
"""

from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4
import asyncio
import logging
import time


logger = logging.getLogger(__name__)


@dataclass
class DisplaySurfaces:
    caption: str = ""
    caption_visible: bool = False
    directions_result: str = ""
    directions_visible: bool = False
    map_src: str = ""


class RequestToken:
    def __init__(self, session: "PageSession", generation: int) -> None:
        self.session = session
        self.generation = generation

    @property
    def is_current(self) -> bool:
        return self.session.generation == self.generation


class PageSession:
    def __init__(
        self,
        session_id: str,
        theme: Optional[str] = None,
        origin: str = "",
        destination: str = "",
    ) -> None:
        self.id = session_id
        self.theme = theme
        self.origin = origin
        self.destination = destination
        self.surfaces = DisplaySurfaces()
        self.generation = 0
        self.startup_task: Optional[asyncio.Task] = None
        self._subscribers: List[asyncio.Queue] = []

    def begin_request(self) -> RequestToken:
        self.generation += 1
        return RequestToken(self, self.generation)

    def write(self, token: RequestToken, **changes: Any) -> bool:
        if token.session is not self or not token.is_current:
            logger.debug("Dropping stale write to session %s: %s", self.id, sorted(changes))
            return False
        for name, value in changes.items():
            if not hasattr(self.surfaces, name):
                raise AttributeError(f"Unknown display surface: {name}")
            setattr(self.surfaces, name, value)
        self._publish()
        return True

    def set_inputs(self, origin: str, destination: str) -> None:
        self.origin = origin
        self.destination = destination

    def snapshot(self) -> Dict[str, Any]:
        return {
            "session_id": self.id,
            "theme": self.theme,
            "origin": self.origin,
            "destination": self.destination,
            **asdict(self.surfaces),
        }

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        queue.put_nowait(self.snapshot())
        self._subscribers.append(queue)
        return queue

    @property
    def has_subscribers(self) -> bool:
        return bool(self._subscribers)

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for queue in list(self._subscribers):
            queue.put_nowait(snapshot)


class SessionStore:
    """In-memory sessions, dropped once idle or when the store is full.

    A session with an open event stream is never idle. When the last stream
    closes the session is discarded right away.
    """

    def __init__(
        self,
        ttl_sec: float = 1800.0,
        max_sessions: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_sec = ttl_sec
        self.max_sessions = max(1, max_sessions)
        self._clock = clock
        self._sessions: Dict[str, PageSession] = {}
        self._last_active: Dict[str, float] = {}

    def create(self, theme: Optional[str] = None, origin: str = "", destination: str = "") -> PageSession:
        self.evict()
        session = PageSession(uuid4().hex, theme=theme, origin=origin, destination=destination)
        self._sessions[session.id] = session
        self._last_active[session.id] = self._clock()
        while len(self._sessions) > self.max_sessions:
            self.discard(self._oldest(exclude=session.id))
        return session

    def get(self, session_id: str) -> PageSession:
        self.evict()
        session = self._sessions[session_id]
        self._last_active[session_id] = self._clock()
        return session

    def discard(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        self._last_active.pop(session_id, None)
        if session is None:
            return
        if session.startup_task is not None and not session.startup_task.done():
            session.startup_task.cancel()
        logger.info("Discarded session %s", session_id)

    def evict(self) -> None:
        cutoff = self._clock() - self.ttl_sec
        expired = [
            sid
            for sid, seen in self._last_active.items()
            if seen < cutoff and not self._sessions[sid].has_subscribers
        ]
        for sid in expired:
            self.discard(sid)

    def _oldest(self, exclude: str) -> str:
        candidates = [sid for sid in self._last_active if sid != exclude]
        # Prefer sessions nobody is watching
        idle = [sid for sid in candidates if not self._sessions[sid].has_subscribers]
        return min(idle or candidates, key=self._last_active.__getitem__)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
