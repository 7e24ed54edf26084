import os
from typing import Final


class ConfigError(RuntimeError):
    pass


class _Config:
    def __init__(self) -> None:
        # Provider credentials; API_KEY is the name the browser build used
        self.gemini_api_key: str | None = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
        self.maps_api_key: str | None = os.getenv("MAPS_API_KEY") or self.gemini_api_key

        # Generation behavior
        self.gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
        try:
            self.temperature: float = float(os.getenv("GEMINI_TEMPERATURE", "2.0"))
        except ValueError:
            self.temperature = 2.0

        # Error policies per handler ("swallow" or "propagate")
        self.recommend_error_policy: str = os.getenv("RECOMMEND_ERROR_POLICY", "swallow")
        self.directions_error_policy: str = os.getenv("DIRECTIONS_ERROR_POLICY", "propagate")

        # Page defaults
        self.default_origin: str = os.getenv("DEFAULT_ORIGIN", "Bren Mercury")
        self.default_destination: str = os.getenv("DEFAULT_DESTINATION", "Chartered Beverly Hills")

        # Map embed endpoint
        self.maps_embed_base: str = os.getenv("MAPS_EMBED_BASE", "https://www.google.com/maps/embed/v1")

        # Page sessions
        try:
            self.session_ttl_sec: float = float(os.getenv("SESSION_TTL_SEC", "1800"))
        except ValueError:
            self.session_ttl_sec = 1800.0
        try:
            self.max_sessions: int = int(os.getenv("MAX_SESSIONS", "1000"))
        except ValueError:
            self.max_sessions = 1000

    def require_api_key(self) -> str:
        if not self.gemini_api_key:
            raise ConfigError("GEMINI_API_KEY (or API_KEY) must be set")
        return self.gemini_api_key


CONFIG: Final[_Config] = _Config()
