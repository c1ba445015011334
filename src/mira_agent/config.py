"""Runtime configuration for the MIRA agent backend.

Settings are read once from the environment at startup and passed down
explicitly; nothing else in the package reads ``os.environ``.
"""

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_MODEL = "llama-3.3-70b-versatile"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


class Settings(BaseModel):
    """Backend settings.

    Attributes:
        model_base_url: Base URL of the OpenAI-compatible chat completions API.
        model_api_key: API key for the model endpoint.
        model: Model identifier sent with every completion request.
        temperature: Sampling temperature for completions.
        max_turns: Remembered conversation turns per session (history keeps 2x messages).
        max_iterations: Model round-trips allowed per turn.
        browser_disabled: If True, browser control fails fast without launching anything.
        browser_ws_endpoint: Remote browser endpoint to attach to instead of launching locally.
        browser_executable_path: Explicit Chromium executable for local launches.
        session_idle_ttl: Seconds a session may stay idle before eviction.
        sweep_interval: Seconds between idle-session sweeps.
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_base_url: str = DEFAULT_BASE_URL
    model_api_key: str = ""
    model: str = DEFAULT_MODEL
    temperature: float = 0.6
    max_turns: int = Field(default=18, ge=1)
    max_iterations: int = Field(default=4, ge=1)
    browser_disabled: bool = False
    browser_ws_endpoint: str | None = None
    browser_executable_path: str | None = None
    session_idle_ttl: float = Field(default=1800.0, gt=0)
    sweep_interval: float = Field(default=60.0, gt=0)
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = ["*"]

    @property
    def max_history_messages(self) -> int:
        return self.max_turns * 2

    @property
    def browser_mode(self) -> str:
        if self.browser_disabled:
            return "disabled"
        if self.browser_ws_endpoint:
            return "remote"
        return "local"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            A Settings instance; unset variables keep their defaults.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}

        def first(*names: str) -> str | None:
            for name in names:
                value = env.get(name, "").strip()
                if value:
                    return value
            return None

        if base_url := first("MODEL_BASE_URL"):
            values["model_base_url"] = base_url
        if api_key := first("MODEL_API_KEY", "GROQ_API_KEY"):
            values["model_api_key"] = api_key
        if model := first("MODEL_NAME", "GROQ_MODEL"):
            values["model"] = model
        if temperature := first("MODEL_TEMPERATURE"):
            values["temperature"] = temperature
        if max_turns := first("MAX_TURNS"):
            values["max_turns"] = max_turns
        if disabled := first("DISABLE_BROWSER"):
            values["browser_disabled"] = disabled.lower() in _TRUTHY
        if ws_endpoint := first("BROWSER_WS"):
            values["browser_ws_endpoint"] = ws_endpoint
        if executable := first("BROWSER_EXECUTABLE_PATH", "PUPPETEER_EXECUTABLE_PATH"):
            values["browser_executable_path"] = executable
        if ttl := first("SESSION_IDLE_TTL"):
            values["session_idle_ttl"] = ttl
        if interval := first("SESSION_SWEEP_INTERVAL"):
            values["sweep_interval"] = interval
        if host := first("HOST"):
            values["host"] = host
        if port := first("PORT"):
            values["port"] = port
        if origins := first("CORS_ORIGINS"):
            values["cors_origins"] = [o.strip() for o in origins.split(",") if o.strip()]

        return cls.model_validate(values)
