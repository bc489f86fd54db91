"""Gateway configuration.

GatewayConfig is a frozen dataclass: immutable after creation,
IDE-autocompletable, no string-key dict lookups.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Any

from wren.errors import ConfigurationError

DEFAULT_SYSTEM_PROMPT = (
    "You are an AI programming assistant integrated into a code editor. "
    "Your purpose is to help the user with programming tasks as they write code. "
    "When asked to write code, only generate the code, with no additional information."
)

TRANSPORTS = ("process", "http")
LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


@dataclass(frozen=True, slots=True)
class GatewayConfig:
    """Gateway configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = GatewayConfig(model="gpt-4", temperature=0.2)
    """

    # Conversation
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    model: str | None = None  # Initial active model; None = first catalog entry
    temperature: float = 0.7
    max_tokens: int = 4096

    # Transport
    transport: str = "process"  # process|http
    curl_path: str = "curl"
    request_timeout: float = 120.0  # http transport only
    kill_timeout: float = 2.0  # grace period between terminate and kill

    # Output
    separator: str = "\n"

    # Logging
    log_level: str = "warning"

    def validate(self) -> None:
        """Raise ``ConfigurationError`` if any field is out of range."""
        if self.transport not in TRANSPORTS:
            msg = f"Unknown transport {self.transport!r}. Expected one of: {', '.join(TRANSPORTS)}"
            raise ConfigurationError(msg)
        if self.log_level.lower() not in LOG_LEVELS:
            msg = f"Unknown log level {self.log_level!r}"
            raise ConfigurationError(msg)
        if not 0.0 <= self.temperature <= 2.0:
            msg = f"temperature must be between 0 and 2, got {self.temperature}"
            raise ConfigurationError(msg)
        if self.max_tokens <= 0:
            msg = f"max_tokens must be positive, got {self.max_tokens}"
            raise ConfigurationError(msg)
        if self.request_timeout <= 0 or self.kill_timeout <= 0:
            msg = "timeouts must be positive"
            raise ConfigurationError(msg)

    def with_overrides(self, **overrides: Any) -> "GatewayConfig":
        """Return a copy with non-``None`` overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> "GatewayConfig":
        """Build a config from ``WREN_*`` environment variables.

        Explicit keyword overrides win over the environment; ``None``
        overrides are ignored.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        if model := env.get("WREN_MODEL"):
            values["model"] = model
        if transport := env.get("WREN_TRANSPORT"):
            values["transport"] = transport.lower()
        if curl := env.get("WREN_CURL"):
            values["curl_path"] = curl
        if level := env.get("WREN_LOG_LEVEL"):
            values["log_level"] = level.lower()
        if raw := env.get("WREN_TEMPERATURE"):
            values["temperature"] = _parse(raw, float, "WREN_TEMPERATURE")
        if raw := env.get("WREN_MAX_TOKENS"):
            values["max_tokens"] = _parse(raw, int, "WREN_MAX_TOKENS")
        if raw := env.get("WREN_TIMEOUT"):
            values["request_timeout"] = _parse(raw, float, "WREN_TIMEOUT")

        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            msg = f"Unknown config fields: {', '.join(sorted(unknown))}"
            raise ConfigurationError(msg)
        values.update({k: v for k, v in overrides.items() if v is not None})

        config = cls(**values)
        config.validate()
        return config


def _parse(raw: str, convert: type, name: str) -> Any:
    try:
        return convert(raw)
    except ValueError:
        msg = f"{name} must be a {convert.__name__}, got {raw!r}"
        raise ConfigurationError(msg) from None
