"""LLM provider descriptors.

Each provider family is a bundle of three plain functions: header
construction, request-body construction, and stream-chunk decoding. No
provider SDKs are involved; bodies are built as plain dicts and chunks are
decoded from raw ``data: {json}`` lines.

Supported families:
    - ``openai`` — Chat Completions API (OpenAI and Mistral)
    - ``anthropic`` — Messages API (Claude models)

A ``ProviderDescriptor`` binds a family to a concrete endpoint and the
environment variable holding its API key. Descriptors are frozen and
shared between every model of the same backend.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from wren.errors import ConfigurationError

Message = dict[str, str]  # {"role": "system" | "user", "content": str}

DATA_PREFIX = "data: "
DONE_SENTINEL = "data: [DONE]"
ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 4096


def _payload(line: str) -> Any:
    """Return the parsed JSON payload of a ``data:`` line, or ``None``.

    Control frames (keep-alives, comments, the ``[DONE]`` sentinel) and
    malformed JSON all map to ``None``.
    """
    if not line.startswith(DATA_PREFIX) or line == DONE_SENTINEL:
        return None
    try:
        return json.loads(line[len(DATA_PREFIX) :])
    except ValueError:
        return None


# =============================================================================
# OpenAI-compatible (Chat Completions API)
# =============================================================================


def openai_headers(api_key: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}


def openai_body(
    model: str,
    messages: list[Message],
    temperature: float = 0.7,
    max_tokens: int = DEFAULT_MAX_TOKENS,
) -> dict[str, Any]:
    return {
        "model": model,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
        "stream": True,
    }


def openai_decode(line: str) -> str:
    """Extract ``choices[0].delta.content`` from one stream line."""
    event = _payload(line)
    if not isinstance(event, dict):
        return ""
    choices = event.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    delta = choices[0].get("delta")
    if not isinstance(delta, dict):
        return ""
    content = delta.get("content")
    return content if isinstance(content, str) else ""


# =============================================================================
# Anthropic (Messages API)
# =============================================================================


def anthropic_headers(api_key: str) -> dict[str, str]:
    return {
        "x-api-key": api_key,
        "anthropic-version": ANTHROPIC_VERSION,
        "Content-Type": "application/json",
    }


def anthropic_body(
    model: str,
    messages: list[Message],
    temperature: float = 0.7,
    max_tokens: int = DEFAULT_MAX_TOKENS,
) -> dict[str, Any]:
    """Build a Messages API body.

    Anthropic takes the system prompt as a top-level field, so system
    messages are pulled out of the list and joined by a blank line.
    """
    system = [m["content"] for m in messages if m["role"] == "system"]
    body: dict[str, Any] = {
        "model": model,
        "messages": [m for m in messages if m["role"] != "system"],
        "temperature": temperature,
        "max_tokens": max_tokens,
        "stream": True,
    }
    if system:
        body["system"] = "\n\n".join(system)
    return body


def anthropic_decode(line: str) -> str:
    """Extract ``delta.text`` from ``content_block_delta`` events only."""
    event = _payload(line)
    if not isinstance(event, dict) or event.get("type") != "content_block_delta":
        return ""
    delta = event.get("delta")
    if not isinstance(delta, dict):
        return ""
    text = delta.get("text")
    return text if isinstance(text, str) else ""


# =============================================================================
# Behavior bundles and descriptors
# =============================================================================


@dataclass(frozen=True, slots=True)
class ProviderBehavior:
    """The three provider-specific operations for one API family."""

    build_headers: Callable[[str], dict[str, str]]
    build_body: Callable[..., dict[str, Any]]
    decode_chunk: Callable[[str], str]


BEHAVIORS: dict[str, ProviderBehavior] = {
    "openai": ProviderBehavior(openai_headers, openai_body, openai_decode),
    "anthropic": ProviderBehavior(anthropic_headers, anthropic_body, anthropic_decode),
}


@dataclass(frozen=True, slots=True)
class ProviderDescriptor:
    """One backend: endpoint, credential variable, and API family."""

    name: str
    url: str
    credential_env: str
    kind: str = "openai"

    def __post_init__(self) -> None:
        if self.kind not in BEHAVIORS:
            msg = f"Unknown provider kind {self.kind!r}. Supported: {', '.join(BEHAVIORS)}"
            raise ConfigurationError(msg)

    @property
    def behavior(self) -> ProviderBehavior:
        return BEHAVIORS[self.kind]

    def build_headers(self, api_key: str) -> dict[str, str]:
        return self.behavior.build_headers(api_key)

    def build_body(
        self,
        model: str,
        messages: list[Message],
        temperature: float = 0.7,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> dict[str, Any]:
        return self.behavior.build_body(model, messages, temperature, max_tokens)

    def decode_chunk(self, line: str) -> str:
        return self.behavior.decode_chunk(line)


OPENAI = ProviderDescriptor(
    name="openai",
    url="https://api.openai.com/v1/chat/completions",
    credential_env="OPENAI_API_KEY",
)
MISTRAL = ProviderDescriptor(
    name="mistral",
    url="https://api.mistral.ai/v1/chat/completions",
    credential_env="MISTRAL_API_KEY",
)
ANTHROPIC = ProviderDescriptor(
    name="anthropic",
    url="https://api.anthropic.com/v1/messages",
    credential_env="ANTHROPIC_API_KEY",
    kind="anthropic",
)
