"""Request construction.

Turns a model, a system instruction, and a user prompt into everything a
transport needs: URL, headers, and the serialized JSON body. The
credential is read from the environment on every call and never cached.
"""

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from wren.errors import CredentialMissingError
from wren.providers import DEFAULT_MAX_TOKENS, Message
from wren.registry import ModelEntry


@dataclass(frozen=True, slots=True)
class PreparedRequest:
    """A fully built streaming request, ready for a transport."""

    model: ModelEntry
    url: str
    headers: dict[str, str] = field(repr=False)
    body: str = field(repr=False)

    @property
    def credential_env(self) -> str:
        return self.model.provider.credential_env


def build_messages(system_instruction: str, user_prompt: str) -> list[Message]:
    """The one-shot conversation: one system message, one user message."""
    return [
        {"role": "system", "content": system_instruction.strip()},
        {"role": "user", "content": user_prompt.strip()},
    ]


def resolve_credential(env_var: str, environ: Mapping[str, str] | None = None) -> str:
    """Read an API key, raising ``CredentialMissingError`` if unset or empty."""
    env = os.environ if environ is None else environ
    value = env.get(env_var, "")
    if not value:
        raise CredentialMissingError(env_var)
    return value


def build_request(
    model: ModelEntry,
    system_instruction: str,
    user_prompt: str,
    *,
    temperature: float = 0.7,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    environ: Mapping[str, str] | None = None,
) -> PreparedRequest:
    """Build headers and body for ``model``.

    Raises ``CredentialMissingError`` before anything else happens, so a
    missing key never reaches the transport.
    """
    provider = model.provider
    api_key = resolve_credential(provider.credential_env, environ)
    messages = build_messages(system_instruction, user_prompt)
    body = provider.build_body(model.id, messages, temperature, max_tokens)
    return PreparedRequest(
        model=model,
        url=provider.url,
        headers=provider.build_headers(api_key),
        body=json.dumps(body, ensure_ascii=False),
    )
