"""Shared fixtures: hermetic environment, registry, and request factory."""

from collections.abc import Callable

import pytest

from wren.registry import ModelRegistry
from wren.request import PreparedRequest, build_request

KEYS = {
    "OPENAI_API_KEY": "sk-openai-test",
    "MISTRAL_API_KEY": "mistral-test",
    "ANTHROPIC_API_KEY": "sk-ant-test",
}

WREN_VARS = (
    "WREN_MODEL",
    "WREN_TRANSPORT",
    "WREN_CURL",
    "WREN_LOG_LEVEL",
    "WREN_TEMPERATURE",
    "WREN_MAX_TOKENS",
    "WREN_TIMEOUT",
)


@pytest.fixture(autouse=True)
def _hermetic_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Tests never see the developer's real keys or WREN_* settings."""
    for name in (*KEYS, *WREN_VARS):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def environ() -> dict[str, str]:
    return dict(KEYS)


@pytest.fixture
def registry() -> ModelRegistry:
    return ModelRegistry()


@pytest.fixture
def request_for(
    registry: ModelRegistry, environ: dict[str, str]
) -> Callable[..., PreparedRequest]:
    def make(model_id: str = "gpt-3.5-turbo", prompt: str = "Say hello") -> PreparedRequest:
        return build_request(registry.require(model_id), "Be brief.", prompt, environ=environ)

    return make
