"""Tests for wren.registry — catalog lookup and active model selection."""

import pytest

from wren.errors import ConfigurationError, UnknownModelError
from wren.providers import ANTHROPIC, MISTRAL, OPENAI
from wren.registry import DEFAULT_MODELS, ActiveModel, ModelEntry, ModelRegistry


class TestCatalog:
    def test_default_order(self, registry: ModelRegistry) -> None:
        ids = [m.id for m in registry.list()]
        assert ids[0] == "gpt-3.5-turbo"
        assert ids == [m.id for m in DEFAULT_MODELS]
        assert len(registry) == 9

    def test_models_share_descriptors(self, registry: ModelRegistry) -> None:
        providers = [m.provider for m in registry]
        assert providers.count(OPENAI) == 3
        assert providers.count(MISTRAL) == 3
        assert providers.count(ANTHROPIC) == 3
        assert registry.require("gpt-4").provider is registry.require("gpt-4-turbo").provider

    def test_get(self, registry: ModelRegistry) -> None:
        entry = registry.get("open-mixtral-8x7b")
        assert entry is not None
        assert entry.name == "Mixtral"

    def test_get_missing(self, registry: ModelRegistry) -> None:
        assert registry.get("gpt-99") is None

    def test_require_missing(self, registry: ModelRegistry) -> None:
        with pytest.raises(UnknownModelError, match="gpt-99"):
            registry.require("gpt-99")

    def test_contains(self, registry: ModelRegistry) -> None:
        assert "gpt-4" in registry
        assert "gpt-99" not in registry

    def test_list_is_a_copy(self, registry: ModelRegistry) -> None:
        registry.list().clear()
        assert len(registry.list()) == 9

    def test_duplicate_ids_rejected(self) -> None:
        entry = ModelEntry("m", "M", OPENAI)
        with pytest.raises(ConfigurationError, match="Duplicate model id"):
            ModelRegistry([entry, entry])

    def test_empty_catalog_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            ModelRegistry([])


class TestActiveModel:
    def test_defaults_to_first_entry(self, registry: ModelRegistry) -> None:
        active = ActiveModel(registry)
        assert active.get() is registry.first
        assert active.id == "gpt-3.5-turbo"

    def test_set_known_model(self, registry: ModelRegistry) -> None:
        active = ActiveModel(registry)
        assert active.set("claude-3-haiku-20240307") is True
        assert active.get().provider is ANTHROPIC

    def test_set_unknown_model_leaves_state(self, registry: ModelRegistry) -> None:
        active = ActiveModel(registry)
        active.set("gpt-4")
        assert active.set("not-a-model") is False
        assert active.id == "gpt-4"

    def test_initial_selection(self, registry: ModelRegistry) -> None:
        assert ActiveModel(registry, "mistral-large-latest").id == "mistral-large-latest"

    def test_invalid_initial_selection(self, registry: ModelRegistry) -> None:
        with pytest.raises(UnknownModelError):
            ActiveModel(registry, "not-a-model")

    def test_stale_id_falls_back_to_first(self, registry: ModelRegistry) -> None:
        active = ActiveModel(registry)
        active.set("gpt-4")
        # Rebinding to a catalog without the stored id
        active._registry = ModelRegistry([ModelEntry("only", "Only", OPENAI)])
        assert active.id == "only"

    def test_independent_instances(self, registry: ModelRegistry) -> None:
        first, second = ActiveModel(registry), ActiveModel(registry)
        first.set("gpt-4")
        assert second.id == "gpt-3.5-turbo"
