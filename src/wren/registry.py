"""Model catalog with an active-model selector.

``ModelEntry`` is the frozen definition and ``ModelRegistry`` the ordered
lookup table built from it. ``ActiveModel`` is the only mutable piece, and it is an explicit object
owned by whoever needs a selection (normally the ``Gateway``), never a
module global.

Thread-safety:
    - ModelEntry is a frozen dataclass (immutable)
    - ModelRegistry._entries is built once in ``__init__``, never mutated
    - ActiveModel swaps a single string reference, so a switch is atomic
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from wren.errors import ConfigurationError, UnknownModelError
from wren.providers import ANTHROPIC, MISTRAL, OPENAI, ProviderDescriptor


@dataclass(frozen=True, slots=True)
class ModelEntry:
    """A model the gateway can talk to."""

    id: str
    name: str
    provider: ProviderDescriptor


DEFAULT_MODELS: tuple[ModelEntry, ...] = (
    ModelEntry("gpt-3.5-turbo", "GPT 3.5 Turbo", OPENAI),
    ModelEntry("gpt-4", "GPT 4", OPENAI),
    ModelEntry("gpt-4-turbo", "GPT 4 Turbo", OPENAI),
    ModelEntry("open-mixtral-8x7b", "Mixtral", MISTRAL),
    ModelEntry("mistral-medium-latest", "Mistral Medium", MISTRAL),
    ModelEntry("mistral-large-latest", "Mistral Large", MISTRAL),
    ModelEntry("claude-3-haiku-20240307", "Claude 3 Haiku", ANTHROPIC),
    ModelEntry("claude-3-5-sonnet-20240620", "Claude 3.5 Sonnet", ANTHROPIC),
    ModelEntry("claude-3-opus-20240229", "Claude 3 Opus", ANTHROPIC),
)


class ModelRegistry:
    """Ordered model catalog. Immutable after construction.

    Order matters: the first entry is the default selection and ``list()``
    preserves declaration order for display.
    """

    __slots__ = ("_entries", "_order")

    def __init__(self, entries: Iterable[ModelEntry] = DEFAULT_MODELS) -> None:
        order = tuple(entries)
        if not order:
            msg = "Model catalog must contain at least one entry"
            raise ConfigurationError(msg)

        index: dict[str, ModelEntry] = {}
        for entry in order:
            if entry.id in index:
                msg = f"Duplicate model id: {entry.id!r}"
                raise ConfigurationError(msg)
            index[entry.id] = entry

        self._order = order
        self._entries = index

    @property
    def first(self) -> ModelEntry:
        return self._order[0]

    def get(self, model_id: str) -> ModelEntry | None:
        """Look up a model by id. Returns ``None`` if not found."""
        return self._entries.get(model_id)

    def require(self, model_id: str) -> ModelEntry:
        """Look up a model by id, raising ``UnknownModelError`` if absent."""
        entry = self._entries.get(model_id)
        if entry is None:
            raise UnknownModelError(model_id)
        return entry

    def list(self) -> list[ModelEntry]:
        return list(self._order)

    def __iter__(self) -> Iterator[ModelEntry]:
        return iter(self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._entries


class ActiveModel:
    """The currently selected model for one gateway.

    Defaults to the catalog's first entry. A stored id that is no longer in
    the catalog also falls back to the first entry.
    """

    __slots__ = ("_id", "_registry")

    def __init__(self, registry: ModelRegistry, initial: str | None = None) -> None:
        self._registry = registry
        self._id: str | None = None
        if initial is not None and not self.set(initial):
            raise UnknownModelError(initial)

    @property
    def id(self) -> str:
        return self.get().id

    def get(self) -> ModelEntry:
        if self._id is not None:
            entry = self._registry.get(self._id)
            if entry is not None:
                return entry
        return self._registry.first

    def set(self, model_id: str) -> bool:
        """Select ``model_id``. Returns ``False`` and changes nothing if unknown."""
        if model_id not in self._registry:
            return False
        self._id = model_id
        return True
