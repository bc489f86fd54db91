"""Wren exception hierarchy.

Shared across the registry, request builder, transports, and CLI so every
module raises and catches the same types.
"""


class WrenError(Exception):
    """Base for all wren-specific errors."""


class ConfigurationError(WrenError):
    """Raised when gateway configuration is invalid."""


class CredentialMissingError(WrenError):
    """Raised when a provider's API key is not set in the environment.

    Always raised before any transport is started.
    """

    def __init__(self, env_var: str) -> None:
        self.env_var = env_var
        super().__init__(
            f"API key not found. Please set the {env_var} environment variable."
        )


class SpawnError(WrenError):
    """Raised when the transport could not be started.

    Also raised when the transport exits with an error before streaming any
    content. No fragment has been emitted when this is raised.
    """


class ProviderError(WrenError):
    """Raised when an LLM provider rejects a request outright."""

    def __init__(self, provider: str, status: int, detail: str) -> None:
        self.provider = provider
        self.status = status
        self.detail = detail
        super().__init__(f"{provider} returned {status}: {detail}")


class UnknownModelError(WrenError, KeyError):
    """Raised when a model id is not in the catalog."""

    def __init__(self, model_id: str) -> None:
        self.model_id = model_id
        super().__init__(model_id)

    def __str__(self) -> str:
        return f"Invalid model ID: {self.model_id}"


class UnsupportedLanguageError(WrenError):
    """Raised when a code cell's language has no known interpreter."""

    def __init__(self, language: str) -> None:
        self.language = language
        super().__init__(f"Unsupported language: {language}")
