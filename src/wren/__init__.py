"""Wren — a streaming completion gateway.

One prompt in, a lazy stream of text fragments out, whichever backend
answers. OpenAI, Mistral, and Anthropic are built in; each speaks its own
request shape, auth header, and SSE event format, and wren hides all three
behind one contract.

Basic usage::

    from wren import Gateway

    gateway = Gateway()
    gateway.set_model("claude-3-haiku-20240307")

    async for fragment in gateway.stream("Write a binary search in Python"):
        print(fragment, end="")

Streaming into an editor-like sink, one undo group per answer::

    from wren.sinks import BufferSink

    buffer = BufferSink("What is a monad?")
    await gateway.ask("What is a monad?", buffer)
"""

__version__ = "0.1.0"
__all__ = [
    "ActiveModel",
    "BufferSink",
    "ConfigurationError",
    "CredentialMissingError",
    "FragmentRelay",
    "Gateway",
    "GatewayConfig",
    "ModelEntry",
    "ModelRegistry",
    "ProviderDescriptor",
    "ProviderError",
    "SpawnError",
    "StreamSink",
    "UnknownModelError",
    "WrenError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wren`` fast while providing a clean top-level API.
    """
    if name == "Gateway":
        from wren.gateway import Gateway

        return Gateway

    if name == "GatewayConfig":
        from wren.config import GatewayConfig

        return GatewayConfig

    if name in ("ActiveModel", "ModelEntry", "ModelRegistry"):
        from wren import registry

        return getattr(registry, name)

    if name == "ProviderDescriptor":
        from wren.providers import ProviderDescriptor

        return ProviderDescriptor

    if name == "FragmentRelay":
        from wren.relay import FragmentRelay

        return FragmentRelay

    if name in ("BufferSink", "StreamSink"):
        from wren import sinks

        return getattr(sinks, name)

    if name in (
        "ConfigurationError",
        "CredentialMissingError",
        "ProviderError",
        "SpawnError",
        "UnknownModelError",
        "WrenError",
    ):
        from wren import errors

        return getattr(errors, name)

    msg = f"module 'wren' has no attribute {name!r}"
    raise AttributeError(msg)
