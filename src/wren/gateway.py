"""Gateway — one prompt in, a stream of fragments out.

``Gateway`` ties the pieces together:

    ActiveModel -> build_request -> Transport.start -> decode_lines
                -> FragmentRelay -> sink

The model is resolved once when a request starts, so switching models
mid-flight never affects a running session. Credentials are checked in
``prepare()``, before any transport is started.

Three ways to consume a response:

    # Lazy fragments
    async for fragment in gateway.stream("Explain decorators"):
        print(fragment, end="")

    # Into a sink, waiting for completion
    text = await gateway.ask("Explain decorators", sink)

    # Into a sink in the background; returns once the transport is running
    async with anyio.create_task_group() as tg:
        session = await gateway.start("Explain decorators", sink, tg)
"""

import logging
from collections.abc import AsyncIterator, Mapping

from anyio.abc import TaskGroup

from wren.commands import build_modify_prompt
from wren.config import GatewayConfig
from wren.decoder import decode_lines
from wren.registry import ActiveModel, ModelEntry, ModelRegistry
from wren.relay import FragmentRelay, Sink, SinkLocks
from wren.request import PreparedRequest, build_request
from wren.transport import HttpTransport, ProcessTransport, StreamSession, Transport

logger = logging.getLogger("wren.gateway")


def make_transport(config: GatewayConfig) -> Transport:
    """Build the transport selected by ``config.transport``."""
    if config.transport == "http":
        return HttpTransport(timeout=config.request_timeout)
    return ProcessTransport(config.curl_path, kill_timeout=config.kill_timeout)


class Gateway:
    """Streaming completion gateway.

    All collaborators are injectable; the defaults give the built-in model
    catalog, the ``curl`` transport, and ``os.environ`` for credentials.
    """

    __slots__ = ("_environ", "_locks", "active", "config", "registry", "transport")

    def __init__(
        self,
        config: GatewayConfig | None = None,
        *,
        registry: ModelRegistry | None = None,
        transport: Transport | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.config = config if config is not None else GatewayConfig()
        self.config.validate()
        self.registry = registry if registry is not None else ModelRegistry()
        self.active = ActiveModel(self.registry, self.config.model)
        self.transport = transport if transport is not None else make_transport(self.config)
        self._environ = environ
        self._locks = SinkLocks()

    # -- Model selection --

    @property
    def model(self) -> ModelEntry:
        return self.active.get()

    def list_models(self) -> list[ModelEntry]:
        return self.registry.list()

    def set_model(self, model_id: str) -> bool:
        """Switch the active model. Returns ``False`` for an unknown id."""
        switched = self.active.set(model_id)
        if switched:
            logger.info("Active model is now %s", model_id)
        return switched

    # -- Request lifecycle --

    def prepare(
        self,
        prompt: str,
        *,
        model: str | None = None,
        system: str | None = None,
    ) -> PreparedRequest:
        """Build the request for ``prompt`` against the active (or given) model."""
        entry = self.registry.require(model) if model is not None else self.active.get()
        return build_request(
            entry,
            self.config.system_prompt if system is None else system,
            prompt,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            environ=self._environ,
        )

    async def open(
        self,
        prompt: str,
        *,
        model: str | None = None,
        system: str | None = None,
    ) -> StreamSession:
        """Start a transport for ``prompt`` and return its raw line session."""
        request = self.prepare(prompt, model=model, system=system)
        logger.debug("Starting %s request to %s", request.model.id, request.url)
        return await self.transport.start(request)

    async def relay(self, session: StreamSession, sink: Sink) -> str:
        """Pump ``session`` into ``sink`` and close it. Returns the streamed text."""
        relay = FragmentRelay(sink, separator=self.config.separator)
        async with session, self._locks.hold(sink):
            try:
                async for fragment in decode_lines(session.model.provider, session.lines()):
                    await relay.on_fragment(fragment)
            except Exception as exc:
                await relay.on_error(exc)
            await relay.on_complete()
        return relay.text

    # -- Command surface --

    async def stream(
        self,
        prompt: str,
        *,
        model: str | None = None,
        system: str | None = None,
    ) -> AsyncIterator[str]:
        """Yield non-empty fragments in arrival order."""
        session = await self.open(prompt, model=model, system=system)
        async with session:
            async for fragment in decode_lines(session.model.provider, session.lines()):
                if fragment:
                    yield fragment

    async def ask(self, prompt: str, sink: Sink, *, model: str | None = None) -> str:
        session = await self.open(prompt, model=model)
        return await self.relay(session, sink)

    async def modify(
        self,
        selected_text: str,
        instruction: str,
        sink: Sink,
        *,
        model: str | None = None,
    ) -> str:
        return await self.ask(build_modify_prompt(selected_text, instruction), sink, model=model)

    async def start(
        self,
        prompt: str,
        sink: Sink,
        task_group: TaskGroup,
        *,
        model: str | None = None,
    ) -> StreamSession:
        """Spawn the transport, then relay in ``task_group`` without waiting.

        Credential and spawn failures are raised here, before anything is
        written to ``sink``. Call ``terminate()`` on the returned session to
        stop it early.
        """
        session = await self.open(prompt, model=model)
        task_group.start_soon(self.relay, session, sink)
        return session
