"""Stream decoding: raw transport lines to text fragments.

Keep-alives, ``[DONE]`` sentinels, non-content events, and partial or
malformed lines are routine on a live stream. They decode to ``""`` and
never abort the session.
"""

import logging
from collections.abc import AsyncIterable, AsyncIterator

from wren.providers import ProviderDescriptor

logger = logging.getLogger("wren.decoder")


def decode(provider: ProviderDescriptor, line: str) -> str:
    """Decode one raw line into a fragment (possibly empty)."""
    try:
        fragment = provider.decode_chunk(line)
    except Exception:
        logger.debug("Skipping undecodable %s line: %r", provider.name, line, exc_info=True)
        return ""
    return fragment if isinstance(fragment, str) else ""


async def decode_lines(
    provider: ProviderDescriptor,
    lines: AsyncIterable[str],
) -> AsyncIterator[str]:
    """Decode a line stream in order, one line at a time.

    Yields one fragment per line, including empty ones; dropping empties is
    the relay's decision.
    """
    async for line in lines:
        yield decode(provider, line)
