"""Application lifecycle hooks.

Resources owned by the supplier search package (the shared browser and
adapter clients) are released by an explicit shutdown sequence that the
host process runs, typically from its own lifespan handler:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with supplier_search_lifespan():
            yield
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Tuple

import structlog

logger = structlog.get_logger(__name__)


ShutdownCallback = Callable[[], Awaitable[None]]


class ShutdownSequence:
    """Ordered async cleanup callbacks, run last-registered first."""

    def __init__(self):
        self._callbacks: List[Tuple[str, ShutdownCallback]] = []
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    def register(self, name: str, callback: ShutdownCallback) -> None:
        self._callbacks.append((name, callback))

    async def run(self) -> None:
        """Run every callback once. A failing callback does not stop the rest."""
        if self._done:
            return
        self._done = True

        for name, callback in reversed(self._callbacks):
            try:
                await callback()
                logger.info("shutdown_step_complete", step=name)
            except Exception as e:
                logger.error("shutdown_step_failed", step=name, error=str(e), exc_info=True)


def build_default_shutdown_sequence() -> ShutdownSequence:
    """Shutdown steps for the default registry and the shared browser."""
    from supplier_search.adapters.register_adapters import get_default_registry
    from supplier_search.utils.browser_manager import get_browser_manager

    sequence = ShutdownSequence()
    sequence.register("browser", get_browser_manager().stop)
    for adapter in get_default_registry():
        sequence.register(f"adapter:{adapter.supplier_slug}", adapter.cleanup)
    return sequence


_default_sequence: Optional[ShutdownSequence] = None


def get_shutdown_sequence() -> ShutdownSequence:
    global _default_sequence
    if _default_sequence is None:
        _default_sequence = build_default_shutdown_sequence()
    return _default_sequence


async def shutdown() -> None:
    """Release every resource held by the default supplier search setup."""
    await get_shutdown_sequence().run()


@asynccontextmanager
async def supplier_search_lifespan(
    sequence: Optional[ShutdownSequence] = None,
) -> AsyncIterator[ShutdownSequence]:
    """Async context manager that runs the shutdown sequence on exit."""
    sequence = sequence or get_shutdown_sequence()
    try:
        yield sequence
    finally:
        await sequence.run()
