"""Bootstrap - builds one runtime's components

Responsibilities:
- create the Timer, LayoutManager, LayoutSupervisor and LayoutStore
- wire the playback engine and stream registry (in-memory by default)
- attach the supervisor's poll/drain tasks to the timer
- return RuntimeComponents to the caller

Not responsible for:
- running the timer or the web server (the caller owns the lifecycle)

Every call builds an independent set of components; nothing is cached at
module level, so tests and embedders can run several side by side.
"""

from dataclasses import dataclass
from pathlib import Path

from ..adapters.base import PlaybackEngine, StreamRegistry
from ..adapters.memory import InMemoryPlaybackEngine, InMemoryStreamRegistry
from ..config import DEFAULT_TEMPLATE_ID
from ..layout.geometry import Size
from ..layout.manager import LayoutManager
from ..layout.persistence import LayoutStore
from ..render.renderer import LayoutRenderer
from ..supervisor import LayoutSupervisor
from ..telemetry import get_logger
from ..timer import Timer

logger = get_logger(__name__)


@dataclass
class RuntimeComponents:
    """Components returned by bootstrap()."""

    timer: Timer
    manager: LayoutManager
    supervisor: LayoutSupervisor
    store: LayoutStore
    playback: PlaybackEngine
    registry: StreamRegistry
    renderer: LayoutRenderer

    async def shutdown(self) -> None:
        """Stop the timer, drain pending commands and stop playback."""
        self.timer.stop()
        self.supervisor.detach_timer()
        await self.supervisor.process_queued()
        for stream_id in self.manager.stream_ids:
            await self.playback.stop(stream_id)
        logger.info("[Bootstrap] Runtime shut down")


def bootstrap(
    template: str = DEFAULT_TEMPLATE_ID,
    container_size: Size | None = None,
    playback: PlaybackEngine | None = None,
    registry: StreamRegistry | None = None,
    store_path: Path | None = None,
    attach_timer: bool = True,
) -> RuntimeComponents:
    """Build a runtime.

    Args:
        template: initial template id
        container_size: initial canvas size (config default when None)
        playback: playback engine (in-memory engine when None)
        registry: stream metadata source (in-memory registry when None)
        store_path: named layout file (config default when None)
        attach_timer: register the supervisor's interval tasks on the timer

    Returns:
        RuntimeComponents with everything wired
    """
    timer = Timer()
    manager = LayoutManager(template=template, container_size=container_size)
    playback = playback or InMemoryPlaybackEngine()
    registry = registry or InMemoryStreamRegistry()
    supervisor = LayoutSupervisor(manager, playback=playback, registry=registry)

    if attach_timer:
        supervisor.attach_timer(timer)

    logger.info(
        f"[Bootstrap] Components created (template={manager.template.id}, "
        f"playback={playback.name}, registry={registry.name})"
    )

    return RuntimeComponents(
        timer=timer,
        manager=manager,
        supervisor=supervisor,
        store=LayoutStore(store_path),
        playback=playback,
        registry=registry,
        renderer=LayoutRenderer(),
    )
