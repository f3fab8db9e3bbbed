"""
Salience Animator
Breathing halo on HIGH-risk lakes, driven frame by frame and tied to the map's mount lifecycle
"""

import asyncio
from dataclasses import dataclass
from typing import Any, List, Optional
import structlog

from config import settings
from services.map_surface import MapSurface, PULSE_LAYER_ID

logger = structlog.get_logger(__name__)

MIN_RADIUS = 10.0
MAX_RADIUS = 26.0
MAX_OPACITY = 0.6
RADIUS_STEP = 0.35
OPACITY_STEP = 0.012


@dataclass
class PulseState:
    radius: float = MIN_RADIUS
    opacity: float = MAX_OPACITY
    expanding: bool = True

    def advance(self) -> "PulseState":
        """One animation tick: grow and fade, then shrink and brighten"""
        if self.expanding:
            self.radius += RADIUS_STEP
            self.opacity -= OPACITY_STEP
            if self.radius > MAX_RADIUS:
                self.expanding = False
        else:
            self.radius -= RADIUS_STEP
            self.opacity += OPACITY_STEP
            if self.radius < MIN_RADIUS:
                self.expanding = True

        self.radius = min(max(self.radius, MIN_RADIUS), MAX_RADIUS)
        self.opacity = min(max(self.opacity, 0.0), MAX_OPACITY)
        return self

    def radius_expression(self) -> List[Any]:
        return ["interpolate", ["linear"], ["zoom"], 6, self.radius + 6, 10, self.radius]


class FrameClock:
    """Per-frame callback source; the default paces frames with asyncio.sleep"""

    def __init__(self, fps: Optional[float] = None):
        self.interval = 1.0 / (fps or settings.animation_fps)

    async def next_frame(self):
        await asyncio.sleep(self.interval)


class SalienceAnimator:
    """Runs the pulse as a cancellable task while the map is mounted"""

    def __init__(
        self,
        surface: MapSurface,
        clock: Optional[FrameClock] = None,
        layer_id: str = PULSE_LAYER_ID
    ):
        self.surface = surface
        self.clock = clock or FrameClock()
        self.layer_id = layer_id
        self.state = PulseState()
        self.frames = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def tick(self) -> bool:
        """Advance and paint one frame; False once the pulse layer is gone"""
        if not self.surface.has_layer(self.layer_id):
            return False

        self.state.advance()
        self.surface.set_paint_property(self.layer_id, "circle-radius", self.state.radius_expression())
        self.surface.set_paint_property(self.layer_id, "circle-opacity", max(self.state.opacity, 0.0))
        self.frames += 1
        return True

    async def _run(self):
        while self.tick():
            await self.clock.next_frame()
        logger.info("Pulse layer gone, animation stopped", layer=self.layer_id, frames=self.frames)

    def start(self) -> asyncio.Task:
        if self.running:
            return self._task
        self._task = asyncio.create_task(self._run(), name="salience-animator")
        logger.info("Salience animation started", layer=self.layer_id)
        return self._task

    async def stop(self):
        """Cancel the animation task and wait for it to finish"""
        task, self._task = self._task, None
        if task is None:
            return
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Salience animation cancelled", frames=self.frames)
