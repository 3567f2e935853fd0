import asyncio
import logging

from ..models import GazeGoal
from .base import HeadController

logger = logging.getLogger(__name__)


class DummyHeadController(HeadController):
    """Pretends to be an action server; records goals instead of moving a head."""

    def __init__(self, discovery_delay_s: float = 0.5):
        super().__init__()
        self._discovery_delay_s = discovery_delay_s
        self.goals: list[GazeGoal] = []

    async def wait_until_ready(self, timeout_s: float) -> bool:
        if self._discovery_delay_s > timeout_s:
            await asyncio.sleep(timeout_s)
            self._discovery_delay_s -= timeout_s
            return False
        await asyncio.sleep(self._discovery_delay_s) # Simulate discovery
        self._discovery_delay_s = 0.0
        return True

    async def _submit(self, goal: GazeGoal) -> None:
        await asyncio.sleep(0)
        self.goals.append(goal)
        p = goal.target
        logger.info(f"[Dummy] Looking at ({p.x:.3f}, {p.y:.3f}, {p.z:.3f}) in '{goal.pointing_frame}'")
