import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional, Set

from ..core.errors import ActuationServiceUnavailable
from ..core.state import ConnectionState
from ..models import GazeGoal

logger = logging.getLogger(__name__)


class HeadController(ABC):
    """
    Abstract client of a head-pointing action server.

    AUTHORITY on: the connection state, and the fire-and-forget delivery of
    gaze goals. Goals are never tracked to completion; a newer goal
    supersedes an older one on the server side.
    """

    def __init__(self):
        self._state = ConnectionState.DISCONNECTED
        self.service_name: str = ""
        self._pending: Set[asyncio.Task] = set()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.READY

    @property
    def pending_goals(self) -> int:
        """Number of goal submissions still in flight."""
        return len(self._pending)

    async def connect(
        self,
        service_name: str,
        timeout_per_attempt_s: float = 2.0,
        max_attempts: int = 3,
        stop_event: Optional[asyncio.Event] = None,
    ) -> ConnectionState:
        """
        Waits for the action server, giving up after `max_attempts` attempts
        of at most `timeout_per_attempt_s` each.

        Returns READY once the server answers, or DISCONNECTED if `stop_event`
        was set before that.

        Raises:
            ActuationServiceUnavailable: every attempt timed out.
        """
        if max_attempts <= 0:
            raise ValueError("max_attempts must be positive.")

        self.service_name = service_name
        self._state = ConnectionState.CONNECTING
        logger.info(f"Connecting to head controller '{service_name}'...")

        for attempt in range(max_attempts):
            if stop_event is not None and stop_event.is_set():
                logger.info("Stop requested while connecting to the head controller.")
                self._state = ConnectionState.DISCONNECTED
                return self._state

            ready = await self._attempt(timeout_per_attempt_s, stop_event)
            if ready is None:
                logger.info("Stop requested while connecting to the head controller.")
                self._state = ConnectionState.DISCONNECTED
                return self._state

            if ready:
                self._state = ConnectionState.READY
                logger.info(f"Head controller '{service_name}' is ready.")
                return self._state

            logger.debug(
                f"Waiting for the '{service_name}' server to come up "
                f"(attempt {attempt + 1}/{max_attempts})"
            )

        self._state = ConnectionState.FAILED
        raise ActuationServiceUnavailable(
            f"Head controller action server '{service_name}' not available "
            f"after {max_attempts} attempts of {timeout_per_attempt_s:.1f}s."
        )

    async def _attempt(self, timeout_s: float, stop_event: Optional[asyncio.Event]) -> Optional[bool]:
        """One connection attempt. Returns None if `stop_event` is set first."""
        if stop_event is None:
            return await self.wait_until_ready(timeout_s)

        attempt = asyncio.ensure_future(self.wait_until_ready(timeout_s))
        stopped = asyncio.ensure_future(stop_event.wait())
        try:
            await asyncio.wait({attempt, stopped}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (attempt, stopped):
                if not task.done():
                    task.cancel()
            await asyncio.gather(attempt, stopped, return_exceptions=True)

        if attempt.done() and not attempt.cancelled():
            return attempt.result()
        return None

    @abstractmethod
    async def wait_until_ready(self, timeout_s: float) -> bool:
        """Returns True if the server answered within `timeout_s`."""
        ...

    def dispatch(self, goal: GazeGoal) -> asyncio.Task:
        """
        Sends a goal without waiting for it to be accepted or executed.

        Must be called from the event loop thread. Returns the submission
        task, which completes once the server has answered. Failures are
        logged, never raised to the caller.
        """
        if not self.is_connected:
            raise RuntimeError(f"Cannot dispatch goal, head controller is {self._state.name}.")

        task = asyncio.get_running_loop().create_task(self._submit(goal))
        self._pending.add(task)
        task.add_done_callback(self._on_submitted)
        return task

    def _on_submitted(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Gaze goal submission failed: %s", exc, exc_info=exc)

    @abstractmethod
    async def _submit(self, goal: GazeGoal) -> None:
        """Delivers one goal to the server."""
        ...

    async def close(self) -> None:
        """Drops in-flight submissions and disconnects."""
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        self._state = ConnectionState.DISCONNECTED
