import asyncio
import logging
from typing import Optional

import aiohttp

from ..models import GazeGoal
from .base import HeadController

logger = logging.getLogger(__name__)


class HTTPHeadController(HeadController):
    """
    Head controller reached through an HTTP action endpoint.

    Protocol, relative to `base_url + service_name`:
    - GET  /status -> 200 {"ready": true} once the server accepts goals.
    - POST /goal   -> 2xx when the goal is accepted. The body is `GazeGoal.to_dict()`.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        request_timeout_s: float = 2.0,
        ready_poll_interval_s: float = 0.1,
    ):
        """
        Args:
            base_url: Root URL of the action server.
            request_timeout_s: Timeout of a single HTTP request.
            ready_poll_interval_s: Delay between two readiness probes.
        """
        super().__init__()
        self._base_url = base_url.rstrip("/")
        self._request_timeout = aiohttp.ClientTimeout(total=request_timeout_s)
        self._ready_poll_interval_s = ready_poll_interval_s
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def action_url(self) -> str:
        return f"{self._base_url}/{self.service_name.strip('/')}"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._request_timeout)
        return self._session

    async def _probe(self) -> bool:
        try:
            async with self._get_session().get(f"{self.action_url}/status") as response:
                if response.status != 200:
                    logger.debug(f"Status probe returned {response.status}")
                    return False
                body = await response.json(content_type=None)
                return isinstance(body, dict) and bool(body.get("ready"))

        except aiohttp.ClientError as e:
            logger.debug(f"Status probe failed: {e}")
        except asyncio.TimeoutError:
            logger.debug("Status probe timed out")
        except ValueError as e:
            logger.debug(f"Status probe returned an invalid body: {e}")
        return False

    async def wait_until_ready(self, timeout_s: float) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_s

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                return False
            try:
                if await asyncio.wait_for(self._probe(), timeout=remaining):
                    return True
            except asyncio.TimeoutError:
                return False

            remaining = deadline - loop.time()
            if remaining <= 0:
                return False
            await asyncio.sleep(min(self._ready_poll_interval_s, remaining))

    async def _submit(self, goal: GazeGoal) -> None:
        async with self._get_session().post(f"{self.action_url}/goal", json=goal.to_dict()) as response:
            if 200 <= response.status < 300:
                logger.debug(f"Goal accepted, status: {response.status}")
            else:
                response_text = await response.text()
                logger.warning(f"Server rejected goal: {response.status}. Response: {response_text}")

    async def close(self) -> None:
        await super().close()
        if self._session is not None:
            await self._session.close()
            self._session = None
