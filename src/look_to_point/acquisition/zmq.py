import asyncio
import logging
from typing import Optional, Set

import zmq
import zmq.asyncio

from ..core.errors import MessageDecodeError
from ..utils.logging import ThrottledLogger
from .base import MessageCallback, MessageKind, Subscription, Transport
from .messages import decode

logger = logging.getLogger(__name__)


class ZMQSubscription(Subscription):
    """
    One SUB socket bound to one topic, read by its own asyncio task.

    ZMQ filters topics by prefix, so the first frame is compared against
    the full topic name and other topics sharing the prefix are dropped.
    """

    def __init__(
        self,
        ctx: zmq.asyncio.Context,
        endpoint: str,
        topic: str,
        kind: MessageKind,
        callback: MessageCallback,
        queue_size: Optional[int] = None,
        on_shutdown: Optional[MessageCallback] = None,
    ):
        super().__init__(topic, kind, callback)
        self._topic_bytes = topic.encode()
        self._on_shutdown = on_shutdown
        self._throttled = ThrottledLogger(logger)

        self._sock = ctx.socket(zmq.SUB)
        self._sock.setsockopt(zmq.LINGER, 0)
        if queue_size is not None:
            # Keep only the newest messages if the reader falls behind
            self._sock.setsockopt(zmq.RCVHWM, queue_size)
        self._sock.connect(endpoint)
        self._sock.setsockopt(zmq.SUBSCRIBE, self._topic_bytes)

        self._task: Optional[asyncio.Task] = asyncio.get_running_loop().create_task(self._receive_loop())
        logger.info(f"Subscribed to '{topic}' on {endpoint}")

    @property
    def is_active(self) -> bool:
        return self._task is not None

    async def _receive_loop(self) -> None:
        try:
            while True:
                frames = await self._sock.recv_multipart()
                if not frames or frames[0] != self._topic_bytes:
                    continue

                try:
                    message = decode(self.kind, frames[1:])
                except MessageDecodeError as e:
                    self._throttled.warning("Dropping message on '%s': %s", self.topic, e)
                    continue

                try:
                    self._callback(message)
                except Exception:
                    logger.exception(f"Error in the callback of '{self.topic}'.")

                if self._task is None:
                    # Shut down from within the callback
                    break

        except asyncio.CancelledError:
            logger.debug(f"Receive loop of '{self.topic}' cancelled.")
        except zmq.ZMQError as e:
            if self._task is not None:
                logger.error(f"ZMQ receive failed on '{self.topic}': {e}")

    def shutdown(self) -> None:
        if self._task is None:
            return

        logger.info(f"Unsubscribing from '{self.topic}'")
        task, self._task = self._task, None
        if task is not asyncio.current_task():
            task.cancel()
        self._sock.close(linger=0)
        if self._on_shutdown is not None:
            self._on_shutdown(self)


class ZMQTransport(Transport):
    """
    Subscribes to the topics of a camera driver publishing on a ZMQ PUB socket.
    """

    def __init__(
        self,
        endpoint: str = "tcp://localhost:5556",
        image_queue_size: int = 1,
        ctx: Optional[zmq.asyncio.Context] = None,
    ):
        """
        Args:
            endpoint: Address of the publisher to connect to.
            image_queue_size: Receive high water mark of image subscriptions.
            ctx: Context to create sockets from. A private one is created and
                 terminated by the transport when omitted.
        """
        self.endpoint = endpoint
        self._image_queue_size = image_queue_size
        self._owns_ctx = ctx is None
        self._ctx = ctx if ctx is not None else zmq.asyncio.Context()
        self._subscriptions: Set[ZMQSubscription] = set()

    def subscribe(self, topic: str, kind: MessageKind, callback: MessageCallback) -> ZMQSubscription:
        sub = ZMQSubscription(
            self._ctx,
            self.endpoint,
            topic,
            kind,
            callback,
            queue_size=self._image_queue_size if kind is MessageKind.IMAGE else None,
            on_shutdown=self._subscriptions.discard,
        )
        self._subscriptions.add(sub)
        return sub

    async def close(self) -> None:
        """Shut down all subscriptions and the ZMQ context."""
        logger.info("Closing ZMQTransport...")
        for sub in list(self._subscriptions):
            sub.shutdown()
        # Let the cancelled receive loops finish
        await asyncio.sleep(0)
        if self._owns_ctx:
            self._ctx.term()
