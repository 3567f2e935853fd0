import asyncio
import logging
from asyncio import Queue
from typing import Callable, Optional

from ..acquisition import IntrinsicsAcquirer, MessageKind, Subscription, Transport
from ..configs import AppSettings
from ..controllers import HeadController
from ..models import (
    CalibrationReceived,
    ClickReceived,
    Event,
    FrameReceived,
    ImageFrame,
    PointerEvent,
    StopRequested,
)
from ..utils.clock import Clock
from .errors import ClockUnavailable, LookToPointError
from .interaction import InteractionController
from .protocols import DisplaySurface
from .state import AppState, ConnectionState, ExitStatus

logger = logging.getLogger(__name__)

DisplayFactory = Callable[[Callable[[PointerEvent, int, int], None]], DisplaySurface]


class LookToPointRunner:
    """
    Drives the application through its states:

        INIT -> WAITING_FOR_INTRINSICS -> WAITING_FOR_ACTUATION_SERVICE -> RUNNING -> SHUTTING_DOWN

    Every producer (transport callbacks, the window's mouse callback, signal
    handlers) only puts tagged events on one queue; this object is the single
    consumer. Nothing here is thread-safe and nothing needs to be: all of it
    runs on the event loop thread.
    """

    def __init__(
        self,
        settings: AppSettings,
        transport: Transport,
        head: HeadController,
        display_factory: DisplayFactory,
        clock: Optional[Clock] = None,
    ):
        self.settings = settings
        self._transport = transport
        self._head = head
        self._display_factory = display_factory
        self._clock = clock or Clock()

        self._events: Queue[Event] = Queue()
        self._stop_event = asyncio.Event()
        self._state = AppState.INIT

        self._display: Optional[DisplaySurface] = None
        self._image_sub: Optional[Subscription] = None
        self._pending_frame: Optional[ImageFrame] = None
        self.controller: Optional[InteractionController] = None

        self.frames_rendered = 0
        self.frames_dropped = 0

    @property
    def state(self) -> AppState:
        return self._state

    def _set_state(self, state: AppState) -> None:
        logger.debug(f"{self._state.name} -> {state.name}")
        self._state = state

    def request_stop(self, reason: str = "external termination") -> None:
        """Asks the runner to shut down. Safe to use as a signal handler."""
        if not self._stop_event.is_set():
            logger.info(f"Stop requested ({reason}).")
        self._stop_event.set()
        self._events.put_nowait(StopRequested(reason))

    # --- Lifecycle ---

    async def run(self) -> ExitStatus:
        """
        Runs the application until a stop is requested.

        Fatal startup errors are logged once and reported as FAILURE; a stop
        request at any point is a normal, successful shutdown.
        """
        status = ExitStatus.SUCCESS
        try:
            if await self._start():
                await self._spin()
        except LookToPointError as e:
            logger.critical(f"{type(e).__name__}: {e}")
            status = ExitStatus.FAILURE
        finally:
            await self._shutdown()
        return status

    async def _start(self) -> bool:
        """
        Returns True when everything needed to run is in place, False if a
        stop was requested on the way. Raises on fatal errors.
        """
        startup = self.settings.startup
        actuation = self.settings.actuation

        # 1. Precondition: valid clock. Important with simulated time.
        self._set_state(AppState.INIT)
        if not await self._clock.wait_for_valid(startup.clock_timeout_s, self._stop_event):
            if self._stop_event.is_set():
                return False
            raise ClockUnavailable(f"Timed-out waiting for valid time ({startup.clock_timeout_s:.1f}s).")

        # 2. Camera intrinsics
        self._set_state(AppState.WAITING_FOR_INTRINSICS)
        acquirer = IntrinsicsAcquirer(
            self._transport,
            self.settings.camera.camera_info_topic,
            poll_interval_s=startup.intrinsics_poll_interval_s,
        )
        intrinsics = await acquirer.wait(self._events, self._stop_event)
        if intrinsics is None:
            return False

        # 3. Head controller
        self._set_state(AppState.WAITING_FOR_ACTUATION_SERVICE)
        state = await self._head.connect(
            actuation.service_name,
            timeout_per_attempt_s=actuation.timeout_per_attempt_s,
            max_attempts=actuation.max_attempts,
            stop_event=self._stop_event,
        )
        if state is not ConnectionState.READY:
            return False

        self.controller = InteractionController(
            intrinsics,
            self._head,
            self._clock,
            camera_frame=self.settings.camera.camera_frame,
            gaze=self.settings.gaze,
        )
        return True

    async def _spin(self) -> None:
        """Hot loop: pump the window, then handle at most one event."""
        self._set_state(AppState.RUNNING)

        self._display = self._display_factory(self._on_pointer)
        self._display.open()

        topic = self.settings.camera.image_topic
        logger.info(f"Subscribing to {topic} ...")
        self._image_sub = self._transport.subscribe(topic, MessageKind.IMAGE, self._on_frame)

        poll_interval_s = self.settings.display.poll_interval_s
        while not self._stop_event.is_set():
            # Mouse callbacks fire from here
            self._display.poll(1)
            if not self._display.is_open:
                self.request_stop("window closed")
                continue

            try:
                event = await asyncio.wait_for(self._events.get(), timeout=poll_interval_s)
            except asyncio.TimeoutError:
                continue
            self._dispatch(event)

    async def _shutdown(self) -> None:
        self._set_state(AppState.SHUTTING_DOWN)

        if self._image_sub is not None:
            self._image_sub.shutdown()
            self._image_sub = None
        if self._display is not None:
            self._display.close()
            self._display = None
        await self._head.close()

        logger.info(
            f"Shut down. Frames rendered: {self.frames_rendered}, dropped: {self.frames_dropped}."
        )

    # --- Events ---

    def _dispatch(self, event: Event) -> None:
        if isinstance(event, FrameReceived):
            self._render_pending_frame()
        elif isinstance(event, ClickReceived):
            self.controller.on_click(event.event, event.u, event.v)
        elif isinstance(event, StopRequested):
            self._stop_event.set()
        elif isinstance(event, CalibrationReceived):
            logger.debug("Ignoring calibration received after startup.")

    def _on_frame(self, frame: ImageFrame) -> None:
        """
        Keeps only the newest frame. At most one FrameReceived is queued, so a
        slow display drops frames instead of falling behind.
        """
        already_pending = self._pending_frame is not None
        if already_pending:
            self.frames_dropped += 1
        self._pending_frame = frame
        if not already_pending:
            self._events.put_nowait(FrameReceived())

    def _render_pending_frame(self) -> None:
        frame, self._pending_frame = self._pending_frame, None
        if frame is None or self._display is None:
            return
        self._display.render(frame.image)
        self.frames_rendered += 1

    def _on_pointer(self, event: PointerEvent, u: int, v: int) -> None:
        self._events.put_nowait(ClickReceived(event, u, v))
