import logging
from typing import Callable, Final

import cv2
import numpy as np

from ..models import PointerEvent

logger = logging.getLogger(__name__)

PointerCallback = Callable[[PointerEvent, int, int], None]

_EVENT_MAP: Final[dict] = {
    cv2.EVENT_LBUTTONDOWN: PointerEvent.PRIMARY_DOWN,
    cv2.EVENT_LBUTTONUP: PointerEvent.PRIMARY_UP,
    cv2.EVENT_MOUSEMOVE: PointerEvent.MOVE,
}


class OpenCVDisplay:
    """
    An OpenCV HighGUI window showing the camera feed.

    HighGUI only processes window events inside `cv2.waitKey`, so `poll`
    must be called regularly from the thread that opened the window. Mouse
    callbacks fire from within `poll`.
    """

    def __init__(self, window_name: str, on_pointer: PointerCallback):
        self.window_name = window_name
        self._on_pointer = on_pointer
        self._opened = False
        self._shown = False

    def open(self) -> None:
        cv2.namedWindow(self.window_name, cv2.WINDOW_AUTOSIZE)
        cv2.setMouseCallback(self.window_name, self._on_mouse)
        self._opened = True
        logger.info(f"Window '{self.window_name}' created. Click on the image to move the head.")

    def _on_mouse(self, event: int, x: int, y: int, flags: int, param) -> None:
        self._on_pointer(_EVENT_MAP.get(event, PointerEvent.OTHER), x, y)

    def render(self, image: np.ndarray) -> None:
        cv2.imshow(self.window_name, image)

    def poll(self, delay_ms: int = 1) -> int:
        """Processes pending window events. Returns the pressed key or -1."""
        return cv2.waitKey(delay_ms)

    @property
    def is_open(self) -> bool:
        if not self._opened:
            return False
        try:
            visible = cv2.getWindowProperty(self.window_name, cv2.WND_PROP_VISIBLE) >= 1
        except cv2.error:
            visible = False

        if visible:
            self._shown = True
            return True
        # Some backends only map the window on the first imshow
        return not self._shown

    def close(self) -> None:
        if not self._opened:
            return
        self._opened = False
        try:
            cv2.destroyWindow(self.window_name)
        except cv2.error:
            # Already destroyed by the user closing it
            pass
        logger.info(f"Window '{self.window_name}' destroyed.")
