import logging
from typing import Optional

from ..configs import GazeSettings
from ..controllers import HeadController
from ..models import GazeGoal, IntrinsicMatrix, PointerEvent
from ..utils.clock import Clock
from .camera import project

logger = logging.getLogger(__name__)


class InteractionController:
    """
    Turns clicks on the camera image into gaze goals.

    Stateless between clicks: every qualifying click produces one
    independent goal.
    """

    def __init__(
        self,
        intrinsics: IntrinsicMatrix,
        head: HeadController,
        clock: Clock,
        camera_frame: str,
        gaze: Optional[GazeSettings] = None,
    ):
        self._intrinsics = intrinsics
        self._head = head
        self._clock = clock
        self._camera_frame = camera_frame
        self._gaze = gaze or GazeSettings()

    def on_click(self, event: PointerEvent, u: int, v: int) -> Optional[GazeGoal]:
        """
        Sends the head towards pixel (u, v) on a primary button press.
        Any other pointer event is ignored.

        Returns:
            The dispatched goal, or None if the event was ignored.
        """
        if event is not PointerEvent.PRIMARY_DOWN:
            return None

        logger.info(f"Pixel selected ({u}, {v}). Making the robot look to that direction")

        target = project(u, v, self._intrinsics, frame_id=self._camera_frame, stamp=self._clock.now())
        goal = GazeGoal(
            pointing_frame=self._camera_frame,
            target=target,
            min_duration=self._gaze.min_duration_s,
            max_velocity=self._gaze.max_velocity,
        )
        self._head.dispatch(goal)
        return goal
