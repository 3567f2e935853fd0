from dataclasses import dataclass, asdict
from typing import Final

from .camera import RayPoint

OPTICAL_AXIS: Final[tuple[float, float, float]] = (0.0, 0.0, 1.0)


@dataclass(slots=True, frozen=True)
class GazeGoal:
    """
    Directive for the head controller: orient `pointing_axis` of
    `pointing_frame` towards `target`, within the given motion limits.
    """
    pointing_frame: str
    target: RayPoint
    min_duration: float
    max_velocity: float
    pointing_axis: tuple[float, float, float] = OPTICAL_AXIS

    def to_dict(self) -> dict:
        """Request body understood by the point-head action server."""
        ax, ay, az = self.pointing_axis
        return {
            "target": {
                "header": asdict(self.target.header),
                "point": {"x": self.target.x, "y": self.target.y, "z": self.target.z},
            },
            "pointing_frame": self.pointing_frame,
            "pointing_axis": {"x": ax, "y": ay, "z": az},
            "min_duration": self.min_duration,
            "max_velocity": self.max_velocity,
        }
