from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..core.errors import MalformedCalibration


@dataclass(slots=True, frozen=True)
class Header:
    """Frame identifier and timestamp (seconds) attached to stamped data."""
    frame_id: str = ""
    stamp: float = 0.0


@dataclass(slots=True, frozen=True)
class IntrinsicMatrix:
    """
    Pinhole intrinsics of a camera: focal lengths and principal point, in pixels.

    The full matrix is
        [[fx,  0, cx],
         [ 0, fy, cy],
         [ 0,  0,  1]]
    """
    fx: float
    fy: float
    cx: float
    cy: float

    def __post_init__(self) -> None:
        if not (self.fx > 0 and self.fy > 0):
            raise MalformedCalibration(
                f"Degenerate camera intrinsics: fx={self.fx}, fy={self.fy}. Focal lengths must be positive."
            )

    @classmethod
    def from_k(cls, k: Sequence[float]) -> "IntrinsicMatrix":
        """
        Builds the intrinsics from a flattened, row-major 3x3 matrix.
        Longer arrays are accepted, only the first 9 entries are read.
        """
        if len(k) < 9:
            raise MalformedCalibration(f"Intrinsic matrix needs 9 entries, got {len(k)}.")
        return cls(fx=float(k[0]), fy=float(k[4]), cx=float(k[2]), cy=float(k[5]))

    def as_array(self) -> np.ndarray:
        matrix = np.zeros((3, 3), dtype=np.float64)
        matrix[0, 0] = self.fx
        matrix[1, 1] = self.fy
        matrix[0, 2] = self.cx
        matrix[1, 2] = self.cy
        matrix[2, 2] = 1.0
        return matrix


@dataclass(slots=True, frozen=True)
class CameraInfo:
    """Calibration message as received from the camera driver."""
    header: Header
    width: int
    height: int
    k: tuple[float, ...]


@dataclass(slots=True, frozen=True)
class ImageFrame:
    """A decoded camera frame, ready to be shown (BGR or single channel)."""
    header: Header
    encoding: str
    image: np.ndarray


@dataclass(slots=True, frozen=True)
class RayPoint:
    """A point on the ray through a pixel, in the camera optical frame."""
    header: Header
    x: float
    y: float
    z: float
