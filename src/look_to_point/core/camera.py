from typing import Final

from ..models import IntrinsicMatrix, RayPoint, Header

# Arbitrary distance along the optical axis. Only the direction of the ray
# matters to the head controller.
RAY_DEPTH: Final[float] = 1.0


def project(
    u: int,
    v: int,
    intrinsics: IntrinsicMatrix,
    frame_id: str = "",
    stamp: float = 0.0,
) -> RayPoint:
    """
    Back-projects pixel (u, v) to a point on its viewing ray.

    The pixel is converted to normalized camera coordinates with the pinhole
    model and scaled to `RAY_DEPTH`. Pixels outside the image are not
    rejected; they still define a valid ray.

    Args:
        u: Pixel column.
        v: Pixel row.
        intrinsics: Calibration of the camera that produced the image.
        frame_id: Optical frame of that camera.
        stamp: Time attached to the resulting point.
    """
    x = (u - intrinsics.cx) / intrinsics.fx
    y = (v - intrinsics.cy) / intrinsics.fy
    return RayPoint(
        header=Header(frame_id=frame_id, stamp=stamp),
        x=x * RAY_DEPTH,
        y=y * RAY_DEPTH,
        z=RAY_DEPTH,
    )
