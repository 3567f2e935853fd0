from typing import Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class DisplaySurface(Protocol):
    """
    Defines the methods required for any window that shows the camera feed.
    Pointer events are delivered through the callback given at construction,
    during calls to `poll`.
    """
    def open(self) -> None: ...

    def render(self, image: np.ndarray) -> None: ...

    def poll(self, delay_ms: int = 1) -> int: ...

    @property
    def is_open(self) -> bool: ...

    def close(self) -> None: ...
