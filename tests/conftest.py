import asyncio

import pytest

from look_to_point.acquisition import MessageKind, Subscription, Transport
from look_to_point.configs import (
    ActuationSettings,
    AppSettings,
    DisplaySettings,
    StartupSettings,
)
from look_to_point.controllers import HeadController
from look_to_point.models import CameraInfo, Header, IntrinsicMatrix
from look_to_point.utils.clock import Clock

K_500 = (500.0, 0.0, 320.0, 0.0, 500.0, 240.0, 0.0, 0.0, 1.0)


class FakeSubscription(Subscription):
    def __init__(self, topic, kind, callback):
        super().__init__(topic, kind, callback)
        self.active = True

    @property
    def is_active(self):
        return self.active

    def shutdown(self):
        self.active = False

    def publish(self, message):
        if self.active:
            self._callback(message)


class FakeTransport(Transport):
    """Transport whose messages are pushed by the test."""

    def __init__(self):
        self.subscriptions: list[FakeSubscription] = []
        self.closed = False

    def subscribe(self, topic, kind, callback):
        sub = FakeSubscription(topic, kind, callback)
        self.subscriptions.append(sub)
        return sub

    def active(self, kind: MessageKind) -> list[FakeSubscription]:
        return [s for s in self.subscriptions if s.kind is kind and s.active]

    async def close(self):
        self.closed = True


class FakeHeadController(HeadController):
    """
    ready_after: number of attempts that time out before the server is
    ready, None for a server that never comes up.
    """

    def __init__(self, ready_after=0, submit_delay_s=0.0):
        super().__init__()
        self.ready_after = ready_after
        self.submit_delay_s = submit_delay_s
        self.attempts = 0
        self.submitted = []
        self.completed = []

    async def wait_until_ready(self, timeout_s):
        self.attempts += 1
        if self.ready_after is None or self.attempts <= self.ready_after:
            await asyncio.sleep(timeout_s)
            return False
        return True

    async def _submit(self, goal):
        self.submitted.append(goal)
        await asyncio.sleep(self.submit_delay_s)
        self.completed.append(goal)


class FakeDisplay:
    def __init__(self, on_pointer):
        self.on_pointer = on_pointer
        self.opened = False
        self.closed = False
        self.rendered = []
        self.polls = 0
        self.close_after_polls = None

    def open(self):
        self.opened = True

    def render(self, image):
        self.rendered.append(image)

    def poll(self, delay_ms=1):
        self.polls += 1
        if self.close_after_polls is not None and self.polls >= self.close_after_polls:
            self.closed = True
        return -1

    @property
    def is_open(self):
        return self.opened and not self.closed

    def close(self):
        self.closed = True


class FixedClock(Clock):
    def __init__(self, stamp=1234.5):
        self.stamp = stamp

    def now(self):
        return self.stamp


class NeverValidClock(Clock):
    @property
    def is_valid(self):
        return False


def camera_info(k=K_500) -> CameraInfo:
    return CameraInfo(header=Header("/stereo_optical_frame", 1.0), width=640, height=480, k=tuple(k))


@pytest.fixture
def intrinsics() -> IntrinsicMatrix:
    return IntrinsicMatrix(fx=500.0, fy=500.0, cx=320.0, cy=240.0)


@pytest.fixture
def fast_settings() -> AppSettings:
    return AppSettings(
        startup=StartupSettings(clock_timeout_s=0.1, intrinsics_poll_interval_s=0.01),
        actuation=ActuationSettings(timeout_per_attempt_s=0.02, ready_poll_interval_s=0.01),
        display=DisplaySettings(poll_interval_s=0.005),
    )
