import asyncio
import time

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from look_to_point.controllers import HTTPHeadController
from look_to_point.core.camera import project
from look_to_point.core.errors import ActuationServiceUnavailable
from look_to_point.core.state import ConnectionState
from look_to_point.models import GazeGoal

SERVICE = "/head_traj_controller/point_head_action"


def make_app(ready: bool = True):
    received = []

    async def status(request):
        if ready:
            return web.json_response({"ready": True})
        return web.json_response({"ready": False}, status=503)

    async def goal(request):
        received.append(await request.json())
        return web.json_response({"accepted": True}, status=202)

    app = web.Application()
    app.router.add_get(f"{SERVICE}/status", status)
    app.router.add_post(f"{SERVICE}/goal", goal)
    return app, received


def test_goal_is_posted_to_the_action_server(intrinsics):
    app, received = make_app()

    async def scenario():
        async with TestServer(app) as server:
            head = HTTPHeadController(base_url=str(server.make_url("/")), ready_poll_interval_s=0.01)
            try:
                state = await head.connect(SERVICE, timeout_per_attempt_s=1.0, max_attempts=3)
                goal = GazeGoal(
                    pointing_frame="/stereo_optical_frame",
                    target=project(420, 240, intrinsics, frame_id="/stereo_optical_frame", stamp=5.0),
                    min_duration=0.5,
                    max_velocity=1.0,
                )
                await head.dispatch(goal)
            finally:
                await head.close()
            return state

    state = asyncio.run(scenario())

    assert state is ConnectionState.READY
    assert len(received) == 1
    body = received[0]
    assert body["pointing_frame"] == "/stereo_optical_frame"
    assert body["pointing_axis"] == {"x": 0.0, "y": 0.0, "z": 1.0}
    assert body["target"]["header"] == {"frame_id": "/stereo_optical_frame", "stamp": 5.0}
    assert body["target"]["point"]["x"] == pytest.approx(0.2)
    assert body["target"]["point"]["z"] == 1.0
    assert body["min_duration"] == 0.5
    assert body["max_velocity"] == 1.0


def test_server_that_never_becomes_ready():
    app, received = make_app(ready=False)

    async def scenario():
        async with TestServer(app) as server:
            head = HTTPHeadController(base_url=str(server.make_url("/")), ready_poll_interval_s=0.02)
            start = time.monotonic()
            try:
                with pytest.raises(ActuationServiceUnavailable):
                    await head.connect(SERVICE, timeout_per_attempt_s=0.1, max_attempts=3)
                return time.monotonic() - start, head.state
            finally:
                await head.close()

    elapsed, state = asyncio.run(scenario())

    assert 0.28 <= elapsed < 2.0
    assert state is ConnectionState.FAILED
    assert received == []


def test_unreachable_server():
    async def scenario():
        # Nothing listens on the discard port
        head = HTTPHeadController(base_url="http://127.0.0.1:9", request_timeout_s=0.05, ready_poll_interval_s=0.01)
        try:
            await head.connect(SERVICE, timeout_per_attempt_s=0.05, max_attempts=3)
        finally:
            await head.close()

    with pytest.raises(ActuationServiceUnavailable):
        asyncio.run(scenario())


def test_stop_request_ends_the_wait_for_the_server():
    app, _ = make_app(ready=False)

    async def scenario():
        async with TestServer(app) as server:
            head = HTTPHeadController(base_url=str(server.make_url("/")), ready_poll_interval_s=0.1)
            stop_event = asyncio.Event()
            asyncio.get_running_loop().call_later(0.05, stop_event.set)
            start = time.monotonic()
            try:
                state = await head.connect(SERVICE, timeout_per_attempt_s=2.0, max_attempts=3, stop_event=stop_event)
                return state, time.monotonic() - start
            finally:
                await head.close()

    state, elapsed = asyncio.run(scenario())

    assert state is ConnectionState.DISCONNECTED
    assert elapsed < 0.5
