import asyncio
import json

import numpy as np
import zmq
import zmq.asyncio

from look_to_point.acquisition import MessageKind, ZMQTransport

from conftest import K_500

ENDPOINT = "inproc://camera"


async def _publish_until(pub, messages, done, attempts=200):
    # PUB/SUB drops messages until the subscription has propagated
    for _ in range(attempts):
        for message in messages:
            await pub.send_multipart(message)
        await asyncio.sleep(0.01)
        if done():
            return


def test_transport_delivers_exact_topic_only():
    async def scenario():
        ctx = zmq.asyncio.Context()
        pub = ctx.socket(zmq.PUB)
        pub.bind(ENDPOINT)
        transport = ZMQTransport(ENDPOINT, ctx=ctx)
        received = []
        sub = transport.subscribe("/cam/camera_info", MessageKind.CAMERA_INFO, received.append)

        good = json.dumps({"K": list(K_500)}).encode()
        other = json.dumps({"K": [999.0] * 9}).encode()
        await _publish_until(
            pub,
            [
                [b"/cam/camera_info_raw", other],
                [b"/cam/camera_info", b"not json"],
                [b"/cam/camera_info", good],
            ],
            done=lambda: len(received) >= 2,
        )

        await transport.close()
        pub.close(linger=0)
        ctx.term()
        return received, sub

    received, sub = asyncio.run(scenario())

    assert received
    assert all(info.k == K_500 for info in received)
    assert not sub.is_active


def test_callback_can_unsubscribe_itself():
    async def scenario():
        ctx = zmq.asyncio.Context()
        pub = ctx.socket(zmq.PUB)
        pub.bind(ENDPOINT)
        transport = ZMQTransport(ENDPOINT, ctx=ctx)
        received = []

        def once(frame):
            received.append(frame)
            sub.shutdown()

        sub = transport.subscribe("/cam/image", MessageKind.IMAGE, once)
        meta = json.dumps({"width": 2, "height": 1, "encoding": "mono8"}).encode()
        await _publish_until(pub, [[b"/cam/image", meta, b"\x01\x02"]], done=lambda: bool(received), attempts=100)
        # Keep publishing: nothing else may arrive
        await _publish_until(pub, [[b"/cam/image", meta, b"\x01\x02"]], done=lambda: False, attempts=5)

        await transport.close()
        pub.close(linger=0)
        ctx.term()
        return received

    received = asyncio.run(scenario())

    assert len(received) == 1
    np.testing.assert_array_equal(received[0].image, np.array([[1, 2]], dtype=np.uint8))


def test_malformed_frames_do_not_stop_the_stream():
    async def scenario():
        ctx = zmq.asyncio.Context()
        pub = ctx.socket(zmq.PUB)
        pub.bind(ENDPOINT)
        transport = ZMQTransport(ENDPOINT, ctx=ctx)
        received = []
        sub = transport.subscribe("/cam/image", MessageKind.IMAGE, received.append)

        null_stamp = json.dumps(
            {"width": 2, "height": 1, "encoding": "mono8", "header": {"frame_id": "/cam", "stamp": None}}
        ).encode()
        empty_jpeg = json.dumps({"encoding": "jpeg"}).encode()
        good = json.dumps({"width": 2, "height": 1, "encoding": "mono8"}).encode()
        await _publish_until(
            pub,
            [
                [b"/cam/image", null_stamp, b"\x01\x02"],
                [b"/cam/image", empty_jpeg, b""],
                [b"/cam/image", good, b"\x03\x04"],
            ],
            done=lambda: bool(received),
        )
        still_active = sub.is_active

        await transport.close()
        pub.close(linger=0)
        ctx.term()
        return received, still_active

    received, still_active = asyncio.run(scenario())

    assert still_active
    assert received
    np.testing.assert_array_equal(received[0].image, np.array([[3, 4]], dtype=np.uint8))
