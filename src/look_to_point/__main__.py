import asyncio
import logging
import signal
import sys

from look_to_point.acquisition import DummyTransport, Transport, ZMQTransport
from look_to_point.configs.app import AppSettings
from look_to_point.controllers import DummyHeadController, HeadController, HTTPHeadController
from look_to_point.core.runner import LookToPointRunner
from look_to_point.core.state import ExitStatus
from look_to_point.ui import OpenCVDisplay
from look_to_point.utils.clock import Clock, SimClock

logger = logging.getLogger("main")


def create_transport(settings: AppSettings) -> Transport:
    if settings.use_dummy_mode:
        logger.warning("Initializing DUMMY camera (Simulation Mode)")
        return DummyTransport(
            width=settings.dummy.width_px,
            height=settings.dummy.height_px,
            fx=settings.dummy.fx,
            fy=settings.dummy.fy,
            frequency=settings.dummy.frequency_hz,
            frame_id=settings.camera.camera_frame,
        )
    logger.info(f"Initializing ZMQ camera transport on {settings.transport.endpoint}")
    return ZMQTransport(settings.transport.endpoint, image_queue_size=settings.transport.image_queue_size)


def create_head_controller(settings: AppSettings) -> HeadController:
    if settings.use_dummy_mode:
        logger.warning("Initializing DUMMY head controller (Simulation Mode)")
        return DummyHeadController(discovery_delay_s=settings.dummy.discovery_delay_s)
    return HTTPHeadController(
        base_url=settings.actuation.base_url,
        request_timeout_s=settings.actuation.request_timeout_s,
        ready_poll_interval_s=settings.actuation.ready_poll_interval_s,
    )


async def run(settings: AppSettings) -> ExitStatus:
    # 1. Setup Infrastructure
    transport = create_transport(settings)
    head = create_head_controller(settings)
    clock = SimClock(transport, settings.startup.clock_topic) if settings.startup.use_sim_time else Clock()

    # 2. Dependency Injection
    runner = LookToPointRunner(
        settings,
        transport,
        head,
        display_factory=lambda on_pointer: OpenCVDisplay(settings.camera.window_name, on_pointer),
        clock=clock,
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, runner.request_stop, sig.name)
        except NotImplementedError:
            # No loop signal handlers on Windows, Ctrl+C raises KeyboardInterrupt instead
            pass

    # 3. Run until stopped
    try:
        return await runner.run()
    finally:
        clock.close()
        await transport.close()


def main():
    # 1. Load Configuration
    try:
        settings = AppSettings()
    except Exception as e:
        print(f"Configuration Error: {e}")
        sys.exit(ExitStatus.FAILURE)

    # 2. Setup Logging
    logging.basicConfig(
        level=settings.logging.level.upper(),
        format=settings.logging.format,
        datefmt=settings.logging.datefmt,
        stream=sys.stdout
    )
    logger.info(f"Starting look_to_point v{settings.__version__}")

    # 3. Launch
    status = ExitStatus.FAILURE
    try:
        status = asyncio.run(run(settings))
    except KeyboardInterrupt:
        status = ExitStatus.SUCCESS
    except Exception:
        logger.exception("Fatal Application Error")
    finally:
        logger.info("Shutdown sequence finished.")
    sys.exit(int(status))


if __name__ == "__main__":
    main()
