class LookToPointError(Exception):
    """Base class of the errors raised by the look-to-point application."""


class ClockUnavailable(LookToPointError):
    """No valid time source appeared within the startup bound."""


class ActuationServiceUnavailable(LookToPointError, ConnectionError):
    """The head controller action server could not be reached."""


class MalformedCalibration(LookToPointError, ValueError):
    """The camera calibration cannot be used for projection."""


class MessageDecodeError(LookToPointError, ValueError):
    """A transport message could not be decoded. The message is dropped."""


class FrameDecodeError(MessageDecodeError):
    """An image message could not be decoded. Never fatal."""
