"""
Decoding of the multipart ZMQ messages published by the camera driver.

Wire format: [topic][metadata JSON][payload, images only]
"""
import json
from typing import Final, Sequence

import cv2
import numpy as np

from ..core.errors import MessageDecodeError, FrameDecodeError
from ..models import CameraInfo, Header, ImageFrame
from .base import MessageKind

# encoding -> (dtype, channels, conversion to BGR)
_RAW_ENCODINGS: Final[dict] = {
    "bgr8": (np.dtype(np.uint8), 3, None),
    "rgb8": (np.dtype(np.uint8), 3, cv2.COLOR_RGB2BGR),
    "bgra8": (np.dtype(np.uint8), 4, cv2.COLOR_BGRA2BGR),
    "rgba8": (np.dtype(np.uint8), 4, cv2.COLOR_RGBA2BGR),
    "mono8": (np.dtype(np.uint8), 1, None),
    "mono16": (np.dtype("<u2"), 1, None),
}
_COMPRESSED_ENCODINGS: Final[frozenset] = frozenset({"jpeg", "jpg", "png"})


def _load_metadata(raw: bytes) -> dict:
    try:
        meta = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MessageDecodeError(f"Invalid metadata: {e}") from e
    if not isinstance(meta, dict):
        raise MessageDecodeError("Metadata must be a JSON object.")
    return meta


def _decode_header(meta: dict) -> Header:
    header = meta.get("header") or {}
    try:
        return Header(frame_id=str(header.get("frame_id", "")), stamp=float(header.get("stamp", 0.0)))
    except (AttributeError, TypeError, ValueError) as e:
        raise MessageDecodeError(f"Invalid header: {e!r}") from e


def decode_camera_info(meta: dict) -> CameraInfo:
    try:
        k = tuple(float(value) for value in meta["K"])
        return CameraInfo(
            header=_decode_header(meta),
            width=int(meta.get("width", 0)),
            height=int(meta.get("height", 0)),
            k=k,
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise MessageDecodeError(f"Invalid camera info: {e!r}") from e


def decode_image(meta: dict, payload: bytes) -> ImageFrame:
    """
    Converts an image message to an array OpenCV can display.
    Colour images are returned as BGR, raw buffers are copied.
    """
    header = _decode_header(meta)
    encoding = str(meta.get("encoding", "")).lower()

    if encoding in _COMPRESSED_ENCODINGS:
        if not payload:
            raise FrameDecodeError(f"Empty {encoding} payload.")
        try:
            image = cv2.imdecode(np.frombuffer(payload, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
        except cv2.error as e:
            raise FrameDecodeError(f"Could not decode {encoding} payload: {e}") from e
        if image is None:
            raise FrameDecodeError(f"Could not decode {encoding} payload of {len(payload)} bytes.")

    elif encoding in _RAW_ENCODINGS:
        dtype, channels, conversion = _RAW_ENCODINGS[encoding]
        try:
            width, height = int(meta["width"]), int(meta["height"])
        except (KeyError, TypeError, ValueError) as e:
            raise FrameDecodeError(f"Invalid image size: {e!r}") from e

        expected = width * height * channels * dtype.itemsize
        if width <= 0 or height <= 0 or len(payload) != expected:
            raise FrameDecodeError(
                f"{encoding} image of {width}x{height} needs {expected} bytes, got {len(payload)}."
            )

        shape = (height, width) if channels == 1 else (height, width, channels)
        image = np.frombuffer(payload, dtype=dtype).reshape(shape)
        image = cv2.cvtColor(image, conversion) if conversion is not None else image.copy()

    else:
        raise FrameDecodeError(f"Unsupported image encoding '{encoding}'.")

    return ImageFrame(header=header, encoding=encoding, image=image)


def decode_clock(meta: dict) -> float:
    try:
        return float(meta["stamp"])
    except (KeyError, TypeError, ValueError) as e:
        raise MessageDecodeError(f"Invalid clock message: {e!r}") from e


def decode(kind: MessageKind, frames: Sequence[bytes]):
    """Decodes the frames following the topic frame."""
    if not frames:
        raise MessageDecodeError("Message has no metadata frame.")
    meta = _load_metadata(frames[0])

    if kind is MessageKind.CAMERA_INFO:
        return decode_camera_info(meta)
    if kind is MessageKind.IMAGE:
        if len(frames) < 2:
            raise FrameDecodeError("Image message has no payload frame.")
        return decode_image(meta, frames[1])
    if kind is MessageKind.CLOCK:
        return decode_clock(meta)
    raise MessageDecodeError(f"Unknown message kind {kind}.")
