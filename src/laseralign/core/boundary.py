"""
Fixed-layout records for exchanging data with a host runtime.

Internally text is ordinary str; it only becomes a fixed-capacity,
NUL-terminated UTF-8 buffer here. Text longer than the capacity is cut
at the last whole character that fits in capacity - 1 bytes.

Frames cross the boundary as an ImageDescriptor whose pixel format tag
is an OpenCV type code (CV_8UC1, CV_8UC3, CV_8UC4).
"""

import ctypes

import numpy as np

from ..detection.region import Region
from ..detection.stability import TargetConfig
from .result import StabilityResult, StatusCode, StripeDetectionResult

TEXT_CAPACITY = 256

CV_8UC1 = 0
CV_8UC3 = 16
CV_8UC4 = 24

CHANNELS_BY_FORMAT = {CV_8UC1: 1, CV_8UC3: 3, CV_8UC4: 4}
FORMAT_BY_CHANNELS = {channels: tag for tag, channels in CHANNELS_BY_FORMAT.items()}


class ImageDescriptor(ctypes.Structure):
    _pack_ = 1
    _fields_ = [
        ("rows", ctypes.c_int),
        ("cols", ctypes.c_int),
        ("pixel_format", ctypes.c_int),
        ("data", ctypes.c_void_p),
    ]


class RegionDescriptor(ctypes.Structure):
    _pack_ = 1
    _fields_ = [
        ("x", ctypes.c_int),
        ("y", ctypes.c_int),
        ("width", ctypes.c_int),
        ("height", ctypes.c_int),
    ]


class StripeResultRecord(ctypes.Structure):
    _pack_ = 1
    _fields_ = [
        ("detected", ctypes.c_bool),
        ("angle", ctypes.c_float),
        ("image_path", ctypes.c_char * TEXT_CAPACITY),
        ("status_code", ctypes.c_int),
    ]


class TargetConfigRecord(ctypes.Structure):
    _pack_ = 1
    _fields_ = [
        ("center_x", ctypes.c_float),
        ("center_y", ctypes.c_float),
        ("tolerance", ctypes.c_float),
    ]


class StabilityResultRecord(ctypes.Structure):
    _pack_ = 1
    _fields_ = [
        ("is_stable", ctypes.c_int),
        ("dx", ctypes.c_float),
        ("dy", ctypes.c_float),
        ("distance", ctypes.c_float),
        ("status_code", ctypes.c_int),
        ("message", ctypes.c_char * TEXT_CAPACITY),
    ]


def encode_fixed(text: str, capacity: int = TEXT_CAPACITY) -> bytes:
    """
    Encode text for a fixed char buffer of the given capacity.

    Returns at most capacity - 1 bytes so a terminating NUL always fits,
    never splitting a multi-byte character.
    """
    data = text.encode("utf-8")
    if len(data) < capacity:
        return data
    return data[: capacity - 1].decode("utf-8", errors="ignore").encode("utf-8")


def decode_fixed(data: bytes) -> str:
    """Decode a NUL-terminated fixed buffer."""
    return data.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def frame_from_descriptor(descriptor: ImageDescriptor) -> tuple[StatusCode, np.ndarray | None]:
    """
    Copy the pixels referenced by a descriptor into a numpy array.

    Returns:
        (SUCCESS, frame) or (IMAGE_LOAD_FAILED, None) for a null pointer,
        non-positive size or unsupported pixel format.
    """
    channels = CHANNELS_BY_FORMAT.get(descriptor.pixel_format)
    if channels is None or not descriptor.data or descriptor.rows <= 0 or descriptor.cols <= 0:
        return StatusCode.IMAGE_LOAD_FAILED, None

    size = descriptor.rows * descriptor.cols * channels
    buffer = (ctypes.c_uint8 * size).from_address(descriptor.data)
    frame = np.ctypeslib.as_array(buffer).copy()

    if channels == 1:
        return StatusCode.SUCCESS, frame.reshape(descriptor.rows, descriptor.cols)
    return StatusCode.SUCCESS, frame.reshape(descriptor.rows, descriptor.cols, channels)


def descriptor_from_frame(frame: np.ndarray) -> ImageDescriptor:
    """
    Describe a uint8 frame without copying it.

    The caller must keep the (C-contiguous) array alive while the
    descriptor is in use.
    """
    if frame.dtype != np.uint8 or not frame.flags["C_CONTIGUOUS"]:
        raise ValueError("Frame must be a C-contiguous uint8 array")
    channels = 1 if frame.ndim == 2 else frame.shape[2]
    pixel_format = FORMAT_BY_CHANNELS.get(channels)
    if pixel_format is None:
        raise ValueError(f"Unsupported channel count: {channels}")
    return ImageDescriptor(
        rows=frame.shape[0],
        cols=frame.shape[1],
        pixel_format=pixel_format,
        data=frame.ctypes.data,
    )


def region_to_record(region: Region) -> RegionDescriptor:
    return RegionDescriptor(region.x, region.y, region.width, region.height)


def region_from_record(record: RegionDescriptor) -> Region:
    """Raises ValueError for a non-positive size."""
    return Region(record.x, record.y, record.width, record.height)


def target_to_record(target: TargetConfig) -> TargetConfigRecord:
    return TargetConfigRecord(target.center_x, target.center_y, target.tolerance)


def target_from_record(record: TargetConfigRecord) -> TargetConfig:
    return TargetConfig(record.center_x, record.center_y, record.tolerance)


def stripe_result_to_record(result: StripeDetectionResult) -> StripeResultRecord:
    """
    Flatten a stripe result.

    A detected stripe whose diagnostic image could not be written keeps
    detected = True and reports IMAGE_SAVE_FAILED as its status code.
    """
    status = result.status
    if result.detected and result.save_status != StatusCode.SUCCESS:
        status = result.save_status
    return StripeResultRecord(
        detected=result.detected,
        angle=result.angle,
        image_path=encode_fixed(result.image_path),
        status_code=int(status),
    )


def stability_result_to_record(result: StabilityResult) -> StabilityResultRecord:
    return StabilityResultRecord(
        is_stable=int(result.is_stable),
        dx=result.dx,
        dy=result.dy,
        distance=result.distance,
        status_code=int(result.status),
        message=encode_fixed(result.message),
    )
