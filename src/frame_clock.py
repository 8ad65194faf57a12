"""
Frame Clock

Pure conversions between frame indices, elapsed seconds and frame counts.
Frame indices are the only time coordinate the rest of the overlay core
works in; seconds are always derived from them.
"""

import math


def check_fps(fps: float) -> None:
    if not (fps > 0 and math.isfinite(fps)):
        raise ValueError(f"fps must be a positive finite number, got {fps!r}")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounded up."""
    return int(math.floor(value + 0.5))


def frame_to_seconds(frame: int, fps: float) -> float:
    check_fps(fps)
    return frame / fps


def seconds_to_frame(seconds: float, fps: float) -> int:
    check_fps(fps)
    return round_half_up(seconds * fps)


def total_frames(duration: float, fps: float) -> int:
    """Number of addressable frames in a video of `duration` seconds."""
    check_fps(fps)
    if duration <= 0:
        return 0
    # durations derived from frame_count / fps must give frame_count back
    return int(math.floor(duration * fps + 1e-6))


def clamp_frame(frame: int, total: int) -> int:
    """Clamp a frame index into [0, total - 1], or 0 for an empty video."""
    if total <= 0:
        return 0
    return max(0, min(frame, total - 1))
