"""
Time Calculator

Derives Real-Time Attempt (RTA) and Load-Removed Time (LRT) for a frame from
the run range and the marked load segments.

The result only depends on the call arguments, so the interactive preview
and the export pipeline can both call in concurrently and always agree on
the time shown for a given frame.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from frame_clock import check_fps, clamp_frame, frame_to_seconds
from models import LoadSegment, SessionSnapshot


@dataclass(frozen=True)
class ElapsedTime:
    """Elapsed run time at one frame. LRT values keep their sign."""
    rta_frames: int
    load_frames: int
    lrt_frames: int
    rta_seconds: float
    lrt_seconds: float


ZERO_ELAPSED = ElapsedTime(0, 0, 0, 0.0, 0.0)


def segment_overlap(start_frame: int, effective_frame: int, segment: LoadSegment) -> int:
    """Frames of `segment` that fall inside [start_frame, effective_frame]"""
    return max(0, min(effective_frame, segment.end_frame) - max(start_frame, segment.start_frame))


def compute_elapsed(
    frame: int,
    start_frame: int,
    end_frame: int,
    segments: Iterable[LoadSegment],
    fps: float,
    total_frames: Optional[int] = None
) -> ElapsedTime:
    """
    Compute RTA and LRT at `frame`.

    Frames before the start show zero, frames after the end freeze at the
    end value. Overlapping load segments are each counted in full.

    Args:
        frame: Frame being displayed or exported
        start_frame: First frame of the run
        end_frame: Last frame of the run
        segments: Marked load segments (any order, overlaps allowed)
        fps: Frame rate of the loaded video, must be > 0
        total_frames: Frame count of the loaded video. When given, the range
            and the segments are clamped into the video, since they may be
            stale after a reload.

    Returns:
        ElapsedTime; zero for a degenerate range
    """
    check_fps(fps)

    if total_frames is not None:
        if total_frames <= 0:
            return ZERO_ELAPSED
        start_frame = clamp_frame(start_frame, total_frames)
        end_frame = clamp_frame(end_frame, total_frames)

    if start_frame > end_frame:
        return ZERO_ELAPSED

    effective_frame = min(max(frame, start_frame), end_frame)
    rta_frames = effective_frame - start_frame

    load_frames = 0
    for segment in segments:
        if total_frames is not None:
            segment = LoadSegment(
                clamp_frame(segment.start_frame, total_frames),
                clamp_frame(segment.end_frame, total_frames),
            )
        load_frames += segment_overlap(start_frame, effective_frame, segment)

    lrt_frames = rta_frames - load_frames
    return ElapsedTime(
        rta_frames=rta_frames,
        load_frames=load_frames,
        lrt_frames=lrt_frames,
        rta_seconds=frame_to_seconds(rta_frames, fps),
        lrt_seconds=frame_to_seconds(lrt_frames, fps),
    )


def elapsed_for_snapshot(snapshot: SessionSnapshot, frame: int) -> ElapsedTime:
    """Elapsed time at `frame` using the range and loads captured in `snapshot`"""
    if snapshot.video is None:
        return ZERO_ELAPSED
    return compute_elapsed(
        frame,
        snapshot.start_frame,
        snapshot.end_frame,
        snapshot.segments,
        snapshot.video.fps,
        total_frames=snapshot.total_frames,
    )
