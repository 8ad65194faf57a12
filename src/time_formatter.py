"""
Time Formatter

Renders elapsed seconds into the fixed timer layouts and builds the labelled
lines shown for each timer mode.
"""

from typing import List, Optional, Tuple, Union

from frame_clock import round_half_up
from models import TimerFormat, TimerMode
from time_calculator import ElapsedTime


TimerLine = Tuple[Optional[str], str]

RTA_LABEL = "RTA: "
LRT_LABEL = "LRT: "


def format_time(seconds: float, timer_format: Union[TimerFormat, str] = TimerFormat.MMSSmmm) -> str:
    """
    Format elapsed seconds for display.

    Negative values (over-marked loads) are shown as zero. The value is
    rounded to whole milliseconds once and then split with integer
    arithmetic, so adjacent frames never drift.

    Args:
        seconds: Elapsed time in seconds
        timer_format: A TimerFormat or its string key (e.g. "HHMMSSmmm")

    Returns:
        Formatted time string
    """
    timer_format = TimerFormat(timer_format)
    total_ms = round_half_up(max(0.0, seconds) * 1000)

    hours = total_ms // 3_600_000
    total_minutes = total_ms // 60_000
    minutes = total_minutes % 60
    total_seconds = total_ms // 1000
    secs = total_seconds % 60
    millis = total_ms % 1000
    centis = (total_ms // 10) % 100

    if timer_format is TimerFormat.HHMMSSmmm:
        return f"{hours}:{minutes:02d}:{secs:02d}.{millis:03d}"
    if timer_format is TimerFormat.HHMMSS:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    if timer_format is TimerFormat.MMSSmmm:
        return f"{total_minutes}:{secs:02d}.{millis:03d}"
    if timer_format is TimerFormat.MMSS:
        return f"{total_minutes}:{secs:02d}"
    if timer_format is TimerFormat.MMSScc:
        return f"{total_minutes}:{secs:02d}.{centis:02d}"
    if timer_format is TimerFormat.MMSScc_pad:
        return f"{total_minutes:02d}:{secs:02d}.{centis:02d}"
    if timer_format is TimerFormat.SSmmm:
        return f"{total_seconds}.{millis:03d}"
    raise ValueError(f"Unhandled timer format: {timer_format}")


def build_timer_lines(
    mode: TimerMode,
    elapsed: ElapsedTime,
    timer_format: Union[TimerFormat, str]
) -> List[TimerLine]:
    """Ordered (label, text) lines for the overlay; labels only in BOTH mode"""
    if mode is TimerMode.RTA:
        return [(None, format_time(elapsed.rta_seconds, timer_format))]
    if mode is TimerMode.LRT:
        return [(None, format_time(elapsed.lrt_seconds, timer_format))]
    return [
        (RTA_LABEL, format_time(elapsed.rta_seconds, timer_format)),
        (LRT_LABEL, format_time(elapsed.lrt_seconds, timer_format)),
    ]
