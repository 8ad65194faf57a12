"""
Shared data models for the Speedrun Timer Overlay.

This module contains dataclasses, enums and error types used across
multiple modules to avoid circular imports.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from frame_clock import total_frames


RGBA = Tuple[int, int, int, int]

WHITE: RGBA = (255, 255, 255, 255)
BLACK: RGBA = (0, 0, 0, 255)


class OverlayError(Exception):
    """Base class for all timer overlay errors"""


class InvalidVideoError(OverlayError):
    """No usable video track, or fps/duration could not be resolved"""


class DecodeFrameError(OverlayError):
    """A specific frame could not be retrieved from the source video"""


class ExportError(OverlayError):
    """The export pipeline failed while writing the output video"""


class ConfigError(OverlayError):
    """A configuration file could not be read or validated"""


class TimerMode(Enum):
    """Which time(s) the overlay shows"""
    RTA = "RTA"
    LRT = "LRT"
    BOTH = "BOTH"


class TimerFormat(Enum):
    """Fixed textual layouts for elapsed time"""
    HHMMSSmmm = "HHMMSSmmm"    # H:MM:SS.mmm
    HHMMSS = "HHMMSS"          # H:MM:SS
    MMSSmmm = "MMSSmmm"        # M:SS.mmm
    MMSS = "MMSS"              # M:SS
    MMSScc = "MMSScc"          # M:SS.cc
    MMSScc_pad = "MMSScc_pad"  # MM:SS.cc
    SSmmm = "SSmmm"            # S.mmm


@dataclass(frozen=True)
class VideoProperties:
    """Properties of the loaded source video"""
    width: int
    height: int
    fps: float
    duration: float

    @property
    def total_frames(self) -> int:
        return total_frames(self.duration, self.fps)


@dataclass(frozen=True)
class LoadSegment:
    """A user-marked loading span, inclusive frame bounds with start <= end"""
    start_frame: int
    end_frame: int


@dataclass(frozen=True)
class TimerStyle:
    """How the timer is drawn. Session-scoped, survives video reloads."""
    mode: TimerMode = TimerMode.RTA
    position_x: float = 0.86
    position_y: float = 0.95
    point_size: int = 80
    fill_color: RGBA = WHITE
    timer_format: TimerFormat = TimerFormat.MMSSmmm
    typeface: Optional[str] = None  # path to a font file, None = default bold
    custom_font_name: Optional[str] = None
    outline_enabled: bool = True
    outline_width: int = 3
    outline_color: RGBA = BLACK


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable point-in-time copy of the editor session"""
    video: Optional[VideoProperties] = None
    source_path: Optional[str] = None
    current_frame: int = 0
    start_frame: int = 0
    end_frame: int = 0
    segments: Tuple[LoadSegment, ...] = ()
    pending_load_start: Optional[int] = None
    style: TimerStyle = field(default_factory=TimerStyle)
    status_message: str = "Select a video to begin."
    render_progress: int = 0
    is_loading: bool = False

    @property
    def total_frames(self) -> int:
        return self.video.total_frames if self.video else 0

    @property
    def is_marking_load(self) -> bool:
        return self.pending_load_start is not None
