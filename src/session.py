"""
Editor Session

The single owned, mutable editing state. Every mutation publishes a new
immutable SessionSnapshot; the preview and the export pipeline only ever
read captured snapshots, so a render never sees a half-applied change.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import Callable, List, Optional, Union

from PIL import ImageFont

from config import to_rgba
from frame_clock import clamp_frame
from load_segments import LoadSegmentRegistry
from models import (
    InvalidVideoError,
    LoadSegment,
    RGBA,
    SessionSnapshot,
    TimerFormat,
    TimerMode,
    TimerStyle,
)
from video_source import VideoSource


logger = logging.getLogger(__name__)

SnapshotListener = Callable[[SessionSnapshot], None]


def _clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


class EditorSession:
    """
    Editing state for one speedrun video.

    Video properties, the run range and the load segments belong to the
    loaded video and are replaced on every load. The timer style belongs to
    the session and survives reloads.
    """

    def __init__(self, style: Optional[TimerStyle] = None):
        self._lock = threading.RLock()
        self._registry = LoadSegmentRegistry()
        self._snapshot = SessionSnapshot(style=style or TimerStyle())
        self._listeners: List[SnapshotListener] = []
        self._pending: List[SessionSnapshot] = []
        self._depth = 0
        self.source: Optional[VideoSource] = None

    # ------------------------------------------------------------------
    # Snapshots and observers
    # ------------------------------------------------------------------

    def snapshot(self) -> SessionSnapshot:
        """Current immutable snapshot (a single reference read)"""
        return self._snapshot

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Call `listener` with every new snapshot.

        Returns:
            A function that removes the listener
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    @contextmanager
    def _editing(self):
        """
        Hold the session lock for a read-modify-publish step.

        Snapshots published inside are handed to listeners only after the
        outermost block releases the lock.
        """
        pending = []
        try:
            with self._lock:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                    if self._depth == 0:
                        pending, self._pending = self._pending, []
        finally:
            for snapshot in pending:
                self._notify(snapshot)

    def _notify(self, snapshot: SessionSnapshot) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Snapshot listener failed: {e}")

    def _publish(self, **changes) -> SessionSnapshot:
        with self._editing():
            snapshot = replace(
                self._snapshot,
                segments=tuple(self._registry.segments()),
                pending_load_start=self._registry.pending_start,
                **changes
            )
            self._snapshot = snapshot
            self._pending.append(snapshot)
        return snapshot

    # ------------------------------------------------------------------
    # Video loading
    # ------------------------------------------------------------------

    def load_video(self, source: Union[VideoSource, str, Path]) -> SessionSnapshot:
        """
        Load a video and reset the run range and load segments.

        Args:
            source: A VideoSource or a path to a video file

        Raises:
            InvalidVideoError: If the video cannot be used; the previous
                state is kept as it was
        """
        if not isinstance(source, VideoSource):
            source = VideoSource(str(source))

        self._publish(is_loading=True, status_message="Analyzing video...")
        try:
            props = source.probe()
        except InvalidVideoError as e:
            logger.error(f"Error loading video: {e}")
            self._publish(is_loading=False, status_message=f"Error loading: {e}")
            raise

        with self._editing():
            self.source = source
            self._registry = LoadSegmentRegistry()
            total = props.total_frames
            snapshot = self._publish(
                video=props,
                source_path=source.video_path,
                current_frame=0,
                start_frame=0,
                end_frame=clamp_frame(total - 1, total),
                render_progress=0,
                is_loading=False,
                status_message=f"Video loaded: {props.width}x{props.height}",
            )
        logger.info(f"Loaded {source.video_path} ({total} frames)")
        return snapshot

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def navigate_to_frame(self, frame: int) -> int:
        """Move the current frame, clamped into the video. Returns the new frame."""
        with self._editing():
            snapshot = self._snapshot
            if snapshot.video is None:
                return snapshot.current_frame
            clamped = clamp_frame(int(frame), snapshot.total_frames)
            if clamped != snapshot.current_frame:
                self._publish(current_frame=clamped)
            return clamped

    def navigate_frames(self, delta: int) -> int:
        with self._editing():
            return self.navigate_to_frame(self._snapshot.current_frame + delta)

    def navigate_seconds(self, delta: float) -> int:
        with self._editing():
            video = self._snapshot.video
            if video is None:
                return self._snapshot.current_frame
            return self.navigate_frames(int(delta * video.fps))

    def navigate_minutes(self, delta: float) -> int:
        with self._editing():
            video = self._snapshot.video
            if video is None:
                return self._snapshot.current_frame
            return self.navigate_frames(int(delta * 60 * video.fps))

    def go_to_start_frame(self) -> int:
        with self._editing():
            return self.navigate_to_frame(self._snapshot.start_frame)

    def go_to_end_frame(self) -> int:
        with self._editing():
            return self.navigate_to_frame(self._snapshot.end_frame)

    # ------------------------------------------------------------------
    # Run range
    # ------------------------------------------------------------------

    def set_start_frame(self, frame: Optional[int] = None) -> int:
        """Set the run start (defaults to the current frame), never after the end"""
        with self._editing():
            snapshot = self._snapshot
            if frame is None:
                frame = snapshot.current_frame
            start = min(clamp_frame(int(frame), snapshot.total_frames), snapshot.end_frame)
            self._publish(start_frame=start)
            logger.info(f"Start frame set to {start}")
            return start

    def set_end_frame(self, frame: Optional[int] = None) -> int:
        """Set the run end (defaults to the current frame), never before the start"""
        with self._editing():
            snapshot = self._snapshot
            if frame is None:
                frame = snapshot.current_frame
            end = max(clamp_frame(int(frame), snapshot.total_frames), snapshot.start_frame)
            self._publish(end_frame=end)
            logger.info(f"End frame set to {end}")
            return end

    # ------------------------------------------------------------------
    # Load segments
    # ------------------------------------------------------------------

    def toggle_load_mark(self) -> Optional[LoadSegment]:
        """Open or close a load mark at the current frame"""
        with self._editing():
            segment = self._registry.toggle_mark(self._snapshot.current_frame)
            if segment is None:
                status = f"Load started at frame {self._registry.pending_start}"
            else:
                status = f"Load marked: {segment.start_frame}-{segment.end_frame}"
            self._publish(status_message=status)
            return segment

    def undo_last_load(self) -> Optional[LoadSegment]:
        with self._editing():
            removed = self._registry.undo_last()
            self._publish()
            return removed

    def cancel_load_mark(self) -> None:
        with self._editing():
            self._registry.cancel_mark()
            self._publish()

    def clear_loads(self) -> None:
        with self._editing():
            self._registry.clear()
            self._publish()

    def add_load_segment(self, start_frame: int, end_frame: int) -> LoadSegment:
        """Commit a load segment directly (used when loading markers from config)"""
        with self._editing():
            total = self._snapshot.total_frames
            self._registry.cancel_mark()
            self._registry.toggle_mark(clamp_frame(int(start_frame), total))
            segment = self._registry.toggle_mark(clamp_frame(int(end_frame), total))
            self._publish()
            return segment

    # ------------------------------------------------------------------
    # Timer style
    # ------------------------------------------------------------------

    def _update_style(self, **changes) -> TimerStyle:
        with self._editing():
            style = replace(self._snapshot.style, **changes)
            self._publish(style=style)
            return style

    def set_mode(self, mode: Union[TimerMode, str]) -> TimerStyle:
        return self._update_style(mode=TimerMode(mode))

    def set_position(self, x: Optional[float] = None, y: Optional[float] = None) -> TimerStyle:
        changes = {}
        if x is not None:
            changes['position_x'] = _clamp_unit(x)
        if y is not None:
            changes['position_y'] = _clamp_unit(y)
        return self._update_style(**changes)

    def set_point_size(self, size: int) -> TimerStyle:
        if size <= 0:
            raise ValueError(f"Point size must be positive, got {size}")
        return self._update_style(point_size=int(size))

    def set_fill_color(self, color: RGBA) -> TimerStyle:
        return self._update_style(fill_color=to_rgba(color))

    def set_timer_format(self, timer_format: Union[TimerFormat, str]) -> TimerStyle:
        return self._update_style(timer_format=TimerFormat(timer_format))

    def set_outline_enabled(self, enabled: bool) -> TimerStyle:
        return self._update_style(outline_enabled=bool(enabled))

    def set_outline_width(self, width: int) -> TimerStyle:
        if width < 0:
            raise ValueError(f"Outline width cannot be negative, got {width}")
        return self._update_style(outline_width=int(width))

    def set_outline_color(self, color: RGBA) -> TimerStyle:
        return self._update_style(outline_color=to_rgba(color))

    def set_default_typeface(self) -> TimerStyle:
        return self._update_style(typeface=None, custom_font_name=None)

    def load_custom_font(self, font_path: Union[str, Path]) -> bool:
        """
        Use a TrueType/OpenType file for the timer.

        Returns:
            True if the font could be loaded, False otherwise
        """
        font_path = Path(font_path)
        self._publish(status_message="Importing font...")
        try:
            ImageFont.truetype(str(font_path), size=12)
        except OSError as e:
            logger.error(f"Error loading custom font {font_path}: {e}")
            self._publish(status_message="Error importing font.")
            return False

        with self._editing():
            style = replace(self._snapshot.style, typeface=str(font_path), custom_font_name=font_path.name)
            self._publish(style=style, status_message=f"Font '{font_path.name}' loaded.")
        return True

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def set_status(self, message: str) -> None:
        self._publish(status_message=message)

    def set_render_progress(self, progress: int, message: Optional[str] = None) -> None:
        changes = {'render_progress': max(0, min(100, int(progress)))}
        if message is not None:
            changes['status_message'] = message
        self._publish(**changes)

    def set_loading(self, loading: bool, message: Optional[str] = None) -> None:
        changes = {'is_loading': bool(loading)}
        if message is not None:
            changes['status_message'] = message
        self._publish(**changes)
