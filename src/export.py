"""
Video Export Module

This module is responsible for:
1. Exposing the per-output-frame overlay hook (ExportOverlayAdapter)
2. Driving the moviepy transcode pipeline with that hook
3. Reporting render progress (0-100) and status while exporting
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Union

import numpy as np
from moviepy import VideoFileClip
from PIL import Image

from frame_clock import clamp_frame, seconds_to_frame
from models import ExportError, InvalidVideoError, SessionSnapshot
from overlay_renderer import OverlayRenderer, compose_frame, render_overlay


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]


class ExportOverlayAdapter:
    """
    Overlay hook called once per output frame by the transcode pipeline.

    Holds one captured snapshot and only reads it, so exports never tear
    against edits made in the UI while they run.
    """

    def __init__(self, snapshot: SessionSnapshot, renderer: Optional[OverlayRenderer] = None):
        if snapshot.video is None:
            raise InvalidVideoError("No video loaded")
        self.snapshot = snapshot
        self.renderer = renderer

    def frame_at(self, presentation_time: float) -> int:
        """Frame index shown at `presentation_time` seconds"""
        video = self.snapshot.video
        frame = seconds_to_frame(presentation_time, video.fps)
        return clamp_frame(frame, self.snapshot.total_frames)

    def overlay_at(self, presentation_time: float) -> Image.Image:
        """Freshly allocated RGBA overlay surface of the video size"""
        video = self.snapshot.video
        return render_overlay(
            self.snapshot,
            self.frame_at(presentation_time),
            size=(video.width, video.height),
            renderer=self.renderer,
        )

    __call__ = overlay_at

    def apply(self, get_frame: Callable[[float], np.ndarray], t: float) -> np.ndarray:
        """moviepy `transform` callback: the source frame at t with the timer on top"""
        return compose_frame(get_frame(t), self.overlay_at(t))


class ProgressTracker:
    """Turns presentation times into whole-percent progress updates"""

    def __init__(self, duration: float, callback: Optional[ProgressCallback] = None):
        self.duration = duration
        self.callback = callback
        self.progress = -1

    def update(self, t: float) -> None:
        if self.duration <= 0:
            return
        progress = max(0, min(99, int(100 * t / self.duration)))
        if progress > self.progress:
            self.progress = progress
            if self.callback:
                self.callback(progress, f"Rendering... {progress}%")


class VideoExporter:
    """
    Renders the timer overlay into a copy of the source video.
    """

    def __init__(self, codec: str = 'libx264', audio_codec: str = 'aac'):
        self.codec = codec
        self.audio_codec = audio_codec
        logger.info(f"VideoExporter initialized (codec={codec}, audio_codec={audio_codec})")

    def export(
        self,
        snapshot: SessionSnapshot,
        output_path: Union[str, Path],
        progress_callback: Optional[ProgressCallback] = None,
        renderer: Optional[OverlayRenderer] = None
    ) -> Optional[Path]:
        """
        Export the source video of `snapshot` with the timer burnt in.

        Failures are logged and reported through `progress_callback`; they
        never propagate out of this method.

        Args:
            snapshot: Captured session state to render
            output_path: Where to write the final video
            progress_callback: Receives (progress 0-100, status message)
            renderer: Overlay renderer (defaults to the shared renderer)

        Returns:
            Path to the exported video, or None if the export failed
        """
        def report(progress: int, message: str) -> None:
            if progress_callback:
                progress_callback(progress, message)

        output_path = Path(output_path)
        temp_path = output_path.with_name(f"{output_path.stem}.partial{output_path.suffix or '.mp4'}")

        try:
            if snapshot.source_path is None:
                raise ExportError("No source video to export")
            adapter = ExportOverlayAdapter(snapshot, renderer=renderer)
            output_path.parent.mkdir(parents=True, exist_ok=True)

            report(0, "Preparing render...")
            logger.info(
                f"Exporting {snapshot.source_path} -> {output_path} "
                f"(frames {snapshot.start_frame}-{snapshot.end_frame}, {len(snapshot.segments)} loads)"
            )
            self._write(snapshot.source_path, temp_path, adapter, report)
            temp_path.replace(output_path)
        except Exception as e:
            logger.error(f"Error exporting video: {e}")
            if temp_path.exists():
                temp_path.unlink()
            report(0, f"Error: {e}")
            return None

        report(100, "Render Complete!")
        logger.info(f"Video exported to: {output_path}")
        return output_path

    def _write(
        self,
        source_path: str,
        temp_path: Path,
        adapter: ExportOverlayAdapter,
        report: ProgressCallback
    ) -> None:
        """Transcode `source_path` into `temp_path` with the overlay applied"""
        clip = VideoFileClip(source_path)
        tracker = ProgressTracker(clip.duration, report)

        def overlay_frame(get_frame, t):
            tracker.update(t)
            return adapter.apply(get_frame, t)

        overlaid = clip.transform(overlay_frame, apply_to=[])
        try:
            overlaid.write_videofile(
                str(temp_path),
                codec=self.codec,
                audio_codec=self.audio_codec,
                temp_audiofile=str(temp_path.with_suffix('.audio.m4a')),
                remove_temp=True,
                logger=None,
            )
        finally:
            overlaid.close()
            clip.close()


def export_session(session, output_path: Union[str, Path], exporter: Optional[VideoExporter] = None) -> Optional[Path]:
    """
    Export the current state of an EditorSession, publishing progress and
    status back into the session while the render runs.
    """
    exporter = exporter or VideoExporter()
    snapshot = session.snapshot()
    session.set_loading(True, "Preparing render...")
    try:
        return exporter.export(snapshot, output_path, progress_callback=session.set_render_progress)
    finally:
        session.set_loading(False)
