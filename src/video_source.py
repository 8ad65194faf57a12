"""
Video Source Module

Decode collaborator backed by OpenCV. It is the only place video properties
come from and provides single decoded frames for the preview.
"""

import logging
from pathlib import Path

import cv2
import numpy as np

from models import DecodeFrameError, InvalidVideoError, VideoProperties


logger = logging.getLogger(__name__)


class VideoSource:
    """
    Reads properties and individual frames from a video file.

    Every frame fetch opens its own capture so that fetches from the preview
    worker never share decoder state with other callers.
    """

    def __init__(self, video_path: str):
        self.video_path = str(video_path)

    def probe(self) -> VideoProperties:
        """
        Read width, height, fps and duration of the first video track.

        Raises:
            InvalidVideoError: If the file has no usable video track or its
                frame rate or duration cannot be resolved
        """
        if not Path(self.video_path).exists():
            raise InvalidVideoError(f"Video not found: {self.video_path}")

        cap = cv2.VideoCapture(self.video_path)
        try:
            if not cap.isOpened():
                raise InvalidVideoError(f"Cannot open video: {self.video_path}")

            width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
            height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
            fps = float(cap.get(cv2.CAP_PROP_FPS))
            frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
        finally:
            cap.release()

        if width <= 0 or height <= 0:
            raise InvalidVideoError(f"No video track found in {self.video_path}")
        if not fps > 0:
            raise InvalidVideoError(f"Cannot resolve frame rate of {self.video_path}")
        if frame_count <= 0:
            raise InvalidVideoError(f"Cannot resolve duration of {self.video_path}")

        props = VideoProperties(
            width=width,
            height=height,
            fps=fps,
            duration=frame_count / fps,
        )
        logger.info(
            f"Probed {self.video_path}: {width}x{height} @ {fps:.3f} fps, "
            f"{props.duration:.2f}s"
        )
        return props

    def get_raw_frame(self, frame: int) -> np.ndarray:
        """
        Decode one frame.

        Args:
            frame: Frame index to decode

        Returns:
            HxWx3 uint8 RGB array

        Raises:
            DecodeFrameError: If the frame cannot be read
        """
        cap = cv2.VideoCapture(self.video_path)
        try:
            if not cap.isOpened():
                raise DecodeFrameError(f"Cannot open video: {self.video_path}")
            cap.set(cv2.CAP_PROP_POS_FRAMES, frame)
            ret, bgr = cap.read()
        finally:
            cap.release()

        if not ret or bgr is None:
            raise DecodeFrameError(f"Could not decode frame {frame} of {self.video_path}")

        return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)
