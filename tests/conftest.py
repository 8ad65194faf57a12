"""Shared pytest configuration and fixtures for the timer overlay test suite."""

import sys
import threading
from pathlib import Path

import numpy as np
import pytest

# Ensure the src/ modules are importable
PROJECT_ROOT = Path(__file__).parent.parent
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from models import DecodeFrameError, SessionSnapshot, TimerStyle, VideoProperties  # noqa: E402
from session import EditorSession  # noqa: E402
from video_source import VideoSource  # noqa: E402


class FakeVideoSource(VideoSource):
    """In-memory video: every frame is a flat grey level derived from its index."""

    def __init__(self, props: VideoProperties, video_path: str = "fake_run.mp4"):
        super().__init__(video_path)
        self.props = props
        self.calls = []
        self.gate = None
        self.fail_frames = set()

    def probe(self) -> VideoProperties:
        return self.props

    def get_raw_frame(self, frame: int) -> np.ndarray:
        self.calls.append(frame)
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if frame in self.fail_frames:
            raise DecodeFrameError(f"Could not decode frame {frame}")
        level = frame % 200
        return np.full((self.props.height, self.props.width, 3), level, dtype=np.uint8)

    def block(self) -> threading.Event:
        """Make decodes wait until the returned event is set."""
        self.gate = threading.Event()
        return self.gate


@pytest.fixture
def video_props() -> VideoProperties:
    """320x180, 30 fps, 10 s -> 300 frames."""
    return VideoProperties(width=320, height=180, fps=30.0, duration=10.0)


@pytest.fixture
def centered_style() -> TimerStyle:
    return TimerStyle(position_x=0.5, position_y=0.5, point_size=32)


@pytest.fixture
def fake_source(video_props) -> FakeVideoSource:
    return FakeVideoSource(video_props)


@pytest.fixture
def session(fake_source, centered_style) -> EditorSession:
    session = EditorSession(style=centered_style)
    session.load_video(fake_source)
    return session


@pytest.fixture
def make_snapshot(video_props, centered_style):
    """Build a snapshot for the 300-frame test video."""
    def _make(**changes) -> SessionSnapshot:
        fields = dict(
            video=video_props,
            source_path="fake_run.mp4",
            start_frame=0,
            end_frame=299,
            style=centered_style,
        )
        fields.update(changes)
        return SessionSnapshot(**fields)
    return _make
