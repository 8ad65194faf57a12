"""
Preview Scheduler

Single-flight, asynchronous preview pipeline: decodes a source frame on a
worker thread, composes it with the timer overlay and hands the finished
bitmap back to the consuming (UI) thread through a queue.

A request that arrives while a fetch is in flight is dropped rather than
queued; only the most recent scrub position matters, and a stale result is
replaced by a fresh request for the current frame when it is delivered.
"""

import logging
import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

import numpy as np

from models import DecodeFrameError, SessionSnapshot
from overlay_renderer import OverlayRenderer, compose_frame, render_overlay
from session import EditorSession


logger = logging.getLogger(__name__)

FrameSource = Callable[[int], np.ndarray]


class PreviewState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"


@dataclass
class PreviewResult:
    """A composed preview bitmap for one frame"""
    frame: int
    image: np.ndarray
    snapshot: SessionSnapshot


@dataclass
class PreviewFailure:
    frame: int
    message: str


class PreviewScheduler:
    """
    Fetch-and-publish pipeline for the interactive preview.

    The worker captures the session snapshot when it composes the frame,
    not when the request was made, so a style change that lands mid-fetch
    still shows up in the delivered bitmap.
    """

    def __init__(
        self,
        session: EditorSession,
        frame_source: Optional[FrameSource] = None,
        renderer: Optional[OverlayRenderer] = None,
        auto_refresh: bool = False
    ):
        """
        Args:
            session: Editor session to read snapshots from
            frame_source: Callable decoding a frame index to an RGB array;
                defaults to the session's loaded video source
            renderer: Overlay renderer (defaults to the shared renderer)
            auto_refresh: Request a new preview whenever the session publishes
                a new current frame or style
        """
        self.session = session
        self._frame_source = frame_source
        self._renderer = renderer
        self._fetching = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="preview")
        self._results: "queue.Queue[Union[PreviewResult, PreviewFailure]]" = queue.Queue()
        self._future: Optional[Future] = None
        self.displayed: Optional[PreviewResult] = None
        self.fetch_count = 0
        self._unsubscribe = None

        if auto_refresh:
            self._last_seen = session.snapshot()
            self._unsubscribe = session.subscribe(self._on_snapshot)

    @property
    def state(self) -> PreviewState:
        return PreviewState.FETCHING if self._fetching.locked() else PreviewState.IDLE

    def _on_snapshot(self, snapshot: SessionSnapshot) -> None:
        previous = self._last_seen
        self._last_seen = snapshot
        if snapshot.video is None:
            return
        if snapshot.current_frame != previous.current_frame or snapshot.style != previous.style:
            self.request_frame(snapshot.current_frame)

    def _source(self) -> FrameSource:
        if self._frame_source is not None:
            return self._frame_source
        if self.session.source is None:
            raise DecodeFrameError("No video loaded")
        return self.session.source.get_raw_frame

    def request_frame(self, frame: int) -> bool:
        """
        Start fetching `frame` if no fetch is in flight.

        Returns:
            True if a fetch was started, False if the request was dropped
        """
        if not self._fetching.acquire(blocking=False):
            logger.debug(f"Preview busy, dropping request for frame {frame}")
            return False
        try:
            self._future = self._executor.submit(self._fetch, frame)
        except RuntimeError:
            self._fetching.release()
            raise
        return True

    def refresh(self) -> bool:
        """Re-render the current frame, e.g. after a style change"""
        return self.request_frame(self.session.snapshot().current_frame)

    def _fetch(self, frame: int) -> None:
        try:
            self.fetch_count += 1
            try:
                raw = self._source()(frame)
            except DecodeFrameError as e:
                logger.warning(f"Preview decode failed for frame {frame}: {e}")
                self._results.put(PreviewFailure(frame, str(e)))
                return

            snapshot = self.session.snapshot()
            height, width = raw.shape[:2]
            overlay = render_overlay(snapshot, frame, size=(width, height), renderer=self._renderer)
            image = compose_frame(raw, overlay)
            self._results.put(PreviewResult(frame=frame, image=image, snapshot=snapshot))
        finally:
            self._fetching.release()

    def poll(self) -> Optional[PreviewResult]:
        """
        Deliver finished fetches on the consuming thread.

        A result or failure for a frame other than the session's current frame
        is discarded and the current frame is requested instead. A failed
        fetch of the current frame leaves the displayed bitmap unchanged and
        is reported as status.

        Returns:
            The newly displayed result, or None if nothing new is shown
        """
        future = self._future
        if future is not None and future.done() and future.exception() is not None:
            self._future = None
            raise future.exception()

        shown = None
        while True:
            try:
                item = self._results.get_nowait()
            except queue.Empty:
                break

            current = self.session.snapshot().current_frame
            if item.frame != current:
                logger.debug(f"Discarding stale preview for frame {item.frame} (now at {current})")
                self.request_frame(current)
                continue

            if isinstance(item, PreviewFailure):
                self.session.set_status(f"Error preview: {item.message}")
                continue

            # The previous bitmap is released only once its replacement exists
            self.displayed = item
            shown = item
        return shown

    def wait(self, timeout: Optional[float] = None) -> Optional[PreviewResult]:
        """Block until the in-flight fetch (if any) finishes, then poll"""
        future = self._future
        if future is not None:
            future.exception(timeout=timeout)
        return self.poll()

    def shutdown(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._executor.shutdown(wait=True)
