"""
Load Segment Registry

Keeps the user-marked "loading" spans of a run in the order they were
created. Marking is a two-step toggle: the first toggle remembers a pending
start frame, the second commits a segment between the two frames.

Segments are never merged, normalized or de-duplicated here; overlapping
entries are legal and are resolved by the time calculator.
"""

import logging
from typing import Iterator, List, Optional, Tuple

from models import LoadSegment


logger = logging.getLogger(__name__)


class LoadSegmentView:
    """Re-iterable, read-only view over a sequence of load segments"""

    def __init__(self, segments: Tuple[LoadSegment, ...]):
        self._segments = segments

    def __iter__(self) -> Iterator[LoadSegment]:
        return iter(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __getitem__(self, index: int) -> LoadSegment:
        return self._segments[index]


class LoadSegmentRegistry:
    """Append-ordered collection of load segments with a marking workflow"""

    def __init__(self, segments: Optional[List[LoadSegment]] = None):
        self._segments: List[LoadSegment] = list(segments or [])
        self._pending_start: Optional[int] = None

    @property
    def pending_start(self) -> Optional[int]:
        """Frame where the load currently being recorded started, if any"""
        return self._pending_start

    @property
    def is_marking(self) -> bool:
        return self._pending_start is not None

    def toggle_mark(self, current_frame: int) -> Optional[LoadSegment]:
        """
        Start or finish marking a load at `current_frame`.

        Returns:
            The committed LoadSegment when this toggle closed a mark,
            None when it opened one.
        """
        if self._pending_start is None:
            self._pending_start = current_frame
            logger.debug(f"Load mark opened at frame {current_frame}")
            return None

        segment = LoadSegment(
            start_frame=min(self._pending_start, current_frame),
            end_frame=max(self._pending_start, current_frame),
        )
        self._segments.append(segment)
        self._pending_start = None
        logger.info(f"Load segment committed: frames {segment.start_frame}-{segment.end_frame}")
        return segment

    def cancel_mark(self) -> None:
        """Drop a pending start without committing a segment"""
        self._pending_start = None

    def undo_last(self) -> Optional[LoadSegment]:
        """Remove and return the most recently committed segment (no-op if empty)"""
        if not self._segments:
            return None
        removed = self._segments.pop()
        logger.info(f"Load segment removed: frames {removed.start_frame}-{removed.end_frame}")
        return removed

    def clear(self) -> None:
        self._segments.clear()
        self._pending_start = None

    def segments(self) -> LoadSegmentView:
        """Snapshot view of the committed segments, safe to iterate repeatedly"""
        return LoadSegmentView(tuple(self._segments))

    def __len__(self) -> int:
        return len(self._segments)
