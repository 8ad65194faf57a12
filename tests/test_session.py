import threading

import pytest

from conftest import FakeVideoSource
from models import InvalidVideoError, LoadSegment, TimerFormat, TimerMode, VideoProperties
from session import EditorSession


def test_load_video_sets_range_and_status(session):
    snapshot = session.snapshot()
    assert snapshot.total_frames == 300
    assert snapshot.start_frame == 0
    assert snapshot.end_frame == 299
    assert snapshot.current_frame == 0
    assert snapshot.status_message == "Video loaded: 320x180"
    assert not snapshot.is_loading


def test_reload_resets_loads_but_keeps_style(session, video_props):
    session.set_mode(TimerMode.BOTH)
    session.navigate_to_frame(40)
    session.toggle_load_mark()
    session.navigate_to_frame(60)
    session.toggle_load_mark()
    assert session.snapshot().segments == (LoadSegment(40, 60),)

    session.load_video(FakeVideoSource(VideoProperties(640, 360, 60.0, 5.0), "other.mp4"))
    snapshot = session.snapshot()
    assert snapshot.segments == ()
    assert snapshot.current_frame == 0
    assert snapshot.end_frame == 299
    assert snapshot.style.mode is TimerMode.BOTH
    assert snapshot.source_path == "other.mp4"


def test_failed_load_keeps_previous_state(session):
    class BrokenSource(FakeVideoSource):
        def probe(self):
            raise InvalidVideoError("No video track found.")

    before = session.snapshot()
    with pytest.raises(InvalidVideoError):
        session.load_video(BrokenSource(before.video, "broken.mp4"))

    after = session.snapshot()
    assert after.video == before.video
    assert after.source_path == before.source_path
    assert after.status_message.startswith("Error loading:")


def test_navigation_is_clamped(session):
    assert session.navigate_to_frame(-10) == 0
    assert session.navigate_to_frame(5000) == 299
    assert session.navigate_frames(-9) == 290
    session.navigate_to_frame(0)
    assert session.navigate_seconds(2) == 60
    assert session.navigate_seconds(-0.5) == 45
    assert session.navigate_minutes(1) == 299


def test_navigation_without_video_is_noop():
    session = EditorSession()
    assert session.navigate_to_frame(10) == 0
    assert session.navigate_seconds(3) == 0


def test_start_and_end_markers(session):
    session.navigate_to_frame(30)
    assert session.set_start_frame() == 30
    session.navigate_to_frame(250)
    assert session.set_end_frame() == 250
    assert session.go_to_start_frame() == 30
    assert session.go_to_end_frame() == 250


def test_markers_keep_start_before_end(session):
    session.set_end_frame(100)
    assert session.set_start_frame(150) == 100
    session.set_start_frame(80)
    assert session.set_end_frame(20) == 80


def test_load_mark_toggle_and_undo(session):
    session.navigate_to_frame(50)
    assert session.toggle_load_mark() is None
    assert session.snapshot().pending_load_start == 50
    assert session.snapshot().is_marking_load

    session.navigate_to_frame(30)
    assert session.toggle_load_mark() == LoadSegment(30, 50)
    assert session.snapshot().segments == (LoadSegment(30, 50),)
    assert not session.snapshot().is_marking_load

    assert session.undo_last_load() == LoadSegment(30, 50)
    assert session.snapshot().segments == ()
    assert session.undo_last_load() is None


def test_add_load_segment_clamps_and_keeps_pending_state(session):
    assert session.add_load_segment(280, 900) == LoadSegment(280, 299)
    assert session.snapshot().pending_load_start is None


def test_snapshots_are_immutable_points_in_time(session):
    before = session.snapshot()
    session.navigate_to_frame(100)
    session.set_timer_format("HHMMSS")
    assert before.current_frame == 0
    assert before.style.timer_format is TimerFormat.MMSSmmm
    assert session.snapshot().current_frame == 100
    assert session.snapshot().style.timer_format is TimerFormat.HHMMSS


def test_listeners_receive_new_snapshots(session):
    seen = []
    unsubscribe = session.subscribe(seen.append)
    session.navigate_to_frame(12)
    session.set_point_size(48)
    unsubscribe()
    session.navigate_to_frame(13)

    assert [s.current_frame for s in seen] == [12, 12]
    assert seen[-1].style.point_size == 48


def test_failing_listener_does_not_break_mutation(session):
    def broken(snapshot):
        raise RuntimeError("listener bug")

    session.subscribe(broken)
    assert session.navigate_to_frame(7) == 7
    assert session.snapshot().current_frame == 7


def test_style_setters(session):
    session.set_position(1.5, -0.2)
    session.set_fill_color("#FF0000")
    session.set_outline_color((0, 0, 255))
    session.set_outline_width(0)
    style = session.snapshot().style
    assert (style.position_x, style.position_y) == (1.0, 0.0)
    assert style.fill_color == (255, 0, 0, 255)
    assert style.outline_color == (0, 0, 255, 255)
    assert style.outline_width == 0


def test_invalid_style_values_raise(session):
    with pytest.raises(ValueError):
        session.set_point_size(0)
    with pytest.raises(ValueError):
        session.set_outline_width(-1)
    with pytest.raises(ValueError):
        session.set_mode("SPLITS")


def test_custom_font_failure_reports_status(session, tmp_path):
    bogus = tmp_path / "not_a_font.ttf"
    bogus.write_bytes(b"definitely not a font")

    assert session.load_custom_font(bogus) is False
    assert session.snapshot().status_message == "Error importing font."
    assert session.snapshot().style.typeface is None


def test_render_progress_is_clamped(session):
    session.set_render_progress(150, "Rendering... 150%")
    assert session.snapshot().render_progress == 100
    assert session.snapshot().status_message == "Rendering... 150%"


def test_listeners_run_after_the_session_lock_is_released(session):
    unblocked = []
    started = []

    def listener(snapshot):
        if started:
            return
        started.append(snapshot)
        other = threading.Thread(target=session.set_status, args=("from another thread",))
        other.start()
        other.join(timeout=2)
        unblocked.append(not other.is_alive())

    session.subscribe(listener)
    session.navigate_frames(3)

    assert unblocked == [True]
    assert session.snapshot().current_frame == 3
    assert session.snapshot().status_message == "from another thread"


def test_concurrent_relative_navigation_loses_no_steps(session):
    def step_forward():
        for _ in range(100):
            session.navigate_frames(1)

    workers = [threading.Thread(target=step_forward) for _ in range(2)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join(timeout=10)

    assert session.snapshot().current_frame == 200
