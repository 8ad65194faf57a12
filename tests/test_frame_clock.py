import pytest

from frame_clock import (
    clamp_frame,
    frame_to_seconds,
    round_half_up,
    seconds_to_frame,
    total_frames,
)


def test_frame_to_seconds():
    assert frame_to_seconds(90, 30.0) == 3.0
    assert frame_to_seconds(0, 60.0) == 0.0


def test_seconds_to_frame_rounds_to_nearest():
    assert seconds_to_frame(3.0, 30.0) == 90
    assert seconds_to_frame(0.05, 30.0) == 2  # 1.5 frames rounds up
    assert seconds_to_frame(0.01, 30.0) == 0


@pytest.mark.parametrize("fps", [23.976, 29.97, 30.0, 59.94, 60.0])
def test_frame_seconds_round_trip(fps):
    for frame in range(0, 5000):
        assert seconds_to_frame(frame_to_seconds(frame, fps), fps) == frame


def test_total_frames_floors():
    assert total_frames(10.0, 30.0) == 300
    assert total_frames(10.02, 30.0) == 300
    assert total_frames(0.0, 30.0) == 0


def test_clamp_frame():
    assert clamp_frame(-5, 300) == 0
    assert clamp_frame(150, 300) == 150
    assert clamp_frame(300, 300) == 299
    assert clamp_frame(42, 0) == 0


@pytest.mark.parametrize("fps", [0, -30.0, float("nan"), float("inf")])
def test_invalid_fps_fails_loudly(fps):
    with pytest.raises(ValueError):
        frame_to_seconds(1, fps)
    with pytest.raises(ValueError):
        seconds_to_frame(1.0, fps)
    with pytest.raises(ValueError):
        total_frames(1.0, fps)


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.4999) == 2


def test_total_frames_survives_float_error():
    assert total_frames(1001 / 29.97, 29.97) == 1001
    assert total_frames(7 / (30000 / 1001), 30000 / 1001) == 7
