import pytest

from models import TimerFormat, TimerMode
from time_calculator import ElapsedTime
from time_formatter import LRT_LABEL, RTA_LABEL, build_timer_lines, format_time


@pytest.mark.parametrize("timer_format, expected", [
    ("HHMMSSmmm", "1:02:05.125"),
    ("HHMMSS", "1:02:05"),
    ("MMSSmmm", "62:05.125"),
    ("MMSS", "62:05"),
    ("MMSScc", "62:05.12"),
    ("MMSScc_pad", "62:05.12"),
    ("SSmmm", "3725.125"),
])
def test_format_table(timer_format, expected):
    assert format_time(3725.125, timer_format) == expected
    assert format_time(3725.125, TimerFormat(timer_format)) == expected


def test_default_format_is_minutes_seconds_millis():
    assert format_time(3725.125) == "62:05.125"


def test_centiseconds_truncate_after_millisecond_rounding():
    assert format_time(65.004, "MMSScc") == "1:05.00"
    assert format_time(65.009, "MMSScc") == "1:05.00"
    assert format_time(65.0104, "MMSScc") == "1:05.01"


def test_padded_minutes():
    assert format_time(5.5, "MMSScc_pad") == "00:05.50"
    assert format_time(5.5, "MMSScc") == "0:05.50"


def test_negative_is_clamped_to_zero():
    assert format_time(-3.0, "MMSS") == "0:00"
    assert format_time(-0.4, "HHMMSSmmm") == "0:00:00.000"


def test_rounding_carries_into_minutes():
    assert format_time(59.9996, "HHMMSS") == "0:01:00"
    assert format_time(59.9996, "MMSSmmm") == "1:00.000"


def test_adjacent_frames_never_go_backwards():
    fps = 29.97
    previous = -1
    for frame in range(0, 20000):
        minutes, rest = format_time(frame / fps, "MMSSmmm").split(":")
        seconds, millis = rest.split(".")
        total_ms = (int(minutes) * 60 + int(seconds)) * 1000 + int(millis)
        assert total_ms >= previous
        previous = total_ms


def test_unknown_format_raises():
    with pytest.raises(ValueError):
        format_time(1.0, "HH")


def _elapsed(rta, lrt):
    return ElapsedTime(rta_frames=0, load_frames=0, lrt_frames=0, rta_seconds=rta, lrt_seconds=lrt)


def test_single_mode_lines_have_no_label():
    elapsed = _elapsed(65.5, 60.25)
    assert build_timer_lines(TimerMode.RTA, elapsed, "MMSSmmm") == [(None, "1:05.500")]
    assert build_timer_lines(TimerMode.LRT, elapsed, "MMSSmmm") == [(None, "1:00.250")]


def test_both_mode_lines_are_labelled_in_order():
    lines = build_timer_lines(TimerMode.BOTH, _elapsed(65.5, 60.25), TimerFormat.MMSS)
    assert lines == [(RTA_LABEL, "1:05"), (LRT_LABEL, "1:00")]
    assert RTA_LABEL == "RTA: "
    assert LRT_LABEL == "LRT: "


def test_negative_lrt_line_shows_zero():
    lines = build_timer_lines(TimerMode.LRT, _elapsed(1.0, -2.0), "MMSSmmm")
    assert lines == [(None, "0:00.000")]
