#!/usr/bin/env python3
"""
Speedrun Timer Overlay

Main CLI application entry point.

This application burns a speedrun timer into a video:
1. Probing the source video (size, frame rate, duration)
2. Applying the run range (start/end frames) and marked loading segments
3. Computing Real-Time Attempt (RTA) and Load-Removed Time (LRT) per frame
4. Rendering single preview frames or exporting the full video with the timer
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import imageio.v3 as iio
from tqdm import tqdm

from config import OverlayConfig, apply_markers, load_config, to_rgba
from export import VideoExporter
from frame_clock import seconds_to_frame
from models import ConfigError, InvalidVideoError, TimerFormat, TimerMode
from preview import PreviewScheduler
from session import EditorSession
from time_calculator import elapsed_for_snapshot
from time_formatter import format_time
from video_source import VideoSource


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def parse_load(value: str) -> Tuple[int, int]:
    """Parse a 'START:END' frame pair"""
    try:
        start, end = value.split(':')
        return int(start), int(end)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Load must be START:END in frames, got {value!r}")


def build_session(args) -> EditorSession:
    """
    Create a session for the CLI arguments: config file first, then the
    command-line overrides on top.
    """
    config = load_config(args.config) if args.config else OverlayConfig()

    session = EditorSession(style=config.style.to_style())
    session.load_video(VideoSource(args.video))
    apply_markers(session, config.markers)

    if args.end_frame is not None:
        session.set_end_frame(args.end_frame)
    if args.start_frame is not None:
        session.set_start_frame(args.start_frame)
    for start, end in args.load or []:
        session.add_load_segment(start, end)

    if args.mode:
        session.set_mode(args.mode)
    if args.format:
        session.set_timer_format(args.format)
    if args.size:
        session.set_point_size(args.size)
    if args.color:
        session.set_fill_color(to_rgba(args.color))
    if args.position:
        session.set_position(*args.position)
    if args.font and not session.load_custom_font(args.font):
        raise ConfigError(f"Could not load font: {args.font}")
    if args.no_outline:
        session.set_outline_enabled(False)
    if args.outline_width is not None:
        session.set_outline_width(args.outline_width)
    if args.outline_color:
        session.set_outline_color(to_rgba(args.outline_color))

    return session


def cmd_probe(args) -> int:
    props = VideoSource(args.video).probe()
    print(f"Resolution: {props.width}x{props.height}")
    print(f"FPS:        {props.fps:.3f}")
    print(f"Duration:   {props.duration:.3f}s")
    print(f"Frames:     {props.total_frames}")
    return 0


def cmd_frame(args) -> int:
    session = build_session(args)
    snapshot = session.snapshot()

    frame = args.frame
    if args.time is not None:
        frame = seconds_to_frame(args.time, snapshot.video.fps)
    frame = session.navigate_to_frame(frame)

    scheduler = PreviewScheduler(session)
    try:
        scheduler.request_frame(frame)
        result = scheduler.wait()
    finally:
        scheduler.shutdown()

    if result is None:
        logger.error(f"Could not render preview for frame {frame}: {session.snapshot().status_message}")
        return 1

    elapsed = elapsed_for_snapshot(result.snapshot, frame)
    timer_format = result.snapshot.style.timer_format
    iio.imwrite(args.output, result.image)
    logger.info(
        f"Frame {frame}: RTA {format_time(elapsed.rta_seconds, timer_format)}, "
        f"LRT {format_time(elapsed.lrt_seconds, timer_format)} -> {args.output}"
    )
    return 0


def cmd_render(args) -> int:
    session = build_session(args)
    exporter = VideoExporter(codec=args.codec)

    with tqdm(total=100, desc="Rendering", unit="%") as bar:
        def on_progress(progress: int, message: str) -> None:
            session.set_render_progress(progress, message)
            bar.update(max(0, progress - bar.n))
            bar.set_postfix_str(message)

        output = exporter.export(session.snapshot(), args.output, progress_callback=on_progress)

    if output is None:
        logger.error(f"Render failed: {session.snapshot().status_message}")
        return 1
    return 0


def cmd_menu(args) -> int:
    from menu import main_menu
    main_menu(args.video)
    return 0


def add_session_arguments(parser: argparse.ArgumentParser) -> None:
    """Arguments shared by the commands that build an editing session"""
    parser.add_argument('video', help='Source video file')
    parser.add_argument('--config', default=None, help='YAML file with style and markers')
    parser.add_argument('--start-frame', type=int, default=None, help='First frame of the run')
    parser.add_argument('--end-frame', type=int, default=None, help='Last frame of the run')
    parser.add_argument(
        '--load',
        type=parse_load,
        action='append',
        metavar='START:END',
        help='Loading segment in frames (repeatable)'
    )
    parser.add_argument('--mode', choices=[m.value for m in TimerMode], help='Timer mode')
    parser.add_argument('--format', choices=[f.value for f in TimerFormat], help='Timer format')
    parser.add_argument('--font', default=None, help='TrueType/OpenType font file')
    parser.add_argument('--size', type=int, default=None, help='Font point size')
    parser.add_argument('--color', default=None, help='Timer color (e.g. "#FFFFFF" or "white")')
    parser.add_argument(
        '--position',
        type=float,
        nargs=2,
        metavar=('X', 'Y'),
        help='Timer position as fractions of the frame (0-1)'
    )
    parser.add_argument('--no-outline', action='store_true', help='Disable the text outline')
    parser.add_argument('--outline-width', type=int, default=None, help='Outline width in pixels')
    parser.add_argument('--outline-color', default=None, help='Outline color')


def main(argv: Optional[List[str]] = None):
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description='Burn a speedrun timer (RTA / load-removed time) into a video',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show video properties
  python main.py probe run.mp4

  # Preview frame 1800 with both timers
  python main.py frame run.mp4 --frame 1800 --mode BOTH --output preview.png

  # Export with markers from a config file
  python main.py render run.mp4 --config run.yaml --output run_timed.mp4

  # Export with markers on the command line
  python main.py render run.mp4 --start-frame 120 --end-frame 54000 \\
    --load 3000:3180 --load 9100:9260 --mode LRT --output run_timed.mp4
        """
    )
    parser.add_argument('--verbose', action='store_true', help='Enable verbose logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    probe_parser = subparsers.add_parser('probe', help='Print video properties')
    probe_parser.add_argument('video', help='Source video file')
    probe_parser.set_defaults(func=cmd_probe)

    frame_parser = subparsers.add_parser('frame', help='Render one preview frame to an image')
    add_session_arguments(frame_parser)
    frame_parser.add_argument('--frame', type=int, default=0, help='Frame index to render')
    frame_parser.add_argument('--time', type=float, default=None, help='Time in seconds (overrides --frame)')
    frame_parser.add_argument('--output', required=True, help='Output image (PNG/JPEG)')
    frame_parser.set_defaults(func=cmd_frame)

    render_parser = subparsers.add_parser('render', help='Export the video with the timer')
    add_session_arguments(render_parser)
    render_parser.add_argument('--output', required=True, help='Output video file')
    render_parser.add_argument('--codec', default='libx264', help='Video codec (default: libx264)')
    render_parser.set_defaults(func=cmd_render)

    menu_parser = subparsers.add_parser('menu', help='Interactive terminal editor')
    menu_parser.add_argument('video', nargs='?', default=None, help='Video to open')
    menu_parser.set_defaults(func=cmd_menu)

    args = parser.parse_args(argv)

    # Set logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    video = getattr(args, 'video', None)
    if video and not Path(video).exists():
        logger.error(f"Video not found: {video}")
        sys.exit(1)

    try:
        code = args.func(args)
    except (InvalidVideoError, ConfigError, ValueError) as e:
        logger.error(str(e))
        code = 1

    sys.exit(code)


if __name__ == '__main__':
    main()
