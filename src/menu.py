#!/usr/bin/env python3
"""
Interactive Terminal Editor for the Speedrun Timer Overlay

Provides a TUI for stepping through a run frame by frame, placing the
start/end markers, tagging loading segments and styling the timer, with
preview images written to disk and a final export.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

import imageio.v3 as iio

from config import to_rgba
from export import export_session
from models import InvalidVideoError, TimerFormat, TimerMode
from preview import PreviewScheduler
from session import EditorSession
from time_calculator import elapsed_for_snapshot
from time_formatter import format_time


logger = logging.getLogger(__name__)


# ANSI color codes
class Colors:
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BOLD = '\033[1m'
    DIM = '\033[2m'
    END = '\033[0m'


def clear_screen():
    os.system('clear' if os.name != 'nt' else 'cls')


def print_header():
    """Print the application header."""
    print(f"\n{Colors.BOLD}{Colors.CYAN}")
    print("╔══════════════════════════════════════════════════════════════╗")
    print("║          SPEEDRUN TIMER OVERLAY - Interactive Editor         ║")
    print("║          RTA / Load-Removed Time on your run video           ║")
    print("╚══════════════════════════════════════════════════════════════╝")
    print(f"{Colors.END}")


def print_menu(title: str, options: List[Tuple[str, str]], show_back: bool = True):
    """Print a numbered menu."""
    print(f"\n{Colors.BOLD}{Colors.YELLOW}  {title}{Colors.END}")
    print(f"  {'─' * 56}")
    for i, (label, desc) in enumerate(options, 1):
        print(f"  {Colors.GREEN}{i}.{Colors.END} {Colors.BOLD}{label}{Colors.END}")
        if desc:
            print(f"     {Colors.DIM}{desc}{Colors.END}")
    if show_back:
        print(f"  {Colors.RED}0.{Colors.END} {Colors.BOLD}Back / Exit{Colors.END}")
    print()


def get_choice(max_val: int, prompt: str = "  Select option: ") -> int:
    """Get a numeric choice from the user."""
    while True:
        try:
            choice = input(f"{Colors.CYAN}{prompt}{Colors.END}").strip()
            if choice == '':
                continue
            val = int(choice)
            if 0 <= val <= max_val:
                return val
            print(f"  {Colors.RED}Please enter a number between 0 and {max_val}{Colors.END}")
        except ValueError:
            print(f"  {Colors.RED}Please enter a valid number{Colors.END}")
        except (KeyboardInterrupt, EOFError):
            print()
            return 0


def get_input(prompt: str, default: str = None) -> str:
    """Get text input with optional default."""
    if default:
        display = f"  {prompt} [{Colors.DIM}{default}{Colors.END}]: "
    else:
        display = f"  {prompt}: "
    try:
        val = input(display).strip()
        return val if val else (default or '')
    except (KeyboardInterrupt, EOFError):
        print()
        return default or ''


def get_number(prompt: str, default: float, cast=float) -> Optional[float]:
    """Get a number, or None if the input is not one."""
    raw = get_input(prompt, str(default))
    try:
        return cast(raw)
    except ValueError:
        print(f"  {Colors.RED}Not a number: {raw}{Colors.END}")
        return None


def pick_option(title: str, values: List[str], current: str) -> Optional[str]:
    """Pick one value from a list; None on back."""
    print_menu(title, [(v, "current" if v == current else "") for v in values])
    choice = get_choice(len(values))
    return values[choice - 1] if choice else None


def print_status(session: EditorSession):
    """Print the session state and the timer values at the current frame."""
    snapshot = session.snapshot()
    if snapshot.video is None:
        print(f"  {Colors.DIM}No video loaded{Colors.END}")
        print(f"  {Colors.DIM}{snapshot.status_message}{Colors.END}")
        return

    video = snapshot.video
    elapsed = elapsed_for_snapshot(snapshot, snapshot.current_frame)
    fmt = snapshot.style.timer_format
    print(f"  Video:   {snapshot.source_path} ({video.width}x{video.height} @ {video.fps:.3f} fps)")
    print(f"  Frame:   {Colors.BOLD}{snapshot.current_frame}{Colors.END} / {snapshot.total_frames - 1}"
          f"   ({format_time(snapshot.current_frame / video.fps, TimerFormat.HHMMSSmmm)})")
    print(f"  Run:     frames {snapshot.start_frame} → {snapshot.end_frame}")
    print(f"  RTA:     {Colors.GREEN}{format_time(elapsed.rta_seconds, fmt)}{Colors.END}"
          f"   LRT: {Colors.GREEN}{format_time(elapsed.lrt_seconds, fmt)}{Colors.END}")
    loads = ", ".join(f"{s.start_frame}-{s.end_frame}" for s in snapshot.segments) or "none"
    print(f"  Loads:   {loads}")
    if snapshot.is_marking_load:
        print(f"  {Colors.YELLOW}● Recording load since frame {snapshot.pending_load_start}{Colors.END}")
    print(f"  {Colors.DIM}{snapshot.status_message}{Colors.END}")


def screen_open_video(session: EditorSession):
    path = get_input("Video file")
    if not path:
        return
    try:
        session.load_video(path)
    except InvalidVideoError as e:
        print(f"  {Colors.RED}✗ {e}{Colors.END}")
        input("\n  Press Enter to continue...")


def screen_navigate(session: EditorSession):
    """Frame navigation."""
    print_menu("Navigate", [
        ("Next frame", "+1 frame"),
        ("Previous frame", "-1 frame"),
        ("Skip seconds", "Move by a number of seconds (negative to go back)"),
        ("Skip minutes", "Move by a number of minutes (negative to go back)"),
        ("Go to frame", "Jump to a frame index"),
        ("Go to start marker", ""),
        ("Go to end marker", ""),
    ])
    choice = get_choice(7)
    if choice == 1:
        session.navigate_frames(1)
    elif choice == 2:
        session.navigate_frames(-1)
    elif choice == 3:
        delta = get_number("Seconds", 1.0)
        if delta is not None:
            session.navigate_seconds(delta)
    elif choice == 4:
        delta = get_number("Minutes", 1.0)
        if delta is not None:
            session.navigate_minutes(delta)
    elif choice == 5:
        frame = get_number("Frame", session.snapshot().current_frame, cast=int)
        if frame is not None:
            session.navigate_to_frame(frame)
    elif choice == 6:
        session.go_to_start_frame()
    elif choice == 7:
        session.go_to_end_frame()


def screen_markers(session: EditorSession):
    """Run range and load segments."""
    marking = session.snapshot().is_marking_load
    print_menu("Markers & Loads", [
        ("Set start here", "Run starts at the current frame"),
        ("Set end here", "Run ends at the current frame"),
        ("End load here" if marking else "Start load here", "Toggle load marking at the current frame"),
        ("Undo last load", "Remove the most recently marked load"),
        ("Cancel pending load", "Forget an unfinished load mark"),
        ("Clear all loads", ""),
    ])
    choice = get_choice(6)
    if choice == 1:
        session.set_start_frame()
    elif choice == 2:
        session.set_end_frame()
    elif choice == 3:
        session.toggle_load_mark()
    elif choice == 4:
        session.undo_last_load()
    elif choice == 5:
        session.cancel_load_mark()
    elif choice == 6:
        session.clear_loads()


def screen_style(session: EditorSession):
    """Timer style settings."""
    style = session.snapshot().style
    font_name = style.custom_font_name or "Default bold"
    print_menu("Timer Style", [
        ("Mode", style.mode.value),
        ("Format", style.timer_format.value),
        ("Position", f"x={style.position_x:.2f}, y={style.position_y:.2f}"),
        ("Size", str(style.point_size)),
        ("Color", str(style.fill_color)),
        ("Font", font_name),
        ("Outline", f"{'on' if style.outline_enabled else 'off'}, width {style.outline_width}, {style.outline_color}"),
    ])
    choice = get_choice(7)
    try:
        if choice == 1:
            value = pick_option("Mode", [m.value for m in TimerMode], style.mode.value)
            if value:
                session.set_mode(value)
        elif choice == 2:
            value = pick_option("Format", [f.value for f in TimerFormat], style.timer_format.value)
            if value:
                session.set_timer_format(value)
        elif choice == 3:
            x = get_number("X (0-1)", style.position_x)
            y = get_number("Y (0-1)", style.position_y)
            session.set_position(x, y)
        elif choice == 4:
            size = get_number("Point size", style.point_size, cast=int)
            if size is not None:
                session.set_point_size(size)
        elif choice == 5:
            session.set_fill_color(to_rgba(get_input("Color", "#FFFFFF")))
        elif choice == 6:
            path = get_input("Font file (empty for default)")
            if path:
                session.load_custom_font(path)
            else:
                session.set_default_typeface()
        elif choice == 7:
            enabled = get_input("Outline on? (y/n)", "y").lower() in ('y', 'yes')
            session.set_outline_enabled(enabled)
            if enabled:
                width = get_number("Outline width", style.outline_width, cast=int)
                if width is not None:
                    session.set_outline_width(width)
                session.set_outline_color(to_rgba(get_input("Outline color", "#000000")))
    except ValueError as e:
        print(f"  {Colors.RED}✗ {e}{Colors.END}")
        input("\n  Press Enter to continue...")


def screen_preview(session: EditorSession, scheduler: PreviewScheduler, preview_path: str):
    """Render the current frame with the timer to an image file."""
    scheduler.refresh()
    result = scheduler.wait(timeout=30)
    if result is None:
        result = scheduler.wait(timeout=30)
    if result is None:
        print(f"  {Colors.RED}✗ No preview: {session.snapshot().status_message}{Colors.END}")
    else:
        iio.imwrite(preview_path, result.image)
        print(f"  {Colors.GREEN}✓ Preview of frame {result.frame} written to {preview_path}{Colors.END}")
    input("\n  Press Enter to continue...")


def screen_render(session: EditorSession):
    """Export the video with the timer."""
    source = Path(session.snapshot().source_path)
    default_output = str(source.with_name(f"{source.stem}_timed.mp4"))
    output = get_input("Output video", default_output)
    if not output:
        return
    print(f"\n  {Colors.BOLD}Rendering... this may take a while{Colors.END}\n")
    result = export_session(session, output)
    if result:
        print(f"  {Colors.GREEN}✓ {session.snapshot().status_message} → {result}{Colors.END}")
    else:
        print(f"  {Colors.RED}✗ {session.snapshot().status_message}{Colors.END}")
    input("\n  Press Enter to continue...")


def main_menu(video_path: Optional[str] = None, preview_path: str = './preview.png'):
    """Main interactive menu loop."""
    session = EditorSession()
    scheduler = PreviewScheduler(session)

    if video_path:
        try:
            session.load_video(video_path)
        except InvalidVideoError as e:
            print(f"  {Colors.RED}✗ {e}{Colors.END}")

    try:
        while True:
            clear_screen()
            print_header()
            print_status(session)
            loaded = session.snapshot().video is not None

            print_menu("Main Menu", [
                ("Open video", "Load a run video"),
                ("Navigate", "Step through frames, seconds, minutes"),
                ("Markers & loads", "Start/end of the run, loading segments"),
                ("Timer style", "Mode, format, position, font, colors"),
                ("Save preview", f"Write the current frame with the timer to {preview_path}"),
                ("Render video", "Export the whole video with the timer"),
            ])

            choice = get_choice(6)

            if choice == 0:
                print(f"\n  {Colors.DIM}Goodbye!{Colors.END}\n")
                break
            elif choice == 1:
                screen_open_video(session)
            elif not loaded:
                print(f"  {Colors.YELLOW}⚠ Open a video first{Colors.END}")
                input("\n  Press Enter to continue...")
            elif choice == 2:
                screen_navigate(session)
            elif choice == 3:
                screen_markers(session)
            elif choice == 4:
                screen_style(session)
            elif choice == 5:
                screen_preview(session, scheduler, preview_path)
            elif choice == 6:
                screen_render(session)
    finally:
        scheduler.shutdown()


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    try:
        main_menu()
    except (KeyboardInterrupt, EOFError):
        print(f"\n\n  {Colors.DIM}Goodbye!{Colors.END}\n")
