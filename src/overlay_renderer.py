"""
Overlay Renderer

Draws the formatted timer text onto an RGBA surface with Pillow and
composites that surface onto decoded video frames.

Both the interactive preview and the export pipeline go through
`render_overlay`, so a given frame always gets the exact same overlay.
"""

import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from models import SessionSnapshot, TimerStyle
from time_calculator import elapsed_for_snapshot
from time_formatter import TimerLine, build_timer_lines


logger = logging.getLogger(__name__)

DEFAULT_FONT_CANDIDATES = [
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"),
    Path("/usr/share/fonts/TTF/DejaVuSans-Bold.ttf"),
    Path("/Library/Fonts/Arial Bold.ttf"),
    Path("C:/Windows/Fonts/arialbd.ttf"),
]


def load_font(typeface: Optional[str], size: int) -> ImageFont.FreeTypeFont:
    """
    Load a font for the timer.

    Args:
        typeface: Path to a TrueType/OpenType file, or None for a bold default
        size: Point size

    Returns:
        A Pillow font object
    """
    if typeface:
        return ImageFont.truetype(typeface, size=size)

    for candidate in DEFAULT_FONT_CANDIDATES:
        if candidate.exists():
            try:
                return ImageFont.truetype(str(candidate), size=size)
            except OSError:
                continue
    try:
        return ImageFont.truetype("DejaVuSans-Bold.ttf", size=size)
    except OSError:
        logger.debug("No bold system font found, using Pillow's default font")
        return ImageFont.load_default(size=size)


def line_height(font) -> int:
    """Height of one text line from the font metrics"""
    ascent, descent = font.getmetrics()
    return ascent + descent


class OverlayRenderer:
    """
    Draws one or two timer lines onto a surface.

    Style is read on every call; only loaded fonts are cached, per thread,
    because the preview worker and the export pipeline render concurrently.
    """

    def __init__(self):
        self._local = threading.local()

    def _font(self, typeface: Optional[str], size: int):
        cache: Dict[Tuple[Optional[str], int], object] = getattr(self._local, 'fonts', None)
        if cache is None:
            cache = self._local.fonts = {}
        key = (typeface, size)
        if key not in cache:
            cache[key] = load_font(typeface, size)
        return cache[key]

    def render(self, surface: Image.Image, style: TimerStyle, lines: Sequence[TimerLine]) -> Image.Image:
        """
        Draw `lines` onto `surface` in place.

        The block of lines is centred vertically on height * position_y and
        each line is centred horizontally on width * position_x.

        Args:
            surface: RGBA image to draw on
            style: Timer style to draw with
            lines: Ordered (label, text) pairs

        Returns:
            The same surface, for chaining
        """
        if not lines:
            return surface

        width, height = surface.size
        font = self._font(style.typeface, style.point_size)
        step = line_height(font)

        center_x = width * style.position_x
        top = height * style.position_y - step * len(lines) / 2.0

        draw = ImageDraw.Draw(surface)
        outline = style.outline_enabled and style.outline_width > 0

        for index, (label, text) in enumerate(lines):
            content = f"{label or ''}{text}"
            position = (center_x, top + index * step)
            if outline:
                # Pillow grows the stroke outward by stroke_width on each side,
                # the same footprint as a centred stroke of twice the width.
                draw.text(
                    position,
                    content,
                    font=font,
                    anchor="ma",
                    fill=style.outline_color,
                    stroke_width=style.outline_width,
                    stroke_fill=style.outline_color,
                )
            draw.text(position, content, font=font, anchor="ma", fill=style.fill_color)

        return surface


_default_renderer = OverlayRenderer()


def render_overlay(
    snapshot: SessionSnapshot,
    frame: int,
    size: Optional[Tuple[int, int]] = None,
    renderer: Optional[OverlayRenderer] = None
) -> Image.Image:
    """
    Render the timer for `frame` onto a freshly allocated transparent surface.

    Args:
        snapshot: Session state to render from
        frame: Frame index the timer is shown at
        size: (width, height) of the surface, defaults to the video size
        renderer: Renderer to use, defaults to a shared module renderer

    Returns:
        RGBA image
    """
    if size is None:
        if snapshot.video is None:
            return Image.new("RGBA", (1, 1), (0, 0, 0, 0))
        size = (snapshot.video.width, snapshot.video.height)

    surface = Image.new("RGBA", size, (0, 0, 0, 0))
    if snapshot.video is None:
        return surface

    elapsed = elapsed_for_snapshot(snapshot, frame)
    lines: List[TimerLine] = build_timer_lines(snapshot.style.mode, elapsed, snapshot.style.timer_format)
    return (renderer or _default_renderer).render(surface, snapshot.style, lines)


def compose_frame(raw_frame: np.ndarray, overlay: Image.Image) -> np.ndarray:
    """
    Alpha-composite an overlay surface onto an RGB video frame.

    Args:
        raw_frame: HxWx3 uint8 RGB frame
        overlay: RGBA overlay surface

    Returns:
        New HxWx3 uint8 RGB frame
    """
    base = Image.fromarray(np.ascontiguousarray(raw_frame, dtype=np.uint8)).convert("RGBA")
    if overlay.size != base.size:
        logger.debug(f"Resizing overlay {overlay.size} to frame {base.size}")
        overlay = overlay.resize(base.size, Image.BILINEAR)
    composed = Image.alpha_composite(base, overlay)
    return np.asarray(composed.convert("RGB"))
