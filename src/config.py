"""
Configuration Module

Loads timer style and run markers from a YAML file and validates them with
pydantic. Example:

    style:
      mode: BOTH
      position_x: 0.5
      position_y: 0.1
      point_size: 64
      fill_color: "#FFFFFF"
      timer_format: HHMMSSmmm
      outline_enabled: true
      outline_width: 3
      outline_color: black
    markers:
      start_frame: 120
      end_frame: 54000
      loads:
        - [3000, 3180]
        - [9100, 9260]
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import yaml
from PIL import ImageColor
from pydantic import BaseModel, Field, ValidationError, field_validator

from models import RGBA, ConfigError, TimerFormat, TimerMode, TimerStyle


logger = logging.getLogger(__name__)

ColorValue = Union[str, Sequence[int]]


def to_rgba(color: ColorValue) -> RGBA:
    """
    Normalize a color to an RGBA tuple.

    Accepts "#RRGGBB", "#RRGGBBAA", CSS color names, or 3/4 integer sequences.
    """
    if isinstance(color, str):
        try:
            rgba = ImageColor.getcolor(color, "RGBA")
        except ValueError as e:
            raise ValueError(f"Unknown color: {color!r}") from e
        return tuple(rgba)

    values = [int(v) for v in color]
    if len(values) == 3:
        values.append(255)
    if len(values) != 4 or any(v < 0 or v > 255 for v in values):
        raise ValueError(f"Color must have 3 or 4 channels in 0-255, got {color!r}")
    return tuple(values)


class StyleConfig(BaseModel):
    """Timer style as written in a config file"""
    mode: TimerMode = TimerMode.RTA
    position_x: float = Field(0.86, ge=0.0, le=1.0)
    position_y: float = Field(0.95, ge=0.0, le=1.0)
    point_size: int = Field(80, gt=0)
    fill_color: RGBA = (255, 255, 255, 255)
    timer_format: TimerFormat = TimerFormat.MMSSmmm
    typeface: Optional[str] = None
    outline_enabled: bool = True
    outline_width: int = Field(3, ge=0)
    outline_color: RGBA = (0, 0, 0, 255)

    @field_validator('fill_color', 'outline_color', mode='before')
    @classmethod
    def _parse_color(cls, value):
        return to_rgba(value)

    @field_validator('typeface')
    @classmethod
    def _check_typeface(cls, value):
        if value is not None and not Path(value).exists():
            raise ValueError(f"Font file not found: {value}")
        return value

    def to_style(self) -> TimerStyle:
        return TimerStyle(
            mode=self.mode,
            position_x=self.position_x,
            position_y=self.position_y,
            point_size=self.point_size,
            fill_color=self.fill_color,
            timer_format=self.timer_format,
            typeface=self.typeface,
            custom_font_name=Path(self.typeface).name if self.typeface else None,
            outline_enabled=self.outline_enabled,
            outline_width=self.outline_width,
            outline_color=self.outline_color,
        )


class MarkersConfig(BaseModel):
    """Run range and load segments, in frames"""
    start_frame: int = Field(0, ge=0)
    end_frame: Optional[int] = Field(None, ge=0)
    loads: List[Tuple[int, int]] = Field(default_factory=list)


class OverlayConfig(BaseModel):
    style: StyleConfig = Field(default_factory=StyleConfig)
    markers: MarkersConfig = Field(default_factory=MarkersConfig)


def load_config(config_path: Union[str, Path]) -> OverlayConfig:
    """
    Read and validate a YAML config file.

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or fails validation
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    try:
        config = OverlayConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {config_path}: {e}") from e

    logger.info(f"Loaded config from {config_path}")
    return config


def apply_markers(session, markers: MarkersConfig) -> None:
    """Apply configured run range and loads to a session with a loaded video"""
    if markers.end_frame is not None:
        session.set_end_frame(markers.end_frame)
    session.set_start_frame(markers.start_frame)
    for start, end in markers.loads:
        session.add_load_segment(start, end)
    logger.info(
        f"Markers applied: start={session.snapshot().start_frame}, "
        f"end={session.snapshot().end_frame}, loads={len(markers.loads)}"
    )
