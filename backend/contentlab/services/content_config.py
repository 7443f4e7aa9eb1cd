"""
Per-format generation parameters (short = vertical, long = horizontal).
"""
from __future__ import annotations

from dataclasses import dataclass

FORMATS = ("short", "long")


@dataclass(frozen=True)
class ContentConfig:
    format: str
    aspect_ratio: str
    video_resolution: str
    max_duration_sec: int
    script_max_length: int
    image_count: int
    image_resolution: str
    tts_speed: float
    tts_chars_per_minute: int
    subtitle_max_line_chars: int
    subtitle_font_size: int
    subtitle_position: str

    @property
    def video_size(self) -> tuple[int, int]:
        width, height = self.video_resolution.split("x")
        return int(width), int(height)

    @property
    def file_suffix(self) -> str:
        return "_shorts" if self.format == "short" else ""


SHORT = ContentConfig(
    format="short",
    aspect_ratio="9:16",
    video_resolution="1080x1920",
    max_duration_sec=60,
    script_max_length=300,
    image_count=4,
    image_resolution="1024x1792",
    tts_speed=1.15,
    tts_chars_per_minute=350,
    subtitle_max_line_chars=20,
    subtitle_font_size=56,
    subtitle_position="center",
)

LONG = ContentConfig(
    format="long",
    aspect_ratio="16:9",
    video_resolution="1920x1080",
    max_duration_sec=900,
    script_max_length=3000,
    image_count=8,
    image_resolution="1792x1024",
    tts_speed=1.0,
    tts_chars_per_minute=300,
    subtitle_max_line_chars=80,
    subtitle_font_size=36,
    subtitle_position="bottom",
)


def get_content_config(fmt: str) -> ContentConfig:
    if fmt not in FORMATS:
        raise ValueError(f"Unknown content format: {fmt!r}")
    return SHORT if fmt == "short" else LONG
