"""
FFmpeg video composition: image slideshow + narration + burned subtitles.

- images share the narration length equally (concat demuxer)
- Ken Burns zoom, faster for short format
- H.264 / AAC, 30 fps, yuv420p, faststart
"""
from __future__ import annotations

import asyncio
import logging
import math
import shutil
import time
from pathlib import Path
from typing import Callable

from contentlab.domain import ComposedVideo
from contentlab.services.collaborators import VideoCompositor
from contentlab.services.content_config import get_content_config

logger = logging.getLogger(__name__)

FPS = 30
VIDEO_CODEC = "H.264"

SUBTITLE_STYLES = {
    "short": "FontName=Arial,FontSize=56,PrimaryColour=&H00FFFFFF,OutlineColour=&H00000000,"
             "BorderStyle=3,Outline=2,Shadow=1,Alignment=10,MarginV=100",
    "long": "FontName=Arial,FontSize=36,PrimaryColour=&H00FFFFFF,OutlineColour=&H80000000,"
            "BorderStyle=4,Outline=0,Shadow=0,Alignment=2,MarginV=30",
}


async def run_cmd(cmd: list[str], log_cb: Callable[[str], None] = logger.debug) -> tuple[str, str]:
    """Run a command and return stdout/stderr; kill it if the caller is cancelled."""
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await proc.communicate()
    except asyncio.CancelledError:
        if proc.returncode is None:
            proc.kill()
            await proc.wait()
        raise
    stdout_dec = stdout.decode(errors="ignore") if stdout else ""
    stderr_dec = stderr.decode(errors="ignore") if stderr else ""

    if stdout_dec:
        log_cb(stdout_dec[:1000])
    if stderr_dec:
        log_cb(stderr_dec[-1000:])

    if proc.returncode != 0:
        raise RuntimeError(
            f"Command failed with code {proc.returncode}: {' '.join(cmd[:5])}...; "
            f"stderr: {stderr_dec[-400:]}"
        )
    return stdout_dec, stderr_dec


def _escape_filter_path(path: str) -> str:
    return path.replace("\\", "/").replace(":", "\\:").replace("'", "\\'")


def build_filter(fmt: str, image_duration: float, subtitle_path: str | None) -> str:
    width, height = get_content_config(fmt).video_size
    frames = math.ceil(image_duration * FPS)
    if fmt == "short":
        scale, zoom = 1.2, "min(zoom+0.002,1.2)"
    else:
        scale, zoom = 1.1, "if(lte(zoom,1.0),1.05,max(1.001,zoom-0.0005))"
    chain = (
        f"[0:v]scale={int(width * scale)}:{int(height * scale)},"
        f"zoompan=z='{zoom}':x='iw/2-(iw/zoom/2)':y='ih/2-(ih/zoom/2)':"
        f"d={frames}:s={width}x{height}:fps={FPS}"
    )
    if subtitle_path:
        chain += f",subtitles='{_escape_filter_path(subtitle_path)}':force_style='{SUBTITLE_STYLES[fmt]}'"
    return chain + "[v]"


def build_concat_list(images: list[str], image_duration: float) -> str:
    lines = []
    for img in images:
        lines.append(f"file '{Path(img).resolve()}'")
        lines.append(f"duration {image_duration:.3f}")
    # concat demuxer ignores the last duration unless the file is repeated
    lines.append(f"file '{Path(images[-1]).resolve()}'")
    return "\n".join(lines) + "\n"


class FFmpegVideoCompositor(VideoCompositor):
    def __init__(self, ffmpeg_path: str = "ffmpeg", ffprobe_path: str = "ffprobe"):
        self.ffmpeg_path = ffmpeg_path
        self.ffprobe_path = ffprobe_path

    async def check_installation(self) -> bool:
        if shutil.which(self.ffmpeg_path) is None:
            return False
        try:
            await run_cmd([self.ffmpeg_path, "-version"])
        except (OSError, RuntimeError) as e:
            logger.warning(f"[ffmpeg] Not usable: {e}")
            return False
        return True

    async def probe_duration(self, path: str) -> float:
        stdout, _ = await run_cmd([
            self.ffprobe_path, "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            path,
        ])
        return float(stdout.strip())

    async def compose(
        self,
        images: list[str],
        audio_path: str,
        subtitle_path: str | None,
        fmt: str,
        *,
        output_dir: Path,
    ) -> ComposedVideo:
        if not images:
            raise ValueError("compose requires at least one image")
        config = get_content_config(fmt)
        output_dir.mkdir(parents=True, exist_ok=True)
        file_name = f"final{config.file_suffix}.mp4"
        output_path = output_dir / file_name

        temp_dir = output_dir / f".tmp_{int(time.time() * 1000)}"
        temp_dir.mkdir(parents=True, exist_ok=True)
        try:
            audio_duration = await self.probe_duration(audio_path)
            image_duration = audio_duration / len(images)

            list_path = temp_dir / "images.txt"
            list_path.write_text(build_concat_list(images, image_duration), encoding="utf-8")

            cmd = [
                self.ffmpeg_path, "-y",
                "-f", "concat", "-safe", "0", "-i", str(list_path),
                "-i", audio_path,
                "-filter_complex", build_filter(fmt, image_duration, subtitle_path),
                "-map", "[v]", "-map", "1:a",
                "-c:v", "libx264", "-preset", "fast", "-crf", "23",
                "-c:a", "aac", "-b:a", "128k",
                "-r", str(FPS),
                "-pix_fmt", "yuv420p",
                "-movflags", "+faststart",
                "-shortest",
                str(output_path),
            ]
            logger.info(f"[ffmpeg] Composing {len(images)} images -> {output_path}")
            await run_cmd(cmd)

            duration = await self.probe_duration(str(output_path))
            return ComposedVideo(
                file_path=str(output_path),
                file_name=file_name,
                file_size=output_path.stat().st_size,
                duration=duration,
            )
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)
