"""
Subtitle generation timed against narration length.

- short: word-wrapped lines of at most 20 characters
- long: one line per sentence, sentences over 80 characters wrapped
- each line is shown for a share of the narration proportional to its length
"""
from __future__ import annotations

import logging
import re
from pathlib import Path

from contentlab.domain import SubtitleFile, SubtitleResult
from contentlab.services.collaborators import SubtitleGenerator, SubtitlePersister
from contentlab.services.content_config import get_content_config

logger = logging.getLogger(__name__)

SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")


def _wrap_words(text: str, limit: int) -> list[str]:
    lines: list[str] = []
    current = ""
    for word in text.split():
        if current and len(current) + 1 + len(word) > limit:
            lines.append(current)
            current = word
        else:
            current = f"{current} {word}".strip()
    if current:
        lines.append(current)
    return lines


def split_subtitle_lines(script: str, fmt: str) -> list[str]:
    config = get_content_config(fmt)
    flat = re.sub(r"\n+", " ", script).strip()
    if not flat:
        return []
    if fmt == "short":
        return _wrap_words(flat, config.subtitle_max_line_chars)
    lines: list[str] = []
    for sentence in SENTENCE_SPLIT_RE.split(flat):
        sentence = sentence.strip()
        if not sentence:
            continue
        if len(sentence) > config.subtitle_max_line_chars:
            lines.extend(_wrap_words(sentence, config.subtitle_max_line_chars))
        else:
            lines.append(sentence)
    return lines


def _format_time(seconds: float, separator: str) -> str:
    total_ms = int(round(max(seconds, 0.0) * 1000))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, millis = divmod(rem, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}{separator}{millis:03d}"


def format_srt_time(seconds: float) -> str:
    """Format seconds to SRT time format (00:00:00,000)."""
    return _format_time(seconds, ",")


def format_vtt_time(seconds: float) -> str:
    return _format_time(seconds, ".")


def timed_lines(script: str, duration: float, fmt: str) -> list[tuple[float, float, str]]:
    lines = split_subtitle_lines(script, fmt)
    total_chars = sum(len(line) for line in lines)
    if not total_chars:
        return []
    cues = []
    current = 0.0
    for line in lines:
        end = current + (len(line) / total_chars) * duration
        cues.append((current, end, line))
        current = end
    return cues


def count_cues(content: str) -> int:
    return sum(1 for block in content.split("\n\n") if "-->" in block)


class SrtSubtitleGenerator(SubtitleGenerator):
    def __init__(self, subtitle_format: str = "srt"):
        if subtitle_format not in ("srt", "vtt"):
            raise ValueError(f"Unsupported subtitle format: {subtitle_format}")
        self.subtitle_format = subtitle_format

    def generate(self, script: str, duration: float, fmt: str) -> SubtitleResult:
        cues = timed_lines(script, duration, fmt)
        if self.subtitle_format == "vtt":
            blocks = ["WEBVTT\n"] + [
                f"{format_vtt_time(start)} --> {format_vtt_time(end)}\n{text}\n"
                for start, end, text in cues
            ]
        else:
            blocks = [
                f"{i}\n{format_srt_time(start)} --> {format_srt_time(end)}\n{text}\n"
                for i, (start, end, text) in enumerate(cues, 1)
            ]
        return SubtitleResult(
            content="\n".join(blocks), line_count=len(cues), subtitle_format=self.subtitle_format
        )


class FileSubtitlePersister(SubtitlePersister):
    async def persist(
        self, content: str, fmt: str, *, output_dir: Path, subtitle_format: str = "srt"
    ) -> SubtitleFile:
        output_dir.mkdir(parents=True, exist_ok=True)
        file_name = f"subtitle{get_content_config(fmt).file_suffix}.{subtitle_format}"
        path = output_dir / file_name
        path.write_text(content, encoding="utf-8")
        line_count = count_cues(content)
        logger.info(f"[subtitles] Saved {path} ({line_count} cues)")
        return SubtitleFile(
            file_path=str(path),
            file_name=file_name,
            file_size=path.stat().st_size,
            line_count=line_count,
            subtitle_format=subtitle_format,
        )
