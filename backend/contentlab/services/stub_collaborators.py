"""
Deterministic stand-ins for the AI/media providers.

They need no credentials and produce plausible placeholder output (valid
PNG and WAV files) so the pipeline runs end to end. Replace them through
`set_collaborators` to connect real models.
"""
from __future__ import annotations

import re
import wave
from collections import Counter
from pathlib import Path

from PIL import Image

from contentlab.domain import (
    ImageResult,
    NarrationResult,
    ScriptResult,
    ScriptSections,
    SentimentResult,
    SummaryResult,
)
from contentlab.services.collaborators import (
    ImagePromptGenerator,
    NarrationSynthesizer,
    ScriptGenerator,
    SentimentAnalyzer,
    Summarizer,
)
from contentlab.services.content_config import get_content_config
from contentlab.services.image_batch import ConcurrentImageBatchGenerator

POSITIVE_WORDS = {"good", "great", "love", "best", "amazing", "thanks", "helpful", "awesome", "useful"}
NEGATIVE_WORDS = {"bad", "worst", "hate", "boring", "wrong", "fake", "clickbait", "useless"}

WORD_RE = re.compile(r"[\w']+")


def _words(text: str) -> list[str]:
    return [w.lower() for w in WORD_RE.findall(text)]


class StubSentimentAnalyzer(SentimentAnalyzer):
    """Keyword-count sentiment: a comment is positive/negative by word hits."""

    async def analyze(self, comments: list[str], fmt: str) -> SentimentResult:
        positive = negative = 0
        pos_hits: Counter[str] = Counter()
        neg_hits: Counter[str] = Counter()
        for comment in comments:
            words = _words(comment)
            p = [w for w in words if w in POSITIVE_WORDS]
            n = [w for w in words if w in NEGATIVE_WORDS]
            pos_hits.update(p)
            neg_hits.update(n)
            if len(p) > len(n):
                positive += 1
            elif len(n) > len(p):
                negative += 1
        return SentimentResult(
            positive_count=positive,
            negative_count=negative,
            positive_summary=f"{positive} of {len(comments)} comments are positive",
            negative_summary=f"{negative} of {len(comments)} comments are negative",
            positive_keywords=[w for w, _ in pos_hits.most_common(5)],
            negative_keywords=[w for w, _ in neg_hits.most_common(5)],
            improvement_suggestions="Address the most common complaints early in the video." if negative else "",
            model="stub-v1",
        )


class StubSummarizer(Summarizer):
    async def summarize(self, transcript: str, fmt: str) -> SummaryResult:
        sentences = [s.strip() for s in re.split(r"(?<=[.!?])\s+", transcript.strip()) if s.strip()]
        depth = 2 if fmt == "short" else 4
        key_points = sentences[:depth]
        return SummaryResult(
            one_line_summary=sentences[0] if sentences else transcript[:120],
            key_points=key_points,
            detailed_summary=" ".join(sentences[: depth * 2]),
            context=None,
        )


class StubScriptGenerator(ScriptGenerator):
    async def generate(
        self,
        summary: SummaryResult,
        sentiment: SentimentResult,
        fmt: str,
        audience: str | None = None,
    ) -> ScriptResult:
        config = get_content_config(fmt)
        topic = summary.one_line_summary
        who = audience or "everyone"
        points = " ".join(f"{p.rstrip('.')}." for p in summary.key_points) or f"Here is what matters about {topic}."
        sections = ScriptSections(
            hook=f"Did you know this about {topic}?",
            intro=f"This one is for {who}.",
            body=points,
            conclusion="Follow for more." if fmt == "short" else "Thanks for watching, see you in the next video.",
        )
        full = " ".join([sections.hook, sections.intro, sections.body, sections.conclusion])
        full = full[: config.script_max_length]
        estimated = max(1, round(len(full) / config.tts_chars_per_minute * 60))
        return ScriptResult(sections=sections, full_script=full, estimated_duration=estimated)


class StubImagePromptGenerator(ImagePromptGenerator):
    async def generate_prompts(self, script: str, fmt: str) -> list[str]:
        config = get_content_config(fmt)
        sentences = [s for s in re.split(r"(?<=[.!?])\s+", script.strip()) if s] or [script]
        return [
            f"{config.aspect_ratio} illustration: {sentences[i % len(sentences)][:200]}"
            for i in range(config.image_count)
        ]


class StubImageBatchGenerator(ConcurrentImageBatchGenerator):
    """Writes a solid-colour PNG per prompt at 1/8 of the target resolution."""

    async def generate_one(self, prompt: str, index: int, fmt: str, output_dir: Path) -> ImageResult:
        width, height = (int(x) // 8 for x in get_content_config(fmt).image_resolution.split("x"))
        shade = (37 * (index + 1)) % 256
        file_name = f"image_{index:02d}.png"
        path = output_dir / file_name
        Image.new("RGB", (width, height), (shade, 96, 255 - shade)).save(path, format="PNG")
        return ImageResult(
            index=index,
            prompt=prompt,
            file_path=str(path),
            file_name=file_name,
            file_size=path.stat().st_size,
        )


class StubNarrationSynthesizer(NarrationSynthesizer):
    """Silent mono WAV whose length follows the reading-speed estimate."""

    SAMPLE_RATE = 8000

    def __init__(self, voice_id: str | None = None):
        self.voice_id = voice_id

    async def synthesize(self, script: str, fmt: str, *, output_dir: Path) -> NarrationResult:
        config = get_content_config(fmt)
        duration = max(1.0, round(len(script) / config.tts_chars_per_minute * 60, 2))
        output_dir.mkdir(parents=True, exist_ok=True)
        file_name = f"narration{config.file_suffix}.wav"
        path = output_dir / file_name
        with wave.open(str(path), "wb") as wav:
            wav.setnchannels(1)
            wav.setsampwidth(2)
            wav.setframerate(self.SAMPLE_RATE)
            wav.writeframes(b"\x00\x00" * int(duration * self.SAMPLE_RATE))
        return NarrationResult(
            file_path=str(path),
            file_name=file_name,
            file_size=path.stat().st_size,
            duration=duration,
            provider="stub",
            voice_id=self.voice_id,
        )
