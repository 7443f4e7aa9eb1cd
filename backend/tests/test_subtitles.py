"""
Tests for subtitle splitting, timing and file output.
"""
import pytest

from contentlab.services.subtitles import (
    FileSubtitlePersister,
    SrtSubtitleGenerator,
    count_cues,
    format_srt_time,
    format_vtt_time,
    split_subtitle_lines,
    timed_lines,
)

SCRIPT = (
    "Sourdough is older than you think. "
    "Wild yeast and lactic bacteria share the same jar, and they compete for sugar every single hour of the day! "
    "Why does that matter?"
)


class TestSplitting:

    def test_short_lines_fit_limit(self):
        lines = split_subtitle_lines(SCRIPT, "short")
        assert lines
        assert all(len(line) <= 20 for line in lines)
        assert " ".join(lines) == " ".join(SCRIPT.split())

    def test_long_splits_on_sentences_and_wraps(self):
        lines = split_subtitle_lines(SCRIPT, "long")
        assert lines[0] == "Sourdough is older than you think."
        assert lines[-1] == "Why does that matter?"
        assert all(len(line) <= 80 for line in lines)
        assert len(lines) == 4

    def test_empty_script(self):
        assert split_subtitle_lines("  \n ", "long") == []
        assert timed_lines("", 10.0, "short") == []


class TestTiming:

    @pytest.mark.parametrize("seconds,expected", [
        (0, "00:00:00,000"),
        (1.5, "00:00:01,500"),
        (61.25, "00:01:01,250"),
        (3599.9996, "01:00:00,000"),
    ])
    def test_srt_time(self, seconds, expected):
        assert format_srt_time(seconds) == expected

    def test_vtt_time_uses_dot(self):
        assert format_vtt_time(3725.042) == "01:02:05.042"

    def test_cues_cover_duration_proportionally(self):
        cues = timed_lines(SCRIPT, 30.0, "long")
        assert cues[0][0] == 0.0
        assert cues[-1][1] == pytest.approx(30.0)
        for (_, end, _), (start, _, _) in zip(cues, cues[1:]):
            assert start == pytest.approx(end)
        total_chars = sum(len(text) for _, _, text in cues)
        first_start, first_end, first_text = cues[0]
        assert first_end - first_start == pytest.approx(30.0 * len(first_text) / total_chars)


class TestGenerator:

    def test_srt_output(self):
        result = SrtSubtitleGenerator().generate("One. Two.", 4.0, "long")
        assert result.line_count == 2
        assert result.content.startswith("1\n00:00:00,000 --> 00:00:02,000\nOne.\n")
        assert "2\n00:00:02,000 --> 00:00:04,000\nTwo.\n" in result.content
        assert count_cues(result.content) == 2

    def test_vtt_output(self):
        result = SrtSubtitleGenerator("vtt").generate("One. Two.", 4.0, "long")
        assert result.content.startswith("WEBVTT\n")
        assert "00:00:02.000 --> 00:00:04.000" in result.content
        assert count_cues(result.content) == 2

    def test_unsupported_format(self):
        with pytest.raises(ValueError):
            SrtSubtitleGenerator("ass")


class TestPersister:

    async def test_writes_file_with_format_suffix(self, tmp_path):
        content = SrtSubtitleGenerator().generate(SCRIPT, 20.0, "short").content
        saved = await FileSubtitlePersister().persist(content, "short", output_dir=tmp_path / "subs")
        assert saved.file_name == "subtitle_shorts.srt"
        assert (tmp_path / "subs" / "subtitle_shorts.srt").read_text(encoding="utf-8") == content
        assert saved.line_count == count_cues(content)
        assert saved.file_size > 0

    async def test_long_has_no_suffix(self, tmp_path):
        saved = await FileSubtitlePersister().persist("", "long", output_dir=tmp_path, subtitle_format="vtt")
        assert saved.file_name == "subtitle.vtt"
        assert saved.line_count == 0
