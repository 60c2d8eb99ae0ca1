"""Tests for the output_writers module."""
import json
import pytest
from audiogram.fonts import FontReadinessGate, monospace_font_loader
from audiogram.models import Caption, CompositionConfig, FrameOutput, ResolvedComposition
from audiogram.output_writers import (
    atomic_write_text,
    frame_to_jsonable,
    timeline_to_jsonable,
    write_frames_json,
    write_frames_jsonl,
)
from audiogram.render import build_context, render_frame, render_frames


@pytest.fixture
def context():
    comp = ResolvedComposition(
        CompositionConfig(audio_file="talk.mp3", media=("a.jpg", "b.mp4"), title_text="Title"),
        60,
        (Caption("hi", 0, 500),),
    )
    return build_context(comp, font_gate=FontReadinessGate(monospace_font_loader(18), quiet=True), quiet=True)


class TestFrameToJsonable:
    """Tests for frame_to_jsonable."""

    def test_minimal(self):
        """Test an empty frame."""
        d = frame_to_jsonable(FrameOutput(frame=3, time_ms=100.0))
        assert d == {"frame": 3, "time_ms": 100.0, "media": [], "captions": []}

    def test_thumbnail(self, context):
        """Test that frame 0 carries the title card."""
        d = frame_to_jsonable(render_frame(context, 0))
        assert d["thumbnail"]["title_text"] == "Title"
        assert d["thumbnail"]["media"] == "a.jpg"
        assert d["media"] == []

    def test_media_and_captions(self, context):
        """Test media layers and caption words."""
        d = frame_to_jsonable(render_frame(context, 40))
        assert "thumbnail" not in d
        assert d["media"][0]["locator"] == "b.mp4"
        assert d["media"][0]["video_start_frame"] == 30
        assert d["captions"][0][0]["text"] == "hi"
        assert d["captions"][0][0]["opacity"] == 1.0

    def test_serializable(self, context):
        """Test that every frame serializes to JSON."""
        for out in render_frames(context):
            json.dumps(frame_to_jsonable(out))


class TestTimeline:
    """Tests for timeline_to_jsonable."""

    def test_timeline(self, context):
        """Test the composition-level data."""
        d = timeline_to_jsonable(context.composition, context.timings)
        assert d["duration_in_frames"] == 60
        assert d["fps"] == 30
        assert d["captions"] == 1
        assert d["config"]["audio_file"] == "talk.mp3"
        assert [(t["start_frame"], t["end_frame"]) for t in d["media_timings"]] == [(1, 30), (30, 60)]
        json.dumps(d)


class TestWriters:
    """Tests for the file writers."""

    def test_atomic_write(self, tmp_path):
        """Test that text is written and no temp file is left."""
        p = tmp_path / "sub" / "out.json"
        atomic_write_text(p, "{}")
        assert p.read_text(encoding="utf-8") == "{}"
        assert not (tmp_path / "sub" / "out.json.tmp").exists()

    def test_jsonl(self, tmp_path, context):
        """Test one JSON object per frame."""
        p = tmp_path / "out.frames.jsonl"
        count = write_frames_jsonl(render_frames(context, 10, 20), p)
        lines = p.read_text(encoding="utf-8").splitlines()
        assert count == 10
        assert len(lines) == 10
        assert [json.loads(line)["frame"] for line in lines] == list(range(10, 20))

    def test_json(self, tmp_path, context):
        """Test the single-document format."""
        p = tmp_path / "out.frames.json"
        count = write_frames_json(
            render_frames(context),
            p,
            composition=context.composition,
            timings=context.timings,
            tool_version="9.9.9",
        )
        data = json.loads(p.read_text(encoding="utf-8"))
        assert count == 60
        assert data["tool"] == {"name": "audiogram", "version": "9.9.9"}
        assert data["timeline"]["duration_in_frames"] == 60
        assert len(data["frames"]) == 60
