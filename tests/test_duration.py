"""Tests for the duration module."""
import json
import pytest
from unittest.mock import patch
from audiogram.duration import resolve_duration_in_frames, setup_composition
from audiogram.models import CaptionError, CompositionConfig, DurationError


class TestResolveDuration:
    """Tests for resolve_duration_in_frames."""

    def test_frames(self):
        """Test the frame count of a 3 second file at 30 fps."""
        assert resolve_duration_in_frames("a.mp3", 0, 30, probe=lambda p: 3.0) == 90

    def test_offset(self):
        """Test that the offset is subtracted before converting."""
        assert resolve_duration_in_frames("a.mp3", 0.5, 30, probe=lambda p: 3.0) == 75

    def test_floors(self):
        """Test that partial frames are dropped."""
        assert resolve_duration_in_frames("a.mp3", 0, 30, probe=lambda p: 3.05) == 91

    def test_unreadable(self):
        """Test that an unknown duration is fatal."""
        with pytest.raises(DurationError):
            resolve_duration_in_frames("a.mp3", 0, 30, probe=lambda p: None)

    def test_invalid_values(self):
        """Test that zero and non-finite durations are fatal."""
        for value in (0.0, -1.0, float("nan"), float("inf")):
            with pytest.raises(DurationError):
                resolve_duration_in_frames("a.mp3", 0, 30, probe=lambda p, v=value: v)

    def test_offset_past_end(self):
        """Test that an offset past the end leaves no frames."""
        with pytest.raises(DurationError):
            resolve_duration_in_frames("a.mp3", 5.0, 30, probe=lambda p: 3.0)

    @patch('audiogram.duration.probe_duration_seconds', return_value=2.0)
    def test_default_probe(self, mock_probe):
        """Test that ffprobe is used when no probe is given."""
        assert resolve_duration_in_frames("a.mp3", 0, 30) == 60
        mock_probe.assert_called_once_with("a.mp3")


class TestSetupComposition:
    """Tests for setup_composition."""

    def test_setup(self, tmp_path):
        """Test the resolved composition with captions."""
        p = tmp_path / "captions.json"
        p.write_text(json.dumps([{"text": "hi", "startMs": 0, "endMs": 500}]), encoding="utf-8")
        cfg = CompositionConfig(audio_file="a.mp3", captions_file=str(p))

        comp = setup_composition(cfg, probe=lambda path: 3.0, quiet=True)

        assert comp.config is cfg
        assert comp.duration_in_frames == 90
        assert len(comp.captions) == 1

    def test_no_captions(self):
        """Test a composition without captions."""
        comp = setup_composition(CompositionConfig(audio_file="a.mp3"), probe=lambda path: 1.0, quiet=True)
        assert comp.captions == ()

    def test_bad_captions(self, tmp_path):
        """Test that a broken captions file aborts setup."""
        cfg = CompositionConfig(audio_file="a.mp3", captions_file=str(tmp_path / "missing.json"))
        with pytest.raises(CaptionError):
            setup_composition(cfg, probe=lambda path: 3.0, quiet=True)
