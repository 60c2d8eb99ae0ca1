"""Tests for the visualizer module."""
import numpy as np
import pytest
from audiogram.audio import AudioData
from audiogram.models import OscilloscopeVisualizer, SpectrumVisualizer
from audiogram.visualizer import (
    OscilloscopeStrategy,
    SpectrumStrategy,
    create_smooth_svg_path,
    js_round,
    make_visualizer,
    mirror_bars,
    posterize_frame,
    sample_oscilloscope,
    sample_spectrum,
    visualize_spectrum,
)


def noise(seconds=2, rate=44100):
    rng = np.random.default_rng(0)
    return AudioData(rng.uniform(-1, 1, seconds * rate).astype(np.float32), rate)


def sine(freq, seconds=4, rate=1024):
    t = np.arange(seconds * rate) / rate
    return AudioData(np.sin(2 * np.pi * freq * t).astype(np.float32), rate)


class TestPosterize:
    """Tests for posterize_frame and js_round."""

    def test_floor(self):
        """Test that frames snap down to multiples of the factor."""
        assert posterize_frame(9, 3) == 9
        assert posterize_frame(10, 3) == 9
        assert posterize_frame(11, 3) == 9
        assert posterize_frame(12, 3) == 12

    def test_factor_one(self):
        """Test that a factor of 1 leaves frames unchanged."""
        assert posterize_frame(11, 1) == 11

    def test_js_round(self):
        """Test half-up rounding."""
        assert js_round(32.5) == 33
        assert js_round(2.4) == 2
        assert js_round(-0.5) == 0


class TestOscilloscope:
    """Tests for sample_oscilloscope."""

    def sample(self, audio, frame, **kw):
        args = dict(fps=30, width=980, amplitude=4.0, x_offset=50)
        args.update(kw)
        return sample_oscilloscope(audio, frame, 0.1, 3, 64, **args)

    def test_posterized_steps(self):
        """Test that frames 10 and 11 share samples and frame 12 moves on."""
        audio = noise()
        assert self.sample(audio, 10) == self.sample(audio, 11)
        assert self.sample(audio, 12) != self.sample(audio, 11)

    def test_x_spacing(self):
        """Test that points span the padded width."""
        points = self.sample(noise(), 30)
        assert len(points) == 64
        assert points[0][0] == pytest.approx(50)
        assert points[-1][0] == pytest.approx(1030)

    def test_silence_on_baseline(self):
        """Test that silence draws a flat line at the baseline."""
        audio = AudioData(np.zeros(44100, dtype=np.float32), 44100)
        assert all(y == 60 for _, y in self.sample(audio, 15))

    def test_no_audio(self):
        """Test that missing audio gives no points."""
        assert self.sample(None, 10) == []


class TestSpectrum:
    """Tests for the spectrum sampling."""

    def test_sine_peak(self):
        """Test that a full-scale sine peaks at its bucket with magnitude ~1."""
        mags = visualize_spectrum(sine(100), 30, 30, 512)
        assert len(mags) == 512
        assert int(np.argmax(mags)) == 100
        assert mags[100] == pytest.approx(1.0, rel=0.05)

    def test_mirror_bars(self):
        """Test mirroring around the first value."""
        assert mirror_bars([1, 2, 3]) == [3, 2, 1, 2, 3]
        assert mirror_bars([]) == []

    def test_mirrored_palindrome(self):
        """Test that mirrored bars are a palindrome of length 2k-1."""
        bars = sample_spectrum(noise(), 30, 256, 0, 65, True, fps=30)
        assert len(bars) == 2 * 33 - 1
        assert bars == bars[::-1]

    def test_unmirrored(self):
        """Test the bar count without mirroring."""
        bars = sample_spectrum(noise(), 30, 256, 4, 20, False, fps=30)
        assert len(bars) == 20
        assert all(b >= 0 for b in bars)

    def test_scale(self):
        """Test that bar height is scale * sqrt(magnitude)."""
        audio = sine(100)
        bars = sample_spectrum(audio, 30, 512, 100, 1, False, fps=30, scale=500.0)
        mag = visualize_spectrum(audio, 30, 30, 512)[100]
        assert bars[0] == pytest.approx(500.0 * np.sqrt(mag))

    def test_no_audio(self):
        """Test that missing audio gives no bars."""
        assert sample_spectrum(None, 30, 256, 0, 65, True, fps=30) == []


class TestSvgPath:
    """Tests for create_smooth_svg_path."""

    def test_empty(self):
        """Test that no points give an empty path."""
        assert create_smooth_svg_path([]) == ""

    def test_single_point(self):
        """Test a path with only a move."""
        assert create_smooth_svg_path([(1, 2)]) == "M 1.000,2.000"

    def test_segments(self):
        """Test that each further point adds one cubic segment."""
        path = create_smooth_svg_path([(0, 60), (10, 70), (20, 60)])
        assert path.startswith("M 0.000,60.000")
        assert path.count("C ") == 2
        assert path.endswith("20.000,60.000")

    def test_straight_line_controls(self):
        """Test that collinear points keep controls on the line."""
        path = create_smooth_svg_path([(0, 0), (10, 0), (20, 0)])
        assert "C 2.000,0.000 6.000,0.000 10.000,0.000" in path


class TestStrategies:
    """Tests for make_visualizer and the strategies."""

    def test_choose(self):
        """Test that descriptors pick their strategy."""
        assert isinstance(make_visualizer(OscilloscopeVisualizer(), 30, 1080), OscilloscopeStrategy)
        assert isinstance(make_visualizer(SpectrumVisualizer(), 30, 1080), SpectrumStrategy)

    def test_unknown(self):
        """Test that other descriptors are rejected."""
        with pytest.raises(TypeError):
            make_visualizer({"type": "spectrum"}, 30, 1080)

    def test_oscilloscope_shape(self):
        """Test the oscilloscope output shape."""
        shape = make_visualizer(OscilloscopeVisualizer(color="#FF0000"), 30, 1080).sample(noise(), 30)
        assert shape.kind == "oscilloscope"
        assert shape.color == "#FF0000"
        assert len(shape.points) == 64
        assert shape.path.startswith("M ")
        assert shape.points[0][0] == pytest.approx(50)
        assert shape.points[-1][0] == pytest.approx(1030)

    def test_spectrum_shape(self):
        """Test the spectrum output shape."""
        shape = make_visualizer(SpectrumVisualizer(), 30, 1080).sample(noise(), 30)
        assert shape.kind == "spectrum"
        assert len(shape.bars) == 65
        assert shape.points == ()

    def test_no_audio(self):
        """Test that missing audio gives an empty shape."""
        assert make_visualizer(OscilloscopeVisualizer(), 30, 1080).sample(None, 30).empty
        assert make_visualizer(SpectrumVisualizer(), 30, 1080).sample(None, 30).empty
