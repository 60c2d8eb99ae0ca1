"""Tests for the audio module."""
import subprocess
import numpy as np
import pytest
from unittest.mock import MagicMock, patch
from audiogram.audio import AudioData, WindowedAudioSource, decode_audio_window


class TestAudioData:
    """Tests for AudioData."""

    def test_read_inside(self):
        """Test reading samples inside the data."""
        data = AudioData(np.arange(5, dtype=np.float32), 100)
        assert data.read(1, 3).tolist() == [1.0, 2.0, 3.0]

    def test_read_zero_pads(self):
        """Test that reads past either end are zero filled."""
        data = AudioData(np.arange(5, dtype=np.float32), 100)
        assert data.read(-2, 4).tolist() == [0.0, 0.0, 0.0, 1.0]
        assert data.read(3, 4).tolist() == [3.0, 4.0, 0.0, 0.0]
        assert data.read(10, 2).tolist() == [0.0, 0.0]

    def test_index_at_offset(self):
        """Test that absolute times account for the window offset."""
        data = AudioData(np.zeros(1000, dtype=np.float32), 100, offset_seconds=10.0)
        assert data.index_at(10.5) == 50
        assert data.duration_seconds == 10.0


class TestDecodeAudioWindow:
    """Tests for decode_audio_window."""

    @patch('audiogram.audio.ffmpeg_ok', return_value=False)
    def test_missing_ffmpeg(self, mock_ok):
        """Test that a missing ffmpeg raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            decode_audio_window("a.wav")

    @patch('audiogram.audio.run_cmd_bytes')
    @patch('audiogram.audio.ffmpeg_ok', return_value=True)
    def test_decodes_pcm(self, mock_ok, mock_run):
        """Test that ffmpeg's f32le output becomes a float array."""
        raw = np.array([0.5, -0.25], dtype="<f4").tobytes()
        mock_run.return_value = (0, raw, "")

        samples = decode_audio_window("a.wav", 10.0, 30.0, 44100)

        assert samples.tolist() == [0.5, -0.25]
        cmd = mock_run.call_args[0][0]
        assert cmd[0] == "ffmpeg"
        assert "-ss" in cmd
        assert "-t" in cmd
        assert cmd[cmd.index("-f") + 1] == "f32le"
        assert cmd[cmd.index("-ac") + 1] == "1"

    @patch('audiogram.audio.run_cmd_bytes')
    @patch('audiogram.audio.ffmpeg_ok', return_value=True)
    def test_full_file(self, mock_ok, mock_run):
        """Test that decoding from 0 with no duration omits seeking."""
        mock_run.return_value = (0, b"", "")
        decode_audio_window("a.mp3")
        cmd = mock_run.call_args[0][0]
        assert "-ss" not in cmd
        assert "-t" not in cmd

    @patch('audiogram.audio.run_cmd_bytes')
    @patch('audiogram.audio.ffmpeg_ok', return_value=True)
    def test_failure(self, mock_ok, mock_run):
        """Test that an ffmpeg failure raises CalledProcessError."""
        mock_run.return_value = (1, b"", "boom")
        with pytest.raises(subprocess.CalledProcessError):
            decode_audio_window("a.wav")


class TestWindowedAudioSource:
    """Tests for WindowedAudioSource."""

    def loader(self):
        return MagicMock(return_value=np.zeros(100, dtype=np.float32))

    def test_window_index(self):
        """Test that frames map to 10 second windows."""
        src = WindowedAudioSource("a.wav", 30, loader=self.loader())
        assert src.window_index(0) == 0
        assert src.window_index(299) == 0
        assert src.window_index(300) == 1
        assert src.window_index(750) == 2

    def test_loads_neighbouring_windows(self):
        """Test that a window is decoded with its neighbours."""
        loader = self.loader()
        src = WindowedAudioSource("a.wav", 30, loader=loader)
        data = src.data_for_frame(750)
        loader.assert_called_once_with("a.wav", 10.0, 30.0, 44100)
        assert data.offset_seconds == 10.0

    def test_first_window(self):
        """Test that the first window has no earlier neighbour."""
        loader = self.loader()
        WindowedAudioSource("a.wav", 30, loader=loader).data_for_frame(0)
        loader.assert_called_once_with("a.wav", 0.0, 20.0, 44100)

    def test_cached(self):
        """Test that frames in the same window share one decode."""
        loader = self.loader()
        src = WindowedAudioSource("a.wav", 30, loader=loader)
        assert src.data_for_frame(10) is src.data_for_frame(20)
        assert loader.call_count == 1

    def test_non_wav_loaded_once(self):
        """Test that other containers are decoded in full once."""
        loader = self.loader()
        src = WindowedAudioSource("a.mp3", 30, loader=loader)
        src.data_for_frame(10)
        src.data_for_frame(5000)
        loader.assert_called_once_with("a.mp3", 0.0, None, 44100)

    def test_failure_gives_none(self):
        """Test that a failed decode is reported as no data, once."""
        loader = MagicMock(side_effect=OSError("ffmpeg not found"))
        src = WindowedAudioSource("a.wav", 30, loader=loader, quiet=True)
        assert src.data_for_frame(10) is None
        assert src.data_for_frame(11) is None
        assert loader.call_count == 1

    def test_failed_window_survives_eviction(self):
        """Test that a failed window isn't retried after other windows fill the cache."""
        samples = np.zeros(100, dtype=np.float32)
        loader = MagicMock(side_effect=[OSError("broken pipe")] + [samples] * 10)
        src = WindowedAudioSource("a.wav", 30, loader=loader, quiet=True, max_cached=2)

        assert src.data_for_frame(10) is None
        for frame in (300, 600, 900, 1200, 1500):
            assert src.data_for_frame(frame) is not None
        assert src.data_for_frame(10) is None
        assert loader.call_count == 6

    def test_evicts_oldest_loaded_window(self):
        """Test that decoded windows are evicted oldest first."""
        loader = self.loader()
        src = WindowedAudioSource("a.wav", 30, loader=loader, max_cached=2)
        for frame in (0, 300, 600):
            src.data_for_frame(frame)
        src.data_for_frame(600)
        src.data_for_frame(0)
        assert loader.call_count == 4
