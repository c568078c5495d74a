"""Tests for audio decoding."""

import numpy as np
import pytest

from songsketch.input import AudioLoader, downmix

from generate_test_audio import A4, generate_sine_wave, write_wav

SR = 22050


class TestDownmix:
    def test_mono_passthrough(self):
        audio = np.array([0.1, -0.2, 0.3], dtype=np.float32)
        np.testing.assert_array_equal(downmix(audio), audio)

    def test_channel_average(self):
        stereo = np.array([[0.5, 0.5], [-0.5, 0.1]], dtype=np.float32)
        np.testing.assert_allclose(downmix(stereo), [0.0, 0.3], atol=1e-6)

    def test_rejects_3d(self):
        with pytest.raises(ValueError):
            downmix(np.zeros((2, 2, 2)))


class TestAudioLoader:
    def test_load_mono(self, tmp_path):
        path = write_wav(tmp_path / "a4.wav", generate_sine_wave(A4, 0.5, SR), SR)
        audio, sr = AudioLoader().load(path)

        assert sr == SR
        assert audio.ndim == 1
        assert audio.dtype == np.float32
        assert len(audio) == SR // 2

    def test_load_stereo_is_downmixed(self, tmp_path):
        tone = generate_sine_wave(A4, 0.5, SR)
        stereo = np.stack([tone, tone], axis=1)  # soundfile wants (frames, channels)
        path = write_wav(tmp_path / "stereo.wav", stereo, SR)

        audio, _ = AudioLoader().load(path)
        assert audio.ndim == 1
        np.testing.assert_allclose(audio, tone, atol=1e-3)

    def test_normalize(self, tmp_path):
        path = write_wav(tmp_path / "quiet.wav", generate_sine_wave(A4, 0.5, SR, amplitude=0.1), SR)
        audio, _ = AudioLoader(normalize=True).load(path)
        assert np.abs(audio).max() == pytest.approx(1.0, abs=1e-3)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AudioLoader().load(tmp_path / "missing.wav")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "song.xyz"
        path.write_bytes(b"\x00")
        with pytest.raises(ValueError):
            AudioLoader().load(path)

    def test_info(self, tmp_path):
        path = write_wav(tmp_path / "a4.wav", generate_sine_wave(A4, 1.0, SR), SR)
        info = AudioLoader().info(path)

        assert info["sample_rate"] == SR
        assert info["channels"] == 1
        assert info["frames"] == SR
        assert info["duration"] == pytest.approx(1.0)
