#!/usr/bin/env python3

"""
Unit tests for ffprobe output parsing and asset kind detection.
"""

# Standard Library
import json
import os
import subprocess
import sys
import types

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from forgecutlib.core.errors import ProbeError
from forgecutlib.core.project import ProbeResult
from forgecutlib.media import probe

#============================================

FFPROBE_SAMPLE = {
	'streams': [
		{'codec_type': 'audio', 'codec_name': 'aac', 'channels': 2, 'sample_rate': '48000'},
		{'codec_type': 'video', 'codec_name': 'h264', 'width': 1280, 'height': 720,
			'r_frame_rate': '30000/1001'},
	],
	'format': {'duration': '12.345678'},
}

#============================================

def test_parse_probe_output() -> None:
	"""
	Ensure the first video and audio streams are used.
	"""
	result = probe.parse_probe_output(FFPROBE_SAMPLE)
	assert result.duration == 12345678
	assert (result.width, result.height) == (1280, 720)
	assert result.fps == pytest.approx(29.97, abs=0.01)
	assert result.codec == 'h264'
	assert result.audio_channels == 2
	assert result.audio_sample_rate == 48000

#============================================

def test_parse_probe_output_audio_only() -> None:
	"""
	Ensure audio files report no picture and the audio codec.
	"""
	data = {
		'streams': [{'codec_type': 'audio', 'codec_name': 'flac', 'channels': 1,
			'sample_rate': '44100'}],
		'format': {'duration': 'N/A'},
	}
	result = probe.parse_probe_output(data)
	assert result.duration == 0
	assert not result.has_video()
	assert result.codec == 'flac'

#============================================

def test_parse_frame_rate() -> None:
	"""
	Ensure ffprobe rational frame rates convert to floats.
	"""
	assert probe.parse_frame_rate('30/1') == 30.0
	assert probe.parse_frame_rate('30000/1001') == pytest.approx(29.97, abs=0.01)
	assert probe.parse_frame_rate('0/0') == 0.0
	assert probe.parse_frame_rate('25') == 25.0
	assert probe.parse_frame_rate(None) == 0.0
	assert probe.parse_frame_rate('x/y') == 0.0

#============================================

def test_detect_asset_kind() -> None:
	"""
	Ensure extensions win and probes decide the rest.
	"""
	assert probe.detect_asset_kind('/a/logo.PNG') == 'image'
	assert probe.detect_asset_kind('/a/song.mp3') == 'audio'
	assert probe.detect_asset_kind('/a/clip.mkv', ProbeResult(width=640, height=480)) == 'video'
	assert probe.detect_asset_kind('/a/voice.mka', ProbeResult(audio_channels=1)) == 'audio'
	assert probe.detect_asset_kind('/a/unknown.bin') == 'video'

#============================================

def test_run_ffprobe_missing_file(tmp_path) -> None:
	"""
	Ensure probing an absent file fails before running ffprobe.
	"""
	with pytest.raises(ProbeError):
		probe.run_ffprobe(str(tmp_path / "missing.mp4"))

#============================================

def test_import_asset_uses_ffprobe_json(tmp_path, monkeypatch) -> None:
	"""
	Ensure import_asset builds an asset from ffprobe output.
	"""
	media = tmp_path / "clip.mp4"
	media.write_bytes(b"not really video")
	calls = []

	def fake_run(cmd, stdout=None, stderr=None):
		calls.append(cmd)
		return types.SimpleNamespace(returncode=0, stdout=json.dumps(FFPROBE_SAMPLE).encode())

	monkeypatch.setattr(subprocess, "run", fake_run)
	asset = probe.import_asset(str(media))
	assert calls[0][:2] == ['ffprobe', '-v']
	assert calls[0][-1] == str(media)
	assert asset.kind == 'video'
	assert asset.name == 'clip.mp4'
	assert asset.path == str(media)
	assert asset.probe.width == 1280

#============================================

def test_run_ffprobe_failure(tmp_path, monkeypatch) -> None:
	"""
	Ensure a failing ffprobe is reported.
	"""
	media = tmp_path / "clip.mp4"
	media.write_bytes(b"")

	def fake_run(cmd, stdout=None, stderr=None):
		return types.SimpleNamespace(returncode=1, stdout=b"")

	monkeypatch.setattr(subprocess, "run", fake_run)
	with pytest.raises(ProbeError):
		probe.run_ffprobe(str(media))
