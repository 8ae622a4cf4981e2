#!/usr/bin/env python3

#python wrapper for ffprobe

import json
import os
import subprocess

from forgecutlib.core.errors import ProbeError
from forgecutlib.core.items import new_id
from forgecutlib.core.project import ASSET_AUDIO
from forgecutlib.core.project import ASSET_IMAGE
from forgecutlib.core.project import ASSET_VIDEO
from forgecutlib.core.project import Asset
from forgecutlib.core.project import ProbeResult
from forgecutlib.core.timecode import TimeUs

#============================================

IMAGE_EXTENSIONS = ('png', 'jpg', 'jpeg', 'gif', 'bmp', 'webp', 'tiff', 'svg')
AUDIO_EXTENSIONS = ('mp3', 'wav', 'flac', 'aac', 'ogg', 'm4a', 'wma')

#============================================

def run_ffprobe(mediafile: str, ffprobe_bin: str = 'ffprobe') -> dict:
	if not os.path.isfile(mediafile):
		raise ProbeError(f"file not found: {mediafile}")
	cmd = [ffprobe_bin, '-v', 'quiet', '-print_format', 'json',
		'-show_format', '-show_streams', mediafile]
	try:
		proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
	except FileNotFoundError as exc:
		raise ProbeError(f"ffprobe executable not found: {ffprobe_bin}") from exc
	if proc.returncode != 0:
		raise ProbeError(f"ffprobe failed on {mediafile} with code {proc.returncode}")
	try:
		data = json.loads(proc.stdout)
	except ValueError as exc:
		raise ProbeError(f"ffprobe returned invalid json for {mediafile}") from exc
	return data

#============================================

def parse_frame_rate(value) -> float:
	if value is None or value == '':
		return 0.0
	if '/' in value:
		(numerator, denominator) = value.split('/', 1)
		try:
			denominator = float(denominator)
			if denominator == 0:
				return 0.0
			return float(numerator) / denominator
		except ValueError:
			return 0.0
	try:
		return float(value)
	except ValueError:
		return 0.0

#============================================

def _first_stream(streams: list, codec_type: str):
	for stream in streams:
		if stream.get('codec_type') == codec_type:
			return stream
	return None

#============================================

def parse_probe_output(data: dict) -> ProbeResult:
	streams = data.get('streams') or []
	media_format = data.get('format') or {}
	video = _first_stream(streams, 'video')
	audio = _first_stream(streams, 'audio')
	duration_text = media_format.get('duration')
	if duration_text is None and video is not None:
		duration_text = video.get('duration')
	duration = TimeUs.ZERO
	if duration_text not in (None, '', 'N/A'):
		duration = TimeUs.from_seconds(str(duration_text))
	result = ProbeResult(duration=duration)
	if video is not None:
		result.width = int(video.get('width') or 0)
		result.height = int(video.get('height') or 0)
		result.fps = parse_frame_rate(video.get('r_frame_rate'))
		result.codec = video.get('codec_name') or ''
	if audio is not None:
		result.audio_channels = int(audio.get('channels') or 0)
		result.audio_sample_rate = int(audio.get('sample_rate') or 0)
		if result.codec == '':
			result.codec = audio.get('codec_name') or ''
	return result

#============================================

def probe_asset(mediafile: str, ffprobe_bin: str = 'ffprobe') -> ProbeResult:
	return parse_probe_output(run_ffprobe(mediafile, ffprobe_bin))

#============================================

def detect_asset_kind(mediafile: str, probe: ProbeResult = None) -> str:
	extension = os.path.splitext(mediafile)[1].lower().lstrip('.')
	if extension in IMAGE_EXTENSIONS:
		return ASSET_IMAGE
	if extension in AUDIO_EXTENSIONS:
		return ASSET_AUDIO
	if probe is not None:
		if probe.has_video():
			return ASSET_VIDEO
		if probe.audio_channels > 0:
			return ASSET_AUDIO
	return ASSET_VIDEO

#============================================

def import_asset(mediafile: str, ffprobe_bin: str = 'ffprobe') -> Asset:
	probe = probe_asset(mediafile, ffprobe_bin)
	return Asset(
		id=new_id(),
		name=os.path.basename(mediafile),
		path=os.path.abspath(mediafile),
		kind=detect_asset_kind(mediafile, probe),
		probe=probe,
	)
