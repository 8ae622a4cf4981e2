#!/usr/bin/env python3

import json
import os
import subprocess

import numpy

from forgecutlib.core import utils
from forgecutlib.core.errors import RenderError

#============================================

WAVEFORM_SAMPLE_RATE = 8000
FULL_SCALE = 32768.0

#============================================

def compute_peaks(samples, samples_per_peak: int) -> list:
	"""
	Reduce 16-bit samples to [min, max] pairs normalized to -1.0..1.0.
	"""
	if samples_per_peak <= 0:
		raise RuntimeError("samples_per_peak must be positive")
	data = numpy.asarray(samples, dtype=numpy.float64)
	if data.size == 0:
		return []
	chunk_count = int(numpy.ceil(data.size / samples_per_peak))
	padded = numpy.full(chunk_count * samples_per_peak, numpy.nan)
	padded[:data.size] = data
	chunks = padded.reshape(chunk_count, samples_per_peak)
	minimums = numpy.nanmin(chunks, axis=1) / FULL_SCALE
	maximums = numpy.nanmax(chunks, axis=1) / FULL_SCALE
	return [[float(low), float(high)] for (low, high) in zip(minimums, maximums)]

#============================================

def read_pcm(source: str, ffmpeg_bin: str = 'ffmpeg') -> numpy.ndarray:
	cmd = [ffmpeg_bin, '-v', 'quiet', '-i', source, '-vn', '-ac', '1',
		'-ar', str(WAVEFORM_SAMPLE_RATE), '-f', 's16le', '-acodec', 'pcm_s16le', '-']
	utils.log(f"CMD: '{' '.join(cmd)}'")
	try:
		proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
	except FileNotFoundError as exc:
		raise RenderError(f"ffmpeg executable not found: {ffmpeg_bin}") from exc
	if proc.returncode != 0:
		raise RenderError(f"waveform extraction failed for {source}")
	return numpy.frombuffer(proc.stdout, dtype='<i2')

#============================================

def waveform_cache_path(cache_dir: str, asset_id: str, samples_per_peak: int) -> str:
	return os.path.join(cache_dir, f"{asset_id}-{samples_per_peak}.json")

#============================================

def extract_waveform(source: str, cache_dir: str, asset_id: str,
	samples_per_peak: int = 80, ffmpeg_bin: str = 'ffmpeg') -> list:
	cache_file = waveform_cache_path(cache_dir, asset_id, samples_per_peak)
	if os.path.isfile(cache_file):
		with open(cache_file, 'r') as handle:
			return json.load(handle)
	peaks = compute_peaks(read_pcm(source, ffmpeg_bin), samples_per_peak)
	if not os.path.isdir(cache_dir):
		os.makedirs(cache_dir)
	with open(cache_file, 'w') as handle:
		json.dump(peaks, handle)
	return peaks
