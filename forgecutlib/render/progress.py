#!/usr/bin/env python3

import threading
from dataclasses import dataclass

#============================================

@dataclass
class RenderProgress:
	percent: float = 0.0
	frame: int = 0
	fps: float = 0.0
	speed: str = ''
	eta_seconds: float = None
	elapsed_seconds: float = 0.0

#============================================

def extract_value(line: str, key: str):
	"""
	Return the token after key, skipping leading spaces, or None.

	ffmpeg pads values, so both 'frame=150' and 'frame=  150' work.
	"""
	position = line.find(key)
	if position < 0:
		return None
	rest = line[position + len(key):].lstrip()
	token = rest.split(None, 1)
	if len(token) == 0:
		return ''
	return token[0]

#============================================

def _to_int(value) -> int:
	try:
		return int(value)
	except (TypeError, ValueError):
		return 0

#============================================

def _to_float(value) -> float:
	try:
		return float(value)
	except (TypeError, ValueError):
		return 0.0

#============================================

def parse_time_str(value: str) -> float:
	if value is None:
		return 0.0
	parts = value.split(':')
	if len(parts) != 3:
		return 0.0
	hours = _to_float(parts[0])
	minutes = _to_float(parts[1])
	seconds = _to_float(parts[2])
	return hours * 3600.0 + minutes * 60.0 + seconds

#============================================

def parse_progress(line: str, total_seconds: float):
	if 'time=' not in line:
		return None
	frame = _to_int(extract_value(line, 'frame='))
	fps = _to_float(extract_value(line, 'fps='))
	speed = extract_value(line, 'speed=') or ''
	elapsed = parse_time_str(extract_value(line, 'time='))
	percent = 0.0
	if total_seconds > 0:
		percent = min(elapsed / total_seconds * 100.0, 100.0)
	speed_factor = _to_float(speed.rstrip('x'))
	eta_seconds = None
	if speed_factor > 0 and total_seconds > elapsed:
		eta_seconds = (total_seconds - elapsed) / speed_factor
	return RenderProgress(
		percent=percent,
		frame=frame,
		fps=fps,
		speed=speed,
		eta_seconds=eta_seconds,
		elapsed_seconds=elapsed,
	)

#============================================

class ProgressChannel():
	"""
	Single slot holding the newest progress value.

	Writers overwrite, readers poll. A reader compares the version number
	with the last one it saw to know whether anything changed.
	"""

	def __init__(self):
		self._lock = threading.Lock()
		self._progress = RenderProgress()
		self._version = 0
		self._closed = False

	#============================
	def send(self, progress: RenderProgress) -> None:
		with self._lock:
			self._progress = progress
			self._version += 1

	#============================
	def latest(self) -> tuple:
		with self._lock:
			return (self._version, self._progress)

	#============================
	def close(self) -> None:
		with self._lock:
			self._closed = True

	#============================
	@property
	def closed(self) -> bool:
		with self._lock:
			return self._closed
