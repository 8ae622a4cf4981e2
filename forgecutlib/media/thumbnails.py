#!/usr/bin/env python3

import os
import shlex

from forgecutlib.core import utils
from forgecutlib.core.timecode import TimeUs

#============================================

PROXY_HEIGHT = 720

#============================================

def thumbnail_path(cache_dir: str, asset_id: str, time_us) -> str:
	return os.path.join(cache_dir, asset_id, f"{int(time_us)}.jpg")

#============================================

def extract_thumbnail(source: str, output: str, seconds: float,
	width: int = 160) -> str:
	cmd = "ffmpeg -y "
	cmd += f" -ss {seconds:.3f} "
	cmd += f" -i {shlex.quote(source)} "
	cmd += f" -vframes 1 -vf scale={width}:-1 -q:v 5 "
	cmd += f" {shlex.quote(output)} "
	utils.runCmd(cmd)
	utils.ensure_file_exists(output)
	return output

#============================================

def extract_thumbnails(source: str, cache_dir: str, asset_id: str,
	duration_seconds: float, interval_seconds: float = 1.0, width: int = 160) -> list:
	if interval_seconds <= 0:
		raise RuntimeError("thumbnail interval must be positive")
	asset_dir = os.path.join(cache_dir, asset_id)
	if not os.path.isdir(asset_dir):
		os.makedirs(asset_dir)
	thumbnails = []
	step = TimeUs.from_seconds(interval_seconds)
	total = TimeUs.from_seconds(duration_seconds)
	position = TimeUs.ZERO
	while position < total:
		output = thumbnail_path(cache_dir, asset_id, position)
		if not os.path.isfile(output):
			extract_thumbnail(source, output, position.as_seconds(), width)
		thumbnails.append((position, output))
		position = position + step
	return thumbnails

#============================================

def proxy_path(proxy_dir: str, asset_id: str) -> str:
	return os.path.join(proxy_dir, f"{asset_id}.mp4")

#============================================

def generate_proxy(source: str, proxy_dir: str, asset_id: str) -> str:
	if not os.path.isdir(proxy_dir):
		os.makedirs(proxy_dir)
	output = proxy_path(proxy_dir, asset_id)
	if os.path.isfile(output):
		return output
	cmd = "ffmpeg -y "
	cmd += f" -i {shlex.quote(source)} "
	cmd += f" -vf scale=-2:{PROXY_HEIGHT} "
	cmd += " -c:v libx264 -preset ultrafast -crf 28 "
	cmd += " -c:a aac -b:a 128k "
	cmd += f" {shlex.quote(output)} "
	utils.runCmd(cmd)
	utils.ensure_file_exists(output)
	return output
