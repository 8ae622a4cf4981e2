#!/usr/bin/env python3

import copy
from dataclasses import dataclass

from forgecutlib.core.errors import InvalidOperation
from forgecutlib.core.items import new_id
from forgecutlib.core.timecode import TimeUs
from forgecutlib.core.timeline import Timeline

#============================================

ASSET_VIDEO = 'video'
ASSET_AUDIO = 'audio'
ASSET_IMAGE = 'image'
ASSET_KINDS = (ASSET_VIDEO, ASSET_AUDIO, ASSET_IMAGE)

#============================================

@dataclass
class ProbeResult:
	duration: TimeUs = TimeUs.ZERO
	width: int = 0
	height: int = 0
	fps: float = 0.0
	codec: str = ''
	audio_channels: int = 0
	audio_sample_rate: int = 0

	def __post_init__(self):
		self.duration = TimeUs(self.duration)

	#============================
	def has_video(self) -> bool:
		return self.width > 0 and self.height > 0

#============================================

@dataclass
class Asset:
	id: str
	name: str
	path: str
	kind: str
	probe: ProbeResult = None

#============================================

@dataclass
class ProjectSettings:
	width: int = 1920
	height: int = 1080
	fps: float = 30.0
	sample_rate: int = 48000

#============================================

PRESETS = {
	'1080p': ProjectSettings(1920, 1080, 30.0, 48000),
	'shorts': ProjectSettings(1080, 1920, 30.0, 48000),
	'720p': ProjectSettings(1280, 720, 30.0, 48000),
	'4k': ProjectSettings(3840, 2160, 30.0, 48000),
	'1080p60': ProjectSettings(1920, 1080, 60.0, 48000),
}

#============================================

def get_preset(name: str) -> ProjectSettings:
	preset = PRESETS.get(name)
	if preset is None:
		choices = ', '.join(sorted(PRESETS))
		raise InvalidOperation(f"unknown preset {name}, expected one of: {choices}")
	return copy.copy(preset)

#============================================

class Project():
	def __init__(self, name: str = 'Untitled', settings: ProjectSettings = None,
		assets: list = None, timeline: Timeline = None, project_id: str = None):
		self.id = project_id or new_id()
		self.name = name
		self.settings = settings or ProjectSettings()
		self.assets = list(assets or [])
		self.timeline = timeline or Timeline()

	#============================
	def __eq__(self, other) -> bool:
		if not isinstance(other, Project):
			return NotImplemented
		return (self.id == other.id and self.name == other.name
			and self.settings == other.settings and self.assets == other.assets
			and self.timeline == other.timeline)

	#============================
	def find_asset(self, asset_id: str):
		for asset in self.assets:
			if asset.id == asset_id:
				return asset
		return None

	#============================
	def add_asset(self, asset: Asset) -> Asset:
		if asset.kind not in ASSET_KINDS:
			raise InvalidOperation(f"unknown asset kind: {asset.kind}")
		if self.find_asset(asset.id) is not None:
			raise InvalidOperation(f"duplicate asset id: {asset.id}")
		self.assets.append(asset)
		return asset

	#============================
	def remove_asset(self, asset_id: str) -> Asset:
		# items referencing the asset are left in place
		for index, asset in enumerate(self.assets):
			if asset.id == asset_id:
				return self.assets.pop(index)
		raise InvalidOperation(f"asset not found: {asset_id}")

	#============================
	def snapshot(self) -> 'Project':
		return copy.deepcopy(self)

	#============================
	def total_duration(self) -> TimeUs:
		return self.timeline.end_time()
