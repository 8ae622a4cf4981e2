#!/usr/bin/env python3

import copy
import uuid
from dataclasses import dataclass

from forgecutlib.core.timecode import TimeUs

#============================================

def new_id() -> str:
	return str(uuid.uuid4())

#============================================

class Item():
	"""
	Shared behavior for everything placed on a track.

	Every item has an id, a track_id and a timeline_start; its extent on
	the timeline is the half-open range [timeline_start, timeline_end).
	"""

	item_type = None
	is_source_clip = False

	#============================
	@property
	def timeline_end(self) -> TimeUs:
		return TimeUs(self.timeline_start + self.duration)

	#============================
	def overlaps(self, other) -> bool:
		return self.timeline_start < other.timeline_end and other.timeline_start < self.timeline_end

	#============================
	def covers(self, time_us: int) -> bool:
		return self.timeline_start <= time_us < self.timeline_end

	#============================
	def copy(self):
		return copy.deepcopy(self)

#============================================

class SourceClip(Item):
	is_source_clip = True

	#============================
	@property
	def duration(self) -> TimeUs:
		return TimeUs(self.source_out - self.source_in)

	#============================
	def _coerce_times(self) -> None:
		self.timeline_start = TimeUs(self.timeline_start)
		self.source_in = TimeUs(self.source_in)
		self.source_out = TimeUs(self.source_out)

#============================================

class OverlayItem(Item):

	#============================
	def _coerce_times(self) -> None:
		self.timeline_start = TimeUs(self.timeline_start)
		self.duration = TimeUs(self.duration)

#============================================

@dataclass
class VideoClip(SourceClip):
	id: str
	asset_id: str
	track_id: str
	timeline_start: TimeUs
	source_in: TimeUs
	source_out: TimeUs

	item_type = 'video_clip'

	def __post_init__(self):
		self._coerce_times()

#============================================

@dataclass
class AudioClip(SourceClip):
	id: str
	asset_id: str
	track_id: str
	timeline_start: TimeUs
	source_in: TimeUs
	source_out: TimeUs
	volume: float = 1.0

	item_type = 'audio_clip'

	def __post_init__(self):
		self._coerce_times()

#============================================

@dataclass
class ImageOverlay(OverlayItem):
	id: str
	asset_id: str
	track_id: str
	timeline_start: TimeUs
	duration: TimeUs
	x: int = 0
	y: int = 0
	width: int = 320
	height: int = 240
	opacity: float = 1.0

	item_type = 'image_overlay'

	def __post_init__(self):
		self._coerce_times()

#============================================

@dataclass
class TextOverlay(OverlayItem):
	id: str
	track_id: str
	timeline_start: TimeUs
	duration: TimeUs
	text: str = ''
	font_size: int = 48
	color: str = '#ffffff'
	x: int = 0
	y: int = 0

	item_type = 'text_overlay'

	def __post_init__(self):
		self._coerce_times()

	#============================
	@property
	def asset_id(self):
		return None

#============================================

ITEM_CLASSES = {
	VideoClip.item_type: VideoClip,
	AudioClip.item_type: AudioClip,
	ImageOverlay.item_type: ImageOverlay,
	TextOverlay.item_type: TextOverlay,
}

# per variant: property name -> accepted type
EDITABLE_PROPERTIES = {
	VideoClip.item_type: {},
	AudioClip.item_type: {'volume': float},
	ImageOverlay.item_type: {'x': int, 'y': int, 'width': int, 'height': int,
		'opacity': float},
	TextOverlay.item_type: {'text': str, 'font_size': int, 'color': str,
		'x': int, 'y': int},
}

UNSIGNED_PROPERTIES = ('width', 'height', 'font_size')
