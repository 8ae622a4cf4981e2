#!/usr/bin/env python3

from dataclasses import dataclass, field

from forgecutlib.core.errors import InvalidOperation
from forgecutlib.core.errors import ItemNotFound
from forgecutlib.core.errors import OverlapDetected
from forgecutlib.core.errors import TrackNotFound
from forgecutlib.core.items import EDITABLE_PROPERTIES
from forgecutlib.core.items import UNSIGNED_PROPERTIES
from forgecutlib.core.items import new_id
from forgecutlib.core.timecode import TimeUs

#============================================

TRACK_VIDEO = 'video'
TRACK_AUDIO = 'audio'
TRACK_OVERLAY_IMAGE = 'overlay_image'
TRACK_OVERLAY_TEXT = 'overlay_text'
TRACK_KINDS = (TRACK_VIDEO, TRACK_AUDIO, TRACK_OVERLAY_IMAGE, TRACK_OVERLAY_TEXT)

#============================================

def _coerce_property(name: str, kind: type, value):
	# bool is an int subclass but never a valid number here
	if isinstance(value, bool):
		raise InvalidOperation(f"invalid {name} value: {value!r}")
	if kind is float and isinstance(value, (int, float)):
		return float(value)
	if kind is int and isinstance(value, int):
		if name in UNSIGNED_PROPERTIES and value < 0:
			raise InvalidOperation(f"{name} must not be negative: {value}")
		return value
	if kind is str and isinstance(value, str):
		return value
	raise InvalidOperation(f"invalid {name} value: {value!r}")

#============================================

@dataclass
class Track:
	id: str
	kind: str
	items: list = field(default_factory=list)

	#============================
	def index_of(self, item_id: str):
		for index, item in enumerate(self.items):
			if item.id == item_id:
				return index
		return None

	#============================
	def end_time(self) -> TimeUs:
		end = TimeUs.ZERO
		for item in self.items:
			if item.timeline_end > end:
				end = item.timeline_end
		return end

	#============================
	def collides(self, candidate, ignore_id: str = None) -> bool:
		for item in self.items:
			if item.id == ignore_id:
				continue
			if item.overlaps(candidate):
				return True
		return False

#============================================

@dataclass
class Marker:
	id: str
	time: TimeUs
	label: str = ''

	def __post_init__(self):
		self.time = TimeUs(self.time)

#============================================

class Timeline():
	"""
	Ordered tracks plus markers, with the editing operations that keep
	items on a track from overlapping.

	Every operation either completes or raises before leaving a partial
	change behind.
	"""

	def __init__(self, tracks: list = None, markers: list = None):
		self.tracks = list(tracks or [])
		self.markers = list(markers or [])

	#============================
	def __eq__(self, other) -> bool:
		if not isinstance(other, Timeline):
			return NotImplemented
		return self.tracks == other.tracks and self.markers == other.markers

	#============================
	def __repr__(self) -> str:
		return f"Timeline(tracks={self.tracks!r}, markers={self.markers!r})"

	#============================
	def add_track(self, kind: str) -> Track:
		if kind not in TRACK_KINDS:
			raise InvalidOperation(f"unknown track kind: {kind}")
		track = Track(id=new_id(), kind=kind)
		self.tracks.append(track)
		return track

	#============================
	def find_track(self, track_id: str):
		for track in self.tracks:
			if track.id == track_id:
				return track
		return None

	#============================
	def tracks_of_kind(self, kind: str) -> list:
		return [track for track in self.tracks if track.kind == kind]

	#============================
	def _locate(self, item_id: str) -> tuple:
		for track in self.tracks:
			index = track.index_of(item_id)
			if index is not None:
				return (track, index)
		raise ItemNotFound(item_id)

	#============================
	def find_item(self, item_id: str):
		(track, index) = self._locate(item_id)
		return track.items[index]

	#============================
	def track_of(self, item_id: str) -> Track:
		(track, _index) = self._locate(item_id)
		return track

	#============================
	def add_item(self, track_id: str, item) -> None:
		track = self.find_track(track_id)
		if track is None:
			raise TrackNotFound(track_id)
		if track.collides(item):
			raise OverlapDetected(track_id)
		item.track_id = track_id
		track.items.append(item)

	#============================
	def remove_item(self, item_id: str):
		(track, index) = self._locate(item_id)
		return track.items.pop(index)

	#============================
	def move_item(self, item_id: str, new_start) -> None:
		(track, index) = self._locate(item_id)
		item = track.items.pop(index)
		old_start = item.timeline_start
		item.timeline_start = TimeUs(new_start)
		if track.collides(item):
			item.timeline_start = old_start
			track.items.insert(index, item)
			raise OverlapDetected(track.id)
		track.items.append(item)

	#============================
	def move_item_to_track(self, item_id: str, new_track_id: str, new_start) -> None:
		(source, index) = self._locate(item_id)
		target = self.find_track(new_track_id)
		if target is None:
			raise TrackNotFound(new_track_id)
		item = source.items.pop(index)
		old_start = item.timeline_start
		item.timeline_start = TimeUs(new_start)
		if target.collides(item):
			item.timeline_start = old_start
			source.items.insert(index, item)
			raise OverlapDetected(target.id)
		item.track_id = target.id
		target.items.append(item)

	#============================
	def trim_in(self, item_id: str, new_in) -> None:
		(track, index) = self._locate(item_id)
		item = track.items[index]
		new_in = TimeUs(new_in)
		before = item.copy()
		if item.is_source_clip:
			if new_in >= item.source_out:
				raise InvalidOperation("source_in must be less than source_out")
			end = item.timeline_end
			item.source_in = new_in
			item.timeline_start = end - item.duration
		else:
			end = item.timeline_end
			if new_in >= end:
				raise InvalidOperation("new start must be before end")
			item.duration = end - new_in
			item.timeline_start = new_in
		self._check_trim(track, item, before)

	#============================
	def trim_out(self, item_id: str, new_out) -> None:
		(track, index) = self._locate(item_id)
		item = track.items[index]
		new_out = TimeUs(new_out)
		before = item.copy()
		if item.is_source_clip:
			if new_out <= item.source_in:
				raise InvalidOperation("source_out must be greater than source_in")
			item.source_out = new_out
		else:
			duration = new_out - item.timeline_start
			if duration <= 0:
				raise InvalidOperation("new out must be after start")
			item.duration = duration
		self._check_trim(track, item, before)

	#============================
	def _check_trim(self, track: Track, item, before) -> None:
		if track.collides(item, ignore_id=item.id):
			# restore in place so outside references stay valid
			item.__dict__.update(before.__dict__)
			raise OverlapDetected(track.id)

	#============================
	def split_at(self, item_id: str, split_time) -> tuple:
		(track, index) = self._locate(item_id)
		item = track.items[index]
		split_time = TimeUs(split_time)
		if not item.timeline_start < split_time < item.timeline_end:
			raise InvalidOperation(
				f"split time {split_time} is outside {item.timeline_start}-{item.timeline_end}")
		elapsed = split_time - item.timeline_start
		right = item.copy()
		right.id = new_id()
		right.timeline_start = split_time
		if item.is_source_clip:
			split_source = item.source_in + elapsed
			item.source_out = split_source
			right.source_in = split_source
		else:
			right.duration = item.timeline_end - split_time
			item.duration = elapsed
		track.items.insert(index + 1, right)
		return (item.id, right.id)

	#============================
	def reorder_item(self, item_id: str, new_index: int) -> None:
		(track, index) = self._locate(item_id)
		if new_index < 0 or new_index >= len(track.items):
			raise InvalidOperation(
				f"new_index {new_index} out of bounds (track has {len(track.items)} items)")
		item = track.items.pop(index)
		track.items.insert(new_index, item)

	#============================
	def update_item_property(self, item_id: str, name: str, value):
		"""
		Set one editable property on an item and return the previous value.
		"""
		item = self.find_item(item_id)
		allowed = EDITABLE_PROPERTIES[item.item_type]
		if name not in allowed:
			raise InvalidOperation(f"unknown property for {item.item_type}: {name}")
		new_value = _coerce_property(name, allowed[name], value)
		old_value = getattr(item, name)
		setattr(item, name, new_value)
		return old_value

	#============================
	def add_marker(self, time_us, label: str = '') -> Marker:
		marker = Marker(id=new_id(), time=time_us, label=label)
		self.markers.append(marker)
		return marker

	#============================
	def remove_marker(self, marker_id: str) -> Marker:
		for index, marker in enumerate(self.markers):
			if marker.id == marker_id:
				return self.markers.pop(index)
		raise InvalidOperation(f"marker not found: {marker_id}")

	#============================
	def items(self):
		for track in self.tracks:
			for item in track.items:
				yield item

	#============================
	def items_at(self, time_us) -> list:
		return [item for item in self.items() if item.covers(time_us)]

	#============================
	def end_time(self) -> TimeUs:
		ends = [track.end_time() for track in self.tracks]
		return max(ends, default=TimeUs.ZERO)
