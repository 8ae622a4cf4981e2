#!/usr/bin/env python3

import threading

from forgecutlib.core import loader
from forgecutlib.core import utils
from forgecutlib.core.errors import AssetNotFound
from forgecutlib.core.errors import InvalidOperation
from forgecutlib.core.errors import RenderError
from forgecutlib.core.errors import TrackNotFound
from forgecutlib.core.history import AddItemCommand
from forgecutlib.core.history import DEFAULT_HISTORY_DEPTH
from forgecutlib.core.history import History
from forgecutlib.core.items import AudioClip
from forgecutlib.core.items import ImageOverlay
from forgecutlib.core.items import VideoClip
from forgecutlib.core.items import new_id
from forgecutlib.core.project import ASSET_AUDIO
from forgecutlib.core.project import ASSET_IMAGE
from forgecutlib.core.project import Project
from forgecutlib.core.timecode import TimeUs
from forgecutlib.core.timeline import TRACK_AUDIO
from forgecutlib.core.timeline import TRACK_VIDEO
from forgecutlib.render import compiler
from forgecutlib.render import executor

#============================================

DEFAULT_ITEM_DURATION = TimeUs(5000000)

EDIT_OPERATIONS = (
	'add_item',
	'remove_item',
	'move_item',
	'move_item_to_track',
	'trim_in',
	'trim_out',
	'split_at',
	'reorder_item',
	'update_item_property',
	'add_marker',
	'remove_marker',
)

#============================================

def item_for_asset(asset, track_id: str, start):
	"""
	Build the default timeline item for an asset dropped on a track.
	"""
	duration = DEFAULT_ITEM_DURATION
	if asset.probe is not None and asset.probe.duration > 0:
		duration = asset.probe.duration
	if asset.kind == ASSET_IMAGE:
		return ImageOverlay(id=new_id(), asset_id=asset.id, track_id=track_id,
			timeline_start=start, duration=DEFAULT_ITEM_DURATION)
	if asset.kind == ASSET_AUDIO:
		return AudioClip(id=new_id(), asset_id=asset.id, track_id=track_id,
			timeline_start=start, source_in=0, source_out=duration)
	return VideoClip(id=new_id(), asset_id=asset.id, track_id=track_id,
		timeline_start=start, source_in=0, source_out=duration)

#============================================

class EditSession():
	"""
	One project and its history behind a single lock.

	Every mutating call returns the serialized timeline so a front end can
	redraw from it. Exports work on a snapshot and never hold the lock
	while ffmpeg runs.
	"""

	def __init__(self, project: Project = None,
		history_depth: int = DEFAULT_HISTORY_DEPTH):
		self.project = project or Project()
		self.history_depth = history_depth
		self.history = History(history_depth)
		self.lock = threading.Lock()

	#============================
	def timeline_dict(self) -> dict:
		with self.lock:
			return loader.timeline_to_dict(self.project.timeline)

	#============================
	def apply(self, command) -> dict:
		with self.lock:
			self.history.execute(command, self.project.timeline)
			return loader.timeline_to_dict(self.project.timeline)

	#============================
	def undo(self) -> dict:
		with self.lock:
			self.history.undo(self.project.timeline)
			return loader.timeline_to_dict(self.project.timeline)

	#============================
	def redo(self) -> dict:
		with self.lock:
			self.history.redo(self.project.timeline)
			return loader.timeline_to_dict(self.project.timeline)

	#============================
	def edit(self, operation: str, *args) -> dict:
		if operation not in EDIT_OPERATIONS:
			raise InvalidOperation(f"unknown edit operation: {operation}")
		with self.lock:
			getattr(self.project.timeline, operation)(*args)
			return loader.timeline_to_dict(self.project.timeline)

	#============================
	def ensure_default_tracks(self) -> None:
		with self.lock:
			timeline = self.project.timeline
			if len(timeline.tracks) > 0:
				return
			timeline.add_track(TRACK_VIDEO)
			timeline.add_track(TRACK_AUDIO)

	#============================
	def add_asset(self, asset) -> None:
		with self.lock:
			self.project.add_asset(asset)

	#============================
	def ensure_track(self, kind: str) -> str:
		with self.lock:
			tracks = self.project.timeline.tracks_of_kind(kind)
			if len(tracks) > 0:
				return tracks[0].id
			return self.project.timeline.add_track(kind).id

	#============================
	def _add_asset_item(self, asset_id: str, track_id: str, start) -> dict:
		# caller holds the lock
		asset = self.project.find_asset(asset_id)
		if asset is None:
			raise AssetNotFound(asset_id)
		item = item_for_asset(asset, track_id, TimeUs(start))
		self.history.execute(AddItemCommand(track_id, item), self.project.timeline)
		return loader.timeline_to_dict(self.project.timeline)

	#============================
	def append_asset_clip(self, asset_id: str, track_id: str) -> dict:
		with self.lock:
			track = self.project.timeline.find_track(track_id)
			if track is None:
				raise TrackNotFound(track_id)
			return self._add_asset_item(asset_id, track_id, track.end_time())

	#============================
	def add_asset_clip(self, asset_id: str, track_id: str, start) -> dict:
		with self.lock:
			return self._add_asset_item(asset_id, track_id, start)

	#============================
	def snapshot(self) -> Project:
		with self.lock:
			return self.project.snapshot()

	#============================
	def load(self, path: str) -> dict:
		project = loader.load_project(path)
		with self.lock:
			self.project = project
			self.history = History(self.history_depth)
			return loader.project_to_dict(project)

	#============================
	def save(self, path: str) -> str:
		with self.lock:
			return loader.save_project(self.project, path)

	#============================
	def autosave(self, directory: str) -> str:
		snapshot = self.snapshot()
		return loader.autosave(snapshot, directory)

	#============================
	async def export(self, output_path: str, channel, ffmpeg_bin: str = 'ffmpeg',
		output: dict = None):
		snapshot = self.snapshot()
		try:
			plan = compiler.compile_project(snapshot, output)
		except RenderError:
			channel.close()
			raise
		plan.output_path = output_path
		total = snapshot.total_duration().as_seconds()
		utils.log(f"exporting {snapshot.name} to {output_path}")
		await executor.execute(plan, channel, total, ffmpeg_bin=ffmpeg_bin)
		return plan
