#!/usr/bin/env python3

import glob
import os
import time

import yaml

from forgecutlib.core import utils
from forgecutlib.core.errors import ProjectFileError
from forgecutlib.core.items import ITEM_CLASSES
from forgecutlib.core.project import Asset
from forgecutlib.core.project import ProbeResult
from forgecutlib.core.project import Project
from forgecutlib.core.project import ProjectSettings
from forgecutlib.core.timeline import Marker
from forgecutlib.core.timeline import TRACK_KINDS
from forgecutlib.core.timeline import Timeline
from forgecutlib.core.timeline import Track

#============================================

FORMAT_VERSION = 1
PROJECT_SUFFIX = '.forgecut'
AUTOSAVE_PREFIX = 'autosave-'
AUTOSAVE_KEEP = 5

# field name -> converter, in the order they are written
ITEM_FIELDS = {
	'video_clip': (('id', str), ('asset_id', str), ('track_id', str),
		('timeline_start', int), ('source_in', int), ('source_out', int)),
	'audio_clip': (('id', str), ('asset_id', str), ('track_id', str),
		('timeline_start', int), ('source_in', int), ('source_out', int),
		('volume', float)),
	'image_overlay': (('id', str), ('asset_id', str), ('track_id', str),
		('timeline_start', int), ('duration', int), ('x', int), ('y', int),
		('width', int), ('height', int), ('opacity', float)),
	'text_overlay': (('id', str), ('track_id', str), ('timeline_start', int),
		('duration', int), ('text', str), ('font_size', int), ('color', str),
		('x', int), ('y', int)),
}

# fields with dataclass defaults
OPTIONAL_ITEM_FIELDS = ('volume', 'x', 'y', 'width', 'height', 'opacity',
	'text', 'font_size', 'color')

PROBE_FIELDS = (('duration', int), ('width', int), ('height', int),
	('fps', float), ('codec', str), ('audio_channels', int),
	('audio_sample_rate', int))

#============================================

def item_to_dict(item) -> dict:
	data = {'type': item.item_type}
	for (name, convert) in ITEM_FIELDS[item.item_type]:
		data[name] = convert(getattr(item, name))
	return data

#============================================

def item_from_dict(data: dict):
	if not isinstance(data, dict):
		raise ProjectFileError("timeline items must be mappings")
	item_type = data.get('type')
	if item_type not in ITEM_CLASSES:
		raise ProjectFileError(f"unknown item type: {item_type}")
	kwargs = {}
	for (name, convert) in ITEM_FIELDS[item_type]:
		if name not in data:
			if name in OPTIONAL_ITEM_FIELDS:
				continue
			raise ProjectFileError(f"{item_type} is missing required key: {name}")
		kwargs[name] = convert(data[name])
	return ITEM_CLASSES[item_type](**kwargs)

#============================================

def timeline_to_dict(timeline: Timeline) -> dict:
	tracks = []
	for track in timeline.tracks:
		tracks.append({
			'id': track.id,
			'kind': track.kind,
			'items': [item_to_dict(item) for item in track.items],
		})
	markers = []
	for marker in timeline.markers:
		markers.append({'id': marker.id, 'time': int(marker.time), 'label': marker.label})
	return {'tracks': tracks, 'markers': markers}

#============================================

def timeline_from_dict(data: dict) -> Timeline:
	if not isinstance(data, dict):
		raise ProjectFileError("timeline must be a mapping")
	tracks = []
	for track_data in data.get('tracks') or []:
		kind = track_data.get('kind')
		if kind not in TRACK_KINDS:
			raise ProjectFileError(f"unknown track kind: {kind}")
		items = [item_from_dict(item) for item in track_data.get('items') or []]
		tracks.append(Track(id=str(track_data['id']), kind=kind, items=items))
	markers = []
	for marker_data in data.get('markers') or []:
		markers.append(Marker(id=str(marker_data['id']), time=int(marker_data['time']),
			label=str(marker_data.get('label', ''))))
	return Timeline(tracks=tracks, markers=markers)

#============================================

def _probe_to_dict(probe: ProbeResult):
	if probe is None:
		return None
	return {name: convert(getattr(probe, name)) for (name, convert) in PROBE_FIELDS}

#============================================

def _probe_from_dict(data):
	if data is None:
		return None
	kwargs = {}
	for (name, convert) in PROBE_FIELDS:
		if name in data:
			kwargs[name] = convert(data[name])
	return ProbeResult(**kwargs)

#============================================

def project_to_dict(project: Project) -> dict:
	settings = project.settings
	assets = []
	for asset in project.assets:
		assets.append({
			'id': asset.id,
			'name': asset.name,
			'path': asset.path,
			'kind': asset.kind,
			'probe': _probe_to_dict(asset.probe),
		})
	return {
		'forgecut': FORMAT_VERSION,
		'id': project.id,
		'name': project.name,
		'settings': {
			'width': int(settings.width),
			'height': int(settings.height),
			'fps': float(settings.fps),
			'sample_rate': int(settings.sample_rate),
		},
		'assets': assets,
		'timeline': timeline_to_dict(project.timeline),
	}

#============================================

def project_from_dict(data: dict) -> Project:
	if not isinstance(data, dict):
		raise ProjectFileError("project file must be a mapping at the top level")
	if data.get('forgecut') != FORMAT_VERSION:
		raise ProjectFileError(f"forgecut must be set to {FORMAT_VERSION}")
	for key in ('id', 'settings', 'timeline'):
		if key not in data:
			raise ProjectFileError(f"missing required key: {key}")
	raw_settings = data.get('settings') or {}
	settings = ProjectSettings(
		width=int(raw_settings.get('width', 1920)),
		height=int(raw_settings.get('height', 1080)),
		fps=float(raw_settings.get('fps', 30.0)),
		sample_rate=int(raw_settings.get('sample_rate', 48000)),
	)
	assets = []
	for asset_data in data.get('assets') or []:
		assets.append(Asset(
			id=str(asset_data['id']),
			name=str(asset_data.get('name', '')),
			path=str(asset_data['path']),
			kind=str(asset_data['kind']),
			probe=_probe_from_dict(asset_data.get('probe')),
		))
	return Project(name=str(data.get('name', 'Untitled')), settings=settings,
		assets=assets, timeline=timeline_from_dict(data['timeline']),
		project_id=str(data['id']))

#============================================

def save_project(project: Project, path: str) -> str:
	if not path.endswith(PROJECT_SUFFIX):
		path += PROJECT_SUFFIX
	text = yaml.safe_dump(project_to_dict(project), sort_keys=False,
		default_flow_style=False)
	with open(path, 'w') as project_file:
		project_file.write(text)
	utils.log(f"saved project: {path}")
	return path

#============================================

def load_project(path: str) -> Project:
	if not os.path.isfile(path):
		raise ProjectFileError(f"file not found: {path}")
	file_size = os.path.getsize(path)
	if file_size > 10 ** 7:
		raise ProjectFileError("project file is larger than 10MB")
	with open(path, 'r') as project_file:
		try:
			data = yaml.safe_load(project_file)
		except yaml.YAMLError as exc:
			raise ProjectFileError(f"invalid project file {path}: {exc}") from exc
	try:
		return project_from_dict(data)
	except (AttributeError, KeyError, TypeError, ValueError) as exc:
		raise ProjectFileError(f"invalid project file {path}: {exc}") from exc

#============================================

def _autosave_files(directory: str) -> list:
	pattern = os.path.join(directory, f"{AUTOSAVE_PREFIX}*{PROJECT_SUFFIX}")
	return sorted(glob.glob(pattern))

#============================================

def autosave(project: Project, directory: str, keep: int = AUTOSAVE_KEEP) -> str:
	if not os.path.isdir(directory):
		os.makedirs(directory)
	now_ns = time.time_ns()
	stamp = time.strftime("%Y%m%d-%H%M%S", time.localtime(now_ns // 10 ** 9))
	nanos = now_ns % 10 ** 9
	path = None
	# names must sort in save order, so collisions bump the counter forward
	while path is None or os.path.exists(path):
		path = os.path.join(directory, f"{AUTOSAVE_PREFIX}{stamp}-{nanos:09d}{PROJECT_SUFFIX}")
		nanos += 1
	save_project(project, path)
	for stale in _autosave_files(directory)[:-keep]:
		os.remove(stale)
	return path

#============================================

def latest_autosave(directory: str):
	files = _autosave_files(directory)
	if len(files) == 0:
		return None
	return files[-1]
