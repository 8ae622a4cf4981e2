#!/usr/bin/env python3

"""
Compile a project snapshot into a single ffmpeg filter_complex graph.

The primary video track is trimmed and concatenated, then the other video
tracks are laid over it picture-in-picture, followed by image overlays,
text overlays and the mixed audio tracks.
"""

import PIL.ImageColor

from forgecutlib.core.errors import AssetNotFound
from forgecutlib.core.errors import NoClips
from forgecutlib.core.items import AudioClip
from forgecutlib.core.items import ImageOverlay
from forgecutlib.core.items import TextOverlay
from forgecutlib.core.items import VideoClip
from forgecutlib.core.timecode import TimeUs
from forgecutlib.core.timecode import format_number
from forgecutlib.core.timecode import seconds_text
from forgecutlib.core.timeline import TRACK_AUDIO
from forgecutlib.core.timeline import TRACK_OVERLAY_IMAGE
from forgecutlib.core.timeline import TRACK_OVERLAY_TEXT
from forgecutlib.core.timeline import TRACK_VIDEO
from forgecutlib.render.plan import RenderInput
from forgecutlib.render.plan import RenderPlan

#============================================

DEFAULT_OUTPUT = {
	'video_codec': 'libx264',
	'crf': 23,
	'audio_codec': 'aac',
	'audio_bitrate': '192k',
	'pixel_format': 'yuv420p',
	'file': 'output.mp4',
}

PIP_MARGIN = 20
AUDIO_FADE = TimeUs(100000)

#============================================

def _sorted_items(tracks: list, item_class) -> list:
	items = []
	for track in tracks:
		for item in track.items:
			if isinstance(item, item_class):
				items.append(item)
	return sorted(items, key=lambda item: item.timeline_start)

#============================================

def escape_drawtext(text: str) -> str:
	return text.replace("'", "'\\''")

#============================================

def normalize_color(color: str) -> str:
	"""
	Convert a css style color to the 0xRRGGBB form drawtext expects.
	"""
	try:
		channels = PIL.ImageColor.getrgb(color)
	except ValueError:
		return '0x' + color.lstrip('#')
	return '0x' + ''.join(f"{channel:02x}" for channel in channels)

#============================================

class RenderCompiler():
	def __init__(self, project, output: dict = None):
		self.project = project
		self.output = dict(DEFAULT_OUTPUT)
		if output:
			self.output.update(output)
		self.inputs = []
		self.input_index = {}
		self.filters = []

	#============================
	def compile(self) -> RenderPlan:
		timeline = self.project.timeline
		video_tracks = timeline.tracks_of_kind(TRACK_VIDEO)
		if len(video_tracks) == 0:
			raise NoClips()
		primary_clips = _sorted_items(video_tracks[:1], VideoClip)
		if len(primary_clips) == 0:
			raise NoClips()
		pip_clips = _sorted_items(video_tracks[1:], VideoClip)
		image_overlays = _sorted_items(timeline.tracks_of_kind(TRACK_OVERLAY_IMAGE),
			ImageOverlay)
		audio_clips = _sorted_items(timeline.tracks_of_kind(TRACK_AUDIO), AudioClip)
		text_overlays = _sorted_items(timeline.tracks_of_kind(TRACK_OVERLAY_TEXT),
			TextOverlay)

		for item in primary_clips + pip_clips + image_overlays + audio_clips:
			self._register_input(item.asset_id)

		video_label = 'outv'
		if len(pip_clips) > 0:
			video_label = 'concatv'
		elif len(image_overlays) > 0:
			video_label = 'basev'
		audio_label = 'outa'
		if len(audio_clips) > 0:
			audio_label = 'concat_a'

		self._add_primary(primary_clips, video_label, audio_label)
		if len(pip_clips) > 0:
			pip_label = 'outv'
			if len(image_overlays) > 0:
				pip_label = 'basev'
			self._add_pip(pip_clips, pip_label)
		if len(audio_clips) > 0:
			self._add_audio(audio_clips)
		if len(image_overlays) > 0:
			self._add_images(image_overlays)
		final_label = 'outv'
		if len(text_overlays) > 0:
			final_label = self._add_text(text_overlays)

		return RenderPlan(
			inputs=list(self.inputs),
			filter_graph=';'.join(self.filters),
			output_args=self._output_args(final_label),
			output_path=self.output['file'],
		)

	#============================
	def _register_input(self, asset_id: str) -> int:
		asset = self.project.find_asset(asset_id)
		if asset is None:
			raise AssetNotFound(asset_id)
		if asset.path not in self.input_index:
			index = len(self.inputs)
			self.input_index[asset.path] = index
			self.inputs.append(RenderInput(path=asset.path, index=index))
		return self.input_index[asset.path]

	#============================
	def _input_for(self, item) -> int:
		asset = self.project.find_asset(item.asset_id)
		return self.input_index[asset.path]

	#============================
	def _scale_suffix(self, item) -> str:
		asset = self.project.find_asset(item.asset_id)
		width = self.project.settings.width
		height = self.project.settings.height
		if asset.probe is None:
			return ''
		if asset.probe.width == width and asset.probe.height == height:
			return ''
		return (f",scale={width}:{height}:force_original_aspect_ratio=decrease"
			f",pad={width}:{height}:(ow-iw)/2:(oh-ih)/2")

	#============================
	def _add_primary(self, clips: list, video_label: str, audio_label: str) -> None:
		pairs = ''
		for i, clip in enumerate(clips):
			index = self._input_for(clip)
			start = seconds_text(clip.source_in)
			end = seconds_text(clip.source_out)
			scale = self._scale_suffix(clip)
			self.filters.append(
				f"[{index}:v]trim=start={start}:end={end},setpts=PTS-STARTPTS{scale}[v{i}]")
			self.filters.append(
				f"[{index}:a]atrim=start={start}:end={end},asetpts=PTS-STARTPTS[a{i}]")
			pairs += f"[v{i}][a{i}]"
		self.filters.append(
			f"{pairs}concat=n={len(clips)}:v=1:a=1[{video_label}][{audio_label}]")

	#============================
	def _add_pip(self, clips: list, final_label: str) -> None:
		width = self.project.settings.width
		height = self.project.settings.height
		pip_width = width // 4
		pip_height = height // 4
		x = width - pip_width - PIP_MARGIN
		y = height - pip_height - PIP_MARGIN
		current = 'concatv'
		for i, clip in enumerate(clips):
			index = self._input_for(clip)
			start = seconds_text(clip.source_in)
			end = seconds_text(clip.source_out)
			self.filters.append(
				f"[{index}:v]trim=start={start}:end={end},setpts=PTS-STARTPTS,"
				f"scale={pip_width}:{pip_height}[pip_scaled_{i}]")
			label = f"pip_{i}"
			if i == len(clips) - 1:
				label = final_label
			enable = self._enable_window(clip)
			self.filters.append(
				f"[{current}][pip_scaled_{i}]overlay=x={x}:y={y}:{enable}[{label}]")
			current = label

	#============================
	def _add_audio(self, clips: list) -> None:
		mix_inputs = '[concat_a]'
		for i, clip in enumerate(clips):
			index = self._input_for(clip)
			start = seconds_text(clip.source_in)
			end = seconds_text(clip.source_out)
			fade_start = max(clip.duration - AUDIO_FADE, TimeUs.ZERO)
			delay = int(clip.timeline_start) // 1000
			self.filters.append(
				f"[{index}:a]atrim=start={start}:end={end},asetpts=PTS-STARTPTS,"
				f"volume={format_number(clip.volume)},afade=t=in:d=0.1,"
				f"afade=t=out:st={seconds_text(fade_start)}:d=0.1,"
				f"adelay={delay}|{delay}[ovla{i}]")
			mix_inputs += f"[ovla{i}]"
		self.filters.append(
			f"{mix_inputs}amix=inputs={len(clips) + 1}:duration=longest"
			f":dropout_transition=0[outa]")

	#============================
	def _add_images(self, overlays: list) -> None:
		current = 'basev'
		for i, overlay in enumerate(overlays):
			index = self._input_for(overlay)
			self.filters.append(
				f"[{index}:v]scale={overlay.width}:{overlay.height}[img_scaled_{i}]")
			self.filters.append(
				f"[img_scaled_{i}]format=rgba,"
				f"colorchannelmixer=aa={format_number(overlay.opacity)}[img_alpha_{i}]")
			label = f"ov_{i}"
			if i == len(overlays) - 1:
				label = 'outv'
			enable = self._enable_window(overlay)
			self.filters.append(
				f"[{current}][img_alpha_{i}]overlay=x={overlay.x}:y={overlay.y}:{enable}[{label}]")
			current = label

	#============================
	def _add_text(self, overlays: list) -> str:
		stages = []
		for overlay in overlays:
			text = escape_drawtext(overlay.text)
			color = normalize_color(overlay.color)
			enable = self._enable_window(overlay)
			stages.append(
				f"drawtext=text='{text}':fontsize={overlay.font_size}:fontcolor={color}"
				f":x={overlay.x}:y={overlay.y}:{enable}")
		self.filters.append(f"[outv]{','.join(stages)}[outv_txt]")
		return 'outv_txt'

	#============================
	def _enable_window(self, item) -> str:
		start = seconds_text(item.timeline_start)
		end = seconds_text(item.timeline_end)
		return f"enable='between(t,{start},{end})'"

	#============================
	def _output_args(self, video_label: str) -> list:
		settings = self.project.settings
		return [
			'-map', f"[{video_label}]",
			'-map', '[outa]',
			'-c:v', str(self.output['video_codec']),
			'-crf', str(self.output['crf']),
			'-c:a', str(self.output['audio_codec']),
			'-b:a', str(self.output['audio_bitrate']),
			'-ar', str(settings.sample_rate),
			'-pix_fmt', str(self.output['pixel_format']),
			'-vsync', 'cfr',
			'-r', format_number(settings.fps),
		]

#============================================

def compile_project(project, output: dict = None) -> RenderPlan:
	return RenderCompiler(project, output).compile()
