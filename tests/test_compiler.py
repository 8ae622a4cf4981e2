#!/usr/bin/env python3

"""
Pytest coverage for render plan compilation.
"""

# Standard Library
import os
import sys

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from forgecutlib.core.errors import AssetNotFound
from forgecutlib.core.errors import NoClips
from forgecutlib.core.items import AudioClip
from forgecutlib.core.items import ImageOverlay
from forgecutlib.core.items import TextOverlay
from forgecutlib.core.items import VideoClip
from forgecutlib.core.project import Asset
from forgecutlib.core.project import ProbeResult
from forgecutlib.core.project import Project
from forgecutlib.core.project import ProjectSettings
from forgecutlib.core.timeline import TRACK_AUDIO
from forgecutlib.core.timeline import TRACK_OVERLAY_IMAGE
from forgecutlib.core.timeline import TRACK_OVERLAY_TEXT
from forgecutlib.core.timeline import TRACK_VIDEO
from forgecutlib.render.compiler import compile_project
from forgecutlib.render.compiler import escape_drawtext
from forgecutlib.render.compiler import normalize_color
from forgecutlib.render.plan import build_ffmpeg_args

#============================================

SECOND = 1000000

#============================================

def _project(probe: ProbeResult = None) -> tuple:
	project = Project(name='test', settings=ProjectSettings(1920, 1080, 30.0, 48000))
	project.add_asset(Asset(id='vid', name='a.mp4', path='/media/a.mp4', kind='video',
		probe=probe))
	video = project.timeline.add_track(TRACK_VIDEO)
	return (project, video)

#============================================

def _clip(item_id: str, start: int, source_in: int, source_out: int,
	asset_id: str = 'vid') -> VideoClip:
	return VideoClip(id=item_id, asset_id=asset_id, track_id='',
		timeline_start=start, source_in=source_in, source_out=source_out)

#============================================

def test_no_video_track_is_no_clips() -> None:
	"""
	Ensure compiling without a video track fails.
	"""
	project = Project()
	project.timeline.add_track(TRACK_AUDIO)
	with pytest.raises(NoClips):
		compile_project(project)

#============================================

def test_empty_primary_track_is_no_clips() -> None:
	"""
	Ensure compiling an empty primary track fails.
	"""
	(project, _video) = _project()
	with pytest.raises(NoClips):
		compile_project(project)

#============================================

def test_missing_asset() -> None:
	"""
	Ensure dangling asset references are reported.
	"""
	(project, video) = _project()
	project.timeline.add_item(video.id, _clip('a', 0, 0, SECOND, asset_id='gone'))
	with pytest.raises(AssetNotFound):
		compile_project(project)

#============================================

def test_two_clips_same_asset_dedup() -> None:
	"""
	Ensure one input per asset path and a two-way concat.
	"""
	(project, video) = _project()
	project.timeline.add_item(video.id, _clip('b', 5 * SECOND, 10 * SECOND, 12 * SECOND))
	project.timeline.add_item(video.id, _clip('a', 0, 0, 5 * SECOND))
	plan = compile_project(project)
	assert len(plan.inputs) == 1
	assert plan.inputs[0].path == '/media/a.mp4'
	filters = plan.filter_graph.split(';')
	assert filters == [
		"[0:v]trim=start=0:end=5,setpts=PTS-STARTPTS[v0]",
		"[0:a]atrim=start=0:end=5,asetpts=PTS-STARTPTS[a0]",
		"[0:v]trim=start=10:end=12,setpts=PTS-STARTPTS[v1]",
		"[0:a]atrim=start=10:end=12,asetpts=PTS-STARTPTS[a1]",
		"[v0][a0][v1][a1]concat=n=2:v=1:a=1[outv][outa]",
	]
	assert plan.output_path == 'output.mp4'
	assert plan.output_args == [
		'-map', '[outv]', '-map', '[outa]',
		'-c:v', 'libx264', '-crf', '23',
		'-c:a', 'aac', '-b:a', '192k', '-ar', '48000',
		'-pix_fmt', 'yuv420p', '-vsync', 'cfr', '-r', '30',
	]

#============================================

def test_scale_when_probe_differs() -> None:
	"""
	Ensure mismatched sources are letterboxed to the project size.
	"""
	probe = ProbeResult(duration=10 * SECOND, width=1280, height=720, fps=30.0)
	(project, video) = _project(probe)
	project.timeline.add_item(video.id, _clip('a', 0, 0, 1500000))
	plan = compile_project(project)
	first = plan.filter_graph.split(';')[0]
	assert first == (
		"[0:v]trim=start=0:end=1.5,setpts=PTS-STARTPTS,"
		"scale=1920:1080:force_original_aspect_ratio=decrease,"
		"pad=1920:1080:(ow-iw)/2:(oh-ih)/2[v0]"
	)

#============================================

def test_no_scale_when_probe_matches() -> None:
	"""
	Ensure matching sources skip the scale stage.
	"""
	probe = ProbeResult(duration=10 * SECOND, width=1920, height=1080, fps=30.0)
	(project, video) = _project(probe)
	project.timeline.add_item(video.id, _clip('a', 0, 0, SECOND))
	plan = compile_project(project)
	assert 'scale=' not in plan.filter_graph

#============================================

def test_pip_from_second_video_track() -> None:
	"""
	Ensure clips on later video tracks become quarter size overlays.
	"""
	(project, video) = _project()
	project.add_asset(Asset(id='cam', name='b.mp4', path='/media/b.mp4', kind='video'))
	second = project.timeline.add_track(TRACK_VIDEO)
	project.timeline.add_item(video.id, _clip('a', 0, 0, 10 * SECOND))
	project.timeline.add_item(second.id, _clip('p', 2 * SECOND, 0, 3 * SECOND, asset_id='cam'))
	plan = compile_project(project)
	filters = plan.filter_graph.split(';')
	assert [entry.path for entry in plan.inputs] == ['/media/a.mp4', '/media/b.mp4']
	assert filters[2] == "[v0][a0]concat=n=1:v=1:a=1[concatv][outa]"
	assert filters[3] == "[1:v]trim=start=0:end=3,setpts=PTS-STARTPTS,scale=480:270[pip_scaled_0]"
	assert filters[4] == (
		"[concatv][pip_scaled_0]overlay=x=1420:y=790:enable='between(t,2,5)'[outv]"
	)

#============================================

def test_audio_mix() -> None:
	"""
	Ensure audio track clips are faded, delayed and mixed.
	"""
	(project, video) = _project()
	project.add_asset(Asset(id='music', name='m.wav', path='/media/m.wav', kind='audio'))
	audio = project.timeline.add_track(TRACK_AUDIO)
	project.timeline.add_item(video.id, _clip('a', 0, 0, 10 * SECOND))
	project.timeline.add_item(audio.id, AudioClip(id='m', asset_id='music', track_id='',
		timeline_start=1500000, source_in=0, source_out=4 * SECOND, volume=0.8))
	plan = compile_project(project)
	filters = plan.filter_graph.split(';')
	assert filters[2] == "[v0][a0]concat=n=1:v=1:a=1[outv][concat_a]"
	assert filters[3] == (
		"[1:a]atrim=start=0:end=4,asetpts=PTS-STARTPTS,volume=0.8,afade=t=in:d=0.1,"
		"afade=t=out:st=3.9:d=0.1,adelay=1500|1500[ovla0]"
	)
	assert filters[4] == "[concat_a][ovla0]amix=inputs=2:duration=longest:dropout_transition=0[outa]"

#============================================

def test_image_and_text_overlays() -> None:
	"""
	Ensure image overlays chain onto the base and text draws last.
	"""
	(project, video) = _project()
	project.add_asset(Asset(id='logo', name='logo.png', path='/media/logo.png', kind='image'))
	images = project.timeline.add_track(TRACK_OVERLAY_IMAGE)
	texts = project.timeline.add_track(TRACK_OVERLAY_TEXT)
	project.timeline.add_item(video.id, _clip('a', 0, 0, 10 * SECOND))
	project.timeline.add_item(images.id, ImageOverlay(id='i2', asset_id='logo', track_id='',
		timeline_start=5 * SECOND, duration=SECOND, x=5, y=6, width=64, height=32,
		opacity=1.0))
	project.timeline.add_item(images.id, ImageOverlay(id='i1', asset_id='logo', track_id='',
		timeline_start=0, duration=2 * SECOND, x=10, y=20, width=100, height=50,
		opacity=0.5))
	project.timeline.add_item(texts.id, TextOverlay(id='t', track_id='', timeline_start=SECOND,
		duration=2 * SECOND, text="it's", font_size=40, color='#FF0000', x=1, y=2))
	plan = compile_project(project)
	filters = plan.filter_graph.split(';')
	assert len(plan.inputs) == 2
	assert filters[2] == "[v0][a0]concat=n=1:v=1:a=1[basev][outa]"
	assert filters[3] == "[1:v]scale=100:50[img_scaled_0]"
	assert filters[4] == "[img_scaled_0]format=rgba,colorchannelmixer=aa=0.5[img_alpha_0]"
	assert filters[5] == "[basev][img_alpha_0]overlay=x=10:y=20:enable='between(t,0,2)'[ov_0]"
	assert filters[8] == "[ov_0][img_alpha_1]overlay=x=5:y=6:enable='between(t,5,6)'[outv]"
	assert filters[9] == (
		"[outv]drawtext=text='it'\\''s':fontsize=40:fontcolor=0xff0000"
		":x=1:y=2:enable='between(t,1,3)'[outv_txt]"
	)
	assert plan.output_args[:2] == ['-map', '[outv_txt]']

#============================================

def test_pip_then_images_use_basev() -> None:
	"""
	Ensure PiP hands off to image overlays through basev.
	"""
	(project, video) = _project()
	project.add_asset(Asset(id='logo', name='logo.png', path='/media/logo.png', kind='image'))
	second = project.timeline.add_track(TRACK_VIDEO)
	images = project.timeline.add_track(TRACK_OVERLAY_IMAGE)
	project.timeline.add_item(video.id, _clip('a', 0, 0, 10 * SECOND))
	project.timeline.add_item(second.id, _clip('p', 0, 0, SECOND))
	project.timeline.add_item(images.id, ImageOverlay(id='i', asset_id='logo', track_id='',
		timeline_start=0, duration=SECOND))
	plan = compile_project(project)
	assert "[pip_scaled_0]overlay=x=1420:y=790:enable='between(t,0,1)'[basev]" in plan.filter_graph
	assert "[basev][img_alpha_0]overlay=x=0:y=0:enable='between(t,0,1)'[outv]" in plan.filter_graph

#============================================

def test_output_overrides() -> None:
	"""
	Ensure output settings can be overridden.
	"""
	(project, video) = _project()
	project.timeline.add_item(video.id, _clip('a', 0, 0, SECOND))
	plan = compile_project(project, {'crf': 18, 'file': 'final.mp4'})
	assert plan.output_path == 'final.mp4'
	crf_index = plan.output_args.index('-crf')
	assert plan.output_args[crf_index + 1] == '18'

#============================================

def test_compile_does_not_mutate_project() -> None:
	"""
	Ensure compilation is a pure read of the project.
	"""
	(project, video) = _project()
	project.timeline.add_item(video.id, _clip('b', 5 * SECOND, 0, SECOND))
	project.timeline.add_item(video.id, _clip('a', 0, 0, SECOND))
	before = project.snapshot()
	compile_project(project)
	assert project == before

#============================================

def test_build_ffmpeg_args() -> None:
	"""
	Ensure the argument list order matches the ffmpeg command line.
	"""
	(project, video) = _project()
	project.timeline.add_item(video.id, _clip('a', 0, 0, SECOND))
	plan = compile_project(project)
	plan.output_path = '/tmp/out.mp4'
	args = build_ffmpeg_args(plan)
	assert args[:3] == ['-y', '-i', '/media/a.mp4']
	assert args[3:5] == ['-filter_complex', plan.filter_graph]
	assert args[5:-1] == plan.output_args
	assert args[-1] == '/tmp/out.mp4'

#============================================

def test_text_helpers() -> None:
	"""
	Ensure drawtext escaping and color normalization.
	"""
	assert escape_drawtext("a'b") == "a'\\''b"
	assert normalize_color('#ffffff') == '0xffffff'
	assert normalize_color('red') == '0xff0000'
	assert normalize_color('#fff') == '0xffffff'
	assert normalize_color('not-a-color') == '0xnot-a-color'
