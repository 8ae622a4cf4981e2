#!/usr/bin/env python3

import argparse
import asyncio
import os
import threading
import time

import yaml
from tqdm import tqdm

from forgecutlib.core import utils
from forgecutlib.core.project import ASSET_AUDIO
from forgecutlib.core.project import ASSET_IMAGE
from forgecutlib.core.project import ASSET_VIDEO
from forgecutlib.core.project import PRESETS
from forgecutlib.core.project import Project
from forgecutlib.core.project import get_preset
from forgecutlib.core.session import EditSession
from forgecutlib.core.timeline import TRACK_AUDIO
from forgecutlib.core.timeline import TRACK_OVERLAY_IMAGE
from forgecutlib.core.timeline import TRACK_VIDEO
from forgecutlib.media import probe
from forgecutlib.media import thumbnails
from forgecutlib.render.compiler import compile_project
from forgecutlib.render.progress import ProgressChannel

#============================================

def parse_args():
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(description="forgecut project editor and exporter")
	parser.add_argument('-f', '--project', dest='project_file', required=True,
		help='forgecut project file to load or create')
	parser.add_argument('--new', dest='new_project', action='store_true',
		help='create a new project instead of loading one')
	parser.add_argument('--preset', dest='preset', default='1080p',
		choices=sorted(PRESETS), help='settings preset for new projects')
	parser.add_argument('--name', dest='name', default=None,
		help='name for a new project')
	parser.add_argument('-i', '--import', dest='import_files', action='append',
		default=[], help='media file to import and append to the timeline')
	parser.add_argument('-o', '--output', dest='output_file',
		help='render output file, defaults to the project name with .mp4')
	parser.add_argument('-n', '--dry-run', dest='dry_run', action='store_true',
		help='compile only, do not render')
	parser.add_argument('-p', '--dump-plan', dest='dump_plan', action='store_true',
		help='print the compiled render plan')
	parser.add_argument('--ffmpeg', dest='ffmpeg_bin', default='ffmpeg',
		help='ffmpeg executable')
	parser.add_argument('--ffprobe', dest='ffprobe_bin', default='ffprobe',
		help='ffprobe executable')
	parser.add_argument('--proxies', dest='proxy_dir', default=None,
		help='generate 720p editing proxies for video assets in this folder')
	parser.add_argument('--history-depth', dest='history_depth', type=int, default=100,
		help='number of undo steps to keep')
	parser.add_argument('-q', '--quiet', dest='quiet', action='store_true',
		help='suppress status messages')
	args = parser.parse_args()
	return args

#============================================

def open_session(args) -> EditSession:
	if args.new_project:
		name = args.name
		if name is None:
			name = os.path.splitext(os.path.basename(args.project_file))[0]
		project = Project(name=name, settings=get_preset(args.preset))
		session = EditSession(project, history_depth=args.history_depth)
		session.ensure_default_tracks()
		return session
	session = EditSession(history_depth=args.history_depth)
	session.load(args.project_file)
	return session

#============================================

def import_media(session: EditSession, mediafile: str, ffprobe_bin: str) -> None:
	asset = probe.import_asset(mediafile, ffprobe_bin)
	session.add_asset(asset)
	kind = TRACK_VIDEO
	if asset.kind == ASSET_AUDIO:
		kind = TRACK_AUDIO
	elif asset.kind == ASSET_IMAGE:
		kind = TRACK_OVERLAY_IMAGE
	track_id = session.ensure_track(kind)
	session.append_asset_clip(asset.id, track_id)
	utils.log(f"imported {asset.kind}: {asset.path}")

#============================================

def generate_proxies(session: EditSession, proxy_dir: str) -> list:
	assets = [asset for asset in session.snapshot().assets if asset.kind == ASSET_VIDEO]
	utils.set_command_total(len(assets))
	paths = []
	for asset in assets:
		paths.append(thumbnails.generate_proxy(asset.path, proxy_dir, asset.id))
	utils.set_command_total(None)
	return paths

#============================================

def _progress_postfix(progress) -> dict:
	postfix = {'frame': progress.frame}
	if progress.speed:
		postfix['speed'] = progress.speed
	if progress.eta_seconds is not None:
		postfix['eta'] = f"{progress.eta_seconds:.1f}s"
	return postfix

#============================================

def run_export(session: EditSession, output_file: str, ffmpeg_bin: str) -> None:
	channel = ProgressChannel()
	failures = []

	def worker():
		try:
			asyncio.run(session.export(output_file, channel, ffmpeg_bin=ffmpeg_bin))
		except Exception as exc:
			failures.append(exc)
		finally:
			channel.close()

	thread = threading.Thread(target=worker, daemon=True)
	thread.start()
	seen_version = 0
	with tqdm(total=100.0, unit='%', disable=utils.is_quiet_mode(),
		bar_format="{l_bar}{bar}| {n:.1f}/{total:.0f}% [{elapsed}{postfix}]") as bar:
		while True:
			done = channel.closed
			(version, progress) = channel.latest()
			if version != seen_version:
				seen_version = version
				bar.n = round(progress.percent, 1)
				bar.set_postfix(_progress_postfix(progress), refresh=False)
				bar.refresh()
			if done:
				break
			time.sleep(0.2)
	thread.join()
	if failures:
		raise failures[0]
	utils.log(f"complete: {output_file}")

#============================================

def main():
	args = parse_args()
	utils.set_quiet_mode(args.quiet)
	session = open_session(args)
	for mediafile in args.import_files:
		import_media(session, mediafile, args.ffprobe_bin)
	if args.new_project or len(args.import_files) > 0:
		args.project_file = session.save(args.project_file)
	if args.proxy_dir is not None:
		for path in generate_proxies(session, args.proxy_dir):
			utils.log(f"proxy: {path}")
	if args.dump_plan:
		plan = compile_project(session.snapshot())
		print(yaml.safe_dump(plan.to_dict(), sort_keys=False))
		return
	if args.dry_run:
		plan = compile_project(session.snapshot())
		utils.log(f"plan ok: {len(plan.inputs)} inputs, "
			f"{len(plan.filter_graph.split(';'))} filter stages")
		return
	output_file = args.output_file
	if output_file is None:
		output_file = os.path.splitext(args.project_file)[0] + '.mp4'
	run_export(session, output_file, args.ffmpeg_bin)


if __name__ == '__main__':
	main()
