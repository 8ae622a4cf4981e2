#!/usr/bin/env python3

import asyncio
import codecs
import collections
import re
import shlex
import time

from forgecutlib.core import utils
from forgecutlib.core.errors import FfmpegFailed
from forgecutlib.core.errors import FfmpegNotFound
from forgecutlib.core.errors import RenderError
from forgecutlib.render.plan import RenderPlan
from forgecutlib.render.plan import build_ffmpeg_args
from forgecutlib.render.progress import ProgressChannel
from forgecutlib.render.progress import RenderProgress
from forgecutlib.render.progress import parse_progress

#============================================

READ_CHUNK = 4096
STDERR_TAIL = 20
LINE_SPLIT = re.compile(r"[\r\n]")

#============================================

def _publish_lines(lines: list, channel: ProgressChannel, total_seconds: float,
	tail: collections.deque) -> None:
	for line in lines:
		line = line.strip()
		if line == '':
			continue
		progress = parse_progress(line, total_seconds)
		if progress is None:
			tail.append(line)
			continue
		channel.send(progress)

#============================================

async def execute(plan: RenderPlan, channel: ProgressChannel, total_seconds: float,
	ffmpeg_bin: str = 'ffmpeg') -> None:
	"""
	Run ffmpeg for a compiled plan and publish progress while it runs.

	The channel is closed when this returns or raises.
	"""
	args = build_ffmpeg_args(plan)
	command = ' '.join(shlex.quote(part) for part in [ffmpeg_bin] + args)
	utils.log(f"CMD: '{command}'")
	utils.report_command_event({'event': 'start', 'command': command})
	start = time.time()
	tail = collections.deque(maxlen=STDERR_TAIL)
	returncode = None
	try:
		try:
			proc = await asyncio.create_subprocess_exec(ffmpeg_bin, *args,
				stdin=asyncio.subprocess.DEVNULL,
				stdout=asyncio.subprocess.DEVNULL,
				stderr=asyncio.subprocess.PIPE)
		except FileNotFoundError as exc:
			raise FfmpegNotFound(ffmpeg_bin) from exc
		except OSError as exc:
			raise RenderError(f"cannot start ffmpeg: {ffmpeg_bin}: {exc}") from exc
		# multibyte characters may straddle reads
		decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
		pending = ''
		while True:
			chunk = await proc.stderr.read(READ_CHUNK)
			if not chunk:
				break
			pending += decoder.decode(chunk)
			lines = LINE_SPLIT.split(pending)
			# the last piece may be a partial line
			pending = lines.pop()
			_publish_lines(lines, channel, total_seconds, tail)
		pending += decoder.decode(b'', final=True)
		_publish_lines([pending], channel, total_seconds, tail)
		returncode = await proc.wait()
		if returncode != 0:
			raise FfmpegFailed(returncode, list(tail))
		(_version, last) = channel.latest()
		channel.send(RenderProgress(percent=100.0, frame=last.frame, fps=last.fps,
			speed=last.speed, eta_seconds=0.0, elapsed_seconds=total_seconds))
	finally:
		channel.close()
		utils.report_command_event({
			'event': 'end',
			'command': command,
			'returncode': returncode if returncode is not None else -1,
			'seconds': time.time() - start,
		})
