#!/usr/bin/env python3

"""
Textual dashboard for forgecut exports.
"""

# Standard Library
import argparse
import asyncio
import os
import re
import sys
import threading
import time
import traceback

script_dir = os.path.dirname(os.path.abspath(__file__))
if script_dir not in sys.path:
	sys.path.insert(0, script_dir)

# PIP3 modules
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import RichLog, Static
from rich.text import Text

# local repo modules
from forgecutlib.core import utils
from forgecutlib.core.session import EditSession
from forgecutlib.render.progress import ProgressChannel

#============================================

NORD_COLORS = {
	'background': "#2E3440",
	'foreground': "#D8DEE9",
	'dim': "#4C566A",
	'header': "#88C0D0",
	'command': "#ECEFF4",
	'flags': "#81A1C1",
	'numbers': "#B48EAD",
	'paths': "#A3BE8C",
	'strings': "#EBCB8B",
	'error': "#BF616A",
}

#============================================

def parse_args():
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(description="forgecut export dashboard")
	parser.add_argument('-f', '--project', dest='project_file', required=True,
		help='forgecut project file to export')
	parser.add_argument('-o', '--output', dest='output_file',
		help='render output file, defaults to the project name with .mp4')
	parser.add_argument('--ffmpeg', dest='ffmpeg_bin', default='ffmpeg',
		help='ffmpeg executable')
	parser.add_argument('-d', '--debug', dest='debug_log', action='store_true',
		help='write debug log to forgecut_tui.log in the current directory')
	args = parser.parse_args()
	return args

#============================================

def format_duration(seconds: float) -> str:
	if seconds < 60:
		return f"{seconds:.1f}s"
	minutes = int(seconds // 60)
	remaining = seconds - (minutes * 60)
	seconds_text = f"{remaining:04.1f}"
	if minutes < 60:
		return f"{minutes}m {seconds_text}s"
	hours = int(minutes // 60)
	minutes = minutes - (hours * 60)
	return f"{hours}h {minutes:02d}m {seconds_text}s"

#============================================

def format_eta(seconds) -> str:
	if seconds is None:
		return "N/A"
	rounded = int(seconds)
	if seconds > rounded:
		rounded += 1
	if rounded < 60:
		return f"{rounded:d}s"
	minutes = rounded // 60
	remaining = rounded - (minutes * 60)
	if minutes < 60:
		return f"{minutes}m {remaining:02d}s"
	hours = minutes // 60
	minutes = minutes - (hours * 60)
	return f"{hours}h {minutes:02d}m {remaining:02d}s"

#============================================

class ForgecutTuiApp(App):
	BINDINGS = [
		("q", "quit", "Quit"),
	]

	CSS = """
	#root {
		height: 1fr;
	}

	#top_row {
		height: 40%;
		min-height: 9;
	}

	#left_panel {
		width: 45%;
		height: 1fr;
		border: solid gray;
	}

	#right_panel {
		width: 55%;
		height: 1fr;
		border: solid gray;
	}

	#metrics_title {
		height: 1;
		color: #88C0D0;
	}

	#metrics {
		height: 1fr;
	}

	#project_title {
		height: 1;
		color: #88C0D0;
	}

	#project_info {
		height: 1fr;
	}

	#footer_note {
		height: 1;
		color: #4C566A;
	}

	#log {
		height: 1fr;
		border: solid gray;
	}
	"""

	def __init__(self, project_file: str, output_file: str = None,
		ffmpeg_bin: str = 'ffmpeg', debug_log: bool = False):
		super().__init__()
		self.project_file = project_file
		self.output_file = output_file
		if self.output_file is None:
			self.output_file = os.path.splitext(project_file)[0] + '.mp4'
		self.ffmpeg_bin = ffmpeg_bin
		self.session = None
		self.channel = ProgressChannel()
		self.seen_version = 0
		self.progress = None
		self.start_time = None
		self.finish_time = None
		self.error_text = None
		self.metrics_widget = None
		self.project_widget = None
		self.log_widget = None
		self.finished = False
		self.command_styles = self._build_command_styles()
		self.debug_mode = debug_log
		self.log_path = None
		self.log_lock = threading.Lock()
		if self.debug_mode:
			self.log_path = os.path.join(os.getcwd(), "forgecut_tui.log")
			self._reset_log()
			self._write_log(f"debug log: {self.log_path}")

	#============================
	def compose(self) -> ComposeResult:
		yield Static("FORGECUT EXPORT", id="header")
		with Vertical(id="root"):
			with Horizontal(id="top_row"):
				with Vertical(id="left_panel"):
					yield Static("Dashboard", id="metrics_title")
					yield Static("", id="metrics")
					yield Static("Press q to quit", id="footer_note")
				with Vertical(id="right_panel"):
					yield Static("Project", id="project_title")
					yield Static("", id="project_info")
			yield RichLog(id="log", wrap=True, highlight=False)

	#============================
	def on_mount(self) -> None:
		self.metrics_widget = self.query_one("#metrics", Static)
		self.project_widget = self.query_one("#project_info", Static)
		self.log_widget = self.query_one(RichLog)
		self.start_time = time.time()
		self._update_project_info()
		thread = threading.Thread(target=self._run_export, daemon=True)
		thread.start()
		self.set_interval(0.5, self._refresh_status)

	#============================
	def _refresh_status(self) -> None:
		(version, progress) = self.channel.latest()
		if version != self.seen_version:
			self.seen_version = version
			self.progress = progress
		self._update_metrics()

	#============================
	def _run_export(self) -> None:
		utils.set_quiet_mode(True)
		utils.set_command_reporter(self._report_command)
		try:
			session = EditSession()
			session.load(self.project_file)
			self.session = session
			self.call_from_thread(self._update_project_info)
			asyncio.run(session.export(self.output_file, self.channel,
				ffmpeg_bin=self.ffmpeg_bin))
		except Exception as exc:
			self.call_from_thread(self._set_error, str(exc), traceback.format_exc())
		finally:
			self.channel.close()
			utils.clear_command_reporter()
			utils.set_quiet_mode(False)
			self.call_from_thread(self._finish)

	#============================
	def _set_error(self, text: str, trace_text: str = None) -> None:
		self.error_text = text
		if trace_text:
			self._write_log(trace_text)
		if self.log_widget is not None:
			self.log_widget.write(
				Text(f"error: {text}", style=f"bold {NORD_COLORS['error']}")
			)

	#============================
	def _finish(self) -> None:
		if self.log_widget is None or self.metrics_widget is None:
			return
		self.finished = True
		if self.start_time is not None and self.finish_time is None:
			self.finish_time = time.time() - self.start_time
		(_version, self.progress) = self.channel.latest()
		if self.error_text is None:
			self.log_widget.write(f"complete: {self.output_file}")
			self._write_log(f"complete: {self.output_file}")
		else:
			self.log_widget.write("complete with errors")
			self._write_log("complete with errors")
		self._update_metrics()

	#============================
	def _report_command(self, event: dict) -> None:
		self.call_from_thread(self._handle_command_event, event)

	#============================
	def _handle_command_event(self, event: dict) -> None:
		if self.log_widget is None:
			return
		command = event.get('command', '')
		if event.get('event') == 'start':
			prefix = utils.command_prefix(event.get('index'), event.get('total'))
			if prefix:
				self.log_widget.write(Text(prefix, style=NORD_COLORS['dim']))
			self.log_widget.write(self._highlight_command(command))
			self._write_log(f"start: {command}")
			return
		code = event.get('returncode', 0)
		seconds = event.get('seconds', 0.0)
		if code != 0:
			self.log_widget.write(
				Text(f"ffmpeg exited with code {code}", style=f"bold {NORD_COLORS['error']}")
			)
			self._write_log(f"error ({code}): {command}")
			return
		self._write_log(f"end ({seconds:.3f}s): {command}")

	#============================
	def _write_log(self, message: str) -> None:
		if not self.debug_mode or self.log_path is None:
			return
		timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
		line = f"[{timestamp}] {message}\n"
		with self.log_lock:
			with open(self.log_path, "a", encoding="utf-8") as handle:
				handle.write(line)

	#============================
	def _reset_log(self) -> None:
		if not self.debug_mode or self.log_path is None:
			return
		with self.log_lock:
			with open(self.log_path, "w", encoding="utf-8"):
				return

	#============================
	def _status_text(self) -> str:
		if self.error_text is not None:
			return "failed"
		if self.finished:
			return "done"
		if self.progress is None:
			return "starting"
		return "rendering"

	#============================
	def _update_metrics(self) -> None:
		if self.metrics_widget is None:
			return
		if self.start_time is None:
			elapsed = 0.0
		elif self.finished:
			elapsed = self.finish_time or (time.time() - self.start_time)
		else:
			elapsed = time.time() - self.start_time
		status = self._status_text()
		status_style = NORD_COLORS['foreground']
		if status == "failed":
			status_style = NORD_COLORS['error']
		elif status == "done":
			status_style = NORD_COLORS['paths']
		metrics = Text()
		metrics.append("Status: ", style=NORD_COLORS['dim'])
		metrics.append(status, style=status_style)
		metrics.append("\n")
		metrics.append("Elapsed: ", style=NORD_COLORS['dim'])
		metrics.append(format_duration(elapsed), style=NORD_COLORS['numbers'])
		metrics.append("\n")
		progress = self.progress
		if progress is None:
			metrics.append("Waiting for ffmpeg", style=NORD_COLORS['dim'])
			self.metrics_widget.update(metrics)
			return
		metrics.append("Progress: ", style=NORD_COLORS['dim'])
		metrics.append(f"{progress.percent:.1f}%", style=NORD_COLORS['numbers'])
		metrics.append(" | ETA: ", style=NORD_COLORS['dim'])
		eta_text = format_eta(progress.eta_seconds)
		eta_style = NORD_COLORS['numbers']
		if eta_text == "N/A":
			eta_style = NORD_COLORS['dim']
		metrics.append(eta_text, style=eta_style)
		metrics.append("\n")
		metrics.append("Frame: ", style=NORD_COLORS['dim'])
		metrics.append(f"{progress.frame}", style=NORD_COLORS['numbers'])
		metrics.append(" | fps: ", style=NORD_COLORS['dim'])
		metrics.append(f"{progress.fps:.1f}", style=NORD_COLORS['numbers'])
		metrics.append(" | speed: ", style=NORD_COLORS['dim'])
		metrics.append(progress.speed or "N/A", style=NORD_COLORS['numbers'])
		self.metrics_widget.update(metrics)

	#============================
	def _update_project_info(self) -> None:
		if self.project_widget is None:
			return
		project = Text()
		project.append("Project: ", style=NORD_COLORS['dim'])
		project.append(self.project_file, style=NORD_COLORS['paths'])
		project.append("\n")
		project.append("Output: ", style=NORD_COLORS['dim'])
		project.append(self.output_file, style=NORD_COLORS['paths'])
		if self.session is not None:
			snapshot = self.session.snapshot()
			settings = snapshot.settings
			item_count = len(list(snapshot.timeline.items()))
			project.append("\n")
			project.append("Settings: ", style=NORD_COLORS['dim'])
			project.append(
				f"{settings.width}x{settings.height} @ {settings.fps:g} fps, "
				f"{settings.sample_rate} Hz",
				style=NORD_COLORS['numbers'],
			)
			project.append("\n")
			project.append("Timeline: ", style=NORD_COLORS['dim'])
			project.append(
				f"{len(snapshot.timeline.tracks)} tracks, {item_count} items, "
				f"{snapshot.total_duration()}",
				style=NORD_COLORS['foreground'],
			)
		if self.debug_mode and self.log_path is not None:
			project.append("\n")
			project.append("Debug log: ", style=NORD_COLORS['dim'])
			project.append(self.log_path, style=NORD_COLORS['paths'])
		self.project_widget.update(project)

	#============================
	def _build_command_styles(self) -> list:
		return [
			(re.compile(r"\blibx264\b|\baac\b|\byuv420p\b"), NORD_COLORS['foreground']),
			(re.compile(r"--?[A-Za-z0-9][A-Za-z0-9_:-]*"), NORD_COLORS['flags']),
			(re.compile(r"\b\d+\.\d+\b"), NORD_COLORS['numbers']),
			(re.compile(r"\b\d+\b(?!\.\d)"), NORD_COLORS['numbers']),
			(re.compile(r"'[^']*'|\"[^\"]*\""), NORD_COLORS['strings']),
			(re.compile(r"(?:/|~|\./|\.\./)[^\s'\"`]+"), NORD_COLORS['paths']),
		]

	#============================
	def _highlight_command(self, command: str):
		if command is None or command == "":
			return ""
		text = Text(command, style=f"bold {NORD_COLORS['command']}")
		for pattern, style in self.command_styles:
			for match in pattern.finditer(command):
				text.stylize(style, match.start(), match.end())
		return text

#============================================

def main():
	args = parse_args()
	sys.argv = [arg for arg in sys.argv if arg not in ("-d", "--debug")]
	app = ForgecutTuiApp(args.project_file,
		output_file=args.output_file,
		ffmpeg_bin=args.ffmpeg_bin,
		debug_log=args.debug_log)
	app.run()

#============================================

if __name__ == '__main__':
	main()
