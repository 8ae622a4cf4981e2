#!/usr/bin/env python3

import os
import re
import subprocess
import time

#============================================

_QUIET_MODE = False
_COMMAND_REPORTER = None
_COMMAND_TOTAL = None
_COMMAND_INDEX = 0

#============================================

def set_quiet_mode(quiet: bool) -> None:
	global _QUIET_MODE
	_QUIET_MODE = bool(quiet)
	return

#============================================

def is_quiet_mode() -> bool:
	return _QUIET_MODE

#============================================

def set_command_reporter(reporter) -> None:
	global _COMMAND_REPORTER
	_COMMAND_REPORTER = reporter
	return

#============================================

def clear_command_reporter() -> None:
	global _COMMAND_REPORTER
	_COMMAND_REPORTER = None
	return

#============================================

def set_command_total(total) -> None:
	global _COMMAND_TOTAL, _COMMAND_INDEX
	_COMMAND_TOTAL = total
	_COMMAND_INDEX = 0
	return

#============================================

def command_prefix(index: int, total) -> str:
	if index is None or index <= 0:
		return ""
	if total is None or total <= 0:
		return f"[{index}]"
	return f"[{index}/{total}]"

#============================================

def log(message: str) -> None:
	if _QUIET_MODE:
		return
	print(message)

#============================================

def report_command_event(event: dict) -> None:
	"""
	Forward a command start/end event to the registered reporter.
	"""
	global _COMMAND_INDEX
	if event.get('event') == 'start':
		_COMMAND_INDEX += 1
		event.setdefault('index', _COMMAND_INDEX)
		event.setdefault('total', _COMMAND_TOTAL)
	if _COMMAND_REPORTER is None:
		return
	_COMMAND_REPORTER(event)

#============================================

def runCmd(cmd: str) -> int:
	showcmd = cmd.strip()
	showcmd = re.sub("  *", " ", showcmd)
	log(f"CMD: '{showcmd}'")
	report_command_event({'event': 'start', 'command': showcmd})
	start = time.time()
	proc = subprocess.Popen(showcmd, shell=True, stderr=subprocess.PIPE,
		stdout=subprocess.PIPE)
	proc.communicate()
	report_command_event({
		'event': 'end',
		'command': showcmd,
		'returncode': proc.returncode,
		'seconds': time.time() - start,
	})
	return proc.returncode

#============================================

def ensure_file_exists(filepath: str) -> None:
	if not os.path.exists(filepath):
		raise RuntimeError(f"file not found: {filepath}")
	return

