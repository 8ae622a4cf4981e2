#!/usr/bin/env python3

"""
Unit tests for forgecut_tui time formatting helpers.
"""

# Standard Library
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

from forgecut_tui import format_duration
from forgecut_tui import format_eta

#============================================

def test_format_duration_boundaries() -> None:
	"""
	Ensure duration formatting switches at minute/hour boundaries.
	"""
	assert format_duration(12.4) == "12.4s"
	assert format_duration(60.0) == "1m 00.0s"
	assert format_duration(3661.2) == "1h 01m 01.2s"

#============================================

def test_format_eta_rounds_up() -> None:
	"""
	Ensure remaining time rounds up to whole seconds.
	"""
	assert format_eta(None) == "N/A"
	assert format_eta(0.0) == "0s"
	assert format_eta(4.2) == "5s"
	assert format_eta(59.2) == "1m 00s"
	assert format_eta(3725) == "1h 02m 05s"
