#!/usr/bin/env python3

"""
Unit tests for the microsecond time type and timecode helpers.
"""

# Standard Library
import copy
import os
import sys

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from forgecutlib.core.timecode import TimeUs
from forgecutlib.core.timecode import format_number
from forgecutlib.core.timecode import parse_timecode
from forgecutlib.core.timecode import seconds_text

#============================================

def test_from_seconds_is_exact() -> None:
	"""
	Ensure decimal seconds convert without float drift.
	"""
	assert TimeUs.from_seconds(0.1) == 100000
	assert TimeUs.from_seconds(2.5) == 2500000
	assert TimeUs.from_seconds("1.000001") == 1000001
	assert TimeUs.from_seconds(3) == 3000000
	assert isinstance(TimeUs.from_seconds(1.5), TimeUs)

#============================================

def test_from_seconds_truncates_sub_microsecond() -> None:
	"""
	Ensure fractions of a microsecond are dropped toward zero.
	"""
	assert TimeUs.from_seconds("0.0000019") == 1
	assert TimeUs.from_seconds("-0.0000019") == -1

#============================================

def test_as_seconds() -> None:
	"""
	Ensure conversion back to float seconds.
	"""
	assert TimeUs(1500000).as_seconds() == 1.5
	assert TimeUs(-250000).as_seconds() == -0.25

#============================================

def test_arithmetic_stays_timeus() -> None:
	"""
	Ensure integer arithmetic keeps the TimeUs type.
	"""
	start = TimeUs(1000000)
	total = start + TimeUs(500000)
	assert total == 1500000
	assert isinstance(total, TimeUs)
	assert isinstance(start - 250000, TimeUs)
	assert isinstance(3 * start, TimeUs)
	assert start * 3 == 3000000
	assert start // 3 == 333333
	assert isinstance(-start, TimeUs)
	assert abs(TimeUs(-5)) == 5
	assert isinstance(sum([TimeUs(1), TimeUs(2)]), TimeUs)

#============================================

def test_ordering_and_hashing() -> None:
	"""
	Ensure times order and hash like integers.
	"""
	values = [TimeUs(3), TimeUs(1), TimeUs(2)]
	assert sorted(values) == [1, 2, 3]
	assert len({TimeUs(5), TimeUs(5), 5}) == 1
	assert TimeUs.ZERO == 0

#============================================

def test_display_format() -> None:
	"""
	Ensure HH:MM:SS.mmm formatting with sign handling.
	"""
	assert str(TimeUs(0)) == "00:00:00.000"
	assert str(TimeUs(3661500000)) == "01:01:01.500"
	assert str(TimeUs(999)) == "00:00:00.000"
	assert str(TimeUs(-1500000)) == "-00:00:01.500"
	assert repr(TimeUs(42)) == "TimeUs(42)"

#============================================

def test_deepcopy_keeps_type() -> None:
	"""
	Ensure copies of times survive deepcopy.
	"""
	value = copy.deepcopy(TimeUs(7))
	assert isinstance(value, TimeUs)
	assert value == 7

#============================================

def test_parse_timecode() -> None:
	"""
	Ensure timecode strings and numbers parse to microseconds.
	"""
	assert parse_timecode("00:01.5") == 1500000
	assert parse_timecode("01:00:00") == 3600000000
	assert parse_timecode("2.25") == 2250000
	assert parse_timecode(4) == 4000000
	with pytest.raises(RuntimeError):
		parse_timecode(None)
	with pytest.raises(RuntimeError):
		parse_timecode("1:2:3:4")

#============================================

def test_seconds_text_is_exact() -> None:
	"""
	Ensure filter graph seconds are exact decimal strings.
	"""
	assert seconds_text(5000000) == "5"
	assert seconds_text(1500000) == "1.5"
	assert seconds_text(0) == "0"
	assert seconds_text(1) == "0.000001"
	assert seconds_text(10000000) == "10"

#============================================

def test_format_number() -> None:
	"""
	Ensure floats print without a trailing .0.
	"""
	assert format_number(1.0) == "1"
	assert format_number(0.8) == "0.8"
	assert format_number(29.97) == "29.97"
	assert format_number(30) == "30"
