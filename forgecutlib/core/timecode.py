#!/usr/bin/env python3

from decimal import Decimal, ROUND_DOWN

#============================================

MICROS_PER_SECOND = 1000000

#============================================

class TimeUs(int):
	"""
	Signed microsecond count used for every timeline position and duration.

	Arithmetic with other times or integer scalars stays in exact integer
	math and returns TimeUs. Multiplying by a float falls through to plain
	float arithmetic and is only meant for display code.
	"""

	ZERO = None

	def __new__(cls, value=0):
		return super().__new__(cls, value)

	#============================
	@classmethod
	def from_seconds(cls, seconds) -> 'TimeUs':
		if isinstance(seconds, Decimal):
			value = seconds
		elif isinstance(seconds, float):
			value = Decimal(str(seconds))
		else:
			value = Decimal(seconds)
		micros = (value * MICROS_PER_SECOND).to_integral_value(rounding=ROUND_DOWN)
		return cls(int(micros))

	#============================
	def as_seconds(self) -> float:
		return int(self) / float(MICROS_PER_SECOND)

	#============================
	def __add__(self, other):
		if not isinstance(other, int):
			return NotImplemented
		return TimeUs(int(self) + int(other))

	__radd__ = __add__

	#============================
	def __sub__(self, other):
		if not isinstance(other, int):
			return NotImplemented
		return TimeUs(int(self) - int(other))

	#============================
	def __rsub__(self, other):
		if not isinstance(other, int):
			return NotImplemented
		return TimeUs(int(other) - int(self))

	#============================
	def __mul__(self, scalar):
		if not isinstance(scalar, int):
			return NotImplemented
		return TimeUs(int(self) * int(scalar))

	__rmul__ = __mul__

	#============================
	def __floordiv__(self, scalar):
		if not isinstance(scalar, int):
			return NotImplemented
		return TimeUs(int(self) // int(scalar))

	#============================
	def __neg__(self):
		return TimeUs(-int(self))

	#============================
	def __abs__(self):
		return TimeUs(abs(int(self)))

	#============================
	def __repr__(self) -> str:
		return f"TimeUs({int(self)})"

	#============================
	def __str__(self) -> str:
		total = int(self)
		sign = ''
		if total < 0:
			sign = '-'
			total = -total
		millis = (total // 1000) % 1000
		seconds = total // MICROS_PER_SECOND
		hours = seconds // 3600
		minutes = (seconds % 3600) // 60
		seconds = seconds % 60
		return f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}.{millis:03d}"

TimeUs.ZERO = TimeUs(0)

#============================================

def parse_timecode(raw_time) -> TimeUs:
	if raw_time is None:
		raise RuntimeError("time value is required")
	if isinstance(raw_time, TimeUs):
		return raw_time
	if isinstance(raw_time, (int, float)):
		return TimeUs.from_seconds(raw_time)
	if isinstance(raw_time, str):
		value = raw_time.strip()
		if ':' not in value:
			return TimeUs.from_seconds(Decimal(value))
		parts = value.split(':')
		if len(parts) > 3:
			raise RuntimeError(f"invalid timecode: {raw_time}")
		seconds = Decimal(parts.pop())
		minutes = Decimal(parts.pop())
		hours = Decimal(0)
		if len(parts) > 0:
			hours = Decimal(parts.pop())
		return TimeUs.from_seconds(hours * Decimal(3600) + minutes * Decimal(60) + seconds)
	raise RuntimeError("time values must be int, float, or timecode string")

#============================================

def seconds_text(time_us) -> str:
	"""
	Exact decimal seconds for a microsecond count, e.g. 1500000 -> '1.5'.
	"""
	value = Decimal(int(time_us)) / Decimal(MICROS_PER_SECOND)
	return f"{value:f}"

#============================================

def format_number(value) -> str:
	number = float(value)
	if number.is_integer():
		return str(int(number))
	return repr(number)
