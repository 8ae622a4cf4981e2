#!/usr/bin/env python3

from forgecutlib.core.timecode import TimeUs
from forgecutlib.core.timeline import Timeline

#============================================

def collect_snap_points(timeline: Timeline, exclude_item_id: str = None) -> list:
	points = {TimeUs.ZERO}
	for item in timeline.items():
		if item.id == exclude_item_id:
			continue
		points.add(TimeUs(item.timeline_start))
		points.add(item.timeline_end)
	for marker in timeline.markers:
		points.add(TimeUs(marker.time))
	return sorted(points)

#============================================

def find_snap_point(position, points: list, threshold) -> TimeUs:
	"""
	Return the point closest to position when it lies within threshold
	(inclusive), otherwise position itself. On equal distance the first
	point in the list wins.
	"""
	best = None
	best_distance = None
	for point in points:
		distance = abs(int(point) - int(position))
		if best_distance is None or distance < best_distance:
			best = point
			best_distance = distance
	if best is not None and best_distance <= threshold:
		return TimeUs(best)
	return TimeUs(position)
