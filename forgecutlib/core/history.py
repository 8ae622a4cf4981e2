#!/usr/bin/env python3

"""
Reversible edit commands and the bounded undo/redo history.

A command captures whatever it needs to reverse itself while it executes,
so an instance must not be executed twice without an undo in between.
"""

import collections

from forgecutlib.core.errors import InvalidOperation
from forgecutlib.core.errors import NothingToRedo
from forgecutlib.core.errors import NothingToUndo
from forgecutlib.core.timeline import Timeline

#============================================

DEFAULT_HISTORY_DEPTH = 100

#============================================

class Command():
	description = 'Edit'

	#============================
	def execute(self, timeline: Timeline) -> None:
		raise NotImplementedError

	#============================
	def undo(self, timeline: Timeline) -> None:
		raise NotImplementedError

	#============================
	def _require(self, value, name: str):
		if value is None:
			raise InvalidOperation(f"{self.__class__.__name__} has no captured {name} to undo")
		return value

#============================================

class AddItemCommand(Command):
	description = 'Add clip'

	def __init__(self, track_id: str, item):
		self.track_id = track_id
		self.item = item

	#============================
	def execute(self, timeline: Timeline) -> None:
		timeline.add_item(self.track_id, self.item.copy())

	#============================
	def undo(self, timeline: Timeline) -> None:
		timeline.remove_item(self.item.id)

#============================================

class RemoveItemCommand(Command):
	description = 'Remove clip'

	def __init__(self, item_id: str):
		self.item_id = item_id
		self.removed_item = None
		self.track_id = None

	#============================
	def execute(self, timeline: Timeline) -> None:
		track = timeline.track_of(self.item_id)
		self.removed_item = timeline.remove_item(self.item_id)
		self.track_id = track.id

	#============================
	def undo(self, timeline: Timeline) -> None:
		item = self._require(self.removed_item, 'item')
		timeline.add_item(self.track_id, item.copy())

#============================================

class MoveItemCommand(Command):
	description = 'Move clip'

	def __init__(self, item_id: str, new_start):
		self.item_id = item_id
		self.new_start = new_start
		self.old_start = None

	#============================
	def execute(self, timeline: Timeline) -> None:
		old_start = timeline.find_item(self.item_id).timeline_start
		timeline.move_item(self.item_id, self.new_start)
		self.old_start = old_start

	#============================
	def undo(self, timeline: Timeline) -> None:
		timeline.move_item(self.item_id, self._require(self.old_start, 'start'))

#============================================

class TrimInCommand(Command):
	description = 'Trim in-point'

	def __init__(self, item_id: str, new_in):
		self.item_id = item_id
		self.new_in = new_in
		self.old_in = None

	#============================
	def execute(self, timeline: Timeline) -> None:
		item = timeline.find_item(self.item_id)
		if item.is_source_clip:
			old_in = item.source_in
		else:
			old_in = item.timeline_start
		timeline.trim_in(self.item_id, self.new_in)
		self.old_in = old_in

	#============================
	def undo(self, timeline: Timeline) -> None:
		timeline.trim_in(self.item_id, self._require(self.old_in, 'in-point'))

#============================================

class TrimOutCommand(Command):
	description = 'Trim out-point'

	def __init__(self, item_id: str, new_out):
		self.item_id = item_id
		self.new_out = new_out
		self.old_out = None

	#============================
	def execute(self, timeline: Timeline) -> None:
		item = timeline.find_item(self.item_id)
		if item.is_source_clip:
			old_out = item.source_out
		else:
			old_out = item.timeline_end
		timeline.trim_out(self.item_id, self.new_out)
		self.old_out = old_out

	#============================
	def undo(self, timeline: Timeline) -> None:
		timeline.trim_out(self.item_id, self._require(self.old_out, 'out-point'))

#============================================

class SplitCommand(Command):
	description = 'Split clip'

	def __init__(self, item_id: str, split_time):
		self.item_id = item_id
		self.split_time = split_time
		self.original_item = None
		self.right_id = None

	#============================
	def execute(self, timeline: Timeline) -> None:
		original = timeline.find_item(self.item_id).copy()
		(_left_id, right_id) = timeline.split_at(self.item_id, self.split_time)
		self.original_item = original
		self.right_id = right_id

	#============================
	def undo(self, timeline: Timeline) -> None:
		original = self._require(self.original_item, 'item')
		right_id = self._require(self.right_id, 'split')
		timeline.remove_item(right_id)
		track = timeline.track_of(self.item_id)
		index = track.index_of(self.item_id)
		track.items[index] = original.copy()

#============================================

class MoveItemToTrackCommand(Command):
	description = 'Move clip to track'

	def __init__(self, item_id: str, new_track_id: str, new_start):
		self.item_id = item_id
		self.new_track_id = new_track_id
		self.new_start = new_start
		self.old_track_id = None
		self.old_start = None

	#============================
	def execute(self, timeline: Timeline) -> None:
		item = timeline.find_item(self.item_id)
		old_track_id = timeline.track_of(self.item_id).id
		old_start = item.timeline_start
		timeline.move_item_to_track(self.item_id, self.new_track_id, self.new_start)
		self.old_track_id = old_track_id
		self.old_start = old_start

	#============================
	def undo(self, timeline: Timeline) -> None:
		old_track_id = self._require(self.old_track_id, 'track')
		timeline.move_item_to_track(self.item_id, old_track_id, self.old_start)

#============================================

class UpdatePropertyCommand(Command):
	description = 'Change property'

	def __init__(self, item_id: str, name: str, value):
		self.item_id = item_id
		self.name = name
		self.value = value
		self.old_value = None

	#============================
	def execute(self, timeline: Timeline) -> None:
		self.old_value = timeline.update_item_property(self.item_id, self.name, self.value)

	#============================
	def undo(self, timeline: Timeline) -> None:
		old_value = self._require(self.old_value, 'value')
		timeline.update_item_property(self.item_id, self.name, old_value)

#============================================

COMMAND_TYPES = (
	AddItemCommand,
	RemoveItemCommand,
	MoveItemCommand,
	TrimInCommand,
	TrimOutCommand,
	SplitCommand,
	MoveItemToTrackCommand,
	UpdatePropertyCommand,
)

#============================================

class History():
	def __init__(self, max_depth: int = DEFAULT_HISTORY_DEPTH):
		self.max_depth = max_depth
		self.undo_stack = collections.deque(maxlen=max_depth)
		self.redo_stack = []

	#============================
	def __len__(self) -> int:
		return len(self.undo_stack)

	#============================
	def execute(self, command: Command, timeline: Timeline) -> None:
		command.execute(timeline)
		self.redo_stack.clear()
		# deque maxlen drops the oldest entry from the bottom
		self.undo_stack.append(command)

	#============================
	def undo(self, timeline: Timeline) -> Command:
		if len(self.undo_stack) == 0:
			raise NothingToUndo()
		command = self.undo_stack[-1]
		command.undo(timeline)
		self.undo_stack.pop()
		self.redo_stack.append(command)
		return command

	#============================
	def redo(self, timeline: Timeline) -> Command:
		if len(self.redo_stack) == 0:
			raise NothingToRedo()
		command = self.redo_stack[-1]
		command.execute(timeline)
		self.redo_stack.pop()
		self.undo_stack.append(command)
		return command

	#============================
	def can_undo(self) -> bool:
		return len(self.undo_stack) > 0

	#============================
	def can_redo(self) -> bool:
		return len(self.redo_stack) > 0

	#============================
	def undo_description(self):
		if len(self.undo_stack) == 0:
			return None
		return self.undo_stack[-1].description

	#============================
	def redo_description(self):
		if len(self.redo_stack) == 0:
			return None
		return self.redo_stack[-1].description

	#============================
	def clear(self) -> None:
		self.undo_stack.clear()
		self.redo_stack.clear()
