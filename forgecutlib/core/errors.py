#!/usr/bin/env python3

#============================================

class ForgecutError(RuntimeError):
	pass

#============================================

class ItemNotFound(ForgecutError):
	def __init__(self, item_id: str):
		super().__init__(f"item not found: {item_id}")
		self.item_id = item_id

#============================================

class TrackNotFound(ForgecutError):
	def __init__(self, track_id: str):
		super().__init__(f"track not found: {track_id}")
		self.track_id = track_id

#============================================

class OverlapDetected(ForgecutError):
	def __init__(self, track_id: str):
		super().__init__(f"overlap detected on track {track_id}")
		self.track_id = track_id

#============================================

class InvalidOperation(ForgecutError):
	pass

#============================================

class NothingToUndo(ForgecutError):
	def __init__(self):
		super().__init__("nothing to undo")

#============================================

class NothingToRedo(ForgecutError):
	def __init__(self):
		super().__init__("nothing to redo")

#============================================

class ProjectFileError(ForgecutError):
	pass

#============================================

class RenderError(ForgecutError):
	pass

#============================================

class NoClips(RenderError):
	def __init__(self):
		super().__init__("no clips on the primary video track")

#============================================

class AssetNotFound(RenderError):
	def __init__(self, asset_id: str):
		super().__init__(f"asset not found: {asset_id}")
		self.asset_id = asset_id

#============================================

class FfmpegNotFound(RenderError):
	def __init__(self, binary: str = 'ffmpeg'):
		super().__init__(f"ffmpeg executable not found: {binary}")
		self.binary = binary

#============================================

class FfmpegFailed(RenderError):
	def __init__(self, returncode: int, stderr_tail: list = None):
		self.returncode = returncode
		self.stderr_tail = list(stderr_tail or [])
		message = f"ffmpeg exited with code {returncode}"
		if self.stderr_tail:
			message += ": " + self.stderr_tail[-1]
		super().__init__(message)

#============================================

class ProbeError(RenderError):
	pass
