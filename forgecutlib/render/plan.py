#!/usr/bin/env python3

from dataclasses import dataclass, field

#============================================

@dataclass
class RenderInput:
	path: str
	index: int

#============================================

@dataclass
class RenderPlan:
	inputs: list = field(default_factory=list)
	filter_graph: str = ''
	output_args: list = field(default_factory=list)
	output_path: str = 'output.mp4'

	#============================
	def to_dict(self) -> dict:
		return {
			'inputs': [{'index': entry.index, 'path': entry.path} for entry in self.inputs],
			'filter_graph': self.filter_graph.split(';'),
			'output_args': list(self.output_args),
			'output_path': self.output_path,
		}

#============================================

def build_ffmpeg_args(plan: RenderPlan) -> list:
	args = ['-y']
	for entry in plan.inputs:
		args.extend(['-i', entry.path])
	args.extend(['-filter_complex', plan.filter_graph])
	args.extend(plan.output_args)
	args.append(plan.output_path)
	return args
