# -*- coding: utf-8 -*-
"""
episode2video/core/schemas/segment.py

Segment：一次视频生成调用对应的片段（约 3-15 秒）。
- segmenter 创建；generate 阶段之后挂上 final_visual_state。
- 一个 segment 只属于一个 scene；一个 scene 可以对应多个 segment。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .scene import DialogueEntry
from .visual_state import VisualStateSnapshot


@dataclass
class Segment:
	"""
	segment_number：
	- 1 起连续编号

	start_timestamp：
	- 距剧集开头的秒数 = 前面所有 segment 时长之和

	narrative_transition：
	- 第一个 segment 为 None，其余必有
	"""
	segment_number: int
	scene_ids: List[str]
	start_timestamp: float
	estimated_duration: float
	narrative_beat: str
	narrative_transition: Optional[str] = None
	visual_continuity_notes: str = ""
	location: str = ""
	int_ext: str = ""
	time_period: str = ""
	characters: List[str] = field(default_factory=list)
	dialogue: List[DialogueEntry] = field(default_factory=list)
	action_beats: List[str] = field(default_factory=list)
	final_visual_state: Optional[VisualStateSnapshot] = None

	@property
	def end_timestamp(self) -> float:
		return self.start_timestamp + self.estimated_duration

	@property
	def scene_id(self) -> str:
		return self.scene_ids[0]

	def to_dict(self) -> Dict[str, Any]:
		return {
			"segment_number": self.segment_number,
			"scene_ids": list(self.scene_ids),
			"start_timestamp": self.start_timestamp,
			"end_timestamp": self.end_timestamp,
			"estimated_duration": self.estimated_duration,
			"narrative_beat": self.narrative_beat,
			"narrative_transition": self.narrative_transition,
			"visual_continuity_notes": self.visual_continuity_notes,
			"location": self.location,
			"int_ext": self.int_ext,
			"time_period": self.time_period,
			"characters": list(self.characters),
			"dialogue": [d.to_dict() for d in self.dialogue],
			"action_beats": list(self.action_beats),
			"final_visual_state": self.final_visual_state.to_dict() if self.final_visual_state else None,
		}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Segment":
		state = data.get("final_visual_state")
		return cls(
			segment_number=int(data["segment_number"]),
			scene_ids=list(data.get("scene_ids") or []),
			start_timestamp=float(data.get("start_timestamp", 0.0)),
			estimated_duration=float(data.get("estimated_duration", 0.0)),
			narrative_beat=str(data.get("narrative_beat") or ""),
			narrative_transition=data.get("narrative_transition"),
			visual_continuity_notes=str(data.get("visual_continuity_notes") or ""),
			location=str(data.get("location") or ""),
			int_ext=str(data.get("int_ext") or ""),
			time_period=str(data.get("time_period") or ""),
			characters=list(data.get("characters") or []),
			dialogue=[DialogueEntry.from_dict(d) for d in (data.get("dialogue") or [])],
			action_beats=list(data.get("action_beats") or []),
			final_visual_state=VisualStateSnapshot.from_dict(state) if state else None,
		)


@dataclass
class SegmentationResult:
	episode_id: str
	segments: List[Segment]
	total_duration: float
	segment_count: int

	def to_dict(self) -> Dict[str, Any]:
		return {
			"episode_id": self.episode_id,
			"total_duration": self.total_duration,
			"segment_count": self.segment_count,
			"segments": [s.to_dict() for s in self.segments],
		}
