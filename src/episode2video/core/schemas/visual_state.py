# -*- coding: utf-8 -*-
"""
episode2video/core/schemas/visual_state.py

VisualStateSnapshot：一个 segment 结束时的画面状态快照。
- 由外部模型从生成文本中抽取（skills/extract_visual_state）。
- 作为下一个 segment 连续性校验的输入。

注意：
- 所有字段都可以缺失（部分抽取也是合法快照）。
- “没有快照”用 None 表示，不用空快照冒充；is_empty() 只用于判断抽取是否什么都没拿到。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# 参与连续性比较的标量字段（顺序即报告顺序）
SCALAR_FIELDS = ("location", "time_of_day", "lighting", "camera", "mood")


@dataclass
class VisualStateSnapshot:
	"""
	characters：
	- 角色标识 -> 可见状态（站位、朝向、服装等自由文本）

	key_visual_elements：
	- 需要在后续画面里保持的道具/元素
	"""
	final_frame_description: Optional[str] = None
	location: Optional[str] = None
	time_of_day: Optional[str] = None
	lighting: Optional[str] = None
	camera: Optional[str] = None
	mood: Optional[str] = None
	characters: Dict[str, str] = field(default_factory=dict)
	key_visual_elements: List[str] = field(default_factory=list)
	extracted_at: Optional[str] = None

	def is_empty(self) -> bool:
		if self.final_frame_description or self.characters or self.key_visual_elements:
			return False
		return not any(getattr(self, name) for name in SCALAR_FIELDS)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"final_frame_description": self.final_frame_description,
			"location": self.location,
			"time_of_day": self.time_of_day,
			"lighting": self.lighting,
			"camera": self.camera,
			"mood": self.mood,
			"characters": dict(self.characters),
			"key_visual_elements": list(self.key_visual_elements),
			"extracted_at": self.extracted_at,
		}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "VisualStateSnapshot":
		return cls(
			final_frame_description=data.get("final_frame_description"),
			location=data.get("location"),
			time_of_day=data.get("time_of_day"),
			lighting=data.get("lighting"),
			camera=data.get("camera"),
			mood=data.get("mood"),
			characters=dict(data.get("characters") or {}),
			key_visual_elements=list(data.get("key_visual_elements") or []),
			extracted_at=data.get("extracted_at"),
		)
