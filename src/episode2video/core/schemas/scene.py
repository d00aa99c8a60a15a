# -*- coding: utf-8 -*-
"""
episode2video/core/schemas/scene.py

剧本侧的输入结构：Episode -> Screenplay -> Scene -> DialogueEntry。
- core 定义，segmenter / stages 使用。
- 只读输入：segmentation 期间不修改。

容错约定（from_dict）：
- characters / dialogue / action 缺失或为 null 一律当作空列表，不报错。
- JSON 里的 time_of_day（INT/EXT）会被映射到 int_ext。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class DialogueEntry:
	"""一轮对白：一个角色 + 一到多行台词。切分时整轮不可拆。"""
	character: str
	lines: List[str] = field(default_factory=list)

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "DialogueEntry":
		lines = data.get("lines") or []
		if isinstance(lines, str):
			lines = [lines]
		return cls(character=str(data.get("character", "")), lines=[str(x) for x in lines])

	def to_dict(self) -> Dict[str, Any]:
		return {"character": self.character, "lines": list(self.lines)}


@dataclass(frozen=True)
class Scene:
	"""
	一个剧本场景。

	int_ext：
	- 内/外景标记（INT / EXT）

	time_period：
	- 时段（DAY / NIGHT / DAWN ...）

	duration_estimate：
	- 编剧给的时长估计（秒），可缺省；<=0 视为没给
	"""
	scene_id: str
	scene_number: int = 0
	location: str = ""
	int_ext: str = ""
	time_period: str = ""
	description: str = ""
	characters: List[str] = field(default_factory=list)
	dialogue: List[DialogueEntry] = field(default_factory=list)
	action: List[str] = field(default_factory=list)
	duration_estimate: Optional[float] = None

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Scene":
		est = data.get("duration_estimate")
		return cls(
			scene_id=str(data.get("scene_id", "")),
			scene_number=int(data.get("scene_number") or 0),
			location=str(data.get("location") or ""),
			int_ext=str(data.get("int_ext") or data.get("time_of_day") or ""),
			time_period=str(data.get("time_period") or ""),
			description=str(data.get("description") or ""),
			characters=[str(c) for c in (data.get("characters") or [])],
			dialogue=[DialogueEntry.from_dict(d) for d in (data.get("dialogue") or [])],
			action=[str(a) for a in (data.get("action") or [])],
			duration_estimate=float(est) if est is not None else None,
		)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"scene_id": self.scene_id,
			"scene_number": self.scene_number,
			"location": self.location,
			"int_ext": self.int_ext,
			"time_period": self.time_period,
			"description": self.description,
			"characters": list(self.characters),
			"dialogue": [d.to_dict() for d in self.dialogue],
			"action": list(self.action),
			"duration_estimate": self.duration_estimate,
		}


@dataclass
class Screenplay:
	title: str = ""
	scenes: List[Scene] = field(default_factory=list)

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Screenplay":
		return cls(
			title=str(data.get("title") or ""),
			scenes=[Scene.from_dict(s) for s in (data.get("scenes") or [])],
		)


@dataclass
class Episode:
	"""
	剧集记录（只取 segmentation 用得到的字段）。

	structured_screenplay 为 None 表示还没有结构化剧本，segmenter 会直接报错。
	"""
	id: str
	title: str = ""
	structured_screenplay: Optional[Screenplay] = None

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Episode":
		sp = data.get("structured_screenplay")
		return cls(
			id=str(data.get("id", "")),
			title=str(data.get("title") or ""),
			structured_screenplay=Screenplay.from_dict(sp) if sp is not None else None,
		)
