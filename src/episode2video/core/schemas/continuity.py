# -*- coding: utf-8 -*-
"""
episode2video/core/schemas/continuity.py

连续性校验的输出结构。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


SEVERITIES = ("info", "warning", "blocking")


@dataclass
class ContinuityIssue:
	"""
	category：
	- location / time_of_day / lighting / camera / mood / character_position

	severity：
	- info     : 轻微差异，只扣分
	- warning  : 明显跳变，扣分但仍然可用
	- blocking : 连续性被破坏，is_valid=False

	corrected_value：
	- auto_correct 打开时给出的建议替换值（取自上一段快照）
	- 只是建议：不影响打分，也不改变 severity
	"""
	category: str
	severity: str
	description: str
	previous_value: str = ""
	planned_value: str = ""
	suggestion: str = ""
	corrected_value: Optional[str] = None

	def to_dict(self) -> Dict[str, Any]:
		return {
			"category": self.category,
			"severity": self.severity,
			"description": self.description,
			"previous_value": self.previous_value,
			"planned_value": self.planned_value,
			"suggestion": self.suggestion,
			"corrected_value": self.corrected_value,
		}


@dataclass
class ContinuityResult:
	is_valid: bool
	overall_score: int
	issues: List[ContinuityIssue] = field(default_factory=list)
	compared_attributes: List[str] = field(default_factory=list)
	corrected_state: Optional[Dict[str, Any]] = None

	def to_dict(self) -> Dict[str, Any]:
		return {
			"is_valid": self.is_valid,
			"overall_score": self.overall_score,
			"issues": [i.to_dict() for i in self.issues],
			"compared_attributes": list(self.compared_attributes),
			"corrected_state": self.corrected_state,
		}
