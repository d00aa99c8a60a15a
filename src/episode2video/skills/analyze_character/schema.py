# -*- coding: utf-8 -*-
"""
analyze_character/schema.py

- VisualFingerprint：角色外观指纹（用于跨 segment 的人物一致性）。
- CharacterAnalysis：一次（或多次合并后的）分析结果 + 置信度。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


FINGERPRINT_FIELDS = (
	"age",
	"ethnicity",
	"hair",
	"eyes",
	"face_shape",
	"body_type",
	"height",
	"default_clothing",
	"distinctive_features",
)


@dataclass
class CharacterAnalysis:
	"""
	fingerprint：
	- 只保留 FINGERPRINT_FIELDS 里的字段；看不出来的字段不出现

	confidence：
	- low / medium / high；多图合并后固定为 medium
	"""
	fingerprint: Dict[str, Any] = field(default_factory=dict)
	confidence: str = "medium"
	notes: str = ""

	def to_dict(self) -> Dict[str, Any]:
		return {
			"visual_fingerprint": dict(self.fingerprint),
			"confidence": self.confidence,
			"analysis_notes": self.notes,
		}
