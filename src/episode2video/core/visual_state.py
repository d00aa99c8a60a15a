# -*- coding: utf-8 -*-
"""
core/visual_state.py

锚点刷新：把最近若干个 segment 的快照合成一个，作为后续连续性的参照。

合并规则（基于 core/merge.py）：
- 越新的快照优先（倒序喂给 merge_observations，同置信度先到先得）
- characters 按角色合并，同一角色取最新
- key_visual_elements 取并集，按首次出现顺序去重
- 只有一个快照时原样返回同一个对象
"""

from __future__ import annotations

from typing import List, Sequence

from episode2video.core.errors import InvalidInputError
from episode2video.core.merge import Observation, merge_observations
from episode2video.core.schemas import VisualStateSnapshot


def merge_visual_states(states: Sequence[VisualStateSnapshot]) -> VisualStateSnapshot:
	if not states:
		raise InvalidInputError("cannot merge an empty list of visual states")

	if len(states) == 1:
		return states[0]

	newest_first = list(reversed(states))
	merged = merge_observations([
		Observation(record=_comparable_fields(s), confidence="medium")
		for s in newest_first
	])

	elements: List[str] = []
	for s in states:
		for e in s.key_visual_elements:
			if e not in elements:
				elements.append(e)

	out = VisualStateSnapshot.from_dict(merged.record)
	out.key_visual_elements = elements
	out.extracted_at = newest_first[0].extracted_at
	return out


def _comparable_fields(state: VisualStateSnapshot) -> dict:
	data = state.to_dict()
	data.pop("key_visual_elements", None)
	data.pop("extracted_at", None)
	return data
