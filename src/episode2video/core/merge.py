# -*- coding: utf-8 -*-
"""
core/merge.py

这个文件做什么：
- 通用的“按置信度合并”归约器：N 份局部观测 -> 1 份记录。
- 角色多图分析合并、连续性自动纠正、锚点刷新都复用它。

规则：
1) 逐字段取“定义了该字段”的最高置信度来源；同置信度取先出现的
2) “定义了”= 字段存在且不是 None / "" / [] / {}
3) 字段本身是 dict 时按子键递归同样的规则（例如按角色合并可见状态）
4) 只有一个输入：原样透传（置信度、notes 都不变）
5) 两个及以上：置信度固定为 medium，notes 换成固定标记（不拼接原文）
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

from episode2video.core.errors import InvalidInputError


CONFIDENCE_RANK = {"low": 1, "medium": 2, "high": 3}
MERGED_CONFIDENCE = "medium"
MERGED_NOTES_MARKER = "Merged from multiple observations"


@dataclass
class Observation:
	record: Dict[str, Any]
	confidence: str = "medium"
	notes: str = ""


@dataclass
class MergeResult:
	record: Dict[str, Any]
	confidence: str
	notes: str
	sources: int = 1
	# 字段名 -> 胜出来源在输入中的下标（只记录顶层字段）
	winners: Dict[str, int] = field(default_factory=dict)


def is_defined(value: Any) -> bool:
	if value is None:
		return False
	if isinstance(value, (str, list, dict, tuple)) and len(value) == 0:
		return False
	return True


def _rank(confidence: str) -> int:
	try:
		return CONFIDENCE_RANK[confidence]
	except KeyError:
		raise InvalidInputError(f"unknown confidence tier: {confidence!r}")


def _merge_records(ranked: List[Tuple[int, int, Dict[str, Any]]]) -> Tuple[Dict[str, Any], Dict[str, int]]:
	"""
	ranked 元素：(rank, 输入下标, record)。
	按 rank 降序、下标升序扫描，先到先得，保证“高置信度优先、同级先出现优先”。
	"""
	order = sorted(ranked, key=lambda x: (-x[0], x[1]))

	merged: Dict[str, Any] = {}
	winners: Dict[str, int] = {}
	nested: Dict[str, List[Tuple[int, int, Dict[str, Any]]]] = {}

	for rank, idx, record in order:
		for key, value in record.items():
			if not is_defined(value):
				continue

			if isinstance(value, dict):
				nested.setdefault(key, []).append((rank, idx, value))
				winners.setdefault(key, idx)
				continue

			if key not in merged and key not in nested:
				merged[key] = value
				winners[key] = idx

	for key, parts in nested.items():
		if key in merged:
			# 高置信度来源已经用标量占了这个字段
			continue
		merged[key], _ = _merge_records(parts)

	return merged, winners


def merge_observations(observations: Sequence[Observation]) -> MergeResult:
	if not observations:
		raise InvalidInputError("cannot merge an empty list of observations")

	ranked = [(_rank(o.confidence), i, o.record or {}) for i, o in enumerate(observations)]

	if len(observations) == 1:
		only = observations[0]
		return MergeResult(
			record=dict(only.record or {}),
			confidence=only.confidence,
			notes=only.notes,
			sources=1,
			winners={k: 0 for k, v in (only.record or {}).items() if is_defined(v)},
		)

	record, winners = _merge_records(ranked)

	return MergeResult(
		record=record,
		confidence=MERGED_CONFIDENCE,
		notes=MERGED_NOTES_MARKER,
		sources=len(observations),
		winners=winners,
	)
