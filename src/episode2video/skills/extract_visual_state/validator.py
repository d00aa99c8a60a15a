# -*- coding: utf-8 -*-
"""
extract_visual_state/validator.py

这个文件做什么：
- 把 LLM 返回的 JSON 变成 VisualStateSnapshot。
- 宽进严出：类型不对的字段直接丢掉（当作没抽到），不因为一个字段让整个快照作废。

为什么不强校验：
- 快照本来就允许是部分的；丢一个字段只是让下一次连续性比较少比一项。
- 真正不可用的情况（不是 JSON 对象）由上层当作抽取失败处理。
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from episode2video.core.schemas import VisualStateSnapshot
from episode2video.core.schemas.visual_state import SCALAR_FIELDS


# 模型偶尔沿用旧版字段名
_ALIASES = {
	"lighting_state": "lighting",
	"camera_position": "camera",
	"mood_atmosphere": "mood",
	"character_positions": "characters",
}

MIN_FRAME_DESCRIPTION_CHARS = 21


def _text(value: Any) -> Optional[str]:
	if isinstance(value, str) and value.strip():
		return value.strip()
	return None


def parse_visual_state(
	data: Dict[str, Any],
	character_ids: Sequence[str] = (),
	extracted_at: Optional[str] = None,
) -> VisualStateSnapshot:
	if not isinstance(data, dict):
		raise ValueError("visual state must be a JSON object")

	norm: Dict[str, Any] = {}
	for k, v in data.items():
		norm[_ALIASES.get(k, k)] = v

	snap = VisualStateSnapshot(extracted_at=extracted_at)
	snap.final_frame_description = _text(norm.get("final_frame_description"))
	for name in SCALAR_FIELDS:
		setattr(snap, name, _text(norm.get(name)))

	chars = norm.get("characters")
	if isinstance(chars, dict):
		for cid, state in chars.items():
			s = _text(state)
			if s:
				snap.characters[str(cid)] = s

	# 给了已知角色列表时，按大小写不敏感对齐到已知 id
	if character_ids and snap.characters:
		known = {c.lower(): c for c in character_ids}
		snap.characters = {known.get(k.lower(), k): v for k, v in snap.characters.items()}

	elements = norm.get("key_visual_elements")
	if isinstance(elements, list):
		snap.key_visual_elements = [e.strip() for e in elements if isinstance(e, str) and e.strip()]

	return snap


def is_snapshot_usable(snap: Optional[VisualStateSnapshot]) -> bool:
	"""
	“够不够当锚点”的判断：
	- 最终画面描述至少 21 个字符
	- lighting / camera 必须都有
	"""
	if snap is None:
		return False
	if len(snap.final_frame_description or "") < MIN_FRAME_DESCRIPTION_CHARS:
		return False
	return bool(snap.lighting) and bool(snap.camera)
