# -*- coding: utf-8 -*-
"""
core/segmenter.py

这个文件做什么：
- 纯规则的剧集切分：把结构化剧本（scenes）切成一串 3-15 秒的 segments。
- 无 I/O、无并发、同输入同输出（可复现、可回归）。

切分策略：
1) 逐场景估时（core/duration.py）
2) 估时 <= max_duration：整场一个 segment，时长夹紧到 [min, max]
3) 估时 >  max_duration：把动作/对白按条贪心装箱成 chunk，每个 chunk 一个 segment
   - 装箱单位顺序：action[0], dialogue[0], action[1], dialogue[1], ...（多出来的按原顺序接在后面）
   - 下一条装不下（会超过 max）就封箱；单条超长自成一箱
   - 尾箱不足 min：从前一箱尾部借单位，借完前一箱仍 >= min 才借
   - 编剧估时比内容长：先把各箱补到 max，再追加无内容的延续箱，直到覆盖场景估时
4) 串起 segments：编号、起始时间、过渡语、连续性备注
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from episode2video.core.duration import (
	ACTION_BEAT_SECONDS,
	MIN_SCENE_SECONDS,
	estimate_dialogue_duration,
	estimate_scene_duration,
)
from episode2video.core.errors import InvalidInputError
from episode2video.core.schemas import DialogueEntry, Episode, Scene, Segment, SegmentationResult


logger = logging.getLogger(__name__)

# 单次视频生成的硬上限
ABSOLUTE_MAX_SECONDS = 15.0
BEAT_MAX_CHARS = 120
# 浮点累加误差容忍
_EPS = 1e-6
SEAMLESS_PREFIX = "Continues seamlessly"

Unit = Tuple[str, Union[str, DialogueEntry], float]


@dataclass
class SegmentationOptions:
	"""
	min_duration/max_duration 不给时由 target_duration 推出：
	- min = max(0.3 × target, 3)
	- max = min(1.5 × target, 15)
	显式给出的值永远优先。
	"""
	target_duration: float = 10.0
	min_duration: Optional[float] = None
	max_duration: Optional[float] = None

	def resolve(self) -> Tuple[float, float]:
		if self.target_duration is None or self.target_duration <= 0:
			raise InvalidInputError(f"target_duration must be positive, got {self.target_duration}")

		max_d = self.max_duration
		if max_d is None:
			max_d = min(1.5 * self.target_duration, ABSOLUTE_MAX_SECONDS)

		min_d = self.min_duration
		if min_d is None:
			min_d = min(max(0.3 * self.target_duration, MIN_SCENE_SECONDS), max_d)

		if min_d <= 0 or max_d <= 0:
			raise InvalidInputError(f"duration bounds must be positive: [{min_d}, {max_d}]")
		if min_d > max_d:
			raise InvalidInputError(f"min_duration {min_d} > max_duration {max_d}")

		return float(min_d), float(max_d)


def segment_episode(episode: Episode, options: Optional[SegmentationOptions] = None) -> SegmentationResult:
	"""
	Episode -> SegmentationResult

	前置条件（不满足直接抛 InvalidInputError，不产出任何 segment）：
	- structured_screenplay 不能为 None
	- scenes 不能为空
	"""
	opts = options or SegmentationOptions()

	if episode.structured_screenplay is None:
		raise InvalidInputError(f"episode {episode.id!r} has no structured_screenplay to segment")

	scenes = episode.structured_screenplay.scenes or []
	if not scenes:
		raise InvalidInputError(f"episode {episode.id!r} has no scenes to segment")

	min_d, max_d = opts.resolve()
	logger.debug("segmenting episode=%s scenes=%d bounds=[%s, %s]", episode.id, len(scenes), min_d, max_d)

	segments: List[Segment] = []
	cursor = 0.0

	for scene in scenes:
		plan = _plan_scene(scene, min_d, max_d)
		for chunk_units, duration in plan:
			seg = _build_segment(scene, chunk_units, duration, len(segments) + 1, cursor, split=len(plan) > 1)
			seg.narrative_transition = _transition(segments[-1] if segments else None, seg)
			segments.append(seg)
			cursor += duration

	logger.info("episode=%s -> %d segments, %.1fs", episode.id, len(segments), cursor)

	return SegmentationResult(
		episode_id=episode.id,
		segments=segments,
		total_duration=cursor,
		segment_count=len(segments),
	)


def _clamp(value: float, lo: float, hi: float) -> float:
	return max(lo, min(value, hi))


def _plan_scene(scene: Scene, min_d: float, max_d: float) -> List[Tuple[List[Unit], float]]:
	"""
	返回 [(chunk_units, duration), ...]；只有一项时就是整场一个 segment。
	"""
	total = estimate_scene_duration(scene)
	units = _scene_units(scene)

	if total <= max_d:
		return [(units, _clamp(total, min_d, max_d))]

	chunks = _rebalance_tail(_pack_greedy(units, max_d), min_d, max_d)
	durations = [_clamp(_units_duration(c), min_d, max_d) for c in chunks]

	# 编剧估时比内容长：先补满已有的箱，再追加延续箱
	remaining = total - sum(durations)
	for i in range(len(durations)):
		if remaining <= _EPS:
			break
		room = max_d - durations[i]
		add = min(room, remaining)
		durations[i] += add
		remaining -= add

	while remaining > _EPS:
		d = _clamp(remaining, min_d, max_d)
		chunks.append([])
		durations.append(d)
		remaining -= d

	logger.debug(
		"scene=%s split into %d chunks (estimate %.1fs > max %.1fs)",
		scene.scene_id, len(chunks), total, max_d,
	)
	return list(zip(chunks, durations))


def _scene_units(scene: Scene) -> List[Unit]:
	action = scene.action or []
	dialogue = scene.dialogue or []

	units: List[Unit] = []
	for i in range(max(len(action), len(dialogue))):
		if i < len(action):
			units.append(("action", action[i], ACTION_BEAT_SECONDS))
		if i < len(dialogue):
			units.append(("dialogue", dialogue[i], estimate_dialogue_duration([dialogue[i]])))
	return units


def _units_duration(units: List[Unit]) -> float:
	return sum(u[2] for u in units)


def _pack_greedy(units: List[Unit], max_d: float) -> List[List[Unit]]:
	chunks: List[List[Unit]] = []
	cur: List[Unit] = []
	cur_d = 0.0

	for u in units:
		if cur and cur_d + u[2] > max_d:
			chunks.append(cur)
			cur, cur_d = [], 0.0
		cur.append(u)
		cur_d += u[2]

	if cur:
		chunks.append(cur)
	return chunks


def _rebalance_tail(chunks: List[List[Unit]], min_d: float, max_d: float) -> List[List[Unit]]:
	if len(chunks) < 2:
		return chunks

	prev, last = chunks[-2], chunks[-1]
	while _units_duration(last) < min_d and len(prev) > 1:
		moved = prev[-1]
		if _units_duration(prev) - moved[2] < min_d:
			break
		if _units_duration(last) + moved[2] > max_d:
			break
		last.insert(0, prev.pop())

	return chunks


def _build_segment(
	scene: Scene,
	units: List[Unit],
	duration: float,
	number: int,
	start: float,
	split: bool = False,
) -> Segment:
	return Segment(
		segment_number=number,
		scene_ids=[scene.scene_id],
		start_timestamp=start,
		estimated_duration=duration,
		narrative_beat=_narrative_beat(scene, units, split),
		visual_continuity_notes=continuity_notes(scene),
		location=scene.location,
		int_ext=scene.int_ext,
		time_period=scene.time_period,
		characters=list(scene.characters or []),
		dialogue=[u[1] for u in units if u[0] == "dialogue"],
		action_beats=[u[1] for u in units if u[0] == "action"],
	)


def continuity_notes(scene: Scene) -> str:
	notes = [f"Location: {scene.location}"]
	notes.append("Time: " + " ".join(x for x in (scene.int_ext, scene.time_period) if x))
	if scene.characters:
		notes.append("Characters: " + ", ".join(scene.characters))
	return " | ".join(notes)


def truncate_beat(text: str, limit: int = BEAT_MAX_CHARS) -> str:
	"""按词边界截断，超长时以 '...' 结尾，总长不超过 limit。"""
	text = " ".join(text.split())
	if len(text) <= limit:
		return text

	cut = text[: limit - 3]
	space = cut.rfind(" ")
	if space > limit // 2:
		cut = cut[:space]
	return cut.rstrip(" ,;:.") + "..."


def _narrative_beat(scene: Scene, units: List[Unit], split: bool) -> str:
	# 整场：首条非空动作 > 场景描述 > 地点；分块：本块首条动作 > 本块首句对白 > 整场的 beat
	for kind, item, _ in units:
		if kind == "action" and item.strip():
			return truncate_beat(item)

	for kind, item, _ in units:
		if split and kind == "dialogue" and item.lines:
			return truncate_beat(f'{item.character}: "{item.lines[0]}"')

	first_action = next((a for a in scene.action or [] if a.strip()), "")
	source = first_action or scene.description.strip() or scene.location
	return truncate_beat(source)


def _place(location: str) -> str:
	return location or "an unspecified location"


def _transition(prev: Optional[Segment], cur: Segment) -> Optional[str]:
	if prev is None:
		return None

	if prev.scene_id == cur.scene_id:
		return f"{SEAMLESS_PREFIX} from the previous segment in {_place(cur.location)}."

	when = " ".join(x for x in (cur.int_ext, cur.time_period) if x)
	suffix = f" ({when})" if when else ""
	return f"Transitions from {_place(prev.location)} to {_place(cur.location)}{suffix}."
