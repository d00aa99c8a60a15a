# -*- coding: utf-8 -*-
"""
core/continuity.py

这个文件做什么：
- 连续性校验：上一段的 VisualStateSnapshot vs 下一段计划（PlannedContext）。
- 逐属性比较、打分、列问题；可选自动纠正（上一段状态优先于新计划的漂移）。
- 同时负责两段文本的拼装：给生成器的 segment brief、给生成器的连续性上下文。

比较规则（两边都有值才比较）：
- location / time_of_day：只在“同一场景的延续”时比较；地点不同、昼夜相反 -> blocking
- lighting：昼夜/明暗相反 -> blocking；其它文字差异 -> info
- camera：景别/机位剧烈跳变 -> warning
- mood：情绪相反 -> warning
- 每个角色：站位相互矛盾（左/右、前景/背景…） -> warning

打分：
- score = 没有被报告问题的属性数 / 参与比较的属性数 × 100
- auto_correct 给出的 corrected_value 只是建议，不抵扣分数
- allowed_discrepancies 里的类别不报告，也不扣分
- is_valid 只看有没有 blocking（strict_mode 下 warning 也升级为 blocking）
- 没有上一段快照：直接 valid、100 分、无问题
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from episode2video.core.merge import Observation, is_defined, merge_observations
from episode2video.core.schemas import ContinuityIssue, ContinuityResult, Segment, VisualStateSnapshot
from episode2video.core.segmenter import SEAMLESS_PREFIX


OPPOSING_TIME = [("day", "night"), ("dawn", "dusk"), ("sunrise", "sunset")]
OPPOSING_LIGHTING = [("day", "night"), ("sunrise", "sunset"), ("bright", "dark")]
JARRING_CAMERA = [("close-up", "wide"), ("low angle", "high angle"), ("first person", "third person")]
OPPOSING_MOOD = [("tense", "relaxed"), ("happy", "sad"), ("calm", "chaotic"), ("bright", "dark")]
INCOMPATIBLE_PLACEMENT = [("left", "right"), ("foreground", "background"), ("inside", "outside"), ("ground", "air")]


@dataclass
class PlannedContext:
	"""
	下一段“打算拍成什么样”。

	continues_scene：
	- True 表示下一段是同一场景被切开后的延续，地点/时段必须一致
	"""
	location: Optional[str] = None
	time_of_day: Optional[str] = None
	lighting: Optional[str] = None
	camera: Optional[str] = None
	mood: Optional[str] = None
	characters: Dict[str, str] = field(default_factory=dict)
	continues_scene: bool = False

	def to_dict(self) -> Dict[str, Any]:
		return {
			"location": self.location,
			"time_of_day": self.time_of_day,
			"lighting": self.lighting,
			"camera": self.camera,
			"mood": self.mood,
			"characters": dict(self.characters),
		}


@dataclass
class ValidationOptions:
	auto_correct: bool = False
	strict_mode: bool = False
	# 不上报的问题类别，例如 ("camera", "mood")
	allowed_discrepancies: Sequence[str] = ()


ContextLike = Union[PlannedContext, Segment, str]


# ---------------------------------------------------------------------------
# 计划上下文
# ---------------------------------------------------------------------------

def planned_context_from_segment(segment: Segment, continues_scene: Optional[bool] = None) -> PlannedContext:
	if continues_scene is None:
		continues_scene = (segment.narrative_transition or "").startswith(SEAMLESS_PREFIX)

	time_of_day = " ".join(x for x in (segment.int_ext, segment.time_period) if x)

	return PlannedContext(
		location=segment.location or None,
		time_of_day=time_of_day or None,
		characters={name: "" for name in segment.characters},
		continues_scene=continues_scene,
	)


_LABEL_RE = {
	"lighting": re.compile(r"^\s*LIGHTING:\s*(.+)$", re.IGNORECASE | re.MULTILINE),
	"camera": re.compile(r"^\s*CAMERA:\s*(.+)$", re.IGNORECASE | re.MULTILINE),
	"mood": re.compile(r"^\s*MOOD(?:/ATMOSPHERE)?:\s*(.+)$", re.IGNORECASE | re.MULTILINE),
}
_NOTE_RE = {
	"location": re.compile(r"Location:\s*([^|\n]+)"),
	"time_of_day": re.compile(r"Time:\s*([^|\n]+)"),
	"characters": re.compile(r"Characters:\s*([^|\n]+)"),
}
_POSITIONS_RE = re.compile(r"^[ \t]*CHARACTER POSITIONS:[ \t]*\n((?:[ \t]*- .+(?:\n|$))+)", re.IGNORECASE | re.MULTILINE)
_POSITION_LINE_RE = re.compile(r"^[ \t]*- (.+?):\s*(.+)$")


def parse_brief(text: str) -> PlannedContext:
	"""
	从 segment brief（纯文本）里解析计划上下文。

	认识的标签：
	- LIGHTING: / CAMERA: / MOOD/ATMOSPHERE:
	- CHARACTER POSITIONS: 后接 "- 名字: 站位" 列表
	- 连续性备注里的 Location: / Time: / Characters:
	- TRANSITION: 以 "Continues seamlessly" 开头表示同场延续
	"""
	ctx = PlannedContext()

	for name, rx in _LABEL_RE.items():
		m = rx.search(text)
		if m:
			setattr(ctx, name, m.group(1).strip())

	m = _NOTE_RE["location"].search(text)
	if m:
		ctx.location = m.group(1).strip() or None

	m = _NOTE_RE["time_of_day"].search(text)
	if m:
		ctx.time_of_day = m.group(1).strip() or None

	m = _NOTE_RE["characters"].search(text)
	if m:
		for name in m.group(1).split(","):
			if name.strip():
				ctx.characters.setdefault(name.strip(), "")

	m = _POSITIONS_RE.search(text)
	if m:
		for line in m.group(1).splitlines():
			pm = _POSITION_LINE_RE.match(line)
			if pm:
				ctx.characters[pm.group(1).strip()] = pm.group(2).strip()

	m = re.search(r"^\s*TRANSITION:\s*(.+)$", text, re.MULTILINE)
	ctx.continues_scene = bool(m and m.group(1).strip().startswith(SEAMLESS_PREFIX))
	return ctx


def _as_planned(context: ContextLike) -> PlannedContext:
	if isinstance(context, PlannedContext):
		return context
	if isinstance(context, Segment):
		return planned_context_from_segment(context)
	return parse_brief(context or "")


# ---------------------------------------------------------------------------
# 属性比较
# ---------------------------------------------------------------------------

def _norm(s: str) -> str:
	return " ".join(s.lower().split())


def _has_word(text: str, word: str) -> bool:
	# 整词匹配，允许复数：night 不命中 nightclub
	return re.search(r"\b" + re.escape(word) + r"(?:s|es)?\b", text) is not None


def _opposed(a: str, b: str, pairs: Iterable[Tuple[str, str]]) -> bool:
	la, lb = _norm(a), _norm(b)
	for x, y in pairs:
		if (_has_word(la, x) and _has_word(lb, y)) or (_has_word(la, y) and _has_word(lb, x)):
			return True
	return False


_PLACE_FILLER = {"the", "a", "an"}


def _place_tokens(s: str) -> frozenset:
	return frozenset(t for t in re.findall(r"[a-z0-9]+", s.lower()) if t not in _PLACE_FILLER)


def _same_place(a: str, b: str) -> bool:
	# 按词比较：Kitchen 和 Kitchen Garden 是两个地方
	return _place_tokens(a) == _place_tokens(b)


def _compare(
	category: str,
	prev: str,
	planned: str,
	continues_scene: bool,
) -> Optional[ContinuityIssue]:
	if category == "location":
		if continues_scene and not _same_place(prev, planned):
			return ContinuityIssue(
				category, "blocking",
				"Location changed in the middle of a continuing scene",
				prev, planned,
				f"Keep the scene in {prev}",
			)
		return None

	if category == "time_of_day":
		if continues_scene and _opposed(prev, planned, OPPOSING_TIME):
			return ContinuityIssue(
				category, "blocking",
				"Time of day flipped in the middle of a continuing scene",
				prev, planned,
				f"Keep the time of day as {prev}",
			)
		return None

	if category == "lighting":
		if _norm(prev) == _norm(planned):
			return None
		if _opposed(prev, planned, OPPOSING_LIGHTING):
			return ContinuityIssue(
				category, "blocking",
				"Lighting changed dramatically between segments",
				prev, planned,
				f"Time passes as lighting shifts from {prev} to {planned}",
			)
		return ContinuityIssue(
			category, "info",
			"Lighting conditions changed slightly",
			prev, planned,
			"Ensure the lighting transition is smooth and motivated by the narrative",
		)

	if category == "camera":
		if _opposed(prev, planned, JARRING_CAMERA):
			return ContinuityIssue(
				category, "warning",
				"Camera angle changed dramatically",
				prev, planned,
				f"Consider an intermediate shot between {prev} and {planned}",
			)
		return None

	if category == "mood":
		if _opposed(prev, planned, OPPOSING_MOOD):
			return ContinuityIssue(
				category, "warning",
				"Mood/atmosphere shifted dramatically",
				prev, planned,
				f"The narrative should justify the mood shift from {prev} to {planned}",
			)
		return None

	raise ValueError(f"unknown continuity category: {category}")


def _compare_character(name: str, prev: str, planned: str) -> Optional[ContinuityIssue]:
	if _opposed(prev, planned, INCOMPATIBLE_PLACEMENT):
		return ContinuityIssue(
			"character_position", "warning",
			f'Character "{name}" position changed abruptly',
			prev, planned,
			f'Add transition movement: "{name} moves from {prev} to {planned}"',
		)
	return None


# ---------------------------------------------------------------------------
# 主入口
# ---------------------------------------------------------------------------

def validate_continuity(
	preceding: Optional[VisualStateSnapshot],
	context: ContextLike,
	options: Optional[ValidationOptions] = None,
) -> ContinuityResult:
	opts = options or ValidationOptions()

	# 没有可对齐的上一段状态：不可能违反连续性
	if preceding is None or preceding.is_empty():
		return ContinuityResult(is_valid=True, overall_score=100)

	planned = _as_planned(context)
	allowed = set(opts.allowed_discrepancies)

	compared: List[str] = []
	found: List[Tuple[str, ContinuityIssue]] = []

	for category in ("location", "time_of_day", "lighting", "camera", "mood"):
		prev_v = getattr(preceding, category)
		plan_v = getattr(planned, category)
		if not (is_defined(prev_v) and is_defined(plan_v)):
			continue
		# 地点/时段只在同场延续时有意义
		if category in ("location", "time_of_day") and not planned.continues_scene:
			continue
		compared.append(category)
		issue = _compare(category, prev_v, plan_v, planned.continues_scene)
		if issue is not None:
			found.append((category, issue))

	for name, prev_v in preceding.characters.items():
		plan_v = planned.characters.get(name)
		if not (is_defined(prev_v) and is_defined(plan_v)):
			continue
		attr = f"character:{name}"
		compared.append(attr)
		issue = _compare_character(name, prev_v, plan_v)
		if issue is not None:
			found.append((attr, issue))

	issues: List[ContinuityIssue] = []
	corrections: Dict[str, Any] = {}
	flagged = set()

	for attr, issue in found:
		if issue.category in allowed:
			continue

		if opts.strict_mode and issue.severity == "warning":
			issue.severity = "blocking"

		if opts.auto_correct:
			issue.corrected_value = issue.previous_value
			if attr.startswith("character:"):
				corrections.setdefault("characters", {})[attr.split(":", 1)[1]] = issue.previous_value
			else:
				corrections[attr] = issue.previous_value

		flagged.add(attr)
		issues.append(issue)

	if compared:
		score = round(100 * (len(compared) - len(flagged)) / len(compared))
	else:
		score = 100

	corrected_state = None
	if opts.auto_correct:
		corrected_state = merge_observations([
			Observation(record=corrections, confidence="high"),
			Observation(record=planned.to_dict(), confidence="medium"),
		]).record

	return ContinuityResult(
		is_valid=not any(i.severity == "blocking" for i in issues),
		overall_score=score,
		issues=issues,
		compared_attributes=compared,
		corrected_state=corrected_state,
	)


def validate_segment_chain(
	chain: Sequence[Tuple[Optional[VisualStateSnapshot], ContextLike]],
	options: Optional[ValidationOptions] = None,
) -> List[Tuple[int, ContinuityResult]]:
	"""
	chain[i] = (第 i 段结束时的快照, 第 i 段的计划)。
	第 i 段的计划用第 i-1 段的快照校验，返回 [(i, result), ...]，i 从 1 开始。
	"""
	results = []
	for i in range(1, len(chain)):
		prev_state = chain[i - 1][0]
		results.append((i, validate_continuity(prev_state, chain[i][1], options)))
	return results


# ---------------------------------------------------------------------------
# 文本拼装
# ---------------------------------------------------------------------------

def build_continuity_context(snapshot: Optional[VisualStateSnapshot]) -> str:
	"""上一段快照 -> 追加到下一段生成请求里的连续性说明；没有快照返回空串。"""
	if snapshot is None or snapshot.is_empty():
		return ""

	out = ["=== VISUAL CONTINUITY FROM PREVIOUS SEGMENT ===", ""]

	if snapshot.final_frame_description:
		out += ["PREVIOUS SEGMENT ENDED WITH:", snapshot.final_frame_description, ""]

	if snapshot.characters:
		out.append("CHARACTER POSITIONS:")
		out += [f"- {name}: {pos}" for name, pos in snapshot.characters.items()]
		out.append("")

	for label, value in (
		("LOCATION", snapshot.location),
		("TIME OF DAY", snapshot.time_of_day),
		("LIGHTING", snapshot.lighting),
		("CAMERA", snapshot.camera),
		("MOOD/ATMOSPHERE", snapshot.mood),
	):
		if value:
			out.append(f"{label}: {value}")

	if snapshot.key_visual_elements:
		out += ["", "KEY VISUAL ELEMENTS TO MAINTAIN:"]
		out += [f"- {e}" for e in snapshot.key_visual_elements]

	out += [
		"",
		"CRITICAL: Maintain visual continuity with the previous segment. "
		"Start where it ended and use smooth transitions.",
		"=== END CONTINUITY CONTEXT ===",
	]
	return "\n".join(out)


def build_segment_brief(segment: Segment, include_notes: bool = True) -> str:
	parts = [f"SEGMENT {segment.segment_number} - {segment.narrative_beat}", ""]

	if segment.narrative_transition:
		parts += [f"TRANSITION: {segment.narrative_transition}", ""]

	if include_notes and segment.visual_continuity_notes:
		parts += [f"CONTINUITY NOTES: {segment.visual_continuity_notes}", ""]

	if segment.dialogue:
		parts.append("DIALOGUE:")
		parts += [f'{d.character}: "{" ".join(d.lines)}"' for d in segment.dialogue]
		parts.append("")

	if segment.action_beats:
		parts.append("ACTION:")
		parts += [f"- {a}" for a in segment.action_beats]
		parts.append("")

	parts.append(f"TARGET DURATION: {segment.estimated_duration:g} seconds")
	return "\n".join(parts)
