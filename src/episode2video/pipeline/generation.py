# -*- coding: utf-8 -*-
"""
episode2video/pipeline/generation.py

目的：
- 逐段生成 + 连续性线程：第 k 段的快照显式传给第 k+1 段。
- 必须串行：每一步的输入依赖上一步的输出。

每一段的流程：
1) 锚点刷新（可选）：每 anchor_interval 段把最近收集的快照合并一次
2) 连续性校验（有上一段快照才做）
3) 拼 brief + 连续性上下文（+ 纠正说明），调用外部生成
4) 从生成文本里抽取快照，挂到这一段的副本上，带给下一段

失败语义：
- 生成/抽取失败不致命：记在 step.error 里，下一段按“无上一段状态”继续。
- 输入的 segments 不会被修改。

注意：
- 这里不关心具体用哪个模型，只接受三个可调用对象（generate/extract/correct）。
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Sequence

from episode2video.core.continuity import (
	ValidationOptions,
	build_continuity_context,
	build_segment_brief,
	validate_continuity,
)
from episode2video.core.schemas import ContinuityIssue, ContinuityResult, Segment, VisualStateSnapshot
from episode2video.core.visual_state import merge_visual_states
from episode2video.skills.extract_visual_state.validator import is_snapshot_usable


logger = logging.getLogger(__name__)

GenerateFn = Callable[[str, str], str]
ExtractFn = Callable[[str, Sequence[str]], Optional[VisualStateSnapshot]]
CorrectFn = Callable[[VisualStateSnapshot, List[ContinuityIssue]], str]


@dataclass
class GenerationOptions:
	validate_before: bool = True
	auto_correct: bool = True
	strict_mode: bool = False
	# <=0 关闭锚点刷新
	anchor_interval: int = 3
	character_ids: Sequence[str] = ()


@dataclass
class GenerationStep:
	segment: Segment
	generated_text: Optional[str] = None
	validation: Optional[ContinuityResult] = None
	correction: str = ""
	anchor_refresh: bool = False
	error: str = ""


@dataclass
class GenerationRun:
	steps: List[GenerationStep] = field(default_factory=list)

	@property
	def segments(self) -> List[Segment]:
		return [s.segment for s in self.steps]


def _corrections_block(result: ContinuityResult, correction_text: str) -> str:
	lines = []
	for issue in result.issues:
		if issue.corrected_value is not None:
			lines.append(f"- {issue.category}: keep {issue.corrected_value}")
	if correction_text:
		lines.append(correction_text)
	if not lines:
		return ""
	return "CONTINUITY CORRECTIONS:\n" + "\n".join(lines)


def run_generation(
	segments: Sequence[Segment],
	generate_fn: GenerateFn,
	extract_fn: ExtractFn,
	options: Optional[GenerationOptions] = None,
	correct_fn: Optional[CorrectFn] = None,
) -> GenerationRun:
	opts = options or GenerationOptions()
	vopts = ValidationOptions(auto_correct=opts.auto_correct, strict_mode=opts.strict_mode)

	run = GenerationRun()
	carried: Optional[VisualStateSnapshot] = None
	anchor_states: List[VisualStateSnapshot] = []

	for seg in segments:
		step = GenerationStep(segment=replace(seg))

		if opts.anchor_interval > 0 and seg.segment_number % opts.anchor_interval == 0 and anchor_states:
			carried = merge_visual_states(anchor_states)
			anchor_states = []
			step.anchor_refresh = True
			logger.info("segment=%d anchor refresh", seg.segment_number)

		if opts.validate_before and carried is not None:
			step.validation = validate_continuity(carried, seg, vopts)
			if step.validation.issues and correct_fn is not None:
				step.correction = correct_fn(carried, step.validation.issues)
			if not step.validation.is_valid:
				logger.warning(
					"segment=%d continuity score=%d issues=%d",
					seg.segment_number, step.validation.overall_score, len(step.validation.issues),
				)

		context = build_continuity_context(carried)
		if step.validation is not None:
			block = _corrections_block(step.validation, step.correction)
			if block:
				context = f"{context}\n\n{block}" if context else block

		try:
			step.generated_text = generate_fn(build_segment_brief(seg, include_notes=True), context)
		except Exception as e:
			logger.warning("segment=%d generation failed: %s", seg.segment_number, e)
			step.error = f"generation failed: {e}"
			carried = None
			run.steps.append(step)
			continue

		try:
			snap = extract_fn(step.generated_text, opts.character_ids)
		except Exception as e:
			logger.warning("segment=%d extraction failed: %s", seg.segment_number, e)
			step.error = f"extraction failed: {e}"
			snap = None

		step.segment.final_visual_state = snap
		carried = snap
		if is_snapshot_usable(snap):
			anchor_states.append(snap)

		run.steps.append(step)

	return run


def continuity_report(run: GenerationRun) -> Dict[str, Any]:
	validated = [s for s in run.steps if s.validation is not None]
	by_category: Counter = Counter()
	by_severity: Counter = Counter()

	for s in validated:
		for issue in s.validation.issues:
			by_category[issue.category] += 1
			by_severity[issue.severity] += 1

	avg = None
	if validated:
		avg = round(sum(s.validation.overall_score for s in validated) / len(validated))

	return {
		"total_segments": len(run.steps),
		"validated_segments": len(validated),
		"average_score": avg,
		"issues_by_category": dict(by_category),
		"issues_by_severity": dict(by_severity),
		"segments_with_blocking_issues": [
			s.segment.segment_number for s in validated if not s.validation.is_valid
		],
		"failed_segments": [s.segment.segment_number for s in run.steps if s.error],
		"validations": [
			{"segment_number": s.segment.segment_number, **s.validation.to_dict()}
			for s in validated
		],
	}
