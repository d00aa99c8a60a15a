# -*- coding: utf-8 -*-
"""
continuity_correction/prompt.py

上一段快照 + 问题列表 -> 让 LLM 写 2-4 句纠正指令，追加到下一段的生成请求里。
"""

from __future__ import annotations

import json
from typing import List

from episode2video.core.schemas import ContinuityIssue, VisualStateSnapshot


SYSTEM_PROMPT = (
	"You are a video continuity expert. Given the previous segment's visual state and a list of "
	"continuity issues, write brief correction instructions to add to the next segment's prompt.\n"
	"Keep corrections concise and actionable. Focus on transitions that keep the visual flow.\n"
)


def build_user_prompt(snapshot: VisualStateSnapshot, issues: List[ContinuityIssue]) -> str:
	lines = [
		"PREVIOUS SEGMENT VISUAL STATE:",
		json.dumps(snapshot.to_dict(), ensure_ascii=False, indent=2),
		"",
		"CONTINUITY ISSUES DETECTED:",
	]
	for i, issue in enumerate(issues, 1):
		lines.append(f"{i}. [{issue.severity}] {issue.description}")
		lines.append(f"   Suggestion: {issue.suggestion}")
	lines += ["", "Write 2-4 sentences of correction instructions."]
	return "\n".join(lines)
