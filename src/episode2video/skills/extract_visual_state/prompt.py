# -*- coding: utf-8 -*-
"""
extract_visual_state/prompt.py

这个文件做什么：
- 把“生成出来的 segment 文本”拼成一个受约束的抽取任务，让 LLM 输出画面状态 JSON。
- 这里不调用模型，只做 prompt 组装。

关键点：
- 强调：只能输出 JSON，不能 Markdown。
- 强调：只描述这一段“结束时”的画面，看不出来的字段留空，不要猜。
"""

from __future__ import annotations

import json
from typing import Sequence


SYSTEM_PROMPT = (
	"You are a visual continuity analyzer for multi-segment video generation.\n"
	"Read the generated segment prompt and describe how the segment ENDS visually.\n"
	"Output exactly one JSON object, no explanation, no Markdown, no code fences.\n"
	"Fields:\n"
	"- final_frame_description: Final frame description, 1-3 sentences\n"
	"- location: where the final frame takes place\n"
	"- time_of_day: e.g. day, night, dusk\n"
	"- lighting: Lighting state\n"
	"- camera: Camera position and framing\n"
	"- mood: Mood/atmosphere\n"
	"- characters: Character positions, object of character id -> visible state (position, facing, clothing)\n"
	"- key_visual_elements: list of props or elements that must persist\n"
	"If a field cannot be determined from the text, use null (or an empty object/list). Never invent.\n"
)


def build_user_prompt(
	generated_text: str,
	character_ids: Sequence[str] = (),
	focus_areas: Sequence[str] = (),
) -> str:
	parts = ["GENERATED SEGMENT PROMPT:", generated_text.strip(), ""]

	# 空列表不加对应小节，避免模型把“无”当成约束
	if character_ids:
		parts += [
			"KNOWN CHARACTERS TO TRACK (use these ids as keys of `characters`):",
			json.dumps(list(character_ids), ensure_ascii=False),
			"",
		]

	if focus_areas:
		parts += ["FOCUS AREAS:", ", ".join(focus_areas), ""]

	parts.append("Return the JSON object now.")
	return "\n".join(parts)
