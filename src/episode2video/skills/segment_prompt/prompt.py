# -*- coding: utf-8 -*-
"""
segment_prompt/prompt.py

segment brief + 上一段连续性上下文 -> 给视频模型用的一段生成提示词。
"""

from __future__ import annotations


SYSTEM_PROMPT = (
	"You write prompts for a text-to-video model. Each prompt covers one short segment "
	"(3-15 seconds) of an episode.\n"
	"Describe camera, lighting, mood, character placement and the action in plain prose.\n"
	"When a continuity block is given, the segment must start exactly where the previous one ended.\n"
	"Output only the prompt text.\n"
)


def build_user_prompt(brief: str, continuity_context: str = "") -> str:
	if not continuity_context:
		return brief
	return f"{continuity_context}\n\n{brief}"
