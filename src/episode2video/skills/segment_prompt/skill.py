# -*- coding: utf-8 -*-
"""
segment_prompt/skill.py

这个文件做什么：
- 调用文本模型，把一段 brief 扩写成视频生成提示词。
- 失败直接抛 ExternalServiceError，由 pipeline/generation.py 记录并继续下一段。
"""

from __future__ import annotations

from typing import Any

from episode2video.core.errors import ExternalServiceError

from .prompt import SYSTEM_PROMPT, build_user_prompt


class SegmentPromptSkill:
	def __init__(self, llm_client: Any, temperature: float = 0.7):
		self.llm_client = llm_client
		self.temperature = temperature

	def run(self, brief: str, continuity_context: str = "") -> str:
		text = self.llm_client.chat_text(
			SYSTEM_PROMPT,
			build_user_prompt(brief, continuity_context),
			temperature=self.temperature,
		)
		if not text or not text.strip():
			raise ExternalServiceError("generator returned an empty prompt")
		return text.strip()
