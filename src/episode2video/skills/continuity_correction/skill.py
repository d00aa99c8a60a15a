# -*- coding: utf-8 -*-
"""
continuity_correction/skill.py

这个文件做什么：
- 对连续性问题生成一段自然语言纠正指令。
- 失败回退为固定文案，保证流水线不中断。

依赖：
- llm_client.chat_text(system_prompt, user_prompt, temperature, max_tokens) -> str
"""

from __future__ import annotations

import logging
from typing import Any, List

from episode2video.core.schemas import ContinuityIssue, VisualStateSnapshot

from .prompt import SYSTEM_PROMPT, build_user_prompt


logger = logging.getLogger(__name__)

FALLBACK_TEXT = "Auto-correction unavailable - please review issues manually"


class ContinuityCorrectionSkill:
	def __init__(self, llm_client: Any):
		self.llm_client = llm_client

	def run(self, snapshot: VisualStateSnapshot, issues: List[ContinuityIssue]) -> str:
		if not issues:
			return ""

		try:
			text = self.llm_client.chat_text(
				SYSTEM_PROMPT,
				build_user_prompt(snapshot, issues),
				temperature=0.5,
				max_tokens=200,
			)
			return text or FALLBACK_TEXT
		except Exception as e:
			logger.warning("continuity correction failed: %s", e)
			return FALLBACK_TEXT
