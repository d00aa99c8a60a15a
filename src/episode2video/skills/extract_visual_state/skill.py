# -*- coding: utf-8 -*-
"""
extract_visual_state/skill.py

这个文件做什么：
- 把抽取的完整流程封装成一个“skill”：
  1) build prompt
  2) 调用 LLM 得到 JSON
  3) parse 成 VisualStateSnapshot（允许部分字段缺失）
  4) 任何失败 -> snapshot=None，used_fallback=True，不抛异常

注意：
- 失败时不返回“假快照”；None 就是“没有上一段状态”，下游连续性校验会直接放行。
- 只依赖 llm_client.chat_json(system_prompt, user_prompt) -> dict。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from episode2video.core.schemas import VisualStateSnapshot

from .prompt import SYSTEM_PROMPT, build_user_prompt
from .validator import parse_visual_state


logger = logging.getLogger(__name__)


@dataclass
class ExtractResult:
	snapshot: Optional[VisualStateSnapshot]
	used_fallback: bool
	error: str


class ExtractVisualStateSkill:
	def __init__(self, llm_client: Any):
		self.llm_client = llm_client

	def run(
		self,
		generated_text: str,
		character_ids: Sequence[str] = (),
		focus_areas: Sequence[str] = (),
	) -> ExtractResult:
		user_prompt = build_user_prompt(generated_text, character_ids, focus_areas)

		try:
			data = self.llm_client.chat_json(SYSTEM_PROMPT, user_prompt)
			now = datetime.now(timezone.utc).isoformat()
			snap = parse_visual_state(data, character_ids, extracted_at=now)

			if snap.is_empty():
				# 什么都没抽到，和失败一样处理
				return ExtractResult(snapshot=None, used_fallback=True, error="empty visual state")

			return ExtractResult(snapshot=snap, used_fallback=False, error="")

		except Exception as e:
			# 外部调用失败不致命：下一段按“无上一段状态”继续
			logger.warning("visual state extraction failed: %s", e)
			return ExtractResult(snapshot=None, used_fallback=True, error=str(e))
