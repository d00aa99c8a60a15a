# -*- coding: utf-8 -*-
"""
analyze_character/skill.py

这个文件做什么：
- analyze(image_url)：调用视觉模型，得到一张图的外观指纹 + 置信度。
- analyze_many(image_urls)：逐张分析，再用 core/merge.py 按置信度合并。

错误约定：
- 单张分析失败抛 ExternalServiceError（调用方通常要提示用户换图）。
- 空列表抛 InvalidInputError。
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from episode2video.core.errors import ExternalServiceError, InvalidInputError
from episode2video.core.merge import CONFIDENCE_RANK, Observation, merge_observations

from .prompt import SYSTEM_PROMPT, USER_PROMPT
from .schema import FINGERPRINT_FIELDS, CharacterAnalysis


logger = logging.getLogger(__name__)


def parse_analysis(data: Dict[str, Any]) -> CharacterAnalysis:
	fp = data.get("visual_fingerprint")
	if not isinstance(fp, dict):
		raise ExternalServiceError("Invalid response format: missing visual_fingerprint")

	fingerprint: Dict[str, Any] = {}
	for name in FINGERPRINT_FIELDS:
		value = fp.get(name)
		# distinctive_features 老数据可能是列表
		if isinstance(value, list):
			value = ", ".join(str(v) for v in value if v)
		if isinstance(value, str) and value.strip():
			fingerprint[name] = value.strip()

	confidence = data.get("confidence")
	if confidence not in CONFIDENCE_RANK:
		confidence = "low"

	return CharacterAnalysis(
		fingerprint=fingerprint,
		confidence=confidence,
		notes=str(data.get("analysis_notes") or ""),
	)


class CharacterAnalysisSkill:
	def __init__(self, llm_client: Any):
		self.llm_client = llm_client

	def analyze(self, image_url: str) -> CharacterAnalysis:
		try:
			data = self.llm_client.chat_json(SYSTEM_PROMPT, USER_PROMPT, image_urls=[image_url])
		except ExternalServiceError:
			raise
		except Exception as e:
			raise ExternalServiceError(f"Failed to analyze image: {e}")

		return parse_analysis(data)

	def analyze_many(self, image_urls: Sequence[str]) -> CharacterAnalysis:
		if not image_urls:
			raise InvalidInputError("No images provided for analysis")

		results: List[CharacterAnalysis] = [self.analyze(u) for u in image_urls]
		merged = merge_observations([
			Observation(record=r.fingerprint, confidence=r.confidence, notes=r.notes)
			for r in results
		])
		logger.info("merged %d character analyses -> %s", len(results), merged.confidence)

		return CharacterAnalysis(fingerprint=merged.record, confidence=merged.confidence, notes=merged.notes)
