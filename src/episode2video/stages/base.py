# -*- coding: utf-8 -*-
"""
episode2video/stages/base.py

目的：
- 定义 Stage 的“接口形状”和运行上下文 StageContext。
- 让每个阶段都遵循同一种调用方式：run(paths, ctx)。

为什么需要：
- pipeline/orchestrator 只负责按顺序调度 stage，
  它不应该知道 stage 的内部细节。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from episode2video.core.io import EpisodePaths
from episode2video.core.segmenter import SegmentationOptions
from episode2video.pipeline.generation import GenerationOptions


@dataclass
class StageContext:
	"""
	运行上下文：
	- episode_id/series_id：用于写 manifest/meta
	- segmentation/generation：各阶段的参数
	- llm_client：可注入（测试用假 client）；None 时 generate 阶段从 .env 加载
	"""
	episode_id: str
	series_id: str = ""
	segmentation: SegmentationOptions = field(default_factory=SegmentationOptions)
	generation: GenerationOptions = field(default_factory=GenerationOptions)
	llm_client: Optional[Any] = None


class Stage(Protocol):
	"""
	Stage 接口（协议）：
	- name：阶段名
	- run：执行该阶段，负责读写 EpisodePack 内的文件
	"""
	name: str

	def run(self, paths: EpisodePaths, ctx: StageContext) -> None:
		...
