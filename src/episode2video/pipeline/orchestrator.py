# -*- coding: utf-8 -*-
"""
episode2video/pipeline/orchestrator.py

目的：
- 作为“阶段调度器”：按固定顺序执行各个 stage。
- 支持 `run_until(..., until="segment")`：跑到指定阶段停止。
- CLI 不直接调用 stage，统一走 orchestrator。

注意：
- orchestrator 不关心任何具体业务（如何切分、如何调用模型）。
- orchestrator 只负责：创建 paths、按顺序调用 stage、打印状态。
"""

from __future__ import annotations

import logging

from episode2video.core.io import episode_paths
from episode2video.core.manifest import load_manifest
from episode2video.stages.base import StageContext
from episode2video.stages.generate import GenerateStage
from episode2video.stages.ingest import IngestStage
from episode2video.stages.segment import SegmentStage


logger = logging.getLogger(__name__)

STAGE_ORDER = [
	"ingest",
	"segment",
	"generate",
]


def run_until(episode_dir: str, ctx: StageContext, until: str) -> None:
	if until not in STAGE_ORDER:
		raise ValueError(f"unknown stage: {until}")

	paths = episode_paths(episode_dir)
	paths.ensure_dirs()

	stages = {
		"ingest": IngestStage(),
		"segment": SegmentStage(),
		"generate": GenerateStage(),
	}

	for name in STAGE_ORDER:
		print(f"[RUN] stage={name}")
		logger.info("episode=%s stage=%s start", ctx.episode_id, name)
		stages[name].run(paths, ctx)

		if name == until:
			break

	# 打印当前 stage，便于确认断点续跑的“锚点”。
	if paths.manifest.exists():
		m = load_manifest(paths.manifest)
		print(f"[OK] current stage = {m.stage}")
		logger.info("episode=%s current stage=%s", ctx.episode_id, m.stage)
