# -*- coding: utf-8 -*-
"""
episode2video/stages/generate.py

目的：
- “生成阶段”：按顺序逐段生成，并把连续性快照一段一段往下传。
- 这一阶段依赖外部模型（生成 + 快照抽取 + 纠正说明），具体循环在 pipeline/generation.py。

输入：
- EpisodePack/segments.json（segment 阶段产物）

输出：
- EpisodePack/generation/prompts/seg_0001.txt ...（每段生成文本）
- EpisodePack/segments.json（回写 final_visual_state）
- EpisodePack/generation/continuity_report.json
- manifest.json：stage -> generated, continuity 汇总

失败：
- 拿不到 LLM client（缺 key 等）：记到 manifest 后抛出，前面阶段的产物不受影响。
- 单段生成/抽取失败：不致命，记在报告的 failed_segments 里。
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, List

from episode2video.core.errors import ExternalServiceError
from episode2video.core.io import EpisodePaths, read_json, write_json
from episode2video.core.manifest import load_manifest, save_manifest
from episode2video.core.schemas import Segment
from episode2video.pipeline.generation import continuity_report, run_generation
from episode2video.providers.llm.chat_client import find_project_root, load_llm_client
from episode2video.skills.continuity_correction.skill import ContinuityCorrectionSkill
from episode2video.skills.extract_visual_state.skill import ExtractVisualStateSkill
from episode2video.skills.segment_prompt.skill import SegmentPromptSkill
from episode2video.stages.base import StageContext


logger = logging.getLogger(__name__)


def _character_ids(segments: List[Segment]) -> List[str]:
	out: List[str] = []
	for seg in segments:
		for c in seg.characters:
			if c not in out:
				out.append(c)
	return out


class GenerateStage:
	name = "generate"

	def run(self, paths: EpisodePaths, ctx: StageContext) -> None:
		if not paths.segments.exists():
			raise FileNotFoundError(f"missing {paths.segments} (请先跑 segment 阶段)")

		data = read_json(paths.segments)
		segments = [Segment.from_dict(s) for s in data.get("segments", [])]
		m = load_manifest(paths.manifest)

		client: Any = ctx.llm_client
		owns_client = client is None
		if owns_client:
			try:
				client = load_llm_client(project_root=str(find_project_root()))
			except ExternalServiceError as e:
				m.mark_failed("generate", str(e))
				save_manifest(paths.manifest, m)
				raise

		if owns_client:
			m.providers["llm"] = {"model": client.cfg.model, "vision_model": client.cfg.vision_model}

		options = ctx.generation
		if not options.character_ids:
			options = replace(options, character_ids=_character_ids(segments))

		writer = SegmentPromptSkill(client)
		extractor = ExtractVisualStateSkill(client)
		corrector = ContinuityCorrectionSkill(client)

		try:
			run = run_generation(
				segments,
				generate_fn=writer.run,
				extract_fn=lambda text, ids: extractor.run(text, ids).snapshot,
				options=options,
				correct_fn=corrector.run,
			)
		finally:
			if owns_client:
				client.close()

		paths.prompts_dir.mkdir(parents=True, exist_ok=True)
		for step in run.steps:
			if step.generated_text is not None:
				out = paths.prompt_file(step.segment.segment_number)
				out.write_text(step.generated_text.rstrip("\n") + "\n", encoding="utf-8")

		data["segments"] = [s.to_dict() for s in run.segments]
		write_json(paths.segments, data)

		report = continuity_report(run)
		write_json(paths.continuity_report, report)

		m.continuity = {
			"average_score": report["average_score"],
			"validated_segments": report["validated_segments"],
			"segments_with_blocking_issues": report["segments_with_blocking_issues"],
			"failed_segments": report["failed_segments"],
		}
		logger.info(
			"generated %d segments, average continuity=%s",
			len(run.steps), report["average_score"],
		)

		m.set_stage("generated")
		m.mark_done("generate")
		save_manifest(paths.manifest, m)
