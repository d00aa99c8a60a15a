# -*- coding: utf-8 -*-
"""
episode2video/stages/segment.py

目的：
- “切分阶段”：把 episode.json 的结构化剧本切成 segments.json。
- 纯规则（core/segmenter.py），不调用模型。

输入：
- EpisodePack/episode.json

输出：
- EpisodePack/segments.json
- manifest.json：stage -> segmented, durations.total_s / num_segments

失败：
- 缺剧本/缺场景是致命输入错误：记到 manifest 后继续往上抛。
"""

from __future__ import annotations

from episode2video.core.errors import InvalidInputError
from episode2video.core.io import EpisodePaths, read_json, write_json
from episode2video.core.manifest import load_manifest, save_manifest
from episode2video.core.schemas import Episode
from episode2video.core.segmenter import segment_episode
from episode2video.stages.base import StageContext


class SegmentStage:
	name = "segment"

	def run(self, paths: EpisodePaths, ctx: StageContext) -> None:
		if not paths.episode.exists():
			raise FileNotFoundError(f"missing {paths.episode}")

		episode = Episode.from_dict(read_json(paths.episode))
		m = load_manifest(paths.manifest)

		try:
			result = segment_episode(episode, ctx.segmentation)
		except InvalidInputError as e:
			m.mark_failed("segment", str(e))
			save_manifest(paths.manifest, m)
			raise

		min_d, max_d = ctx.segmentation.resolve()
		data = result.to_dict()
		data["schema_version"] = "segments.v0.1"
		data["options"] = {
			"target_duration": ctx.segmentation.target_duration,
			"min_duration": min_d,
			"max_duration": max_d,
		}
		write_json(paths.segments, data)

		m.durations["total_s"] = result.total_duration
		m.durations["num_segments"] = result.segment_count
		m.set_stage("segmented")
		m.mark_done("segment")
		save_manifest(paths.manifest, m)
