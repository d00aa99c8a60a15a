# -*- coding: utf-8 -*-
"""
episode2video/stages/ingest.py

目的：
- “输入准备阶段”：确保 EpisodePack 基础文件存在，并把 manifest 置为 ingested。
- 最小校验：episode.json 必须存在且能解析成 Episode。

输入：
- EpisodePack/episode.json（必须存在）

输出：
- EpisodePack/manifest.json（如不存在则创建，并更新 stage=ingested）
"""

from __future__ import annotations

from episode2video.core.errors import InvalidInputError
from episode2video.core.io import EpisodePaths, read_json
from episode2video.core.manifest import load_manifest, new_manifest, save_manifest
from episode2video.core.schemas import Episode
from episode2video.stages.base import StageContext


class IngestStage:
	name = "ingest"

	def run(self, paths: EpisodePaths, ctx: StageContext) -> None:
		paths.ensure_dirs()

		# 没有 manifest 就创建一个最小 manifest。
		if not paths.manifest.exists():
			m = new_manifest(ctx.episode_id, ctx.series_id)
			save_manifest(paths.manifest, m)

		if not paths.episode.exists():
			raise FileNotFoundError(
				f"missing {paths.episode} "
				"(请先把剧集 JSON 放到 EpisodePack/episode.json)"
			)

		m = load_manifest(paths.manifest)
		try:
			data = read_json(paths.episode)
			if not isinstance(data, dict):
				raise InvalidInputError("episode.json must be a JSON object")
			episode = Episode.from_dict(data)
		except ValueError as e:
			m.mark_failed("ingest", str(e))
			save_manifest(paths.manifest, m)
			raise

		if episode.id:
			m.meta["episode_id"] = episode.id
		m.meta["title"] = episode.title
		m.set_stage("ingested")
		m.mark_done("ingest")
		save_manifest(paths.manifest, m)
