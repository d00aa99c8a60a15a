# -*- coding: utf-8 -*-
"""
episode2video/core/manifest.py

目的：
- 定义 manifest.json 的数据结构与读写方法。
- 维护 EpisodePack 的“状态机”：每个 stage 跑完更新一次。
- 支持断点续跑：失败了也能从上次成功的 stage 继续。

manifest 的核心字段：
- status.stage      : 当前阶段（empty/ingested/segmented/generated）
- status.done       : 已完成阶段的标记（便于审计/调试）
- status.failed     : 失败阶段标记（便于 UI/脚本处理）
- status.last_error : 最近一次错误信息（便于定位）
- durations         : 总时长、segment 数
- continuity        : 生成阶段的连续性汇总（平均分、问题段）
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict


STAGES = [
	"empty",
	"ingested",
	"segmented",
	"generated",
]


@dataclass
class Manifest:
	"""
	Manifest 是一个“可读写的结构体”，对应 manifest.json。
	"""
	schema_version: str
	meta: Dict[str, Any]
	status: Dict[str, Any]
	durations: Dict[str, Any]
	providers: Dict[str, Any]
	artifacts: Dict[str, Any]
	continuity: Dict[str, Any] = field(default_factory=dict)

	@property
	def stage(self) -> str:
		return self.status.get("stage", "empty")

	def set_stage(self, stage: str) -> None:
		if stage not in STAGES:
			raise ValueError(f"invalid stage: {stage}")

		self.status["stage"] = stage

	def mark_done(self, key: str) -> None:
		done = self.status.setdefault("done", [])
		if key in done:
			return

		done.append(key)

	def mark_failed(self, key: str, err: str) -> None:
		failed = self.status.setdefault("failed", [])
		if key not in failed:
			failed.append(key)

		self.status["last_error"] = err


def new_manifest(episode_id: str, series_id: str = "") -> Manifest:
	"""
	创建一个新的 Manifest（对应 EpisodePack v0.1 的最小字段集合）。
	"""
	return Manifest(
		schema_version="episodepack.v0.1",
		meta={
			"project_id": "episode2video",
			"series_id": series_id,
			"episode_id": episode_id,
			"created_at": "",
		},
		status={
			"stage": "empty",
			"done": [],
			"failed": [],
			"last_error": "",
		},
		durations={
			"total_s": 0.0,
			"num_segments": 0,
		},
		providers={
			"llm": {},
		},
		artifacts={
			"episode": "episode.json",
			"segments": "segments.json",
			"prompts_dir": "generation/prompts/",
			"continuity_report": "generation/continuity_report.json",
		},
	)


def load_manifest(path: Path) -> Manifest:
	"""
	从 manifest.json 加载 Manifest。

	原则：
	- 容错：缺字段就用空 dict，避免轻易崩。
	"""
	data = json.loads(path.read_text(encoding="utf-8"))

	return Manifest(
		schema_version=data.get("schema_version", ""),
		meta=data.get("meta", {}),
		status=data.get("status", {}),
		durations=data.get("durations", {}),
		providers=data.get("providers", {}),
		artifacts=data.get("artifacts", {}),
		continuity=data.get("continuity", {}),
	)


def save_manifest(path: Path, m: Manifest) -> None:
	"""
	把 Manifest 落盘到 manifest.json（可读的 indent=2）。
	"""
	data = {
		"schema_version": m.schema_version,
		"meta": m.meta,
		"status": m.status,
		"durations": m.durations,
		"providers": m.providers,
		"artifacts": m.artifacts,
		"continuity": m.continuity,
	}

	path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
