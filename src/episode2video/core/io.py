# -*- coding: utf-8 -*-
"""
episode2video/core/io.py

目的：
- 统一管理 EpisodePack 的路径约定（哪些文件放哪里）。
- 统一创建 EpisodePack 的目录骨架（ensure_dirs）。
- 提供 JSON 读写的小工具，所有 stage 用同一种落盘格式。

EpisodePack 约定（v0.1）核心路径：
- episode.json                          : 输入剧集（含 structured_screenplay）
- manifest.json                         : 状态机与断点续跑信息
- segments.json                         : 切分结果；generate 之后带 final_visual_state
- generation/prompts/seg_0001.txt       : 每段生成出来的文本
- generation/continuity_report.json     : 连续性校验汇总
- logs/run.log                          : `episode2video run` 的运行日志（追加写）
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class EpisodePaths:
	"""
	把 EpisodePack 内部常用文件路径集中在一个结构体里。

	注意：
	- 只存路径，不做读写。
	- ensure_dirs() 负责创建目录骨架。
	"""
	root: Path
	episode: Path
	manifest: Path
	segments: Path
	prompts_dir: Path
	continuity_report: Path
	logs_dir: Path

	def ensure_dirs(self) -> None:
		"""
		创建 EpisodePack 目录骨架。

		原则：
		- 只 mkdir，不写任何业务文件。
		- 重复执行必须安全（exist_ok=True）。
		"""
		for d in (self.root, self.prompts_dir, self.logs_dir):
			d.mkdir(parents=True, exist_ok=True)

	def prompt_file(self, segment_number: int) -> Path:
		return self.prompts_dir / f"seg_{segment_number:04d}.txt"


def episode_paths(episode_dir: str | Path) -> EpisodePaths:
	"""
	根据 episode_dir 生成 EpisodePaths。

	注意：
	- 这里不创建目录；目录创建由 ensure_dirs() 做。
	"""
	root = Path(episode_dir)

	return EpisodePaths(
		root=root,
		episode=root / "episode.json",
		manifest=root / "manifest.json",
		segments=root / "segments.json",
		prompts_dir=root / "generation" / "prompts",
		continuity_report=root / "generation" / "continuity_report.json",
		logs_dir=root / "logs",
	)


def read_json(path: Path) -> Any:
	return json.loads(path.read_text(encoding="utf-8"))


def write_json(path: Path, data: Any) -> None:
	path.parent.mkdir(parents=True, exist_ok=True)
	path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
