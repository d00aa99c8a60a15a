# -*- coding: utf-8 -*-
"""
episode2video/cli.py

目的：
- 提供项目的命令行入口。
- init：创建 EpisodePack 目录骨架（只建目录，不写业务数据）。
- prepare：把一个目录下的 episode JSON 批量放进各自的 EpisodePack。
- segment：单文件切分（episode.json -> segments.json），不走 EpisodePack。
- run：调用 pipeline/orchestrator.py 运行若干 stage（支持 --until）。
- analyze-character：参考图 -> 角色外观指纹（视觉模型）。

注意：
- CLI 不做业务细节：不切分、不调用模型。
- CLI 只负责参数解析 + 把任务交给 orchestrator / core / skills。
"""

from __future__ import annotations

import argparse
import json
import logging
import shutil
from pathlib import Path

from episode2video.pipeline.orchestrator import STAGE_ORDER


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(
		prog="episode2video",
		description="Episode screenplay -> video segments with visual continuity (EpisodePack)",
	)
	p.add_argument("-v", "--verbose", action="store_true", help="输出 DEBUG 日志")

	sub = p.add_subparsers(dest="cmd", required=True)

	initp = sub.add_parser("init", help="Create an empty EpisodePack directory skeleton")
	initp.add_argument("--episode_dir", required=True, help="e.g. output/series_001/ep_001")

	prepp = sub.add_parser("prepare", help="从 episodes 目录批量创建 EpisodePack 并填充 episode.json")
	prepp.add_argument("--episodes_dir", required=True, help="目录内是 *.json 剧集文件")
	prepp.add_argument("--out_dir", default=None, help="缺省为 episodes_dir 的父目录")
	prepp.add_argument("--episode", default=None, help="仅处理指定文件（不含 .json）；缺省则处理全部")

	segp = sub.add_parser("segment", help="Split one episode JSON into segments JSON")
	segp.add_argument("--in_path", required=True)
	segp.add_argument("--out_path", required=True)
	_add_duration_args(segp)

	runp = sub.add_parser("run", help="Run pipeline for an existing EpisodePack")
	runp.add_argument("--episode_dir", required=True)
	runp.add_argument("--series_id", default=None, help="缺省时从 episode_dir 父目录名推断")
	runp.add_argument("--until", default="segment", choices=STAGE_ORDER)
	runp.add_argument("--strict", action="store_true", help="warning 级连续性问题也视为阻断")
	runp.add_argument("--no_auto_correct", action="store_true")
	runp.add_argument("--anchor_interval", type=int, default=3, help="<=0 关闭锚点刷新")
	_add_duration_args(runp)

	anap = sub.add_parser("analyze-character", help="Extract a visual fingerprint from reference image(s)")
	anap.add_argument("--image_url", action="append", required=True, help="可重复；多张会按置信度合并")
	anap.add_argument("--out_path", default=None)

	return p


def _add_duration_args(p: argparse.ArgumentParser) -> None:
	p.add_argument("--target_duration", type=float, default=10.0)
	p.add_argument("--min_duration", type=float, default=None)
	p.add_argument("--max_duration", type=float, default=None)


def _segmentation_options(args):
	from episode2video.core.segmenter import SegmentationOptions

	return SegmentationOptions(
		target_duration=args.target_duration,
		min_duration=args.min_duration,
		max_duration=args.max_duration,
	)


def cmd_init(episode_dir: str) -> None:
	from episode2video.core.io import episode_paths

	paths = episode_paths(episode_dir)
	# 不在这里创建 manifest/segments，这些属于 stage 的工作。
	paths.ensure_dirs()
	print(f"[OK] EpisodePack skeleton created: {paths.root}")


def cmd_prepare(episodes_dir: str, out_dir: str | None = None, episode: str | None = None) -> None:
	"""把 episodes_dir/*.json 复制成 <out_dir>/<stem>/episode.json。"""
	from episode2video.core.io import episode_paths

	src_root = Path(episodes_dir)
	if not src_root.exists():
		raise FileNotFoundError(f"episodes_dir not found: {src_root}")

	out_root = Path(out_dir) if out_dir else src_root.parent

	files = sorted(src_root.glob("*.json"))
	if episode:
		files = [f for f in files if f.stem == episode]
		if not files:
			raise FileNotFoundError(f"episode not found: {episode}")

	for f in files:
		paths = episode_paths(out_root / f.stem)
		paths.ensure_dirs()
		shutil.copyfile(f, paths.episode)
		print(f"[OK] {f.stem} -> {paths.episode}")

	print(f"[OK] prepared {len(files)} episode(s) under {out_root}")


def cmd_segment(in_path: str, out_path: str, options) -> None:
	from episode2video.core.io import read_json, write_json
	from episode2video.core.schemas import Episode
	from episode2video.core.segmenter import segment_episode

	episode = Episode.from_dict(read_json(Path(in_path)))
	result = segment_episode(episode, options)
	write_json(Path(out_path), result.to_dict())
	print(f"[OK] {result.segment_count} segment(s), {result.total_duration:g}s -> {out_path}")


def _attach_run_log(logs_dir: Path, verbose: bool = False):
	"""
	把本次 run 的日志追加写到 EpisodePack/logs/run.log。

	挂在包 logger 上而不是 root 上：不影响调用方自己的日志配置。
	返回 (handler, 原 level)，由调用方在 finally 里卸载。
	"""
	logs_dir.mkdir(parents=True, exist_ok=True)
	handler = logging.FileHandler(logs_dir / "run.log", encoding="utf-8")
	handler.setFormatter(logging.Formatter(LOG_FORMAT))

	pkg = logging.getLogger("episode2video")
	prev_level = pkg.level
	pkg.setLevel(logging.DEBUG if verbose else logging.INFO)
	pkg.addHandler(handler)
	return handler, prev_level


def cmd_run(args) -> None:
	from episode2video.core.io import episode_paths
	from episode2video.pipeline.generation import GenerationOptions
	from episode2video.pipeline.orchestrator import run_until
	from episode2video.stages.base import StageContext

	episode_path = Path(args.episode_dir)
	# series_id：显式传入 > 从 episode_dir 父目录推断
	series_id = args.series_id or (episode_path.parent.name if episode_path.parent else "")

	ctx = StageContext(
		episode_id=episode_path.name,
		series_id=series_id,
		segmentation=_segmentation_options(args),
		generation=GenerationOptions(
			auto_correct=not args.no_auto_correct,
			strict_mode=args.strict,
			anchor_interval=args.anchor_interval,
		),
	)

	handler, prev_level = _attach_run_log(episode_paths(args.episode_dir).logs_dir, args.verbose)
	try:
		run_until(episode_dir=args.episode_dir, ctx=ctx, until=args.until)
	except Exception:
		logger.exception("run failed: %s", args.episode_dir)
		raise
	finally:
		pkg = logging.getLogger("episode2video")
		pkg.removeHandler(handler)
		pkg.setLevel(prev_level)
		handler.close()


def cmd_analyze_character(image_urls, out_path: str | None = None) -> None:
	from episode2video.providers.llm.chat_client import find_project_root, load_llm_client
	from episode2video.skills.analyze_character.skill import CharacterAnalysisSkill

	client = load_llm_client(project_root=str(find_project_root()))
	try:
		analysis = CharacterAnalysisSkill(client).analyze_many(image_urls)
	finally:
		client.close()

	text = json.dumps(analysis.to_dict(), ensure_ascii=False, indent=2)
	if out_path:
		Path(out_path).write_text(text, encoding="utf-8")
		print(f"[OK] fingerprint ({analysis.confidence}) -> {out_path}")
	else:
		print(text)


def main(argv=None) -> None:
	args = build_parser().parse_args(argv)

	logging.basicConfig(
		level=logging.DEBUG if args.verbose else logging.INFO,
		format=LOG_FORMAT,
	)

	if args.cmd == "init":
		cmd_init(args.episode_dir)
		return

	if args.cmd == "prepare":
		cmd_prepare(args.episodes_dir, out_dir=args.out_dir, episode=args.episode)
		return

	if args.cmd == "segment":
		cmd_segment(args.in_path, args.out_path, _segmentation_options(args))
		return

	if args.cmd == "run":
		cmd_run(args)
		return

	if args.cmd == "analyze-character":
		cmd_analyze_character(args.image_url, out_path=args.out_path)
		return
