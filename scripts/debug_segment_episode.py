# -*- coding: utf-8 -*-
"""
scripts/debug_segment_episode.py

这个脚本做什么：
- 读取一个剧集 JSON（含 structured_screenplay）
- 规则切分 -> segments（不调用模型）
- 打印：
  1) segment 数与总时长
  2) 每个 segment 的时间轴、所属 scene、时长、narrative beat
  3) 可选：--brief 打印每段的生成 brief（便于肉眼检查喂给模型的内容）

使用方式：
   python scripts/debug_segment_episode.py --in_path docs/episode.json --target_duration 8
"""

from __future__ import annotations

import argparse
import json

from episode2video.core.continuity import build_segment_brief
from episode2video.core.schemas import Episode
from episode2video.core.segmenter import SegmentationOptions, segment_episode


def build_argparser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser()
	p.add_argument("--in_path", default="docs/episode.json", help="输入剧集 JSON 路径（UTF-8）")
	p.add_argument("--target_duration", type=float, default=10.0)
	p.add_argument("--min_duration", type=float, default=None)
	p.add_argument("--max_duration", type=float, default=None)
	p.add_argument("--brief", action="store_true", help="打印每段 brief")
	return p


def main() -> None:
	args = build_argparser().parse_args()

	with open(args.in_path, "r", encoding="utf-8") as f:
		episode = Episode.from_dict(json.load(f))

	opts = SegmentationOptions(
		target_duration=args.target_duration,
		min_duration=args.min_duration,
		max_duration=args.max_duration,
	)
	min_d, max_d = opts.resolve()
	result = segment_episode(episode, opts)

	print(f"[segment] segments={result.segment_count} total={result.total_duration:g}s (min={min_d:g}, max={max_d:g})")

	for s in result.segments:
		beat = s.narrative_beat.replace("\n", " ")
		if len(beat) > 80:
			beat = beat[:80] + "..."
		print(f"{s.segment_number:03d} [{s.start_timestamp:7.1f}-{s.end_timestamp:7.1f}] {s.scene_id} {s.estimated_duration:g}s {beat}")
		if args.brief:
			print(build_segment_brief(s))
			print()


if __name__ == "__main__":
	main()
