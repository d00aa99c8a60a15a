# -*- coding: utf-8 -*-
"""
scripts/debug_extract_visual_state.py

这个脚本做什么：
- 读取一段“已生成的视频提示词”文本
- 调用 extract_visual_state skill（通过 LLM）-> VisualStateSnapshot
- 打印：快照 JSON、是否 fallback、是否可用作下一段的参照
- 可选 --previous：拿上一段快照 JSON 对这段文本做连续性校验

使用方式：
1) 在项目根目录创建 .env（并确保 .gitignore 忽略它）：
   LLM_API_KEY=xxx
   LLM_BASE_URL=https://api.siliconflow.cn/v1
   LLM_MODEL=deepseek-ai/DeepSeek-V3.2
2) 运行：
   python scripts/debug_extract_visual_state.py --in_path docs/seg_0001.txt --character Alice --character Bob
"""

from __future__ import annotations

import argparse
import json

from episode2video.core.continuity import parse_brief, validate_continuity
from episode2video.core.schemas import VisualStateSnapshot
from episode2video.providers.llm.chat_client import load_llm_client
from episode2video.skills.extract_visual_state.skill import ExtractVisualStateSkill
from episode2video.skills.extract_visual_state.validator import is_snapshot_usable


def build_argparser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser()
	p.add_argument("--in_path", required=True, help="生成文本路径（UTF-8）")
	p.add_argument("--character", action="append", default=[], help="可重复，已知角色 id")
	p.add_argument("--focus", action="append", default=[], help="可重复，重点关注项")
	p.add_argument("--previous", default=None, help="上一段快照 JSON，用于连续性校验")
	return p


def main() -> None:
	args = build_argparser().parse_args()

	with open(args.in_path, "r", encoding="utf-8") as f:
		text = f.read()

	llm = load_llm_client(project_root=".")
	try:
		result = ExtractVisualStateSkill(llm).run(text, args.character, args.focus)
	finally:
		llm.close()

	print(f"[extract] fallback={result.used_fallback}")
	if result.used_fallback:
		print(f"[extract] error={result.error}")
		return

	print(json.dumps(result.snapshot.to_dict(), ensure_ascii=False, indent=2))
	print(f"[extract] usable_as_anchor={is_snapshot_usable(result.snapshot)}")

	if args.previous:
		with open(args.previous, "r", encoding="utf-8") as f:
			prev = VisualStateSnapshot.from_dict(json.load(f))
		check = validate_continuity(prev, parse_brief(text))
		print(f"[continuity] valid={check.is_valid} score={check.overall_score}")
		for issue in check.issues:
			print(f"  - [{issue.severity}] {issue.category}: {issue.description}")


if __name__ == "__main__":
	main()
