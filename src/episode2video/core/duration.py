# -*- coding: utf-8 -*-
"""
core/duration.py

这个文件做什么：
- 纯函数：估算一个场景“演完”需要多少秒。
- segmenter 用它做“要不要切”的判断，也用它给每个 chunk 估时。

估算规则：
1) 对白时长 = 所有台词的词数 / 2.5 词每秒
2) 动作时长 = 动作条数 × 2 秒
3) 内容时长 = 对白 + 动作
4) 结果 = max(编剧估时（>0 才算）, 内容时长)，再兜底不少于 3 秒
- 这里不设上限；上限由 segmenter 按 segment 夹紧。
"""

from __future__ import annotations

from typing import Iterable

from episode2video.core.schemas import DialogueEntry, Scene


WORDS_PER_SECOND = 2.5
ACTION_BEAT_SECONDS = 2.0
MIN_SCENE_SECONDS = 3.0


def count_words(entry: DialogueEntry) -> int:
	return sum(len(line.split()) for line in entry.lines)


def estimate_dialogue_duration(entries: Iterable[DialogueEntry]) -> float:
	words = sum(count_words(e) for e in entries)
	return words / WORDS_PER_SECOND


def estimate_action_duration(beats: Iterable[str]) -> float:
	return sum(ACTION_BEAT_SECONDS for _ in beats)


def estimate_content_duration(scene: Scene) -> float:
	"""只看内容（对白 + 动作），不看编剧估时；空场景返回 0。"""
	return estimate_dialogue_duration(scene.dialogue or []) + estimate_action_duration(scene.action or [])


def estimate_scene_duration(scene: Scene) -> float:
	duration = estimate_content_duration(scene)

	# 0 或缺省的编剧估时不参与 max
	if scene.duration_estimate is not None and scene.duration_estimate > 0:
		duration = max(duration, float(scene.duration_estimate))

	return max(duration, MIN_SCENE_SECONDS)
