# -*- coding: utf-8 -*-
"""Pipeline 测试：逐段生成的连续性线程 + prepare/run（假 LLM）。"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from episode2video.core.errors import InvalidInputError
from episode2video.core.schemas import Segment, VisualStateSnapshot
from episode2video.pipeline.generation import GenerationOptions, continuity_report, run_generation


def make_segments(n: int = 3):
	return [
		Segment(
			segment_number=i,
			scene_ids=["s1"],
			start_timestamp=5.0 * (i - 1),
			estimated_duration=5.0,
			narrative_beat=f"Beat {i}",
			narrative_transition=None if i == 1 else "Continues seamlessly from the previous segment in Kitchen.",
			location="Kitchen",
			int_ext="INT",
			time_period="DAY",
			characters=["Alice"],
		)
		for i in range(1, n + 1)
	]


def snapshot(lighting="bright morning sun") -> VisualStateSnapshot:
	return VisualStateSnapshot(
		final_frame_description="Alice stands at the counter holding a cup.",
		location="Kitchen",
		time_of_day="INT DAY",
		lighting=lighting,
		camera="medium shot",
		characters={"Alice": "at the counter"},
	)


class Recorder:
	def __init__(self, fail_on=()):
		self.fail_on = set(fail_on)
		self.contexts = []

	def generate(self, brief: str, context: str) -> str:
		self.contexts.append(context)
		n = len(self.contexts)
		if n in self.fail_on:
			raise RuntimeError("generator offline")
		return f"generated {n}"

	def extract(self, text: str, ids):
		return snapshot()


class TestRunGeneration:
	def test_state_threads_forward(self):
		segs = make_segments()
		rec = Recorder()
		run = run_generation(segs, rec.generate, rec.extract, GenerationOptions(anchor_interval=0))

		assert rec.contexts[0] == ""
		assert rec.contexts[1].startswith("=== VISUAL CONTINUITY FROM PREVIOUS SEGMENT ===")
		assert run.steps[0].validation is None
		assert run.steps[1].validation.is_valid
		assert all(s.final_visual_state is not None for s in run.segments)
		# 输入不被修改
		assert all(s.final_visual_state is None for s in segs)

	def test_generation_failure_is_not_fatal(self):
		rec = Recorder(fail_on={2})
		run = run_generation(make_segments(), rec.generate, rec.extract, GenerationOptions(anchor_interval=0))
		assert run.steps[1].error.startswith("generation failed")
		assert run.steps[1].segment.final_visual_state is None
		# 第 3 段按“无上一段状态”继续
		assert rec.contexts[2] == ""
		assert run.steps[2].validation is None
		assert run.steps[2].generated_text == "generated 3"

	def test_extraction_failure(self):
		def boom(text, ids):
			raise RuntimeError("parse error")

		rec = Recorder()
		run = run_generation(make_segments(2), rec.generate, boom)
		assert run.steps[0].error == "extraction failed: parse error"
		assert rec.contexts[1] == ""

	def test_anchor_refresh(self):
		rec = Recorder()
		run = run_generation(make_segments(4), rec.generate, rec.extract, GenerationOptions(anchor_interval=3))
		assert [s.anchor_refresh for s in run.steps] == [False, False, True, False]

	def test_corrections_flow_into_context(self):
		"""上一段停在 Garden，计划却是同场延续的 Kitchen：自动纠正 + 纠正说明进入上下文。"""
		states = iter([VisualStateSnapshot(location="Garden", lighting="dusk"), snapshot()])
		seen_issues = []

		def correct(state, issues):
			seen_issues.extend(issues)
			return "Keep the garden setting."

		contexts = []

		def generate(brief, context):
			contexts.append(context)
			return "text"

		run = run_generation(
			make_segments(2), generate, lambda text, ids: next(states),
			GenerationOptions(anchor_interval=0), correct_fn=correct,
		)
		v = run.steps[1].validation
		assert not v.is_valid
		assert v.issues[0].corrected_value == "Garden"
		assert [i.category for i in seen_issues] == ["location"]
		assert "CONTINUITY CORRECTIONS:\n- location: keep Garden" in contexts[1]
		assert contexts[1].endswith("Keep the garden setting.")
		assert run.steps[1].correction == "Keep the garden setting."

		# 自动纠正不把分数抹平
		report = continuity_report(run)
		assert report["segments_with_blocking_issues"] == [2]
		assert report["issues_by_severity"] == {"blocking": 1}
		assert report["average_score"] < 100

	def test_report(self):
		rec = Recorder(fail_on={3})
		run = run_generation(make_segments(3), rec.generate, rec.extract, GenerationOptions(anchor_interval=0))
		report = continuity_report(run)
		assert report["total_segments"] == 3
		assert report["validated_segments"] == 2
		assert report["average_score"] == 100
		assert report["failed_segments"] == [3]
		assert report["segments_with_blocking_issues"] == []


EPISODE = {
	"id": "ep_001",
	"title": "Pilot",
	"structured_screenplay": {
		"title": "Pilot",
		"scenes": [
			{
				"scene_id": "s1", "scene_number": 1, "location": "Kitchen", "time_of_day": "INT",
				"time_period": "DAY", "characters": ["Alice", "Bob"],
				"dialogue": [{"character": "Alice", "lines": ["Did you sleep at all last night?"]}],
				"action": ["Alice pours tea.", "Bob rubs his eyes.", "The kettle whistles."],
				"duration_estimate": 24,
			},
			{
				"scene_id": "s2", "scene_number": 2, "location": "Garden", "time_of_day": "EXT",
				"time_period": "DAY", "characters": ["Alice"],
				"action": ["Alice walks to the gate."],
			},
		],
	},
}


class FakeLLM:
	def __init__(self):
		self.text_calls = 0

	def chat_text(self, system_prompt, user_prompt, temperature=0.5, max_tokens=None):
		self.text_calls += 1
		return f"Prompt {self.text_calls}: a medium shot in warm light."

	def chat_json(self, system_prompt, user_prompt, image_urls=None):
		return {
			"final_frame_description": "Alice stands by the table with a teacup in hand.",
			"lighting": "warm morning light",
			"camera": "medium shot",
			"characters": {"alice": "by the table"},
		}


def _prepare(tmp_path: Path) -> Path:
	from episode2video.cli import cmd_prepare

	episodes_dir = tmp_path / "series1" / "episodes"
	episodes_dir.mkdir(parents=True)
	(episodes_dir / "ep_001.json").write_text(json.dumps(EPISODE), encoding="utf-8")
	cmd_prepare(str(episodes_dir))
	return tmp_path / "series1" / "ep_001"


def test_prepare_and_run_segment(tmp_path: Path):
	"""prepare 创建 EpisodePack，run 执行 ingest+segment。"""
	from episode2video.pipeline.orchestrator import run_until
	from episode2video.stages.base import StageContext

	pack_dir = _prepare(tmp_path)
	assert (pack_dir / "episode.json").exists()

	run_until(episode_dir=str(pack_dir), ctx=StageContext(episode_id="ep_001", series_id="series1"), until="segment")

	data = json.loads((pack_dir / "segments.json").read_text(encoding="utf-8"))
	assert data["episode_id"] == "ep_001"
	assert data["segment_count"] == len(data["segments"]) >= 3
	assert data["segments"][0]["narrative_transition"] is None

	m = json.loads((pack_dir / "manifest.json").read_text(encoding="utf-8"))
	assert m["status"]["stage"] == "segmented"
	assert m["durations"]["num_segments"] == data["segment_count"]
	assert m["meta"]["series_id"] == "series1"


def test_run_generate_with_fake_llm(tmp_path: Path):
	from episode2video.pipeline.orchestrator import run_until
	from episode2video.stages.base import StageContext

	pack_dir = _prepare(tmp_path)
	ctx = StageContext(episode_id="ep_001", llm_client=FakeLLM())
	run_until(episode_dir=str(pack_dir), ctx=ctx, until="generate")

	data = json.loads((pack_dir / "segments.json").read_text(encoding="utf-8"))
	n = data["segment_count"]
	prompts = sorted((pack_dir / "generation" / "prompts").glob("seg_*.txt"))
	assert len(prompts) == n
	assert prompts[0].read_text(encoding="utf-8").startswith("Prompt 1")

	state = data["segments"][0]["final_visual_state"]
	assert state["characters"] == {"Alice": "by the table"}

	report = json.loads((pack_dir / "generation" / "continuity_report.json").read_text(encoding="utf-8"))
	assert report["total_segments"] == n
	assert report["validated_segments"] == n - 1
	assert report["failed_segments"] == []

	m = json.loads((pack_dir / "manifest.json").read_text(encoding="utf-8"))
	assert m["status"]["stage"] == "generated"
	assert m["continuity"]["average_score"] == report["average_score"]


def test_segment_failure_recorded(tmp_path: Path):
	from episode2video.pipeline.orchestrator import run_until
	from episode2video.stages.base import StageContext

	pack_dir = tmp_path / "ep_002"
	pack_dir.mkdir()
	(pack_dir / "episode.json").write_text(json.dumps({"id": "ep_002", "structured_screenplay": None}), encoding="utf-8")

	with pytest.raises(InvalidInputError):
		run_until(episode_dir=str(pack_dir), ctx=StageContext(episode_id="ep_002"), until="segment")

	m = json.loads((pack_dir / "manifest.json").read_text(encoding="utf-8"))
	assert m["status"]["stage"] == "ingested"
	assert "segment" in m["status"]["failed"]
	assert "structured_screenplay" in m["status"]["last_error"]


def test_cli_run_writes_log_file(tmp_path: Path):
	"""episode2video run 把运行日志写进 EpisodePack/logs/run.log。"""
	import logging

	from episode2video.cli import main

	pack_dir = _prepare(tmp_path)
	main(["run", "--episode_dir", str(pack_dir), "--until", "segment"])

	log_file = pack_dir / "logs" / "run.log"
	assert log_file.exists()
	text = log_file.read_text(encoding="utf-8")
	assert "stage=segment start" in text
	assert "episode=ep_001 ->" in text
	# handler 已卸载
	assert not logging.getLogger("episode2video").handlers
