# -*- coding: utf-8 -*-
"""Scripts / CLI 集成测试（子进程，无 LLM）。"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parent.parent

EPISODE = {
	"id": "ep_009",
	"structured_screenplay": {
		"scenes": [
			{
				"scene_id": "s1", "location": "Harbor", "time_of_day": "EXT", "time_period": "NIGHT",
				"characters": ["Mara"],
				"action": [f"Wave {i} crashes on the pier." for i in range(1, 11)],
			},
		],
	},
}


def _run(args):
	env = dict(os.environ)
	env["PYTHONPATH"] = str(ROOT / "src") + os.pathsep + env.get("PYTHONPATH", "")
	return subprocess.run(
		[sys.executable] + args,
		cwd=ROOT,
		capture_output=True,
		text=True,
		env=env,
	)


@pytest.fixture
def episode_file(tmp_path: Path) -> Path:
	p = tmp_path / "episode.json"
	p.write_text(json.dumps(EPISODE), encoding="utf-8")
	return p


def test_debug_segment_episode(episode_file: Path):
	"""debug 脚本打印 segment 数与时间轴。"""
	result = _run(["scripts/debug_segment_episode.py", "--in_path", str(episode_file), "--brief"])
	assert result.returncode == 0, result.stderr
	assert "[segment] segments=2 total=20s" in result.stdout
	assert "TARGET DURATION: 14 seconds" in result.stdout


def test_cli_segment(episode_file: Path, tmp_path: Path):
	out = tmp_path / "segments.json"
	result = _run([
		"-m", "episode2video", "segment",
		"--in_path", str(episode_file), "--out_path", str(out), "--target_duration", "6",
	])
	assert result.returncode == 0, result.stderr
	data = json.loads(out.read_text(encoding="utf-8"))
	# target 6 -> max 9：20 秒动作切成 4+4+2 条
	assert [len(s["action_beats"]) for s in data["segments"]] == [4, 4, 2]
	assert all(3 <= s["estimated_duration"] <= 9 for s in data["segments"])


def test_cli_rejects_missing_screenplay(tmp_path: Path):
	p = tmp_path / "bad.json"
	p.write_text(json.dumps({"id": "ep_x"}), encoding="utf-8")
	result = _run(["-m", "episode2video", "segment", "--in_path", str(p), "--out_path", str(tmp_path / "o.json")])
	assert result.returncode != 0
	assert "InvalidInputError" in result.stderr
