# -*- coding: utf-8 -*-
"""连续性校验与文本拼装测试（无 LLM 调用）。"""

from __future__ import annotations

import pytest

from episode2video.core.continuity import (
	PlannedContext,
	ValidationOptions,
	build_continuity_context,
	build_segment_brief,
	parse_brief,
	planned_context_from_segment,
	validate_continuity,
	validate_segment_chain,
)
from episode2video.core.schemas import DialogueEntry, Segment, VisualStateSnapshot


@pytest.fixture
def prev() -> VisualStateSnapshot:
	return VisualStateSnapshot(
		final_frame_description="Alice pours tea while Bob watches from the doorway.",
		location="Kitchen",
		time_of_day="INT DAY",
		lighting="bright morning sun",
		camera="wide shot",
		mood="calm",
		characters={"Alice": "standing left of the table"},
		key_visual_elements=["kettle"],
	)


def make_segment(**kw) -> Segment:
	data = dict(
		segment_number=2,
		scene_ids=["s1"],
		start_timestamp=10.0,
		estimated_duration=5.0,
		narrative_beat="Alice sets the cup down",
		narrative_transition="Continues seamlessly from the previous segment in Kitchen.",
		visual_continuity_notes="Location: Kitchen | Time: INT DAY | Characters: Alice",
		location="Kitchen",
		int_ext="INT",
		time_period="DAY",
		characters=["Alice"],
	)
	data.update(kw)
	return Segment(**data)


class TestValidateContinuity:
	def test_no_previous_state(self):
		r = validate_continuity(None, PlannedContext(lighting="dark night"))
		assert r.is_valid and r.overall_score == 100 and r.issues == []

	def test_consistent_plan(self, prev):
		ctx = PlannedContext(
			lighting="bright morning sun", camera="wide shot", mood="calm",
			characters={"Alice": "standing left of the table"},
		)
		r = validate_continuity(prev, ctx)
		assert r.is_valid
		assert r.overall_score == 100
		assert r.issues == []
		assert r.compared_attributes == ["lighting", "camera", "mood", "character:Alice"]

	def test_opposing_lighting_blocks(self, prev):
		r = validate_continuity(prev, PlannedContext(lighting="dark night"))
		assert not r.is_valid
		assert r.overall_score == 0
		assert r.issues[0].category == "lighting"
		assert r.issues[0].severity == "blocking"
		assert r.issues[0].previous_value == "bright morning sun"

	def test_slight_lighting_change_is_info(self, prev):
		r = validate_continuity(prev, PlannedContext(lighting="soft morning light"))
		assert r.is_valid
		assert r.issues[0].severity == "info"

	def test_camera_warning_and_strict(self, prev):
		ctx = PlannedContext(camera="extreme close-up")
		r = validate_continuity(prev, ctx)
		assert r.is_valid
		assert r.issues[0].severity == "warning"

		strict = validate_continuity(prev, ctx, ValidationOptions(strict_mode=True))
		assert not strict.is_valid
		assert strict.issues[0].severity == "blocking"

	def test_mood_and_character_warnings(self, prev):
		ctx = PlannedContext(mood="chaotic", characters={"Alice": "standing right of the door"})
		r = validate_continuity(prev, ctx)
		cats = sorted(i.category for i in r.issues)
		assert cats == ["character_position", "mood"]
		assert all(i.severity == "warning" for i in r.issues)
		assert r.is_valid

	def test_partial_score(self, prev):
		ctx = PlannedContext(
			lighting="bright morning sun", camera="close-up", mood="calm",
			characters={"Alice": "standing left of the table"},
		)
		r = validate_continuity(prev, ctx)
		assert r.overall_score == 75

	def test_location_only_checked_when_scene_continues(self, prev):
		moved = validate_continuity(prev, PlannedContext(location="Garden", continues_scene=True))
		assert not moved.is_valid
		assert moved.issues[0].category == "location"

		cut = validate_continuity(prev, PlannedContext(location="Garden", continues_scene=False))
		assert cut.is_valid and cut.issues == []
		assert "location" not in cut.compared_attributes

	def test_time_flip_in_continuing_scene(self, prev):
		r = validate_continuity(prev, PlannedContext(time_of_day="INT NIGHT", continues_scene=True))
		assert not r.is_valid
		assert r.issues[0].category == "time_of_day"

	def test_allowed_discrepancies(self, prev):
		r = validate_continuity(
			prev, PlannedContext(camera="close-up"),
			ValidationOptions(allowed_discrepancies=("camera",)),
		)
		assert r.issues == []
		assert r.overall_score == 100

	def test_auto_correct_is_only_a_suggestion(self, prev):
		"""自动纠正只给替换值，不抵扣分数。"""
		ctx = PlannedContext(lighting="dark night", camera="wide shot")
		plain = validate_continuity(prev, ctx)
		r = validate_continuity(prev, ctx, ValidationOptions(auto_correct=True))
		issue = r.issues[0]
		assert issue.corrected_value == "bright morning sun"
		assert r.overall_score == plain.overall_score == 50
		assert not r.is_valid
		assert r.corrected_state["lighting"] == "bright morning sun"
		assert r.corrected_state["camera"] == "wide shot"

	def test_auto_correct_keeps_low_score(self):
		before = VisualStateSnapshot(lighting="day sun", camera="close-up", mood="tense", characters={"A": "left"})
		ctx = PlannedContext(lighting="night", camera="wide shot", mood="relaxed", characters={"A": "right"})
		for auto in (False, True):
			r = validate_continuity(before, ctx, ValidationOptions(auto_correct=auto))
			assert (r.overall_score, r.is_valid, len(r.issues)) == (0, False, 4)

	def test_info_issue_lowers_score(self, prev):
		r = validate_continuity(prev, PlannedContext(lighting="soft morning light", camera="wide shot"))
		assert r.is_valid
		assert r.overall_score == 50

	def test_segment_as_context(self, prev):
		seg = make_segment(location="Garden")
		r = validate_continuity(prev, seg)
		assert not r.is_valid
		assert r.issues[0].category == "location"

	def test_brief_text_as_context(self, prev):
		brief = build_segment_brief(make_segment()) + "\nLIGHTING: dark night\n"
		r = validate_continuity(prev, brief)
		assert [i.category for i in r.issues] == ["lighting"]

	def test_chain(self, prev):
		chain = [
			(prev, make_segment(segment_number=1, narrative_transition=None)),
			(None, PlannedContext(lighting="dark night")),
			(prev, PlannedContext(lighting="dark night")),
		]
		results = validate_segment_chain(chain)
		assert [i for i, _ in results] == [1, 2]
		assert not results[0][1].is_valid
		assert results[1][1].is_valid


class TestPlannedContext:
	def test_from_segment(self):
		ctx = planned_context_from_segment(make_segment())
		assert ctx.location == "Kitchen"
		assert ctx.time_of_day == "INT DAY"
		assert ctx.continues_scene is True
		assert ctx.characters == {"Alice": ""}

		other = planned_context_from_segment(make_segment(narrative_transition="Transitions from A to B."))
		assert other.continues_scene is False

	def test_parse_brief(self):
		text = (
			"SEGMENT 3 - Bob enters\n\n"
			"TRANSITION: Transitions from Kitchen to Garden (EXT DAY).\n\n"
			"CONTINUITY NOTES: Location: Garden | Time: EXT DAY | Characters: Alice, Bob\n\n"
			"CAMERA: low angle\n"
			"MOOD/ATMOSPHERE: tense\n"
			"CHARACTER POSITIONS:\n"
			"- Bob: by the gate\n"
			"- Alice: on the bench\n"
		)
		ctx = parse_brief(text)
		assert ctx.location == "Garden"
		assert ctx.time_of_day == "EXT DAY"
		assert ctx.camera == "low angle"
		assert ctx.mood == "tense"
		assert ctx.characters == {"Alice": "on the bench", "Bob": "by the gate"}
		assert ctx.continues_scene is False


class TestTextBuilders:
	def test_context_empty_without_snapshot(self):
		assert build_continuity_context(None) == ""
		assert build_continuity_context(VisualStateSnapshot()) == ""

	def test_context_sections(self, prev):
		text = build_continuity_context(prev)
		assert text.startswith("=== VISUAL CONTINUITY FROM PREVIOUS SEGMENT ===")
		assert "PREVIOUS SEGMENT ENDED WITH:" in text
		assert "- Alice: standing left of the table" in text
		assert "LIGHTING: bright morning sun" in text
		assert "KEY VISUAL ELEMENTS TO MAINTAIN:\n- kettle" in text
		assert text.endswith("=== END CONTINUITY CONTEXT ===")

	def test_context_parses_back(self, prev):
		ctx = parse_brief(build_continuity_context(prev))
		assert ctx.lighting == "bright morning sun"
		assert ctx.camera == "wide shot"
		assert ctx.mood == "calm"
		assert ctx.characters == {"Alice": "standing left of the table"}

	def test_segment_brief(self):
		seg = make_segment(
			dialogue=[DialogueEntry("Alice", ["Sit down.", "Please."])],
			action_beats=["Alice sets the cup down"],
		)
		text = build_segment_brief(seg)
		assert text.startswith("SEGMENT 2 - Alice sets the cup down")
		assert "TRANSITION: Continues seamlessly" in text
		assert "CONTINUITY NOTES: Location: Kitchen" in text
		assert 'Alice: "Sit down. Please."' in text
		assert "- Alice sets the cup down" in text
		assert text.endswith("TARGET DURATION: 5 seconds")

		assert "CONTINUITY NOTES" not in build_segment_brief(seg, include_notes=False)


class TestWordMatching:
	def test_whole_words_only(self):
		before = VisualStateSnapshot(lighting="bright day")
		r = validate_continuity(before, PlannedContext(lighting="nightclub neon"))
		assert r.is_valid
		assert [i.severity for i in r.issues] == ["info"]

	def test_plural_still_matches(self):
		before = VisualStateSnapshot(mood="calm")
		r = validate_continuity(before, PlannedContext(mood="chaotic crowds"))
		assert [i.category for i in r.issues] == ["mood"]
		r = validate_continuity(VisualStateSnapshot(lighting="day"), PlannedContext(lighting="long nights"))
		assert r.issues[0].severity == "blocking"

	def test_location_compared_by_words(self):
		before = VisualStateSnapshot(location="Kitchen")
		moved = validate_continuity(before, PlannedContext(location="Kitchen Garden", continues_scene=True))
		assert not moved.is_valid
		assert moved.issues[0].category == "location"

		same = validate_continuity(before, PlannedContext(location="the  kitchen", continues_scene=True))
		assert same.is_valid and same.issues == []
