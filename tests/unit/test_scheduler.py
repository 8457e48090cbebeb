"""Unit tests for the timeline scheduler."""

import unittest

from avatarsync.config import SchedulerConfig
from avatarsync.core.clips_manager import ClipLibrary
from avatarsync.core.scheduler import SchedulerState, TimelineScheduler, build_timeline_plan
from avatarsync.core.structures import ClipAsset, MotionType, Segment, SegmentKind
from avatarsync.errors import ClipConfigurationError


IDLE = ClipAsset("idle-a", MotionType.IDLE, 1.0)
TALK = ClipAsset("talk-a", MotionType.SPEECH_LOOP, 0.4)
TO_SPEECH = ClipAsset("in-a", MotionType.IDLE_TO_SPEECH, 0.2)
TO_IDLE = ClipAsset("out-a", MotionType.SPEECH_TO_IDLE, 0.2)


def idle(index, start, duration):
    return Segment(f"idle-{index}", SegmentKind.IDLE, start, duration)


def talk(index, start, duration):
    return Segment(f"talk-{index}", SegmentKind.TALK, start, duration)


class TestEndToEndScenario(unittest.TestCase):
    """Idle 2s, talk 1s, idle 1s with every pool populated."""

    def setUp(self):
        segments = [idle(0, 0.0, 2.0), talk(1, 2.0, 1.0), idle(2, 3.0, 1.0)]
        self.plan = build_timeline_plan(segments, [IDLE, TALK, TO_SPEECH, TO_IDLE])

    def test_placements(self):
        expected = [
            (MotionType.IDLE, 0.0),
            (MotionType.IDLE, 1.0),
            (MotionType.IDLE_TO_SPEECH, 2.0),
            (MotionType.SPEECH_LOOP, 2.2),
            (MotionType.SPEECH_LOOP, 2.6),
            (MotionType.SPEECH_LOOP, 3.0),
            (MotionType.SPEECH_TO_IDLE, 3.4),
            (MotionType.IDLE, 3.6),
        ]
        self.assertEqual(len(self.plan.placements), len(expected))
        for placement, (motion, start) in zip(self.plan.placements, expected):
            self.assertEqual(placement.clip.type, motion)
            self.assertAlmostEqual(placement.start, start, places=9)

    def test_talk_plan(self):
        self.assertEqual(len(self.plan.talk_plans), 1)
        talk_plan = self.plan.talk_plans[0]

        self.assertEqual(talk_plan.segment_id, "talk-1")
        self.assertAlmostEqual(talk_plan.video_start, 2.2)
        self.assertAlmostEqual(talk_plan.video_end, 3.4)
        self.assertAlmostEqual(talk_plan.audio_start, 2.0)
        self.assertAlmostEqual(talk_plan.audio_duration, 1.0)
        self.assertGreaterEqual(talk_plan.video_duration + 1e-9, talk_plan.audio_duration)

    def test_total_duration(self):
        self.assertAlmostEqual(self.plan.total_duration, 4.6)
        self.assertAlmostEqual(self.plan.placements[-1].end, self.plan.total_duration)

    def test_placements_abut(self):
        for prev, placement in zip(self.plan.placements, self.plan.placements[1:]):
            self.assertAlmostEqual(prev.end, placement.start, places=9)

    def test_clips_are_shared_references(self):
        self.assertIs(self.plan.placements[0].clip, IDLE)


class TestTransitions(unittest.TestCase):

    def test_missing_transition_pools_are_skipped(self):
        segments = [idle(0, 0.0, 1.0), talk(1, 1.0, 0.8), idle(2, 1.8, 1.0)]
        plan = build_timeline_plan(segments, [IDLE, TALK])

        types = [p.clip.type for p in plan.placements]
        self.assertNotIn(MotionType.IDLE_TO_SPEECH, types)
        self.assertNotIn(MotionType.SPEECH_TO_IDLE, types)
        self.assertAlmostEqual(plan.talk_plans[0].video_start, 1.0)

    def test_trailing_talk_gets_exit_transition(self):
        segments = [idle(0, 0.0, 1.0), talk(1, 1.0, 0.4)]
        plan = build_timeline_plan(segments, [IDLE, TALK, TO_SPEECH, TO_IDLE])

        self.assertEqual(plan.placements[-1].clip.type, MotionType.SPEECH_TO_IDLE)

    def test_back_to_back_talk_has_no_transitions_between(self):
        segments = [idle(0, 0.0, 1.0), talk(1, 1.0, 0.4), talk(2, 1.5, 0.4), idle(3, 1.9, 1.0)]
        plan = build_timeline_plan(segments, [IDLE, TALK, TO_SPEECH, TO_IDLE])

        types = [p.clip.type for p in plan.placements]
        self.assertEqual(types, [
            MotionType.IDLE,
            MotionType.IDLE_TO_SPEECH,
            MotionType.SPEECH_LOOP,
            MotionType.SPEECH_LOOP,
            MotionType.SPEECH_TO_IDLE,
            MotionType.IDLE,
        ])
        self.assertEqual(len(plan.talk_plans), 2)
        self.assertAlmostEqual(plan.talk_plans[1].video_start, plan.talk_plans[0].video_end)

    def test_zero_duration_idle_places_nothing(self):
        segments = [idle(0, 0.0, 0.0), talk(1, 0.0, 0.4)]
        plan = build_timeline_plan(segments, [IDLE, TALK])

        self.assertEqual([p.clip.type for p in plan.placements], [MotionType.SPEECH_LOOP])


class TestCoverage(unittest.TestCase):

    def test_coverage_lower_bound(self):
        clips = [
            ClipAsset("idle-a", MotionType.IDLE, 0.7),
            ClipAsset("idle-b", MotionType.IDLE, 1.3),
            ClipAsset("talk-a", MotionType.SPEECH_LOOP, 0.33),
            ClipAsset("talk-b", MotionType.SPEECH_LOOP, 0.5),
        ]
        scheduler = TimelineScheduler(ClipLibrary(clips))
        state = SchedulerState()

        for duration in [0.0, 0.005, 0.01, 0.3, 1.0, 2.71, 7.3]:
            for segment in (idle(0, 0.0, duration), talk(1, 0.0, duration)):
                placed_before = len(state.placements)
                covered = scheduler.cover_segment(state, segment)
                placed = state.placements[placed_before:]

                self.assertAlmostEqual(covered, sum(p.clip.duration for p in placed))
                self.assertGreaterEqual(covered, segment.duration - 0.01)
                if placed:
                    # Overshoot is less than one clip
                    self.assertLess(covered - placed[-1].clip.duration + 0.01, segment.duration + 1e-9)

    def test_custom_epsilon(self):
        library = ClipLibrary([IDLE, TALK])
        scheduler = TimelineScheduler(library, SchedulerConfig(coverage_epsilon=0.5))
        plan = scheduler.schedule([idle(0, 0.0, 1.4)])

        self.assertEqual(len(plan.placements), 1)


class TestRoundRobin(unittest.TestCase):

    def test_cyclic_selection(self):
        pool = [ClipAsset(f"talk-{i}", MotionType.SPEECH_LOOP, 0.25) for i in range(3)]
        plan = build_timeline_plan([idle(0, 0.0, 1.0), talk(1, 1.0, 2.5)], [IDLE] + pool)

        talk_ids = [p.clip.id for p in plan.placements if p.clip.type == MotionType.SPEECH_LOOP]
        self.assertEqual(len(talk_ids), 10)
        self.assertEqual(talk_ids, [f"talk-{i % 3}" for i in range(10)])

    def test_counters_persist_across_segments(self):
        idles = [ClipAsset(f"idle-{i}", MotionType.IDLE, 1.0) for i in range(2)]
        segments = [idle(0, 0.0, 1.0), talk(1, 1.0, 0.4), idle(2, 1.4, 2.0), talk(3, 3.4, 0.4),
                    idle(4, 3.8, 1.0)]
        plan = build_timeline_plan(segments, idles + [TALK])

        idle_ids = [p.clip.id for p in plan.placements if p.clip.type == MotionType.IDLE]
        self.assertEqual(idle_ids, ["idle-0", "idle-1", "idle-0", "idle-1"])

    def test_next_index(self):
        state = SchedulerState()

        self.assertEqual([state.next_index(MotionType.IDLE) for _ in range(3)], [0, 1, 2])
        self.assertEqual(state.next_index(MotionType.SPEECH_LOOP), 0)


class TestConfigurationErrors(unittest.TestCase):

    def test_missing_idle_pool(self):
        with self.assertRaises(ClipConfigurationError):
            build_timeline_plan([idle(0, 0.0, 1.0)], [TALK])

    def test_missing_speech_pool(self):
        with self.assertRaises(ClipConfigurationError):
            build_timeline_plan([idle(0, 0.0, 1.0)], [IDLE, TO_SPEECH, TO_IDLE])

    def test_zero_duration_clip(self):
        with self.assertRaises(ClipConfigurationError):
            build_timeline_plan([idle(0, 0.0, 1.0)],
                                [ClipAsset("z", MotionType.IDLE, 0.0), TALK])

    def test_empty_segments(self):
        plan = build_timeline_plan([], [IDLE, TALK])

        self.assertEqual(plan.placements, [])
        self.assertEqual(plan.talk_plans, [])
        self.assertEqual(plan.total_duration, 0.0)


if __name__ == '__main__':
    unittest.main()
