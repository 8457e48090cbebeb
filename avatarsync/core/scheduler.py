"""
Timeline scheduling for AvatarSync.

Covers each idle/talk segment with clips drawn round-robin from the matching
pool, inserting transition clips at idle/talk boundaries.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Union

from ..config import SchedulerConfig
from .clips_manager import ClipLibrary
from .structures import (
    ClipAsset,
    MotionType,
    Placement,
    Segment,
    SegmentKind,
    TalkPlan,
    TimelinePlan,
)


logger = logging.getLogger(__name__)


@dataclass
class SchedulerState:
    """Mutable state threaded through one scheduling pass."""
    cursor: float = 0.0
    previous_kind: SegmentKind = SegmentKind.IDLE
    counters: Dict[MotionType, int] = field(
        default_factory=lambda: {motion: 0 for motion in MotionType}
    )
    placements: List[Placement] = field(default_factory=list)
    talk_plans: List[TalkPlan] = field(default_factory=list)

    def next_index(self, motion: MotionType) -> int:
        """Return the usage counter for a pool and advance it."""
        value = self.counters[motion]
        self.counters[motion] = value + 1
        return value


class TimelineScheduler:
    """Builds a timeline plan from segments and a clip library."""

    def __init__(self, library: ClipLibrary, config: Optional[SchedulerConfig] = None):
        """
        Initialize the scheduler.

        Args:
            library: Clip pools to draw from
            config: Scheduler configuration (defaults if None)

        Raises:
            ClipConfigurationError: If the idle or speech-loop pool is empty
        """
        library.validate()
        self.library = library
        self.config = config or SchedulerConfig()

    def schedule(self, segments: Sequence[Segment]) -> TimelinePlan:
        """
        Cover every segment with clips.

        Args:
            segments: Segments in time order

        Returns:
            Timeline plan with placements, talk plans and total duration
        """
        state = SchedulerState()

        for index, segment in enumerate(segments):
            if segment.kind == SegmentKind.IDLE:
                self.cover_segment(state, segment)
                state.previous_kind = SegmentKind.IDLE
                continue

            if state.previous_kind == SegmentKind.IDLE:
                self.maybe_take_clip(state, MotionType.IDLE_TO_SPEECH)

            video_start = state.cursor
            self.cover_segment(state, segment)
            state.talk_plans.append(TalkPlan(
                segment_id=segment.id,
                video_start=video_start,
                video_end=state.cursor,
                audio_start=segment.start,
                audio_duration=segment.duration,
            ))

            next_segment = segments[index + 1] if index + 1 < len(segments) else None
            if next_segment is None or next_segment.kind == SegmentKind.IDLE:
                self.maybe_take_clip(state, MotionType.SPEECH_TO_IDLE)
                state.previous_kind = SegmentKind.IDLE
            else:
                state.previous_kind = SegmentKind.TALK

        logger.debug("Scheduled %d placements over %.2fs (%d talk plans)",
                     len(state.placements), state.cursor, len(state.talk_plans))

        return TimelinePlan(
            placements=state.placements,
            talk_plans=state.talk_plans,
            total_duration=state.cursor,
        )

    def take_clip(self, state: SchedulerState, motion: MotionType) -> ClipAsset:
        """
        Place the next clip of a pool at the cursor.

        Raises:
            ClipConfigurationError: If the pool is empty
        """
        pool = self.library.require(motion)
        clip = pool[state.next_index(motion) % len(pool)]
        state.placements.append(Placement(clip=clip, start=state.cursor))
        state.cursor += clip.duration
        return clip

    def maybe_take_clip(self, state: SchedulerState, motion: MotionType) -> Optional[ClipAsset]:
        """Place the next clip of an optional pool, if it has any."""
        if self.library.optional(motion) is None:
            return None
        return self.take_clip(state, motion)

    def cover_segment(self, state: SchedulerState, segment: Segment) -> float:
        """
        Append clips until the segment's duration is covered.

        Returns:
            Total duration of the clips placed
        """
        motion = MotionType.IDLE if segment.kind == SegmentKind.IDLE else MotionType.SPEECH_LOOP
        covered = 0.0
        while covered + self.config.coverage_epsilon < segment.duration:
            clip = self.take_clip(state, motion)
            covered += clip.duration
        return covered


def build_timeline_plan(segments: Sequence[Segment],
                        clips: Union[ClipLibrary, Iterable[ClipAsset]],
                        config: Optional[SchedulerConfig] = None) -> TimelinePlan:
    """
    Schedule clips for a list of segments.

    Args:
        segments: Segments in time order
        clips: Clip library or flat list of clips
        config: Scheduler configuration (defaults if None)

    Returns:
        Timeline plan
    """
    library = clips if isinstance(clips, ClipLibrary) else ClipLibrary(clips)
    return TimelineScheduler(library, config).schedule(segments)
