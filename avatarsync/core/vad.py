"""
Voice Activity Detection (VAD) module for AvatarSync.

This module detects idle and talk segments in decoded audio using windowed
RMS energy, thresholds adapted to the recording's loud tail and a
two-state hysteresis automaton.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

import numpy as np

from ..config import SegmenterConfig
from .structures import SampleBuffer, Segment, SegmentKind


logger = logging.getLogger(__name__)


@dataclass
class AudioAnalysisResult:
    """Segments plus the intermediate signals they were derived from."""
    buffer: SampleBuffer
    segments: List[Segment]
    rms_values: List[float]
    window_duration: float
    talk_threshold: float
    silence_threshold: float


def compute_rms_windows(buffer: SampleBuffer, window_size: float = 0.08) -> Tuple[List[float], float]:
    """
    Compute one RMS loudness value per fixed-duration window.

    Args:
        buffer: Audio to analyze
        window_size: Window duration in seconds

    Returns:
        Tuple of (loudness per window, effective window duration in seconds)
    """
    window_samples = max(1, int(round(buffer.sample_rate * window_size)))
    window_duration = window_samples / buffer.sample_rate
    total_samples = buffer.length
    window_count = math.ceil(total_samples / window_samples)

    if window_count == 0 or buffer.num_channels == 0:
        return [0.0] * window_count, window_duration

    # Sum of squares across channels, then per window
    squares = np.square(buffer.data.astype(np.float64)).sum(axis=0)
    starts = np.arange(0, total_samples, window_samples)
    sums = np.add.reduceat(squares, starts)
    lengths = np.minimum(starts + window_samples, total_samples) - starts

    rms_values = np.sqrt(sums / (lengths * buffer.num_channels))
    return [float(v) for v in rms_values], window_duration


def estimate_thresholds(rms_values: List[float],
                        config: Optional[SegmenterConfig] = None) -> Tuple[float, float]:
    """
    Derive talk and silence thresholds from the loudness distribution.

    Args:
        rms_values: Loudness series
        config: Segmenter configuration (defaults if None)

    Returns:
        Tuple of (talk_threshold, silence_threshold)
    """
    config = config or SegmenterConfig()

    strong_level = 0.0
    if rms_values:
        ordered = sorted(rms_values)
        index = max(0, int(math.floor(len(ordered) * config.strong_percentile)) - 1)
        strong_level = ordered[index]

    talk_threshold = max(config.talk_floor, strong_level * config.talk_ratio)
    silence_threshold = talk_threshold * config.silence_ratio
    return talk_threshold, silence_threshold


class Segmenter:
    """
    Two-state (idle/talk) automaton with a silence hold counter.

    Feed loudness values in time order with ``step()`` and close the pass
    with ``finish()``.
    """

    def __init__(self, talk_threshold: float, silence_threshold: float,
                 window_duration: float, total_duration: float,
                 config: Optional[SegmenterConfig] = None):
        """
        Initialize the segmenter.

        Args:
            talk_threshold: Loudness at or above which idle switches to talk
            silence_threshold: Loudness below which a window counts as quiet
            window_duration: Duration of one loudness window in seconds
            total_duration: Duration of the analyzed buffer in seconds
            config: Segmenter configuration (defaults if None)
        """
        self.config = config or SegmenterConfig()
        self.talk_threshold = talk_threshold
        self.silence_threshold = silence_threshold
        self.window_duration = window_duration
        self.total_duration = total_duration

        self.state = SegmentKind.IDLE
        self.current_start = 0.0
        self.silence_blocks = 0
        self.segments: List[Segment] = []
        self._index = 0

    def step(self, value: float) -> None:
        """Advance the automaton by one window."""
        block = self._index
        self._index += 1

        if self.state == SegmentKind.IDLE:
            if value >= self.talk_threshold:
                self._flush(block * self.window_duration)
                self.state = SegmentKind.TALK
                self.silence_blocks = 0
        else:
            if value < self.silence_threshold:
                self.silence_blocks += 1
                if self.silence_blocks >= self.config.silence_hold_blocks:
                    block_end = min(self.total_duration, (block + 1) * self.window_duration)
                    self._flush(block_end)
                    self.state = SegmentKind.IDLE
                    self.silence_blocks = 0
            else:
                self.silence_blocks = 0

    def finish(self) -> List[Segment]:
        """Close the open segment at the buffer end and return the raw segments."""
        self._flush(self.total_duration)

        # A discarded tail belongs to whatever came before it
        if self.segments and self.segments[-1].end < self.total_duration:
            last = self.segments[-1]
            last.duration = self.total_duration - last.start
        return self.segments

    def _flush(self, end_time: float) -> None:
        duration = end_time - self.current_start
        if duration <= self.config.min_segment_duration:
            # Too short: the range is carried into the next segment
            return

        previous = self.segments[-1] if self.segments else None
        if previous is not None and previous.kind == self.state:
            previous.duration = end_time - previous.start
        else:
            self.segments.append(Segment(
                id=f"{self.state.value}-{len(self.segments)}",
                kind=self.state,
                start=self.current_start,
                duration=duration,
            ))
        self.current_start = end_time


def ensure_leading_idle(segments: List[Segment], total_duration: float) -> List[Segment]:
    """
    Make sure the segment list starts with an idle segment.

    Args:
        segments: Segments in time order
        total_duration: Buffer duration used when no segments exist

    Returns:
        Segments with a synthetic leading idle segment if one was needed
    """
    if segments and segments[0].kind == SegmentKind.IDLE:
        return list(segments)

    lead_duration = segments[0].start if segments else total_duration
    lead = Segment(id="idle-0", kind=SegmentKind.IDLE, start=0.0, duration=lead_duration)
    return [lead] + list(segments)


def merge_adjacent_talk_segments(segments: List[Segment],
                                 gap_tolerance: float = 0.05) -> List[Segment]:
    """
    Merge talk segments separated by at most ``gap_tolerance`` seconds.

    Args:
        segments: Segments in time order
        gap_tolerance: Largest gap in seconds that still merges

    Returns:
        New list of segments; the input is left untouched
    """
    merged: List[Segment] = []
    for segment in segments:
        if not merged:
            merged.append(replace(segment))
            continue

        prev = merged[-1]
        gap = segment.start - prev.end
        if (segment.kind == SegmentKind.TALK and prev.kind == SegmentKind.TALK
                and gap <= gap_tolerance + 1e-6):
            prev.duration = segment.end - prev.start
            continue

        merged.append(replace(segment))
    return merged


def rebuild_segment_ids(segments: List[Segment]) -> List[Segment]:
    """Assign ``<kind>-<index>`` ids in final order."""
    return [replace(segment, id=f"{segment.kind.value}-{index}")
            for index, segment in enumerate(segments)]


def segment_loudness(rms_values: List[float], window_duration: float,
                     total_duration: float, talk_threshold: float,
                     silence_threshold: float,
                     config: Optional[SegmenterConfig] = None) -> List[Segment]:
    """
    Turn a loudness series into normalized idle/talk segments.

    Args:
        rms_values: Loudness per window
        window_duration: Window duration in seconds
        total_duration: Buffer duration in seconds
        talk_threshold: Talk entry threshold
        silence_threshold: Silence threshold for the hold counter
        config: Segmenter configuration (defaults if None)

    Returns:
        Contiguous, alternating segments starting with idle
    """
    config = config or SegmenterConfig()
    segmenter = Segmenter(talk_threshold, silence_threshold, window_duration,
                          total_duration, config)
    for value in rms_values:
        segmenter.step(value)

    segments = segmenter.finish()
    segments = ensure_leading_idle(segments, total_duration)
    segments = merge_adjacent_talk_segments(segments, config.talk_gap_tolerance)
    return rebuild_segment_ids(segments)


def analyze_buffer(buffer: SampleBuffer,
                   config: Optional[SegmenterConfig] = None) -> AudioAnalysisResult:
    """
    Detect idle and talk segments in a decoded buffer.

    Args:
        buffer: Decoded audio
        config: Segmenter configuration (defaults if None)

    Returns:
        Analysis result with segments, loudness series and thresholds
    """
    config = config or SegmenterConfig()

    rms_values, window_duration = compute_rms_windows(buffer, config.window_size)
    talk_threshold, silence_threshold = estimate_thresholds(rms_values, config)
    segments = segment_loudness(rms_values, window_duration, buffer.duration,
                                talk_threshold, silence_threshold, config)

    logger.debug(
        "Analyzed %d windows (%.3fs each): talk>=%.4f silence<%.4f",
        len(rms_values), window_duration, talk_threshold, silence_threshold
    )
    logger.debug("Detected %d segments (%d talk)", len(segments),
                 sum(1 for s in segments if s.kind == SegmentKind.TALK))

    return AudioAnalysisResult(
        buffer=buffer,
        segments=segments,
        rms_values=rms_values,
        window_duration=window_duration,
        talk_threshold=talk_threshold,
        silence_threshold=silence_threshold,
    )


def analyze_audio(audio_path: str,
                  config: Optional[SegmenterConfig] = None) -> AudioAnalysisResult:
    """
    Decode an audio file and detect its idle and talk segments.

    Args:
        audio_path: Path to audio file
        config: Segmenter configuration (defaults if None)

    Returns:
        Analysis result
    """
    from ..processing.media_io import load_audio

    return analyze_buffer(load_audio(audio_path), config)


def visualize_analysis(result: AudioAnalysisResult,
                       output_path: Optional[str] = None) -> None:
    """
    Plot the loudness series, thresholds and detected talk regions.

    Args:
        result: Analysis to plot
        output_path: Optional path to save visualization
    """
    try:
        import matplotlib.pyplot as plt
        import matplotlib.patches as patches
    except ImportError:
        logger.warning("Matplotlib not available for visualization")
        return

    times = np.arange(len(result.rms_values)) * result.window_duration

    fig, ax = plt.subplots(figsize=(12, 4))
    ax.step(times, result.rms_values, where='post', color='b', linewidth=0.8, label='RMS')
    ax.axhline(result.talk_threshold, color='green', linestyle='--', label='Talk threshold')
    ax.axhline(result.silence_threshold, color='red', linestyle=':', label='Silence threshold')

    top = max(result.rms_values + [result.talk_threshold]) * 1.1
    for seg in result.segments:
        if seg.kind != SegmentKind.TALK:
            continue
        rect = patches.Rectangle(
            (seg.start, 0),
            seg.duration,
            top,
            linewidth=0,
            facecolor='lightgreen',
            alpha=0.3
        )
        ax.add_patch(rect)

    ax.set_xlabel('Time (s)')
    ax.set_ylabel('RMS')
    ax.set_title('Idle/Talk Segmentation')
    ax.set_ylim(0, top)
    ax.grid(True, alpha=0.3)
    ax.legend(loc='upper right')

    plt.tight_layout()

    if output_path:
        plt.savefig(output_path, dpi=150)
        logger.info("Segmentation plot saved to %s", output_path)
    else:
        plt.show()

    plt.close(fig)
