"""
Timeline processor for AvatarSync.

This module runs the full pipeline: segment narration audio into idle and
talk regions, schedule motion clips over them, move the speech audio to
match the scheduled timeline and export the results.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from ..config import AvatarSyncConfig
from ..core.audio import build_aligned_audio, write_wav
from ..core.clips_manager import ClipLibrary
from ..core.scheduler import TimelineScheduler
from ..core.structures import SampleBuffer, Segment, TimelinePlan, format_seconds
from ..core.vad import AudioAnalysisResult, analyze_buffer, visualize_analysis
from ..utils.progress import create_progress_callback
from .media_io import load_audio


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


@dataclass
class TimelineResult:
    """Everything produced by one pipeline run."""
    analysis: AudioAnalysisResult
    plan: TimelinePlan
    aligned_audio: SampleBuffer
    wav_path: Optional[str] = None
    plan_path: Optional[str] = None

    @property
    def segments(self) -> List[Segment]:
        return self.analysis.segments


class TimelineProcessor:
    """
    Turns a narration track into a clip timeline and realigned audio.

    The clip library is validated up front, so a missing idle or speech-loop
    pool fails before any audio is decoded.
    """

    def __init__(self, library: ClipLibrary, config: Optional[AvatarSyncConfig] = None):
        """
        Initialize the processor.

        Args:
            library: Motion clips to schedule
            config: Configuration (defaults if None)

        Raises:
            ClipConfigurationError: If a required clip pool is empty
        """
        self.config = config or AvatarSyncConfig()
        self.library = library
        self.scheduler = TimelineScheduler(library, self.config.scheduler)

    def analyze(self, audio: Union[str, SampleBuffer]) -> AudioAnalysisResult:
        """
        Detect idle and talk segments.

        Args:
            audio: Audio file path or decoded buffer

        Returns:
            Analysis result
        """
        buffer = load_audio(audio) if isinstance(audio, str) else audio
        result = analyze_buffer(buffer, self.config.segmenter)

        logger.info("Audio duration: %s, %d segments detected",
                    format_seconds(buffer.duration), len(result.segments))
        for seg in result.segments:
            logger.debug("  %s: %.3fs - %.3fs (%.3fs)", seg.id, seg.start, seg.end, seg.duration)
        return result

    def schedule(self, segments: List[Segment]) -> TimelinePlan:
        """Schedule clips over the given segments."""
        plan = self.scheduler.schedule(segments)
        logger.info("Timeline: %d placements, %s total",
                    len(plan.placements), format_seconds(plan.total_duration))
        return plan

    def process(self, audio: Union[str, SampleBuffer],
                progress_callback: Optional[ProgressCallback] = None) -> TimelineResult:
        """
        Run segmentation, scheduling and realignment in memory.

        Args:
            audio: Audio file path or decoded buffer
            progress_callback: Optional progress callback(current, total, message)

        Returns:
            Timeline result without exported files
        """
        if progress_callback:
            progress_callback(0, 100, "Analyzing audio...")
        analysis = self.analyze(audio)

        if progress_callback:
            progress_callback(40, 100, "Scheduling clips...")
        plan = self.schedule(analysis.segments)

        if progress_callback:
            progress_callback(70, 100, "Realigning audio...")
        aligned = build_aligned_audio(analysis.buffer, plan.talk_plans, plan.total_duration)

        return TimelineResult(analysis=analysis, plan=plan, aligned_audio=aligned)

    def generate(self, audio_path: str, output_dir: str,
                 visualize: bool = False,
                 progress_callback: Optional[ProgressCallback] = None) -> TimelineResult:
        """
        Run the pipeline and write the aligned WAV and the timeline JSON.

        Args:
            audio_path: Path to input audio file
            output_dir: Output directory
            visualize: Whether to save a segmentation plot
            progress_callback: Optional progress callback(current, total, message)

        Returns:
            Timeline result with output paths filled in
        """
        result = self.process(audio_path, progress_callback)

        if progress_callback:
            progress_callback(85, 100, "Exporting...")

        os.makedirs(output_dir, exist_ok=True)
        stem = Path(audio_path).stem
        result.wav_path = write_wav(result.aligned_audio,
                                    os.path.join(output_dir, f"{stem}_aligned.wav"))

        if self.config.processing.export_plan:
            result.plan_path = os.path.join(output_dir, f"{stem}_timeline.json")
            result.plan.to_json(result.plan_path)
            logger.info("Timeline saved to %s", result.plan_path)

        if visualize:
            visualize_analysis(result.analysis, os.path.join(output_dir, f"{stem}_segments.png"))

        if progress_callback:
            progress_callback(100, 100, "Done!")
        return result

    def get_clip_statistics(self) -> Dict:
        """
        Get statistics about available clips.

        Returns:
            Dictionary with clip information
        """
        return self.library.get_info()

    def run_cli(self, audio_path: str, output_dir: str = "./result",
                visualize: bool = False) -> TimelineResult:
        """
        Run the pipeline with a progress bar.

        Args:
            audio_path: Path to input audio
            output_dir: Output directory
            visualize: Whether to save a segmentation plot

        Returns:
            Timeline result
        """
        callback = create_progress_callback(
            desc="Building timeline",
            disable=not self.config.processing.enable_progress
        )
        try:
            return self.generate(audio_path, output_dir, visualize=visualize,
                                 progress_callback=callback)
        finally:
            callback.close()
