"""
Core components for AvatarSync.

This submodule contains core functionality:
- VAD (energy-based idle/talk segmentation) for audio
- Data structures for segments, clips and timeline plans
- Clip library and timeline scheduling
- Audio realignment and WAV encoding
"""

from .structures import (
    SampleBuffer,
    Segment,
    SegmentKind,
    MotionType,
    ClipAsset,
    Placement,
    TalkPlan,
    TimelinePlan,
    format_seconds
)
from .vad import AudioAnalysisResult, Segmenter, analyze_buffer, analyze_audio
from .clips_manager import ClipLibrary, group_clips
from .scheduler import TimelineScheduler, build_timeline_plan
from .audio import build_aligned_audio, audio_buffer_to_wav, write_wav

__all__ = [
    'SampleBuffer',
    'Segment',
    'SegmentKind',
    'MotionType',
    'ClipAsset',
    'Placement',
    'TalkPlan',
    'TimelinePlan',
    'format_seconds',
    'AudioAnalysisResult',
    'Segmenter',
    'analyze_buffer',
    'analyze_audio',
    'ClipLibrary',
    'group_clips',
    'TimelineScheduler',
    'build_timeline_plan',
    'build_aligned_audio',
    'audio_buffer_to_wav',
    'write_wav'
]
