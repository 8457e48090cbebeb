"""
AvatarSync - narration-driven clip timelines for talking avatars.

This package detects speech and silence in a narration track, sequences
idle, speech and transition motion clips to cover it, and rebuilds the
audio so it lines up with the scheduled video.
"""

__version__ = "1.0.0"

from .errors import (
    AvatarSyncError,
    ClipConfigurationError,
    AudioDecodeError,
    SynthesisError,
    SynthesisBusyError
)
from .config import AvatarSyncConfig, get_default_config, load_config, apply_preset

from .core.structures import (
    SampleBuffer,
    Segment,
    SegmentKind,
    MotionType,
    ClipAsset,
    Placement,
    TalkPlan,
    TimelinePlan
)
from .core.vad import AudioAnalysisResult, analyze_buffer, analyze_audio
from .core.clips_manager import ClipLibrary
from .core.scheduler import TimelineScheduler, build_timeline_plan
from .core.audio import build_aligned_audio, audio_buffer_to_wav, write_wav

from .processing.timeline_processor import TimelineProcessor, TimelineResult

__all__ = [
    # Errors
    'AvatarSyncError',
    'ClipConfigurationError',
    'AudioDecodeError',
    'SynthesisError',
    'SynthesisBusyError',

    # Config
    'AvatarSyncConfig',
    'get_default_config',
    'load_config',
    'apply_preset',

    # Core
    'SampleBuffer',
    'Segment',
    'SegmentKind',
    'MotionType',
    'ClipAsset',
    'Placement',
    'TalkPlan',
    'TimelinePlan',
    'AudioAnalysisResult',
    'analyze_buffer',
    'analyze_audio',
    'ClipLibrary',
    'TimelineScheduler',
    'build_timeline_plan',
    'build_aligned_audio',
    'audio_buffer_to_wav',
    'write_wav',

    # Processing
    'TimelineProcessor',
    'TimelineResult'
]
