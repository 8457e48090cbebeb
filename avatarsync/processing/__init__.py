"""
Processing modules for AvatarSync.

This submodule contains the pipeline and its input adapters:
- TimelineProcessor: segmentation, scheduling, realignment and export
- load_audio / decode_audio_bytes: audio decoding into sample buffers
- SpeechSynthesisProvider: interface for text-to-speech backends
"""

from .media_io import (
    load_audio,
    decode_audio_bytes,
    SpeechSynthesisProvider,
    synthesize_to_buffer
)
from .timeline_processor import TimelineProcessor, TimelineResult

__all__ = [
    'load_audio',
    'decode_audio_bytes',
    'SpeechSynthesisProvider',
    'synthesize_to_buffer',
    'TimelineProcessor',
    'TimelineResult'
]
