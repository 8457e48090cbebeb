"""
Error types for AvatarSync.

Configuration problems (missing or invalid clips) are kept distinct from
decode and speech-synthesis failures so callers can report them separately.
"""

from typing import Optional


class AvatarSyncError(Exception):
    """Base class for all AvatarSync errors."""


class ClipConfigurationError(AvatarSyncError, ValueError):
    """Raised when the clip library cannot drive the scheduler."""


class AudioDecodeError(AvatarSyncError):
    """Raised when audio data cannot be decoded into a sample buffer."""


class SynthesisError(AvatarSyncError):
    """Raised when a speech synthesis provider fails permanently."""


class SynthesisBusyError(SynthesisError):
    """Raised when a speech synthesis provider asks the caller to retry later."""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after
