"""
Audio input adapters for AvatarSync.

This module decodes audio files and byte streams into sample buffers and
defines the interface speech synthesis providers implement.
"""

import io
import logging
import os
import time
from abc import ABC, abstractmethod
from typing import BinaryIO, Callable, Optional, Union

import torchaudio

from ..config import SynthesisConfig
from ..core.structures import SampleBuffer
from ..errors import AudioDecodeError, SynthesisBusyError


logger = logging.getLogger(__name__)


def load_audio(source: Union[str, BinaryIO]) -> SampleBuffer:
    """
    Decode an audio file into a sample buffer.

    Args:
        source: Path or binary file object

    Returns:
        Decoded sample buffer at the file's native rate and channel count

    Raises:
        AudioDecodeError: If the data cannot be decoded
    """
    if isinstance(source, str) and not os.path.exists(source):
        raise AudioDecodeError(f"Audio file not found: {source}")

    try:
        waveform, sample_rate = torchaudio.load(source)
    except Exception as e:
        raise AudioDecodeError(f"Failed to decode audio: {e}") from e

    buffer = SampleBuffer(waveform.numpy(), sample_rate)
    logger.debug("Decoded %r", buffer)
    return buffer


def decode_audio_bytes(data: bytes) -> SampleBuffer:
    """Decode an in-memory encoded audio stream."""
    if not data:
        raise AudioDecodeError("Audio data is empty")
    return load_audio(io.BytesIO(data))


class SpeechSynthesisProvider(ABC):
    """
    Abstract base class for text-to-speech providers.

    Implementations return encoded audio (e.g. WAV or MP3 bytes) and signal
    a temporary overload with ``SynthesisBusyError``.
    """

    @abstractmethod
    def synthesize(self, text: str, speaker_id: int) -> bytes:
        """
        Synthesize speech for the given text.

        Args:
            text: Text to read, already stripped
            speaker_id: Provider-specific voice selector

        Returns:
            Encoded audio bytes

        Raises:
            SynthesisBusyError: If the provider asks to retry later
            SynthesisError: On any permanent failure
        """
        pass


def synthesize_to_buffer(provider: SpeechSynthesisProvider, text: str,
                         config: Optional[SynthesisConfig] = None,
                         sleep: Callable[[float], None] = time.sleep) -> SampleBuffer:
    """
    Synthesize text and decode the result, retrying while the provider is busy.

    Args:
        provider: Speech synthesis provider
        text: Text to read
        config: Synthesis configuration (defaults if None)
        sleep: Wait function, replaceable in tests

    Returns:
        Decoded sample buffer

    Raises:
        ValueError: If the text is empty
        SynthesisBusyError: If the provider is still busy after all retries
        SynthesisError: On permanent provider failures
        AudioDecodeError: If the returned audio cannot be decoded
    """
    config = config or SynthesisConfig()
    normalized = text.strip()
    if not normalized:
        raise ValueError("Text to synthesize is empty")

    attempt = 0
    while True:
        try:
            data = provider.synthesize(normalized, config.speaker_id)
            break
        except SynthesisBusyError as e:
            if attempt >= config.max_retries:
                raise
            attempt += 1
            wait = e.retry_after if e.retry_after is not None else config.retry_delay
            wait = min(config.max_retry_delay, max(config.retry_delay, wait))
            logger.warning("Synthesis provider busy, retrying in %.1fs (%d/%d)",
                           wait, attempt, config.max_retries)
            sleep(wait)

    return decode_audio_bytes(data)
