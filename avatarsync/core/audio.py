"""
Audio realignment and PCM encoding for AvatarSync.

Speech audio is moved to where the scheduler rendered each talk segment and
the result is serialized as a 16-bit PCM WAV file.
"""

import logging
import math
import os
import struct
from typing import Sequence

import numpy as np

from .structures import SampleBuffer, TalkPlan


logger = logging.getLogger(__name__)

WAV_HEADER_SIZE = 44
PCM_FORMAT = 1
BIT_DEPTH = 16


def build_aligned_audio(buffer: SampleBuffer, talk_plans: Sequence[TalkPlan],
                        total_duration: float) -> SampleBuffer:
    """
    Copy each talk segment's audio to its scheduled position.

    Everything outside the talk plans stays silent.

    Args:
        buffer: Original decoded audio
        talk_plans: Talk plans from the scheduler
        total_duration: Scheduled timeline duration in seconds

    Returns:
        New buffer of ``ceil(total_duration * sample_rate)`` samples
    """
    sample_rate = buffer.sample_rate
    total_samples = max(0, int(math.ceil(total_duration * sample_rate)))
    output = SampleBuffer.silence(buffer.num_channels, total_samples, sample_rate)

    for plan in talk_plans:
        source_start = int(math.floor(plan.audio_start * sample_rate))
        source_samples = int(math.floor(plan.audio_duration * sample_rate))
        target_start = int(math.floor(plan.video_start * sample_rate))

        remaining_target = total_samples - target_start
        remaining_source = buffer.length - source_start
        if remaining_target <= 0 or source_samples <= 0 or remaining_source <= 0:
            continue

        copy_length = min(source_samples, remaining_target, remaining_source)
        output.data[:, target_start:target_start + copy_length] = \
            buffer.data[:, source_start:source_start + copy_length]

    logger.debug("Realigned %d talk spans into %d samples", len(talk_plans), total_samples)
    return output


def encode_pcm16(buffer: SampleBuffer) -> np.ndarray:
    """
    Convert float samples to interleaved little-endian int16.

    Negative samples scale by 32768 and non-negative ones by 32767. Scaled
    values are rounded to the nearest integer rather than truncated, so
    0.5 encodes as 16384; writers that truncate differ by one LSB on most
    non-integral products.
    """
    clipped = np.clip(buffer.data.astype(np.float64), -1.0, 1.0)
    scaled = np.where(clipped < 0, clipped * 32768.0, clipped * 32767.0)
    pcm = np.round(scaled).astype('<i2')
    # (channels, samples) -> samples-major interleaving
    return pcm.T.reshape(-1)


def wav_header(num_channels: int, sample_rate: int, num_samples: int) -> bytes:
    """Build the 44-byte RIFF/WAVE header for 16-bit PCM."""
    block_align = num_channels * BIT_DEPTH // 8
    byte_rate = sample_rate * block_align
    data_size = num_samples * block_align

    return struct.pack(
        '<4sI4s4sIHHIIHH4sI',
        b'RIFF',
        36 + data_size,
        b'WAVE',
        b'fmt ',
        16,
        PCM_FORMAT,
        num_channels,
        sample_rate,
        byte_rate,
        block_align,
        BIT_DEPTH,
        b'data',
        data_size,
    )


def audio_buffer_to_wav(buffer: SampleBuffer) -> bytes:
    """
    Serialize a buffer as a 16-bit PCM WAV file.

    Args:
        buffer: Audio to encode

    Returns:
        Complete WAV file contents
    """
    header = wav_header(buffer.num_channels, buffer.sample_rate, buffer.length)
    return header + encode_pcm16(buffer).tobytes()


def write_wav(buffer: SampleBuffer, output_path: str) -> str:
    """
    Write a buffer to disk as a 16-bit PCM WAV file.

    Args:
        buffer: Audio to write
        output_path: Destination path

    Returns:
        The output path
    """
    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(output_path, 'wb') as f:
        f.write(audio_buffer_to_wav(buffer))
    logger.info("Wrote %s (%.2fs)", output_path, buffer.duration)
    return output_path
