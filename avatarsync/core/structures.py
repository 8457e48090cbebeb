"""
Core data structures for AvatarSync.

This module contains the data structures shared by the segmenter, the
timeline scheduler and the audio realigner: sample buffers, audio segments,
motion clips and the timeline plan produced from them.
"""

import json
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

import numpy as np


class SegmentKind(str, Enum):
    """Label of an audio segment."""
    IDLE = "idle"
    TALK = "talk"


class MotionType(str, Enum):
    """Category of a motion clip."""
    IDLE = "idle"
    IDLE_TO_SPEECH = "idleToSpeech"
    SPEECH_LOOP = "speechLoop"
    SPEECH_TO_IDLE = "speechToIdle"


class SampleBuffer:
    """Multi-channel float audio held as a (channels, samples) array."""

    def __init__(self, data: np.ndarray, sample_rate: int):
        """
        Initialize a sample buffer.

        Args:
            data: Samples in [-1, 1], shaped (channels, samples) or (samples,)
            sample_rate: Sample rate in Hz
        """
        data = np.asarray(data, dtype=np.float32)
        if data.ndim == 1:
            data = data.reshape(1, -1)
        if data.ndim != 2:
            raise ValueError(f"Expected 1D or 2D sample data, got shape {data.shape}")
        if sample_rate <= 0:
            raise ValueError("sample_rate must be positive")

        self.data = data
        self.sample_rate = int(sample_rate)

    @classmethod
    def silence(cls, num_channels: int, length: int, sample_rate: int) -> "SampleBuffer":
        """Create a silent buffer of the given shape."""
        return cls(np.zeros((num_channels, length), dtype=np.float32), sample_rate)

    @property
    def num_channels(self) -> int:
        return self.data.shape[0]

    @property
    def length(self) -> int:
        """Number of samples per channel."""
        return self.data.shape[1]

    @property
    def duration(self) -> float:
        """Duration of the buffer in seconds."""
        return self.length / self.sample_rate

    def channel(self, index: int) -> np.ndarray:
        return self.data[index]

    def __repr__(self) -> str:
        return (f"SampleBuffer({self.num_channels}ch, {self.sample_rate}Hz, "
                f"{self.duration:.2f}s)")


@dataclass
class Segment:
    """A run of idle or talk audio in the source recording."""
    id: str
    kind: SegmentKind
    start: float
    duration: float

    @property
    def end(self) -> float:
        return self.start + self.duration

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "start": self.start,
            "duration": self.duration,
        }

    def __repr__(self) -> str:
        return f"Segment({self.id}, {self.start:.2f}-{self.end:.2f}s)"


@dataclass(eq=False)
class ClipAsset:
    """
    A short motion clip usable on the avatar timeline.

    Only ``type`` and ``duration`` matter to scheduling; everything the
    renderer needs (paths, frame data) lives in ``payload``.
    """
    id: str
    type: MotionType
    duration: float
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClipAsset":
        """
        Create a clip from a manifest entry.

        Args:
            data: Mapping with ``id``, ``type`` and ``duration`` keys; any
                other keys are kept as payload

        Returns:
            ClipAsset instance
        """
        payload = {k: v for k, v in data.items() if k not in ("id", "type", "duration")}
        return cls(
            id=str(data["id"]),
            type=MotionType(data["type"]),
            duration=float(data["duration"]),
            payload=payload,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.payload)
        data.update({"id": self.id, "type": self.type.value, "duration": self.duration})
        return data

    def __repr__(self) -> str:
        return f"ClipAsset({self.id}, {self.type.value}, {self.duration:.2f}s)"


@dataclass
class Placement:
    """One clip instance scheduled at a point on the output timeline."""
    clip: ClipAsset
    start: float

    @property
    def end(self) -> float:
        return self.start + self.clip.duration

    def to_dict(self) -> Dict[str, Any]:
        return {
            "clip_id": self.clip.id,
            "type": self.clip.type.value,
            "start": self.start,
            "duration": self.clip.duration,
        }

    def __repr__(self) -> str:
        return f"Placement({self.clip.type.value}@{self.start:.2f}, {self.clip.duration:.2f}s)"


@dataclass
class TalkPlan:
    """Where a talk segment's audio came from and where it was rendered."""
    segment_id: str
    video_start: float
    video_end: float
    audio_start: float
    audio_duration: float

    @property
    def video_duration(self) -> float:
        return self.video_end - self.video_start

    def to_dict(self) -> Dict[str, Any]:
        return {
            "segment_id": self.segment_id,
            "video_start": self.video_start,
            "video_end": self.video_end,
            "audio_start": self.audio_start,
            "audio_duration": self.audio_duration,
        }


@dataclass
class TimelinePlan:
    """Complete output of a scheduling pass."""
    placements: List[Placement]
    talk_plans: List[TalkPlan]
    total_duration: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "placements": [p.to_dict() for p in self.placements],
            "talk_plans": [t.to_dict() for t in self.talk_plans],
            "total_duration": self.total_duration,
        }

    def to_json(self, json_path: str) -> None:
        """
        Save the plan to a JSON file.

        Args:
            json_path: Path to save JSON file
        """
        directory = os.path.dirname(json_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(json_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


def format_seconds(value: float) -> str:
    """Render a time value as ``1.23s``."""
    return f"{value:.2f}s"
