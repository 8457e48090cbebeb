"""
Clip library module for AvatarSync.

This module groups motion clips into the four pools used by the timeline
scheduler and loads clip lists from JSON manifests or clip directories.
"""

import json
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import cv2

from ..errors import ClipConfigurationError
from .structures import ClipAsset, MotionType


logger = logging.getLogger(__name__)

REQUIRED_TYPES = (MotionType.IDLE, MotionType.SPEECH_LOOP)
OPTIONAL_TYPES = (MotionType.IDLE_TO_SPEECH, MotionType.SPEECH_TO_IDLE)

# Filename tokens, most specific first
_FILENAME_TYPES = (
    ("idle_to_speech", MotionType.IDLE_TO_SPEECH),
    ("speech_to_idle", MotionType.SPEECH_TO_IDLE),
    ("speech_loop", MotionType.SPEECH_LOOP),
    ("idle", MotionType.IDLE),
)

VIDEO_EXTENSIONS = (".mp4", ".webm", ".mov")


def group_clips(clips: Iterable[ClipAsset]) -> Dict[MotionType, List[ClipAsset]]:
    """
    Partition clips by motion type, keeping input order within each type.

    Args:
        clips: Flat list of clips

    Returns:
        Mapping with one (possibly empty) list per motion type
    """
    pools: Dict[MotionType, List[ClipAsset]] = {motion: [] for motion in MotionType}
    for clip in clips:
        pools[clip.type].append(clip)
    return pools


class ClipLibrary:
    """
    Motion clips grouped by type.

    ``idle`` and ``speechLoop`` pools are required; the two transition pools
    may be empty.
    """

    def __init__(self, clips: Iterable[ClipAsset]):
        """
        Initialize the library.

        Args:
            clips: Flat list of clips

        Raises:
            ClipConfigurationError: If a clip has a non-positive duration
        """
        clips = list(clips)
        for clip in clips:
            if not clip.duration > 0:
                raise ClipConfigurationError(
                    f"Clip {clip.id} ({clip.type.value}) has non-positive duration {clip.duration}"
                )

        self.clips = clips
        self.pools = group_clips(clips)

        logger.debug("Clip pools: %s", {m.value: len(p) for m, p in self.pools.items()})

    def pool(self, motion: MotionType) -> List[ClipAsset]:
        """Return the clips of one motion type (possibly empty)."""
        return self.pools[motion]

    def require(self, motion: MotionType) -> List[ClipAsset]:
        """
        Return a pool that must not be empty.

        Raises:
            ClipConfigurationError: If the pool is empty
        """
        clips = self.pools[motion]
        if not clips:
            raise ClipConfigurationError(f"Missing clip for state: {motion.value}")
        return clips

    def optional(self, motion: MotionType) -> Optional[List[ClipAsset]]:
        """Return a pool, or None when it has no clips."""
        clips = self.pools[motion]
        return clips if clips else None

    def validate(self) -> None:
        """
        Check that the required pools are populated.

        Raises:
            ClipConfigurationError: If the idle or speech-loop pool is empty
        """
        if not self.pools[MotionType.IDLE]:
            raise ClipConfigurationError("Idle clips are required")
        if not self.pools[MotionType.SPEECH_LOOP]:
            raise ClipConfigurationError("Speech-loop clips are required")

    @classmethod
    def from_manifest(cls, manifest_path: str) -> "ClipLibrary":
        """
        Load clips from a JSON manifest.

        The manifest is a list of objects, or an object with a ``clips`` list.

        Args:
            manifest_path: Path to the manifest

        Returns:
            ClipLibrary instance

        Raises:
            ClipConfigurationError: If the manifest is not valid JSON or an
                entry does not describe a clip
        """
        with open(manifest_path, 'r') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ClipConfigurationError(f"Invalid clip manifest {manifest_path}: {e}") from e

        entries = data.get("clips", []) if isinstance(data, dict) else data
        if not isinstance(entries, list):
            raise ClipConfigurationError("Clip manifest must contain a list of clips")

        clips = []
        for entry in entries:
            if not isinstance(entry, dict):
                raise ClipConfigurationError(f"Clip entry must be an object, got {entry!r}")
            try:
                clips.append(ClipAsset.from_dict(entry))
            except (KeyError, ValueError, TypeError) as e:
                raise ClipConfigurationError(f"Invalid clip entry {entry!r}: {e}") from e

        logger.info("Loaded %d clips from %s", len(clips), manifest_path)
        return cls(clips)

    @classmethod
    def from_directory(cls, clips_dir: str) -> "ClipLibrary":
        """
        Load clips from a directory of video files.

        Motion type comes from the filename (``idle``, ``idle_to_speech``,
        ``speech_loop`` or ``speech_to_idle``); duration from the filename
        when present, otherwise from the video itself.

        Args:
            clips_dir: Directory containing clip videos

        Returns:
            ClipLibrary instance
        """
        directory = Path(clips_dir)
        if not directory.exists():
            raise ClipConfigurationError(f"Clips directory not found: {directory}")

        clips = []
        for video_file in sorted(directory.iterdir()):
            if video_file.suffix.lower() not in VIDEO_EXTENSIONS:
                continue

            motion = parse_motion_type(video_file.name)
            if motion is None:
                logger.debug("Skipping unrecognized clip %s", video_file.name)
                continue

            duration = parse_duration_from_filename(video_file.name)
            if duration <= 0:
                duration = probe_video_duration(str(video_file))
            if duration <= 0:
                logger.warning("Could not determine duration of %s, skipping", video_file.name)
                continue

            clips.append(ClipAsset(
                id=video_file.stem,
                type=motion,
                duration=duration,
                payload={"path": str(video_file)},
            ))

        logger.info("Loaded %d clips from %s", len(clips), directory)
        return cls(clips)

    def get_info(self) -> Dict:
        """
        Get information about all loaded clips.

        Returns:
            Dictionary with pool sizes and total durations
        """
        return {
            motion.value: {
                "count": len(clips),
                "total_duration": sum(c.duration for c in clips),
                "clips": [c.id for c in clips],
            }
            for motion, clips in self.pools.items()
        }


def parse_motion_type(filename: str) -> Optional[MotionType]:
    """
    Infer a motion type from a filename.

    Handles ``-``, ``_`` and space separators, e.g. "AD2 idle-to-speech.mp4".
    """
    normalized = re.sub(r'[\s\-]+', '_', filename.lower())
    for token, motion in _FILENAME_TYPES:
        if token in normalized:
            return motion
    return None


def parse_duration_from_filename(filename: str) -> float:
    """
    Parse duration from filename.

    Handles patterns like:
    - "02,08s idle.mp4" -> 2.08 seconds
    - "AD2_speech_loop_4s.mp4" -> 4.0 seconds

    Args:
        filename: Filename to parse

    Returns:
        Duration in seconds (0.0 if no pattern found)
    """
    match = re.search(r'(\d+),(\d+)s', filename)
    if match:
        seconds = int(match.group(1))
        centiseconds = int(match.group(2))
        return seconds + centiseconds / 100.0

    match = re.search(r'_(\d+(?:\.\d+)?)s\b', filename)
    if match:
        return float(match.group(1))

    return 0.0


def probe_video_duration(video_path: str) -> float:
    """Read a video's duration from its frame count and FPS."""
    cap = cv2.VideoCapture(video_path)
    try:
        if not cap.isOpened():
            return 0.0
        fps = cap.get(cv2.CAP_PROP_FPS)
        frame_count = cap.get(cv2.CAP_PROP_FRAME_COUNT)
    finally:
        cap.release()

    if fps <= 0 or frame_count <= 0:
        return 0.0
    return frame_count / fps
