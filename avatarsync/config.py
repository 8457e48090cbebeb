"""
Configuration management for AvatarSync.

This module provides dataclasses and utilities for managing
configuration across the system.
"""

import os
import json
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any


@dataclass
class SegmenterConfig:
    """Configuration for speech/silence segmentation."""

    # Windowing
    window_size: float = 0.08  # seconds

    # Hysteresis
    silence_hold_blocks: int = 3
    min_segment_duration: float = 0.05  # seconds
    talk_gap_tolerance: float = 0.05  # seconds

    # Threshold estimation
    talk_floor: float = 0.02
    strong_percentile: float = 0.9
    talk_ratio: float = 0.4
    silence_ratio: float = 0.55

    def __post_init__(self):
        """Validate segmentation parameters."""
        if self.window_size <= 0:
            raise ValueError("window_size must be positive")
        if self.silence_hold_blocks < 1:
            raise ValueError("silence_hold_blocks must be at least 1")
        if self.min_segment_duration < 0:
            raise ValueError("min_segment_duration must be non-negative")
        if self.talk_gap_tolerance < 0:
            raise ValueError("talk_gap_tolerance must be non-negative")
        if self.talk_floor < 0:
            raise ValueError("talk_floor must be non-negative")
        if not 0.0 < self.strong_percentile <= 1.0:
            raise ValueError("strong_percentile must be in (0, 1]")
        if self.talk_ratio <= 0:
            raise ValueError("talk_ratio must be positive")
        if not 0.0 < self.silence_ratio <= 1.0:
            raise ValueError("silence_ratio must be in (0, 1]")


@dataclass
class SchedulerConfig:
    """Configuration for clip timeline scheduling."""

    coverage_epsilon: float = 0.01  # seconds

    def __post_init__(self):
        if self.coverage_epsilon < 0:
            raise ValueError("coverage_epsilon must be non-negative")


@dataclass
class SynthesisConfig:
    """Configuration for speech synthesis requests."""

    speaker_id: int = 1
    max_retries: int = 3
    retry_delay: float = 1.0  # seconds
    max_retry_delay: float = 5.0  # seconds

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.retry_delay < 0 or self.max_retry_delay < self.retry_delay:
            raise ValueError("retry delays must satisfy 0 <= retry_delay <= max_retry_delay")


@dataclass
class ProcessingConfig:
    """Configuration for processing behavior."""

    # Progress reporting
    enable_progress: bool = True

    # Output
    export_plan: bool = True

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None


@dataclass
class AvatarSyncConfig:
    """Main configuration container for AvatarSync."""

    segmenter: SegmenterConfig = field(default_factory=SegmenterConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    synthesis: SynthesisConfig = field(default_factory=SynthesisConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "AvatarSyncConfig":
        """
        Create configuration from dictionary.

        Args:
            config_dict: Configuration dictionary

        Returns:
            AvatarSyncConfig instance
        """
        return cls(
            segmenter=SegmenterConfig(**config_dict.get("segmenter", {})),
            scheduler=SchedulerConfig(**config_dict.get("scheduler", {})),
            synthesis=SynthesisConfig(**config_dict.get("synthesis", {})),
            processing=ProcessingConfig(**config_dict.get("processing", {}))
        )

    @classmethod
    def from_json(cls, json_path: str) -> "AvatarSyncConfig":
        """
        Load configuration from JSON file.

        Args:
            json_path: Path to JSON configuration file

        Returns:
            AvatarSyncConfig instance
        """
        with open(json_path, 'r') as f:
            config_dict = json.load(f)
        return cls.from_dict(config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to dictionary.

        Returns:
            Configuration dictionary
        """
        return {
            "segmenter": asdict(self.segmenter),
            "scheduler": asdict(self.scheduler),
            "synthesis": asdict(self.synthesis),
            "processing": asdict(self.processing)
        }

    def to_json(self, json_path: str) -> None:
        """
        Save configuration to JSON file.

        Args:
            json_path: Path to save JSON file
        """
        directory = os.path.dirname(json_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(json_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def update_from_env(self) -> None:
        """Update configuration from environment variables."""
        # Segmenter settings
        if "AVATARSYNC_WINDOW_SIZE" in os.environ:
            self.segmenter.window_size = float(os.environ["AVATARSYNC_WINDOW_SIZE"])
        if "AVATARSYNC_HOLD_BLOCKS" in os.environ:
            self.segmenter.silence_hold_blocks = int(os.environ["AVATARSYNC_HOLD_BLOCKS"])

        # Synthesis settings
        if "AVATARSYNC_SPEAKER_ID" in os.environ:
            self.synthesis.speaker_id = int(os.environ["AVATARSYNC_SPEAKER_ID"])

        # Processing settings
        if "AVATARSYNC_LOG_LEVEL" in os.environ:
            self.processing.log_level = os.environ["AVATARSYNC_LOG_LEVEL"]
        if "AVATARSYNC_LOG_FILE" in os.environ:
            self.processing.log_file = os.environ["AVATARSYNC_LOG_FILE"]


def get_default_config() -> AvatarSyncConfig:
    """
    Get the default configuration.

    Returns:
        Default configuration with environment overrides applied
    """
    config = AvatarSyncConfig()
    config.update_from_env()
    return config


def load_config(json_path: Optional[str] = None,
                preset: Optional[str] = None) -> AvatarSyncConfig:
    """
    Load configuration from a JSON file if given, else use defaults.

    A preset is applied on top of the file; environment variables are
    applied last and always take precedence.

    Args:
        json_path: Optional path to a JSON configuration file
        preset: Optional preset name (see PRESETS)

    Returns:
        Loaded configuration
    """
    if json_path:
        config = AvatarSyncConfig.from_json(json_path)
    else:
        config = AvatarSyncConfig()

    if preset:
        apply_preset(config, preset)

    config.update_from_env()
    return config


# Preset configurations for common scenarios
PRESETS = {
    "responsive": {
        "segmenter": {
            "window_size": 0.04,
            "silence_hold_blocks": 2
        }
    },
    "stable": {
        "segmenter": {
            "silence_hold_blocks": 5,
            "talk_gap_tolerance": 0.15
        }
    },
    "strict": {
        "segmenter": {
            "talk_floor": 0.05,
            "talk_ratio": 0.5
        }
    }
}


def apply_preset(config: AvatarSyncConfig, preset_name: str) -> None:
    """
    Apply a preset configuration.

    Args:
        config: Configuration to modify
        preset_name: Name of the preset to apply
    """
    if preset_name not in PRESETS:
        raise ValueError(f"Unknown preset: {preset_name}. Available: {list(PRESETS.keys())}")

    preset = PRESETS[preset_name]

    for section, values in preset.items():
        section_obj = getattr(config, section)
        for key, value in values.items():
            setattr(section_obj, key, value)
