"""Unit tests for configuration management."""

import unittest
import os
import tempfile
from avatarsync.config import (
    SegmenterConfig, SchedulerConfig, SynthesisConfig, ProcessingConfig,
    AvatarSyncConfig, get_default_config, load_config, apply_preset
)


class TestSegmenterConfig(unittest.TestCase):
    """Test SegmenterConfig dataclass."""

    def test_defaults(self):
        """Defaults match the documented segmentation constants."""
        config = SegmenterConfig()

        self.assertEqual(config.window_size, 0.08)
        self.assertEqual(config.silence_hold_blocks, 3)
        self.assertEqual(config.min_segment_duration, 0.05)
        self.assertEqual(config.talk_gap_tolerance, 0.05)
        self.assertEqual(config.talk_floor, 0.02)
        self.assertEqual(config.strong_percentile, 0.9)
        self.assertEqual(config.talk_ratio, 0.4)
        self.assertEqual(config.silence_ratio, 0.55)

    def test_validation(self):
        """Invalid values are rejected."""
        with self.assertRaises(ValueError):
            SegmenterConfig(window_size=0)
        with self.assertRaises(ValueError):
            SegmenterConfig(silence_hold_blocks=0)
        with self.assertRaises(ValueError):
            SegmenterConfig(strong_percentile=1.5)
        with self.assertRaises(ValueError):
            SchedulerConfig(coverage_epsilon=-0.1)
        with self.assertRaises(ValueError):
            SynthesisConfig(retry_delay=3.0, max_retry_delay=1.0)


class TestAvatarSyncConfig(unittest.TestCase):
    """Test main configuration container."""

    def test_creation(self):
        """Test configuration creation."""
        config = AvatarSyncConfig(
            segmenter=SegmenterConfig(),
            scheduler=SchedulerConfig(),
            synthesis=SynthesisConfig(),
            processing=ProcessingConfig()
        )

        self.assertEqual(config.scheduler.coverage_epsilon, 0.01)
        self.assertEqual(config.synthesis.speaker_id, 1)
        self.assertEqual(config.processing.log_level, "INFO")
        self.assertTrue(config.processing.export_plan)

    def test_from_dict(self):
        """Test creating config from dictionary."""
        config_dict = {
            "segmenter": {
                "window_size": 0.05,
                "silence_hold_blocks": 4
            },
            "synthesis": {
                "speaker_id": 8
            }
        }

        config = AvatarSyncConfig.from_dict(config_dict)

        self.assertEqual(config.segmenter.window_size, 0.05)
        self.assertEqual(config.segmenter.silence_hold_blocks, 4)
        self.assertEqual(config.synthesis.speaker_id, 8)
        self.assertEqual(config.scheduler.coverage_epsilon, 0.01)

    def test_to_dict(self):
        """Test converting config to dictionary."""
        config_dict = AvatarSyncConfig().to_dict()

        self.assertIn("segmenter", config_dict)
        self.assertIn("scheduler", config_dict)
        self.assertIn("synthesis", config_dict)
        self.assertIn("processing", config_dict)
        self.assertEqual(config_dict["segmenter"]["silence_hold_blocks"], 3)

    def test_json_serialization(self):
        """Test JSON serialization and deserialization."""
        config = AvatarSyncConfig()
        config.segmenter.talk_floor = 0.03
        config.processing.log_level = "DEBUG"

        with tempfile.TemporaryDirectory() as temp_dir:
            temp_path = os.path.join(temp_dir, "config.json")
            config.to_json(temp_path)

            loaded_config = AvatarSyncConfig.from_json(temp_path)

            self.assertEqual(loaded_config.segmenter.talk_floor, 0.03)
            self.assertEqual(loaded_config.processing.log_level, "DEBUG")

            self.assertEqual(load_config(temp_path).segmenter.talk_floor, 0.03)

    def test_environment_variables(self):
        """Test updating config from environment variables."""
        os.environ["AVATARSYNC_WINDOW_SIZE"] = "0.1"
        os.environ["AVATARSYNC_HOLD_BLOCKS"] = "5"
        os.environ["AVATARSYNC_SPEAKER_ID"] = "3"
        os.environ["AVATARSYNC_LOG_LEVEL"] = "WARNING"

        try:
            config = get_default_config()

            self.assertEqual(config.segmenter.window_size, 0.1)
            self.assertEqual(config.segmenter.silence_hold_blocks, 5)
            self.assertEqual(config.synthesis.speaker_id, 3)
            self.assertEqual(config.processing.log_level, "WARNING")
        finally:
            for key in ["AVATARSYNC_WINDOW_SIZE", "AVATARSYNC_HOLD_BLOCKS",
                        "AVATARSYNC_SPEAKER_ID", "AVATARSYNC_LOG_LEVEL"]:
                if key in os.environ:
                    del os.environ[key]


class TestPresets(unittest.TestCase):
    """Test configuration presets."""

    def test_responsive_preset(self):
        config = AvatarSyncConfig()
        apply_preset(config, "responsive")

        self.assertEqual(config.segmenter.window_size, 0.04)
        self.assertEqual(config.segmenter.silence_hold_blocks, 2)

    def test_stable_preset(self):
        config = AvatarSyncConfig()
        apply_preset(config, "stable")

        self.assertEqual(config.segmenter.silence_hold_blocks, 5)
        self.assertEqual(config.segmenter.talk_gap_tolerance, 0.15)

    def test_strict_preset(self):
        config = AvatarSyncConfig()
        apply_preset(config, "strict")

        self.assertEqual(config.segmenter.talk_floor, 0.05)
        self.assertEqual(config.segmenter.talk_ratio, 0.5)

    def test_load_config_with_preset(self):
        config = load_config(preset="stable")

        self.assertEqual(config.segmenter.silence_hold_blocks, 5)
        self.assertEqual(config.segmenter.talk_gap_tolerance, 0.15)

    def test_environment_overrides_preset(self):
        """Test that environment variables win over preset values."""
        os.environ["AVATARSYNC_HOLD_BLOCKS"] = "7"
        os.environ["AVATARSYNC_WINDOW_SIZE"] = "0.1"

        try:
            config = load_config(preset="responsive")

            self.assertEqual(config.segmenter.silence_hold_blocks, 7)
            self.assertEqual(config.segmenter.window_size, 0.1)
        finally:
            for key in ["AVATARSYNC_HOLD_BLOCKS", "AVATARSYNC_WINDOW_SIZE"]:
                if key in os.environ:
                    del os.environ[key]

    def test_invalid_preset(self):
        """Test applying invalid preset."""
        config = AvatarSyncConfig()

        with self.assertRaises(ValueError):
            apply_preset(config, "invalid_preset")


if __name__ == '__main__':
    unittest.main()
