"""
Command-line interface for AvatarSync.

``analyze`` prints the idle/talk segments of a narration track; ``build``
schedules motion clips over them and exports the aligned audio and the
timeline JSON.
"""

import argparse
import os
import sys
from typing import List, Optional

from .config import PRESETS, load_config
from .core.clips_manager import ClipLibrary
from .core.structures import format_seconds
from .core.vad import analyze_buffer, visualize_analysis
from .errors import AudioDecodeError, ClipConfigurationError
from .processing.media_io import load_audio
from .processing.timeline_processor import TimelineProcessor
from .utils.logging_utils import setup_logging
from .utils.progress import safe_print


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='avatarsync',
        description='AvatarSync - build talking-avatar clip timelines from narration audio',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('--config', type=str, default=None,
                        help='Path to a JSON configuration file')
    parser.add_argument('--preset', type=str, default='default',
                        choices=['default'] + list(PRESETS.keys()),
                        help='Segmentation preset to apply')
    parser.add_argument('--verbose', action='store_true',
                        help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', required=True)

    analyze = subparsers.add_parser('analyze', help='Detect idle/talk segments')
    analyze.add_argument('audio_path', type=str, help='Path to input audio file')
    analyze.add_argument('--plot', type=str, default=None,
                         help='Save a segmentation plot to this path')

    build = subparsers.add_parser('build', help='Build the clip timeline and aligned audio')
    build.add_argument('audio_path', type=str, help='Path to input audio file')
    build.add_argument('--clips', type=str, required=True,
                       help='Clip manifest (JSON) or directory of clip videos')
    build.add_argument('--output_dir', type=str, default='./result',
                       help='Output directory')
    build.add_argument('--visualize', action='store_true',
                       help='Save a segmentation plot next to the outputs')

    return parser


def load_library(clips_path: str) -> ClipLibrary:
    """Load clips from a manifest file or a clip directory."""
    if not os.path.exists(clips_path):
        raise ClipConfigurationError(f"Clips not found: {clips_path}")
    if os.path.isdir(clips_path):
        return ClipLibrary.from_directory(clips_path)
    return ClipLibrary.from_manifest(clips_path)


def run_analyze(args, config) -> int:
    buffer = load_audio(args.audio_path)
    result = analyze_buffer(buffer, config.segmenter)

    safe_print(f"Audio: {os.path.basename(args.audio_path)} ({format_seconds(buffer.duration)})")
    safe_print(f"Thresholds: talk >= {result.talk_threshold:.4f}, "
               f"silence < {result.silence_threshold:.4f}")
    for seg in result.segments:
        safe_print(f"  {seg.id:>10}  {format_seconds(seg.start):>8} - "
                   f"{format_seconds(seg.end):>8}  ({format_seconds(seg.duration)})")

    if args.plot:
        visualize_analysis(result, args.plot)
    return 0


def run_build(args, config) -> int:
    library = load_library(args.clips)
    processor = TimelineProcessor(library, config)
    result = processor.run_cli(args.audio_path, args.output_dir, visualize=args.visualize)

    safe_print("\n" + "=" * 60)
    safe_print("TIMELINE COMPLETE")
    safe_print("=" * 60)
    safe_print(f"Audio: {os.path.basename(args.audio_path)}")
    safe_print(f"Segments: {len(result.segments)}")
    safe_print(f"Placements: {len(result.plan.placements)}")
    safe_print(f"Duration: {format_seconds(result.plan.total_duration)}")
    safe_print(f"Aligned audio: {result.wav_path}")
    if result.plan_path:
        safe_print(f"Timeline: {result.plan_path}")
    safe_print("=" * 60)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not os.path.exists(args.audio_path):
        print(f"Error: Audio file not found: {args.audio_path}", file=sys.stderr)
        return 1

    preset = args.preset if args.preset != 'default' else None
    config = load_config(args.config, preset)

    level = "DEBUG" if args.verbose else config.processing.log_level
    setup_logging(level, config.processing.log_file)

    try:
        if args.command == 'analyze':
            return run_analyze(args, config)
        return run_build(args, config)
    except ClipConfigurationError as e:
        print(f"Clip configuration error: {e}", file=sys.stderr)
        return 2
    except AudioDecodeError as e:
        print(f"Audio decode error: {e}", file=sys.stderr)
        return 3
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 1
