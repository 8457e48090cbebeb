"""
Utility functions for AvatarSync.

This submodule contains shared utilities:
- Logging setup
- tqdm progress bars and progress callbacks
"""

from .logging_utils import setup_logging
from .progress import ProgressBar, create_progress_callback, safe_print

__all__ = [
    'setup_logging',
    'ProgressBar',
    'create_progress_callback',
    'safe_print'
]
