"""
Progress bar utilities for AvatarSync.

Provides standardized progress bar handling with tqdm to ensure
clean console output without new lines.
"""

import sys
import threading
from typing import Callable, Optional

from tqdm import tqdm


# Global lock for synchronized console output
_console_lock = threading.Lock()


def safe_print(*args, **kwargs):
    """Thread-safe print that works well with tqdm progress bars."""
    with _console_lock:
        tqdm.write(" ".join(str(arg) for arg in args), **kwargs)


class ProgressBar:
    """A wrapper around tqdm for consistent progress bar behavior."""

    def __init__(self, total: int, desc: str = "", unit: str = "it",
                 leave: bool = False, disable: bool = False):
        """
        Initialize progress bar with standardized settings.

        Args:
            total: Total number of steps
            desc: Description to show
            unit: Unit name for steps
            leave: Whether to leave the progress bar after completion
            disable: Create a silent bar
        """
        self.pbar = tqdm(
            total=total,
            desc=desc,
            unit=unit,
            leave=leave,
            disable=disable,
            ncols=100,
            file=sys.stdout,
            bar_format='{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]'
        )
        self.is_closed = False

    def update_to(self, current: int, msg: Optional[str] = None):
        """
        Move the bar to an absolute position.

        Args:
            current: New position
            msg: Optional message to display as description
        """
        if self.is_closed:
            return
        if msg:
            self.pbar.set_description(msg)
        self.pbar.update(current - self.pbar.n)

    def close(self):
        """Close the progress bar."""
        if not self.is_closed:
            self.pbar.close()
            self.is_closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def create_progress_callback(desc: str = "Processing",
                             disable: bool = False) -> Callable[[int, int, str], None]:
    """
    Create a ``(current, total, message)`` callback backed by a progress bar.

    The bar is created on the first call and closed once ``current``
    reaches ``total``. Call ``callback.close()`` to close it early, e.g.
    when the work it tracks fails.

    Args:
        desc: Initial description
        disable: Create a silent bar

    Returns:
        Callback function
    """
    progress_bar = None

    def close():
        nonlocal progress_bar
        if progress_bar is not None:
            progress_bar.close()
            progress_bar = None

    def callback(current: int, total: int, message: str = ""):
        nonlocal progress_bar
        if progress_bar is None:
            progress_bar = ProgressBar(total=total, desc=desc, disable=disable)

        progress_bar.update_to(current, msg=message)

        if current >= total:
            close()

    callback.close = close
    return callback
