"""
Shared utilities for the Rating Timeline system.

This module provides common functions used across multiple modules
to avoid code duplication.
"""

import sys
from pathlib import Path

# Enable both `python src/utils.py` and `python -m src.utils` execution modes.
# This ensures src.config imports work regardless of how the script is invoked.
_project_root = str(Path(__file__).parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import logging
import re
import shutil
import tempfile
from datetime import datetime, timezone

from src.config import USERNAME_RE_PATTERN

# --- Shared Regex Patterns ---
# PGN header tag: [Event "Live Chess"]
PGN_TAG_RE = re.compile(r'\[(\w+)\s+"([^"]*)"\]')

USERNAME_RE = re.compile(USERNAME_RE_PATTERN, re.IGNORECASE)

# Epoch values at or above this are treated as milliseconds
EPOCH_MS_THRESHOLD = 1e12


# --- Logging Setup ---
def setup_logging(name: str | None = None, level: int = logging.INFO) -> logging.Logger:
    """
    Configure and return a logger with consistent formatting.

    Args:
        name: Logger name (usually __name__ from the calling module)
        level: Logging level (default: INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger


# --- Numeric Helpers ---
def clamp(value, low, high):
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


# --- Time Helpers ---
def coerce_timestamp(value) -> datetime:
    """
    Convert a timestamp-like value into a datetime.

    datetime objects pass through unchanged. Numbers are read as Unix epoch
    seconds, or milliseconds when they are at least 1e12, and returned as
    UTC-aware datetimes.

    Raises:
        TypeError: If value is neither a datetime nor a number
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"Unsupported timestamp type: {type(value).__name__}")
    seconds = value / 1000 if value >= EPOCH_MS_THRESHOLD else value
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format a datetime as YYYY-MM-DD HH:MM:SS for spreadsheet use."""
    return value.strftime('%Y-%m-%d %H:%M:%S')


# --- File Operations ---
def atomic_write_csv(df, path: Path, **kwargs) -> None:
    """
    Write a DataFrame to CSV atomically using a temporary file.

    This prevents data corruption if the write is interrupted.

    Args:
        df: pandas DataFrame to write
        path: Destination path for the CSV file
        **kwargs: Additional arguments to pass to df.to_csv()
    """
    logger = setup_logging(__name__)

    # Ensure parent directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    suffix = '.tsv' if kwargs.get('sep') == '\t' else '.csv'

    # Write to temp file first
    try:
        with tempfile.NamedTemporaryFile(
            mode='w',
            delete=False,
            suffix=suffix,
            dir=path.parent  # Same filesystem for atomic move
        ) as tmp:
            df.to_csv(tmp.name, **kwargs)
            tmp_path = Path(tmp.name)

        shutil.move(str(tmp_path), str(path))
        logger.debug(f"Atomically wrote {len(df)} rows to {path}")

    except Exception:
        # Clean up temp file if it exists
        if 'tmp_path' in locals() and tmp_path.exists():
            tmp_path.unlink()
        raise


# --- Validation ---
def sanitize_username(username: str | None) -> str:
    """Trim and lowercase a username; None becomes an empty string."""
    return (username or "").strip().lower()


def validate_username(username: str) -> None:
    """
    Validate a sanitized Chess.com username.

    Raises:
        ValueError: If the username is empty or has characters outside [a-z0-9_-]
    """
    if not username or not USERNAME_RE.match(username):
        raise ValueError(f"Invalid Chess.com username: '{username}'")


def validate_input_size(text: str, max_size: int) -> None:
    """
    Validate that input text does not exceed maximum size.

    Args:
        text: Input text to validate
        max_size: Maximum allowed size in bytes

    Raises:
        ValueError: If input exceeds max_size
    """
    if len(text) > max_size:
        raise ValueError(
            f"Input too large: {len(text):,} bytes. "
            f"Maximum allowed: {max_size:,} bytes"
        )


__all__ = [
    # Logging
    'setup_logging',
    # Numeric / time helpers
    'clamp',
    'coerce_timestamp',
    'format_timestamp',
    # File operations
    'atomic_write_csv',
    # Validation
    'sanitize_username',
    'validate_username',
    'validate_input_size',
    # Parsing
    'PGN_TAG_RE',
    'USERNAME_RE',
]
