"""
Logging setup for workflow entry points.

Library modules never configure logging themselves; they only create a
module logger:

    import logging
    logger = logging.getLogger(__name__)

Runner scripts call setup_logging() once before starting the pipeline.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def parse_level(level: Union[int, str]) -> int:
    """Turn a level name such as 'debug' into its logging constant."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None
) -> None:
    """
    Configure the root logger for a workflow run.

    Args:
        level: Logging level or level name (default: INFO)
        log_file: Optional path to also write the run log to
        format_string: Optional custom format string
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=parse_level(level),
        format=format_string or DEFAULT_FORMAT,
        handlers=handlers,
        force=True  # Replace handlers left by earlier runs in the same session
    )
