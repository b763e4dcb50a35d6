"""
Logging configuration for the game fleet dashboard services.

Provides consistent logging setup across all components (control service,
background refresher, scripts).
"""

import logging
import sys
from pathlib import Path
from typing import Optional

DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def parse_level(value) -> int:
    """Accept either a logging constant or a level name such as 'debug'."""
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value).strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(
    component_name: str,
    level=logging.INFO,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
):
    """
    Configure logging for a fleet dashboard component.
    
    Args:
        component_name: Component identifier (e.g., 'control', 'refresher')
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL) or its name
        log_file: Optional file path for log output
        format_string: Custom format string (default provided)
    """
    level = parse_level(level)
    if format_string is None:
        format_string = f'[%(asctime)s] [{component_name.upper()}] %(levelname)s - %(message)s'
    
    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt=DATE_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
    
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(format_string, datefmt=DATE_FORMAT))
        logging.getLogger().addHandler(file_handler)
    
    logger = logging.getLogger(component_name)
    logger.info(f"{component_name.upper()} logging initialized (level={logging.getLevelName(level)})")
    
    return logger
