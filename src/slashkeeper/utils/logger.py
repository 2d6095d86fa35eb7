import logging
from typing import Optional, Union

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def parse_level(level: Union[int, str, None]) -> Optional[int]:
    """Turn 'debug' / 'INFO' / 20 into a logging level"""
    if level is None or isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved

def get_logger(name: str, level: Union[int, str, None] = None) -> logging.Logger:
    """Create a logger with the given name and level"""
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        logger.addHandler(handler)

    resolved = parse_level(level)
    if resolved is not None:
        logger.setLevel(resolved)
    elif not logger.level:
        logger.setLevel(logging.INFO)

    return logger
