# src/slashkeeper/utils/__init__.py
from .logger import get_logger, parse_level
from .config import Config

__all__ = ['get_logger', 'parse_level', 'Config']
