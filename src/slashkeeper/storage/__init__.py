# File: src/slashkeeper/storage/__init__.py
from .database import Database
from .signing_info import SigningInfoStore, ValidatorSigningInfo
from .state_cache import StateCache

__all__ = ['Database', 'SigningInfoStore', 'ValidatorSigningInfo', 'StateCache']
