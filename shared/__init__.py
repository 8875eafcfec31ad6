"""
ElfLens Shared Module
=====================

Configuration, structured logging and console presentation shared by all
ElfLens components.
"""

from shared.config import LensConfig, get_config

__all__ = ["LensConfig", "get_config"]
