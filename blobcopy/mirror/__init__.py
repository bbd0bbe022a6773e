"""
Mirror — Object-by-object mirroring between blob stores.

This module provides the mirror loop, the staging lifecycle, and the
safety marker used to catch a mismatched encryption password.
"""

from .config import MirrorOptions
from .engine import MirrorEngine, mirror
from .run import MirrorRun
from .safety import SafetyGuard
from .staging import StagingCoordinator

__all__ = [
    "MirrorEngine",
    "MirrorOptions",
    "MirrorRun",
    "SafetyGuard",
    "StagingCoordinator",
    "mirror",
]
