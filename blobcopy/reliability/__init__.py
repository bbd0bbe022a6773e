"""
Reliability Module — Non-fatal error collection for mirror runs.
"""

from .error_collector import ErrorCollector

__all__ = ["ErrorCollector"]
