"""
Job runners for the scheduling feature.
"""

from .pattern_refresh_job import run_pattern_refresh_once, start_pattern_refresh_scheduler

__all__ = ["run_pattern_refresh_once", "start_pattern_refresh_scheduler"]
