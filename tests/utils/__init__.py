"""
Test utilities for rowflow.
"""

from .memory_utils import assert_cleaned_up, count_instances

__all__ = [
    "assert_cleaned_up",
    "count_instances",
]
