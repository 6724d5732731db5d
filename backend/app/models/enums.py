"""
Enum definitions for the application.

These enums are used across models and provide type-safe category values.
"""

from enum import Enum


class TaskCategory(str, Enum):
    """
    How the time in a task block is spent.

    PRODUCTIVE counts toward the productivity percentage.
    LEISURE and BREAK count as allocated but not productive time.
    """

    PRODUCTIVE = "productive"
    LEISURE = "leisure"
    BREAK = "break"
