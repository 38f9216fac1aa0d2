"""
Interactive search sessions and search analytics.
"""

from .analytics import SearchAnalytics, SearchRecord
from .session_manager import (
    NavigationKey,
    SearchSession,
    SessionPhase,
    SessionState,
    confirm_selection,
    dismiss,
    move_next,
    move_previous,
)

__all__ = [
    "NavigationKey",
    "SearchAnalytics",
    "SearchRecord",
    "SearchSession",
    "SessionPhase",
    "SessionState",
    "confirm_selection",
    "dismiss",
    "move_next",
    "move_previous",
]
