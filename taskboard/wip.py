"""Work-in-progress admission check."""
from typing import Optional

from .schema import TaskStatus


def has_capacity(destination: TaskStatus, current_count: int, limit: Optional[int]) -> bool:
    """
    True if one more task fits in the destination lane.

    current_count is the lane occupancy before the move. Only lane changes
    are checked; a reorder inside a lane never changes its occupancy.
    """
    if limit is None:
        return True
    return current_count < limit
