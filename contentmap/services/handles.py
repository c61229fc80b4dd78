from __future__ import annotations

from typing import Optional, Tuple

from contentmap.domain import Handle, Position


def assign_handles(
    source: Optional[Position], target: Optional[Position]
) -> Tuple[Handle, Handle]:
    """
    Pick the connection ports for an edge from the relative node positions.

    The dominant axis wins: horizontal -> right/left pair, vertical ->
    bottom/top pair, oriented toward the target. Without both positions the
    default is right -> left.
    """
    if source is None or target is None:
        return Handle.RIGHT, Handle.LEFT

    dx = target.x - source.x
    dy = target.y - source.y

    if abs(dx) > abs(dy):
        if dx > 0:
            return Handle.RIGHT, Handle.LEFT
        return Handle.LEFT, Handle.RIGHT
    if dy > 0:
        return Handle.BOTTOM, Handle.TOP
    return Handle.TOP, Handle.BOTTOM
