"""Cycle detection for reparenting.

Runs purely on paths already loaded in memory and must pass before any
rebuild statement is issued.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from mptree.core.database.exceptions import CircularReferenceError

if TYPE_CHECKING:
    from mptree.core.database.hierarchy.path import Path


def validate_reparent(path: Path, parent_path: Path | None) -> None:
    """Ensure moving the node at ``path`` under ``parent_path`` keeps a tree.

    Args:
        path: Current path of the node being moved
        parent_path: Path of the proposed parent, None to promote to root

    Raises:
        CircularReferenceError: If the proposed parent is the node itself or
            one of its descendants

    Example:
        >>> validate_reparent(Path("R.A"), Path("R.A.B"))
        Traceback (most recent call last):
        ...
        CircularReferenceError: ...
    """
    if parent_path is None:
        return

    if path in parent_path.path_set():
        raise CircularReferenceError(path, parent_path)


__all__ = [
    "validate_reparent",
]
