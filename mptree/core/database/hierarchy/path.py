"""Materialized path value object.

A path encodes a node's full ancestor chain as separator-joined segments,
root first and self last:
- "1"        a root node with source value 1
- "1.4.9"    node 9, child of 4, grandchild of root 1

Paths are immutable. Any change produces a new Path. All operations here are
pure string algebra and never touch the database.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from mptree.core.database.exceptions import InvalidPathError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import Self

SEPARATOR = "."


class Path:
    """Position of a node in a hierarchy.

    Example:
        >>> path = Path.compose(1, 4, 9)
        >>> path.depth
        3
        >>> path.segments
        ['1', '4', '9']
        >>> [str(p) for p in path.path_set()]
        ['1', '1.4', '1.4.9']
        >>> [str(p) for p in path.ancestor_set()]
        ['1', '1.4']
        >>> Path.compose(path, 12)
        Path('1.4.9.12')

    Note:
        - Segments are opaque strings and can never contain SEPARATOR
        - A path always has at least one segment
    """

    __slots__ = ("_segments", "_value")
    _value: str
    _segments: tuple[str, ...]

    def __init__(self, value: str | Path) -> None:
        """Initialize Path from a raw value or another Path.

        Args:
            value: Separator-joined path string or existing Path

        Raises:
            InvalidPathError: If the value is empty or has an empty segment
        """
        if isinstance(value, Path):
            self._value = value._value
            self._segments = value._segments
            return

        if not isinstance(value, str):
            raise InvalidPathError(
                f"Path value must be a string, got {type(value).__name__}", value
            )

        self._value = value
        if not self._value:
            raise InvalidPathError("Path must have at least one segment", value)

        self._segments = tuple(self._value.split(SEPARATOR))
        if not all(self._segments):
            raise InvalidPathError(f"Path '{self._value}' contains an empty segment", value)

    @classmethod
    def compose(cls, *segments: str | int | Path) -> Self:
        """Build a path by joining segments with the separator.

        Path arguments are flattened to their raw value first, so
        ``Path.compose(parent_path, source)`` yields the child's path.

        Args:
            *segments: Segments or whole paths, root first

        Returns:
            New Path

        Raises:
            InvalidPathError: If no segments are given or a plain segment is
                empty or contains the separator
        """
        parts: list[str] = []
        for segment in segments:
            if isinstance(segment, Path):
                parts.append(segment.value)
                continue
            part = str(segment)
            if not part or SEPARATOR in part:
                raise InvalidPathError(
                    f"Invalid path segment '{part}': segments must be non-empty "
                    f"and cannot contain '{SEPARATOR}'",
                    part,
                )
            parts.append(part)

        return cls(SEPARATOR.join(parts))

    @property
    def value(self) -> str:
        """Raw string stored in the path column."""
        return self._value

    @property
    def segments(self) -> list[str]:
        """Segments from root to self.

        Returns:
            Copy of the segment list (modifications don't affect the path)
        """
        return list(self._segments)

    @property
    def depth(self) -> int:
        """Number of segments. Root paths have depth 1."""
        return len(self._segments)

    @property
    def root(self) -> str:
        """First segment (the root node's source value)."""
        return self._segments[0]

    @property
    def leaf(self) -> str:
        """Last segment (this node's own source value)."""
        return self._segments[-1]

    @property
    def parent(self) -> Path | None:
        """Path of the parent node, or None for a root path."""
        if self.depth == 1:
            return None
        return Path(SEPARATOR.join(self._segments[:-1]))

    def path_set(self) -> list[Path]:
        """Paths of every ancestor followed by self.

        Example:
            >>> [str(p) for p in Path("1.2.3.4").path_set()]
            ['1', '1.2', '1.2.3', '1.2.3.4']
        """
        return [
            Path(SEPARATOR.join(self._segments[:index]))
            for index in range(1, self.depth + 1)
        ]

    def ancestor_set(self) -> list[Path]:
        """Paths of every strict ancestor, root first. Empty for roots."""
        return self.path_set()[:-1]

    def child(self, segment: str | int) -> Path:
        """Create the path of a child with the given source value."""
        return Path.compose(self, segment)

    def is_ancestor_of(self, other: str | Path) -> bool:
        """Check if this path is a strict ancestor of other.

        Example:
            >>> Path("1.2").is_ancestor_of("1.2.3")
            True
            >>> Path("1.2").is_ancestor_of("1.23")
            False
        """
        other_path = Path(other)
        if self.depth >= other_path.depth:
            return False
        return other_path._segments[: self.depth] == self._segments

    def is_descendant_of(self, other: str | Path) -> bool:
        """Check if this path is a strict descendant of other."""
        return Path(other).is_ancestor_of(self)

    def __iter__(self) -> Iterator[str]:
        return iter(self._segments)

    def __len__(self) -> int:
        return self.depth

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"Path({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Path):
            return self._value == other._value
        if isinstance(other, str):
            return self._value == other
        return False

    def __hash__(self) -> int:
        return hash(self._value)


__all__ = [
    "SEPARATOR",
    "Path",
]
