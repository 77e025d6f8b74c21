"""Tests for reparent cycle detection."""

from __future__ import annotations

import pytest

from mptree.core.database.exceptions import CircularReferenceError, HierarchyError
from mptree.core.database.hierarchy.guard import validate_reparent
from mptree.core.database.hierarchy.path import Path


@pytest.mark.unit
class TestValidateReparent:
    """Moving R.A must never land inside R.A's own subtree."""

    def test_promote_to_root_is_allowed(self):
        validate_reparent(Path("R.A"), None)

    def test_move_under_sibling_is_allowed(self):
        validate_reparent(Path("R.A"), Path("R.C"))

    def test_move_under_other_tree_is_allowed(self):
        validate_reparent(Path("R.A.B"), Path("X"))

    def test_move_under_own_ancestor_is_allowed(self):
        validate_reparent(Path("R.A.B"), Path("R"))

    def test_textual_prefix_is_not_a_cycle(self):
        validate_reparent(Path("1.2"), Path("1.23"))

    def test_move_under_self_raises(self):
        with pytest.raises(CircularReferenceError):
            validate_reparent(Path("R.A"), Path("R.A"))

    def test_move_under_child_raises(self):
        with pytest.raises(CircularReferenceError) as exc_info:
            validate_reparent(Path("R.A"), Path("R.A.B"))

        error = exc_info.value
        assert error.path == Path("R.A")
        assert error.parent_path == Path("R.A.B")
        assert error.details == {"path": "R.A", "parent_path": "R.A.B"}
        assert isinstance(error, HierarchyError)

    def test_move_under_deep_descendant_raises(self):
        with pytest.raises(CircularReferenceError):
            validate_reparent(Path("R"), Path("R.A.B.C.D"))
