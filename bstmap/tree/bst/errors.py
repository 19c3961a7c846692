"""Exception hierarchy for the binary search tree.

Defines all custom exceptions raised by the tree implementation.
"""

from __future__ import annotations


class TreeError(Exception):
    """Base exception for all tree errors."""
    pass


class KeyNotFoundError(TreeError, KeyError):
    """Raised when a lookup finds no node carrying the requested key."""
    pass


class StructuralIntegrityError(TreeError, AssertionError):
    """Raised when parent/child links disagree with the tree shape.

    This signals a defect in the tree code, not a condition callers are
    expected to recover from.
    """
    pass
