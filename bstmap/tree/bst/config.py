"""Configuration for the binary search tree.

Defines the tunable parameters of the node arena.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BSTConfig:
    """
    Configuration parameters for the node arena.

    Attributes
    ----------
    initial_capacity : int
        Number of node slots allocated up front, by default 64.
    growth_factor : int
        Multiplier applied to the capacity when no free slot remains, by
        default 2.

    Raises
    ------
    ValueError
        If ``initial_capacity`` is below 1 or ``growth_factor`` below 2.
    """

    initial_capacity: int = 64
    growth_factor: int = 2

    def __post_init__(self) -> None:
        if self.initial_capacity < 1:
            raise ValueError(
                f"initial_capacity must be >= 1, got {self.initial_capacity}"
            )
        if self.growth_factor < 2:
            raise ValueError(
                f"growth_factor must be >= 2, got {self.growth_factor}"
            )
