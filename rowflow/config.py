"""
rowflow Configuration
=====================

Engine options for ``ListDataView``. Window geometry, filtering and sorting
are constructor arguments of the view itself; ``ViewConfig`` only carries
the knobs that tune bookkeeping and diagnostics.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ViewConfig:
    """
    Options for a ``ListDataView``.

    Args:
        arena_capacity: Initial number of SuperGroup rows reserved in the
            arena. The arena doubles when it runs out.
        max_groups: Upper bound on simultaneously materialized groups,
            ``None`` for no bound.
        debug_checks: Run the O(n) consistency check after every insertion
            and removal. Slow; meant for tests and debugging sessions.
    """

    arena_capacity: int = 64
    max_groups: Optional[int] = None
    debug_checks: bool = False

    def __post_init__(self):
        if self.arena_capacity < 1:
            raise ValueError(
                f"arena_capacity must be positive, got {self.arena_capacity}"
            )
        if self.max_groups is not None and self.max_groups < 1:
            raise ValueError(f"max_groups must be positive, got {self.max_groups}")


DEFAULT_CONFIG = ViewConfig()
