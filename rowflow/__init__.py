"""
rowflow - Reactive Windowed Projection of Live Hierarchies

Flattens a hierarchy of groups and leaves that changes over time into one
ordered list, and keeps a window of that list up to date while groups are
added, removed, collapsed, expanded or filtered.
"""

from .arena import SuperGroupArena
from .config import ViewConfig
from .errors import (
    ArenaExhaustedError,
    ArgumentTypeError,
    InvariantViolation,
    RowflowError,
    UnknownGroupError,
)
from .gate import (
    ContinuationGate,
    allow_all,
    call_continuation_if,
    nest_gates,
    observable_predicate,
    static_predicate,
)
from .observable import Observable, Signal
from .source import GroupNode, LeafItem, build_tree
from .subscriptions import (
    CompositeSubscription,
    add_subscription,
    init_subscriptions,
    unsubscribe_subscriptions,
)
from .supergroup import SuperGroup
from .view import ListDataView

__version__ = "0.1.0"

__all__ = [
    # View
    "ListDataView",
    "ViewConfig",
    # Source
    "GroupNode",
    "LeafItem",
    "build_tree",
    # Bookkeeping
    "SuperGroup",
    "SuperGroupArena",
    # Reactive primitives
    "Observable",
    "Signal",
    "ContinuationGate",
    "call_continuation_if",
    "nest_gates",
    "allow_all",
    "static_predicate",
    "observable_predicate",
    # Subscriptions
    "CompositeSubscription",
    "init_subscriptions",
    "add_subscription",
    "unsubscribe_subscriptions",
    # Exceptions
    "RowflowError",
    "ArgumentTypeError",
    "InvariantViolation",
    "UnknownGroupError",
    "ArenaExhaustedError",
]
