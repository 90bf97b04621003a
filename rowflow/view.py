"""
rowflow View - Windowed Flat Projection of a Live Hierarchy
===========================================================

``ListDataView`` flattens a group hierarchy into one ordered list and keeps it
up to date while the hierarchy changes, notifying subscribers only about the
positions of the visible window that actually changed.

    root                      flat list           window (start=1, amount=3)
    ├── drums                 0  drums
    │   ├── kick              1  kick             <- 1
    │   └── snare             2  snare            <- 2
    └── bass                  3  bass             <- 3
        └── sub               4  sub

Every group that is visible gets a SuperGroup recording its subtree size and
the flat index of its own slot, so a change is spliced into the flat list at
``parent.index + parent.child_distance(position)`` without rescanning the
tree.

Children reach the flat list through two nested gates: the collapse state of
their parent and the caller's filter. Collapsing a group closes the first gate
for each of its children, which unwinds them (descendants first) through the
same removal path a source removal takes.

Example:
    root = build_tree({"drums": ["kick", "snare"], "bass": ["sub"]})
    view = ListDataView(root, amount=3)
    view.subscribe_elements(lambda index, element: print(index, element))
    view.collapse_group(root.children[0], True)
"""

import bisect
import itertools
import logging
import numbers
import weakref
from functools import cmp_to_key
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from .arena import SuperGroupArena
from .config import DEFAULT_CONFIG, ViewConfig
from .errors import ArgumentTypeError, InvariantViolation, UnknownGroupError
from .gate import PredicateSource, allow_all, nest_gates
from .observable import Observable, Signal
from .source import GroupNode, LeafItem
from .subscriptions import (
    CompositeSubscription,
    Disposer,
    add_subscription,
    init_subscriptions,
    unsubscribe_subscriptions,
)
from .supergroup import SuperGroup, get_child

logger = logging.getLogger(__name__)

Comparator = Callable[[Any, Any], int]


def _require_group(group: Any) -> GroupNode:
    if not isinstance(group, GroupNode):
        raise ArgumentTypeError(f"expected GroupNode, got {type(group).__name__}")
    return group


def _require_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ArgumentTypeError(f"expected int for {name}, got {type(value).__name__}")
    return int(value)


class ListDataView:
    """
    Reactive, windowed flat view over a GroupNode hierarchy.

    Args:
        root: Group whose descendants are projected. The root itself has no
            slot in the flat list.
        amount: Number of positions in the observed window.
        filter_function: Predicate source ``(node, callback) -> disposer``
            deciding which children are shown. Defaults to showing all.
        sort_function: Comparator ``(a, b) -> int`` over sibling nodes.
            Siblings that compare equal, or all siblings when no comparator
            is given, keep the order in which the source delivered them.
        config: Bookkeeping and diagnostics options.
    """

    def __init__(
        self,
        root: GroupNode,
        amount: int,
        filter_function: Optional[PredicateSource] = None,
        sort_function: Optional[Comparator] = None,
        *,
        config: Optional[ViewConfig] = None,
    ):
        _require_group(root)
        amount = _require_int(amount, "amount")
        if amount < 0:
            raise ValueError(f"amount must not be negative, got {amount}")

        self.config = config or DEFAULT_CONFIG
        self._arena = SuperGroupArena(
            self.config.arena_capacity, max_records=self.config.max_groups
        )
        self.root = SuperGroup(self._arena, root)
        self._start_index = 0
        self._amount = amount
        self.filter_function = filter_function or allow_all
        self.sort_function = sort_function
        self._sort_key = cmp_to_key(sort_function) if sort_function else None

        # global flat list
        self.list = []

        # set of collapsed groups and one observable per watched group
        self.collapsed = weakref.WeakSet()
        self._collapsed_state: "weakref.WeakKeyDictionary[GroupNode, Observable[bool]]" = (
            weakref.WeakKeyDictionary()
        )

        # GroupNode -> SuperGroup for every materialized group
        self.groups: Dict[GroupNode, SuperGroup] = {root: self.root}

        # arrival rank of every child currently delivered by a source
        self._ranks: Dict[Any, int] = {}
        self._arrivals = itertools.count()

        self._elements = Signal("elements")
        self._size_changed = Signal("size_changed")
        self._start_index_changed = Signal("start_index_changed")

        self._destroyed = False
        self.subscriptions = init_subscriptions()
        self.subscriptions = add_subscription(
            self.subscriptions, self._subscribe(self.root)
        )

    # ========================================================================
    # PROPERTIES
    # ========================================================================

    @property
    def size(self) -> int:
        return self.root.size

    @property
    def start_index(self) -> int:
        return self._start_index

    @property
    def amount(self) -> int:
        return self._amount

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def __len__(self) -> int:
        return len(self.list)

    def __iter__(self) -> Iterator[Any]:
        return iter(tuple(self.list))

    def __repr__(self) -> str:
        return (
            f"ListDataView(size={self.size}, start_index={self._start_index}, "
            f"amount={self._amount})"
        )

    # ========================================================================
    # SUBSCRIPTION WIRING
    # ========================================================================

    def _subscribe(self, super_group: SuperGroup) -> Disposer:
        group = super_group.group
        predicates = (self._collapse_predicate(group), self.filter_function)

        def on_child(child):
            rank = self._ranks[child] = next(self._arrivals)
            gate = nest_gates(
                child, predicates, lambda node: self._materialize(super_group, node)
            )

            def dispose():
                gate()
                if self._ranks.get(child) == rank:
                    del self._ranks[child]

            return dispose

        return group.for_each_async(on_child)

    def _collapse_predicate(self, group: GroupNode) -> PredicateSource:
        def subscribe(node, callback):
            return self.subscribe_collapsed(
                group, lambda is_collapsed: callback(not is_collapsed)
            )

        return subscribe

    def _materialize(self, parent: SuperGroup, child: Any) -> CompositeSubscription:
        node = parent.create_child_node(child)
        index = self._insert_child(parent, node)

        sub = init_subscriptions()
        sub = add_subscription(sub, self._child_added(parent, node, index))

        def remove():
            position = parent.position_of(node)
            if position < 0:
                return
            del parent.children[position]
            self._child_removed(parent, node, position)

        return add_subscription(sub, remove)

    def _order_key(self, visible: Any) -> Tuple:
        rank = self._ranks.get(visible, -1)
        if self._sort_key is None:
            return (rank,)
        return (self._sort_key(visible), rank)

    def _insert_child(self, parent: SuperGroup, node: Any) -> int:
        children = parent.children
        key = self._order_key(get_child(node))
        position = bisect.bisect_right(
            children, key, key=lambda sibling: self._order_key(get_child(sibling))
        )
        children.insert(position, node)
        return position

    # ========================================================================
    # FLAT LIST MAINTENANCE
    # ========================================================================

    def _update_index(self, start: int) -> None:
        groups = self.groups
        flat = self.list
        for i in range(start, len(flat)):
            child = flat[i]
            if isinstance(child, GroupNode):
                groups[child].index = i

    def _child_added(self, parent: SuperGroup, node: Any, index: int) -> Optional[Disposer]:
        child = get_child(node)

        parent.update_size(1)

        list_index = parent.index + parent.child_distance(index)
        self.list.insert(list_index, child)

        if isinstance(node, SuperGroup):
            node.index = list_index
            self.groups[child] = node

        self._update_index(list_index + 1)
        self._size_changed.emit(self.size)

        logger.debug(f"added {child!r} at {list_index} (size {self.size})")

        shifted = list_index < self._start_index
        if shifted:
            self._move_start(self._start_index + 1)

        sub = None
        if isinstance(node, SuperGroup):
            sub = self._subscribe(node)

        if not shifted:
            self._notify_region(list_index)

        if self.config.debug_checks:
            self.check()

        return sub

    def _child_removed(self, parent: SuperGroup, node: Any, index: int) -> None:
        child = get_child(node)
        is_group = isinstance(node, SuperGroup)

        if is_group and node.size:
            self._violation(
                f"removing non-empty group {child!r} with {node.size} live descendants"
            )

        size = 1 + node.size if is_group else 1
        list_index = parent.index + parent.child_distance(index)
        found = self.at(list_index)

        if found is not child:
            self._violation(
                f"removing wrong child: expected {child!r} at {list_index}, found {found!r}"
            )

        parent.update_size(-size)

        del self.list[list_index : list_index + size]
        self._update_index(list_index)

        if is_group:
            del self.groups[child]
            node.release()

        self._size_changed.emit(self.size)

        logger.debug(f"removed {child!r} from {list_index} (size {self.size})")

        start_index = self._start_index

        if list_index < start_index:
            self._move_start(start_index - size)
        elif len(self.list) < start_index + self._amount and start_index > 0:
            # Pull the window back so it stays filled. Rows are positioned
            # relative to the start, so every row of the new window changed.
            new_start = max(0, len(self.list) - self._amount)
            self._move_start(new_start)
            self._notify_region(new_start)
        else:
            self._notify_region(list_index)

        if self.config.debug_checks:
            self.check()

    def _move_start(self, new_start: int) -> None:
        old_start = self._start_index
        if new_start == old_start:
            return
        self._start_index = new_start
        logger.debug(f"start index {old_start} -> {new_start}")
        self._start_index_changed.emit(new_start, old_start)

    def _notify_region(self, start: int, end: Optional[int] = None) -> None:
        """Notify window positions in ``[start, end)``; ``end`` defaults to the window end."""
        window_start = self._start_index
        window_end = window_start + self._amount

        if end is None:
            end = window_end

        first = max(start, window_start)
        last = min(end, window_end)

        if last <= first or not len(self._elements):
            return

        flat = self.list
        length = len(flat)
        for i in range(first, last):
            self._elements.emit(i, flat[i] if i < length else None)

    def _violation(self, message: str) -> None:
        logger.error(message)
        raise InvariantViolation(message)

    # ========================================================================
    # WINDOW CONTROL
    # ========================================================================

    def set_start_index(self, index: int) -> None:
        """Jump the window to ``index`` and repaint every position in it."""
        index = _require_int(index, "index")
        if index < 0:
            raise ValueError(f"start index must not be negative, got {index}")

        self._start_index = index
        self._notify_region(index, index + self._amount)

    def scroll_start_index(self, offset: int) -> None:
        """Move the window by ``offset``, notifying only the newly exposed band."""
        offset = _require_int(offset, "offset")
        offset = max(offset, -self._start_index)

        self._start_index += offset

        if offset > 0:
            end = self._start_index + self._amount
            self._notify_region(end - offset, end)
        elif offset < 0:
            start = self._start_index
            self._notify_region(start, start - offset)

    def set_amount(self, amount: int) -> None:
        """Resize the window; positions it newly covers are notified."""
        amount = _require_int(amount, "amount")
        if amount < 0:
            raise ValueError(f"amount must not be negative, got {amount}")

        old_amount = self._amount
        self._amount = amount

        if amount > old_amount:
            start = self._start_index
            self._notify_region(start + old_amount, start + amount)

    # ========================================================================
    # COLLAPSE STATE
    # ========================================================================

    def _collapse_observable(self, group: GroupNode) -> Observable:
        state = self._collapsed_state.get(group)
        if state is None:
            state = Observable(f"collapsed:{group.label}", group in self.collapsed)
            self._collapsed_state[group] = state
        return state

    def collapse_group(self, group: GroupNode, is_collapsed: bool) -> None:
        _require_group(group)
        if not isinstance(is_collapsed, bool):
            raise ArgumentTypeError(
                f"expected bool for is_collapsed, got {type(is_collapsed).__name__}"
            )

        if is_collapsed:
            self.collapsed.add(group)
        else:
            self.collapsed.discard(group)

        logger.debug(f"{'collapse' if is_collapsed else 'expand'} {group!r}")

        state = self._collapsed_state.get(group)
        if state is not None:
            state.set(is_collapsed)

    def is_collapsed(self, group: GroupNode) -> bool:
        _require_group(group)
        return group in self.collapsed

    def subscribe_collapsed(self, group: GroupNode, cb: Callable[[bool], None]) -> Disposer:
        """Call ``cb`` with the collapse state of ``group`` now and on every change."""
        _require_group(group)
        return self._collapse_observable(group).subscribe(cb, call_immediately=True)

    # ========================================================================
    # LOOKUPS
    # ========================================================================

    def get_super_group(self, group: GroupNode) -> SuperGroup:
        _require_group(group)
        try:
            return self.groups[group]
        except KeyError:
            raise UnknownGroupError(f"no group info available for {group!r}") from None

    def get_depth(self, item: Any) -> int:
        if not isinstance(item, (GroupNode, LeafItem)):
            raise ArgumentTypeError(
                f"expected GroupNode or LeafItem, got {type(item).__name__}"
            )
        if item is self.root.group:
            return self.root.depth
        return self.get_super_group(item.parent).depth + 1

    def get_subtree_size(self, group: GroupNode) -> int:
        return self.get_super_group(group).size

    def tree_position(self, item: Any) -> Tuple[bool, ...]:
        """
        For each level from the top-level ancestor down to ``item``: whether
        the node at that level is the last visible child of its parent.

        Renderers use this to draw tree guide lines.
        """
        if not isinstance(item, (GroupNode, LeafItem)):
            raise ArgumentTypeError(
                f"expected GroupNode or LeafItem, got {type(item).__name__}"
            )

        positions = []
        node = item
        while node is not self.root.group:
            if node.parent is None:
                raise UnknownGroupError(f"{node!r} is not part of this view")
            children = self.get_super_group(node.parent).children
            if not any(get_child(child) is node for child in children):
                raise UnknownGroupError(f"{node!r} is not visible in this view")
            positions.append(get_child(children[-1]) is node)
            node = node.parent

        return tuple(reversed(positions))

    def at(self, index: int) -> Any:
        index = _require_int(index, "index")
        if 0 <= index < len(self.list):
            return self.list[index]
        return None

    def for_each(self, cb: Callable[[Any], None]) -> None:
        """Depth-first walk over every visible node."""
        self.root.for_each(lambda node, parent: cb(node))

    # ========================================================================
    # SUBSCRIBERS
    # ========================================================================

    def subscribe_elements(self, cb: Callable[[int, Any], None]) -> Disposer:
        """
        Register ``cb(index, element)`` for window updates.

        The current window is replayed immediately, one call per occupied
        position. Later calls may carry ``None`` for positions that became
        empty.
        """
        unsubscribe = self._elements.subscribe(cb)

        start = self._start_index
        end = min(start + self._amount, len(self.list))
        for i in range(start, end):
            cb(i, self.list[i])

        return unsubscribe

    def subscribe_size(self, cb: Callable[[int], None]) -> Disposer:
        """Call ``cb`` with the flat list size now and whenever it changes."""
        unsubscribe = self._size_changed.subscribe(cb)
        cb(self.size)
        return unsubscribe

    def subscribe_start_index_changed(self, cb: Callable[[int, int], None]) -> Disposer:
        """
        ``cb(new_start, old_start)`` when the view moved the window itself to
        keep showing the same rows, e.g. after rows before it were removed.
        """
        return self._start_index_changed.subscribe(cb)

    # ========================================================================
    # LIFECYCLE & DIAGNOSTICS
    # ========================================================================

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True

        logger.debug(f"destroying {self!r}")

        self.subscriptions = unsubscribe_subscriptions(self.subscriptions)
        del self.groups[self.root.group]
        self.root.release()

    def check(self) -> None:
        """
        Verify the flat list against the SuperGroup tree. O(n); diagnostics only.

        Raises:
            InvariantViolation: On the first inconsistency found
        """
        if len(self.list) != self.root.size:
            self._violation(
                f"flat list holds {len(self.list)} entries but root size is {self.root.size}"
            )

        for position, entry in enumerate(self.list):
            if not isinstance(entry, (GroupNode, LeafItem)):
                self._violation(
                    f"discovered unexpected node {type(entry).__name__} at position {position}"
                )

        def verify(node, parent):
            if isinstance(node, GroupNode):
                super_group = self.get_super_group(node)
                position = parent.position_of(super_group)
            else:
                super_group = None
                position = parent.position_of(node)

            expected = parent.index + parent.child_distance(position)
            found = self.at(expected)

            if found is not node:
                self._violation(
                    f"{node!r} expected at position {expected}, found {found!r}"
                )
            if super_group is not None and super_group.index != expected:
                self._violation(
                    f"group {node!r} records index {super_group.index} but sits at {expected}"
                )

        self.root.for_each(verify)
