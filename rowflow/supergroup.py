"""
rowflow SuperGroup - Materialized Group Bookkeeping
===================================================

A SuperGroup wraps one GroupNode that is currently visible in a view. It owns
the ordered list of materialized children (leaves and nested SuperGroups) and
reads its numeric state - parent, depth, size, flat index - from a row of the
view's ``SuperGroupArena``.

``size`` counts the flat slots of all materialized descendants; the group's
own slot belongs to its parent's count. For the virtual root this makes
``size`` the length of the whole flat list.
"""

from typing import Any, Callable, List, Optional, Union

from .arena import NO_PARENT, SuperGroupArena
from .source import GroupNode, LeafItem


class SuperGroup:
    """
    Handle onto one arena row plus the group's materialized children.

    Args:
        arena: Storage shared by all SuperGroups of a view
        group: The wrapped GroupNode
        parent: Parent SuperGroup, ``None`` for the virtual root
        index: Flat index of the group's own slot, if already known
    """

    __slots__ = ("group", "handle", "children", "_arena")

    def __init__(
        self,
        arena: SuperGroupArena,
        group: GroupNode,
        parent: Optional["SuperGroup"] = None,
        index: int = -1,
    ):
        self._arena = arena
        self.group = group
        self.children: List[Union["SuperGroup", LeafItem]] = []
        self.handle = arena.allocate(
            self, parent.handle if parent is not None else NO_PARENT
        )
        arena.indices[self.handle] = index

    # ------------------------------------------------------------------
    # Arena-backed state
    # ------------------------------------------------------------------

    @property
    def parent(self) -> Optional["SuperGroup"]:
        return self._arena.record(int(self._arena.parents[self.handle]))

    @property
    def depth(self) -> int:
        return int(self._arena.depths[self.handle])

    @property
    def size(self) -> int:
        return int(self._arena.sizes[self.handle])

    @property
    def index(self) -> int:
        return int(self._arena.indices[self.handle])

    @index.setter
    def index(self, value: int) -> None:
        self._arena.indices[self.handle] = value

    @property
    def is_root(self) -> bool:
        return int(self._arena.parents[self.handle]) == NO_PARENT

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def create_child_node(self, child: Any) -> Any:
        """Wrap ``child`` in a new SuperGroup if it is a group, else return it as is."""
        if isinstance(child, GroupNode):
            return SuperGroup(self._arena, child, self)
        return child

    def child_distance(self, index: int) -> int:
        """
        Offset of the ``index``-th child's slot relative to this group's slot.

        Every preceding child takes one slot for itself, and a preceding
        SuperGroup additionally takes ``size`` slots for its descendants.
        """
        preceding = self.children[:index]
        nested = [child.handle for child in preceding if isinstance(child, SuperGroup)]
        return 1 + len(preceding) + self._arena.sum_sizes(nested)

    def update_size(self, diff: int) -> None:
        """Add ``diff`` to this group and every ancestor. The flat list is untouched."""
        self._arena.bubble_size(self.handle, diff)

    def position_of(self, node: Any) -> int:
        """Sibling position of ``node`` by identity, -1 if not a child."""
        for position, child in enumerate(self.children):
            if child is node:
                return position
        return -1

    def for_each(self, cb: Callable[[Any, "SuperGroup"], None]) -> None:
        """Depth-first walk: ``cb(visible_node, parent)`` for every materialized descendant."""
        for node in tuple(self.children):
            if isinstance(node, SuperGroup):
                cb(node.group, self)
                node.for_each(cb)
            else:
                cb(node, self)

    def release(self) -> None:
        """Return the arena row. The SuperGroup must not be used afterwards."""
        self._arena.free(self.handle)

    def __repr__(self) -> str:
        return (
            f"SuperGroup({self.group!r}, depth={self.depth}, "
            f"size={self.size}, index={self.index})"
        )


def get_child(node: Any) -> Any:
    """The node as it appears in the flat list."""
    if isinstance(node, SuperGroup):
        return node.group
    return node
