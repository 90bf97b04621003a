"""
rowflow Source - In-Memory Group Hierarchy
==========================================

Reference implementation of the Group Source contract consumed by
``ListDataView``:

    group.for_each_async(callback) -> disposer

``callback(child)`` is called once for every current child and again for
every child added later. It returns a disposer which is invoked exactly once,
synchronously, when that child is removed or when the ``for_each_async``
subscription itself is cancelled.

Any hierarchy can be projected by subclassing ``GroupNode`` and honouring the
same contract; the view only relies on ``parent`` and ``for_each_async``.
"""

from typing import Any, Callable, Dict, Iterator, List, Optional

from .errors import ArgumentTypeError
from .subscriptions import Disposer


class TreeNode:
    """Common base: a back-reference to the owning group plus a property bag."""

    is_group = False

    def __init__(self, properties: Optional[Dict[str, Any]] = None, **extra: Any):
        self.parent: Optional["GroupNode"] = None
        self.properties: Dict[str, Any] = dict(properties or {})
        self.properties.update(extra)

    @property
    def label(self) -> Any:
        return self.properties.get("label")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.label!r})"


class LeafItem(TreeNode):
    """A plain row."""

    pass


class GroupNode(TreeNode):
    """
    A group of leaves and nested groups with live child notifications.

    Example:
        root = GroupNode(label="root")
        drums = root.add_child(GroupNode(label="drums"))
        kick = drums.add_child(LeafItem(label="kick"))
        drums.remove_child(kick)
    """

    is_group = True

    def __init__(self, properties: Optional[Dict[str, Any]] = None, **extra: Any):
        super().__init__(properties, **extra)
        self._children: List[TreeNode] = []
        # registration key -> _Watcher
        self._watchers: Dict[int, "_Watcher"] = {}
        self._next_watcher = 0

    @property
    def children(self) -> List[TreeNode]:
        return list(self._children)

    def __iter__(self) -> Iterator[TreeNode]:
        return iter(tuple(self._children))

    def add_child(self, child: TreeNode) -> TreeNode:
        if not isinstance(child, TreeNode):
            raise ArgumentTypeError(
                f"expected GroupNode or LeafItem, got {type(child).__name__}"
            )
        if child.parent is not None:
            raise ValueError(f"{child!r} already belongs to {child.parent!r}")

        child.parent = self
        self._children.append(child)

        for watcher in tuple(self._watchers.values()):
            watcher.attach(child)

        return child

    def add_children(self, children: List[TreeNode]) -> None:
        for child in children:
            self.add_child(child)

    def remove_child(self, child: TreeNode) -> TreeNode:
        for position, existing in enumerate(self._children):
            if existing is child:
                break
        else:
            raise ValueError(f"{child!r} is not a child of {self!r}")

        del self._children[position]

        for watcher in tuple(self._watchers.values()):
            watcher.detach(child)

        child.parent = None
        return child

    def clear(self) -> None:
        for child in reversed(self.children):
            self.remove_child(child)

    def for_each_async(self, callback: Callable[[TreeNode], Optional[Disposer]]) -> Disposer:
        key = self._next_watcher
        self._next_watcher += 1

        watcher = _Watcher(callback)
        self._watchers[key] = watcher

        for child in tuple(self._children):
            watcher.attach(child)

        def unsubscribe():
            if self._watchers.pop(key, None) is None:
                return
            watcher.detach_all()

        return unsubscribe

    def walk(self) -> Iterator[TreeNode]:
        """Depth-first iteration over all descendants, groups before their children."""
        for child in tuple(self._children):
            yield child
            if isinstance(child, GroupNode):
                yield from child.walk()


class _Watcher:
    """One ``for_each_async`` registration and the disposers it handed out."""

    __slots__ = ("callback", "disposers")

    def __init__(self, callback):
        self.callback = callback
        self.disposers: Dict[int, Optional[Disposer]] = {}

    def attach(self, child: TreeNode) -> None:
        key = id(child)

        # The callback may remove the child again. detach() then takes the
        # placeholder and the disposer returned below runs at once.
        def pending():
            pass

        self.disposers[key] = pending
        disposer = self.callback(child)

        if self.disposers.get(key) is pending:
            self.disposers[key] = disposer
        elif disposer is not None:
            disposer()

    def detach(self, child: TreeNode) -> None:
        disposer = self.disposers.pop(id(child), None)
        if disposer is not None:
            disposer()

    def detach_all(self) -> None:
        # Newest first.
        while self.disposers:
            _, disposer = self.disposers.popitem()
            if disposer is not None:
                disposer()


def build_tree(layout: Dict[str, Any], label: str = "root") -> GroupNode:
    """
    Build a hierarchy from nested dicts: every dict key becomes a group, every
    list item a leaf labelled with that item.

    Example:
        build_tree({"drums": ["kick", "snare"], "bass": []})
    """
    root = GroupNode(label=label)
    _fill(root, layout)
    return root


def _fill(group: GroupNode, layout: Any) -> None:
    if isinstance(layout, dict):
        for name, children in layout.items():
            sub = group.add_child(GroupNode(label=name))
            _fill(sub, children)
    else:
        group.add_children([LeafItem(label=item) for item in layout])
