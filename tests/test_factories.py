"""
Factory functions for rowflow tests.

These factories build the hierarchies and recorders shared across the test
suite, so individual tests only spell out what they mutate and expect.
"""

from rowflow import GroupNode, LeafItem, ListDataView, ViewConfig, build_tree


def by_label(a, b):
    """Comparator ordering siblings by their ``label`` property."""
    la, lb = a.label, b.label
    return (la > lb) - (la < lb)


def labels(items):
    """Labels of a flat list (or any iterable of nodes), ``None`` kept as is."""
    return [item.label if item is not None else None for item in items]


def create_two_empty_groups():
    """Root with empty groups A and B.

    Returns:
        tuple: (root, a, b)
    """
    root = GroupNode(label="root")
    a = root.add_child(GroupNode(label="A"))
    b = root.add_child(GroupNode(label="B"))
    return root, a, b


def create_flat_root(count, prefix="row"):
    """Root holding ``count`` leaves labelled ``row00``, ``row01``, ...

    Returns:
        tuple: (root, leaves)
    """
    root = GroupNode(label="root")
    leaves = [root.add_child(LeafItem(label=f"{prefix}{i:02d}")) for i in range(count)]
    return root, leaves


def create_mixer_tree():
    """Nested hierarchy resembling a mixer's channel groups.

    root
    ├── bass      [di, mic]
    ├── drums
    │   ├── overheads [left, right]
    │   └── shells    [kick, snare]
    └── vocals    [lead]
    """
    return build_tree(
        {
            "bass": ["di", "mic"],
            "drums": {
                "overheads": ["left", "right"],
                "shells": ["kick", "snare"],
            },
            "vocals": ["lead"],
        }
    )


def find(root, label):
    """First descendant of ``root`` with the given label."""
    for node in root.walk():
        if node.label == label:
            return node
    raise KeyError(label)


def expected_flat(group, is_collapsed=lambda g: False, keep=lambda n: True, key=None):
    """Depth-first, gated, sorted traversal of the source hierarchy."""
    result = []
    if is_collapsed(group):
        return result
    children = [child for child in group.children if keep(child)]
    if key is not None:
        children = sorted(children, key=key)
    for child in children:
        result.append(child)
        if isinstance(child, GroupNode):
            result.extend(expected_flat(child, is_collapsed, keep, key))
    return result


def create_checked_view(root, amount=10, **kwargs):
    """View that verifies its own consistency after every mutation."""
    return ListDataView(root, amount, config=ViewConfig(debug_checks=True), **kwargs)


def create_element_recorder():
    """Provides a recorder for ``subscribe_elements`` notifications

    Returns:
        Recorder: callable collecting ``(index, element)`` pairs
    """

    class Recorder:
        def __init__(self):
            self.calls = []

        def __call__(self, index, element):
            self.calls.append((index, element))

        @property
        def indices(self):
            return [index for index, _ in self.calls]

        def clear(self):
            self.calls.clear()

    return Recorder()
