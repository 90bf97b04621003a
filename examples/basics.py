from rowflow import GroupNode, LeafItem, ListDataView, Observable, build_tree
from rowflow import observable_predicate

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Projecting a hierarchy")
print("-" * 100)
print()

# Any nesting of dicts (groups) and lists (leaves) can be turned into a live hierarchy.
session = build_tree(
    {
        "drums": {
            "overheads": ["left", "right"],
            "shells": ["kick", "snare"],
        },
        "bass": ["di", "mic"],
        "vocals": ["lead", "double"],
    },
    label="session",
)

# The view flattens it depth-first. Only 5 rows are observed at a time.
view = ListDataView(session, amount=5)


def show_row(index, element):
    if element is None:
        print(f"  row {index}: -")
        return
    indent = "  " * view.get_depth(element)
    print(f"  row {index}: {indent}{element.label}")


unsubscribe = view.subscribe_elements(show_row)
view.subscribe_size(lambda size: print(f"  size: {size}"))

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Changing the source")
print("-" * 100)
print()

# Adding a leaf inside the window repaints the rows from the insertion point on.
drums = session.children[0]
shells = drums.children[1]
shells.add_child(LeafItem(label="tom"))

# Adding a whole group works the same way; its children follow it into the list.
fx = session.add_child(GroupNode(label="fx"))
fx.add_child(LeafItem(label="reverb"))

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Collapsing and scrolling")
print("-" * 100)
print()

# Collapsing hides the descendants but keeps the group row itself.
view.collapse_group(drums, True)
print(f"  visible: {[node.label for node in view]}")

# Scrolling only reports the rows that became visible.
view.scroll_start_index(2)

view.collapse_group(drums, False)
print(f"  visible: {[node.label for node in view]}")

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Filtering")
print("-" * 100)
print()

# A filter can follow an observable: rows appear and disappear as the query changes.
query = Observable("query", "")
matches = observable_predicate(
    query, lambda node, q: node.is_group or q in node.label
)

filtered = ListDataView(session, amount=20, filter_function=matches)
query.set("l")
print(f"  matching 'l': {[node.label for node in filtered]}")
query.set("")
print(f"  everything:   {[node.label for node in filtered]}")

filtered.destroy()
unsubscribe()
view.destroy()
