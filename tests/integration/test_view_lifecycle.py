"""Lifecycle, traversal and self-check behaviour of ListDataView."""

import weakref

import pytest

from rowflow import (
    ArenaExhaustedError,
    ArgumentTypeError,
    GroupNode,
    InvariantViolation,
    LeafItem,
    ListDataView,
    Observable,
    SuperGroup,
    UnknownGroupError,
    ViewConfig,
    observable_predicate,
)
from tests.test_factories import create_flat_root, create_mixer_tree, find, labels
from tests.utils.memory_utils import assert_cleaned_up, count_instances


@pytest.mark.integration
class TestDestroy:
    def test_destroy_is_idempotent(self, mixer):
        view = ListDataView(mixer, 5)

        view.destroy()
        view.destroy()

        assert view.destroyed

    def test_destroy_releases_every_group_record(self, mixer):
        view = ListDataView(mixer, 5)
        assert view._arena.live == 6

        view.destroy()

        assert view._arena.live == 0
        assert view.groups == {}

    def test_destroy_detaches_from_source(self, recorder, mixer):
        view = ListDataView(mixer, 5)
        view.subscribe_elements(recorder)
        recorder.clear()

        view.destroy()
        mixer.add_child(LeafItem(label="late"))
        find(mixer, "drums").remove_child(find(mixer, "shells"))

        assert recorder.calls == []
        groups = [mixer] + [n for n in mixer.walk() if isinstance(n, GroupNode)]
        assert all(not group._watchers for group in groups)

    def test_destroy_releases_filter_subscriptions(self, mixer):
        hidden = Observable("hidden", frozenset())
        view = ListDataView(
            mixer,
            5,
            filter_function=observable_predicate(
                hidden, lambda node, value: node.label not in value
            ),
        )
        assert hidden.has_subscribers()

        view.destroy()

        assert not hidden.has_subscribers()

    def test_destroyed_view_is_garbage_collected(self):
        root = create_mixer_tree()
        view = ListDataView(root, 5)
        view.collapse_group(find(root, "drums"), True)
        view_ref = weakref.ref(view)
        arena = view._arena

        view.destroy()
        del view

        assert_cleaned_up(view_ref, "destroyed view")
        assert count_instances(SuperGroup, where=lambda sg: sg._arena is arena) == 0


@pytest.mark.integration
class TestGroupLimit:
    def test_max_groups_bounds_materialized_groups(self):
        root = GroupNode(label="root")
        view = ListDataView(root, 5, config=ViewConfig(max_groups=3))
        root.add_child(GroupNode(label="g1"))
        root.add_child(GroupNode(label="g2"))

        with pytest.raises(ArenaExhaustedError, match="limit of 3 groups"):
            root.add_child(GroupNode(label="g3"))

        view.destroy()

    def test_collapsing_frees_records_for_reuse(self):
        root = GroupNode(label="root")
        outer = root.add_child(GroupNode(label="outer"))
        view = ListDataView(root, 5, config=ViewConfig(max_groups=3))
        outer.add_child(GroupNode(label="inner"))

        view.collapse_group(outer, True)
        root.add_child(GroupNode(label="sibling"))

        assert labels(view) == ["outer", "sibling"]
        assert view._arena.live == 3
        view.destroy()


@pytest.mark.integration
class TestTraversal:
    def test_iteration_matches_for_each(self, view_factory, mixer):
        view = view_factory(mixer)
        walked = []

        view.for_each(walked.append)

        assert walked == list(view)
        assert len(view) == 10

    def test_tree_position_marks_last_children(self, view_factory, mixer):
        view = view_factory(mixer)

        assert view.tree_position(find(mixer, "bass")) == (False,)
        assert view.tree_position(find(mixer, "lead")) == (True, True)
        assert view.tree_position(find(mixer, "kick")) == (False, True, False)
        assert view.tree_position(find(mixer, "snare")) == (False, True, True)

    def test_tree_position_follows_filtering(self, view_factory, mixer):
        view = view_factory(
            mixer, 10, filter_function=lambda node, cb: cb(node.label != "vocals")
        )

        assert view.tree_position(find(mixer, "drums")) == (True,)

    def test_tree_position_of_hidden_node(self, view_factory, mixer):
        view = view_factory(mixer)
        view.collapse_group(find(mixer, "bass"), True)

        with pytest.raises(UnknownGroupError):
            view.tree_position(find(mixer, "di"))
        with pytest.raises(ArgumentTypeError):
            view.tree_position("di")

    def test_repr_reports_window(self, view_factory):
        root, _ = create_flat_root(4)
        view = view_factory(root, 2)

        assert repr(view) == "ListDataView(size=4, start_index=0, amount=2)"


@pytest.mark.integration
class TestCheck:
    """Corrupted views are left undestroyed: teardown would trip the same checks."""

    def test_consistent_view_passes(self, view_factory, mixer):
        view = view_factory(mixer)

        view.check()

    def test_detects_length_mismatch(self, mixer):
        view = ListDataView(mixer, 10)
        view.list.append(LeafItem(label="stray"))

        with pytest.raises(InvariantViolation, match="root size"):
            view.check()

    def test_detects_foreign_entries(self, mixer):
        view = ListDataView(mixer, 10)
        view.list[3] = "drums"

        with pytest.raises(InvariantViolation, match="unexpected node str"):
            view.check()

    def test_detects_swapped_entries(self, mixer):
        view = ListDataView(mixer, 10)
        view.list[1], view.list[2] = view.list[2], view.list[1]

        with pytest.raises(InvariantViolation, match="expected at position 1"):
            view.check()

    def test_detects_stale_group_index(self, mixer):
        view = ListDataView(mixer, 10)
        view.get_super_group(find(mixer, "vocals")).index = 3

        with pytest.raises(InvariantViolation, match="records index 3"):
            view.check()

    def test_violation_is_logged(self, caplog, mixer):
        view = ListDataView(mixer, 10)
        view.list.pop()

        with pytest.raises(InvariantViolation):
            view.check()

        assert any(record.levelname == "ERROR" for record in caplog.records)
