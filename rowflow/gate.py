"""
rowflow Gates - Predicate-Driven Activation
===========================================

A gate watches a dynamic boolean predicate for one node and keeps a
continuation running exactly while the predicate holds:

    predicate:   F  T  T  F  T
    continuation    ^start   ^start
                          ^dispose

Predicates are *subscription sources*, not plain functions:

    subscribe_predicate(node, callback) -> disposer

The source must call ``callback`` with the current value before returning
and again whenever the value changes. Repeated reports of the same value are
ignored by the gate.

Gates nest. The view puts every incoming child behind two of them, the
collapse state of its parent and the caller's filter:

    nest_gates(child, [collapse_predicate, filter_predicate], materialize)
"""

from typing import Any, Callable, Optional, Sequence

from .observable import Observable
from .subscriptions import Disposer, noop

PredicateCallback = Callable[[bool], None]
PredicateSource = Callable[[Any, PredicateCallback], Optional[Disposer]]
Continuation = Callable[[Any], Optional[Disposer]]


class ContinuationGate:
    """
    Explicit gate state: whether the continuation is active and the disposer
    it returned.

    Teardown order is fixed: the predicate subscription is cancelled first so
    that no late predicate report can restart the continuation, then the
    inner disposer runs.

    The predicate may change while the continuation is still running, e.g.
    when a subscriber notified about the new row collapses its parent. The
    outcome is settled once the continuation returns: its disposer is kept
    only if the gate is still open and not disposed, otherwise it runs at
    once. A reopening reported meanwhile does not start a second run.
    """

    __slots__ = (
        "node",
        "active",
        "_continuation",
        "_inner",
        "_predicate_subscription",
        "_disposed",
        "_running",
    )

    def __init__(
        self,
        node: Any,
        subscribe_predicate: PredicateSource,
        continuation: Continuation,
    ):
        self.node = node
        self.active = False
        self._continuation = continuation
        self._inner: Optional[Disposer] = None
        self._predicate_subscription: Optional[Disposer] = None
        self._disposed = False
        self._running = False

        # The source reports the current value synchronously, so the
        # continuation may already be running when this returns.
        subscription = subscribe_predicate(node, self._on_value)
        if self._disposed:
            if subscription is not None:
                subscription()
        else:
            self._predicate_subscription = subscription

    def _on_value(self, value: bool) -> None:
        if self._disposed:
            return

        value = bool(value)
        if value == self.active:
            return

        self.active = value

        if value:
            if self._running:
                return
            self._running = True
            try:
                inner = self._continuation(self.node)
            finally:
                self._running = False
            if self._disposed or not self.active:
                if inner is not None:
                    inner()
            else:
                self._inner = inner
        else:
            inner, self._inner = self._inner, None
            if inner is not None:
                inner()

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True

        subscription, self._predicate_subscription = self._predicate_subscription, None
        if subscription is not None:
            subscription()

        inner, self._inner = self._inner, None
        self.active = False
        if inner is not None:
            inner()

    __call__ = dispose

    @property
    def disposed(self) -> bool:
        return self._disposed

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else ("active" if self.active else "idle")
        return f"ContinuationGate({self.node!r}, {state})"


def call_continuation_if(
    node: Any, subscribe_predicate: PredicateSource, continuation: Continuation
) -> ContinuationGate:
    """Run ``continuation(node)`` while ``subscribe_predicate`` reports True."""
    return ContinuationGate(node, subscribe_predicate, continuation)


def nest_gates(
    node: Any, predicates: Sequence[PredicateSource], continuation: Continuation
) -> Disposer:
    """
    Compose gates by nesting, outermost predicate first.

    The inner predicates are only subscribed while every outer one holds.
    """
    if not predicates:
        inner = continuation(node)
        return inner if inner is not None else noop

    outer, rest = predicates[0], predicates[1:]

    if not rest:
        return call_continuation_if(node, outer, continuation)

    return call_continuation_if(
        node, outer, lambda n: nest_gates(n, rest, continuation)
    )


# ============================================================================
# PREDICATE SOURCES
# ============================================================================


def allow_all(node: Any, callback: PredicateCallback) -> Disposer:
    """Predicate source that admits every node."""
    callback(True)
    return noop


def static_predicate(predicate: Callable[[Any], bool]) -> PredicateSource:
    """Lift a plain ``node -> bool`` function into a predicate source."""

    def subscribe(node, callback):
        callback(bool(predicate(node)))
        return noop

    return subscribe


def observable_predicate(
    source: Observable, predicate: Callable[[Any, Any], bool]
) -> PredicateSource:
    """
    Predicate source re-evaluated whenever ``source`` changes.

    ``predicate(node, value)`` is called with the current value of ``source``
    on subscription and with every later value.

    Example:
        query = Observable("query", "")
        by_label = observable_predicate(
            query, lambda node, q: q in node.properties.get("label", "")
        )
        view = ListDataView(root, 20, filter_function=by_label)
        query.set("kick")   # rows not matching disappear
    """

    def subscribe(node, callback):
        return source.subscribe(
            lambda value: callback(bool(predicate(node, value))),
            call_immediately=True,
        )

    return subscribe
