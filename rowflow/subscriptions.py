"""
rowflow Subscriptions - Composable Disposers
============================================

Every subscribe-like call in rowflow returns a *disposer*: a zero-argument
callable that cancels what the call set up. Disposers form a monoid
(Sub, ⊕, ε):

- ε: ``init_subscriptions()`` - the empty composite
- ⊕: ``add_subscription(sub, disposer)`` - append a disposer
- run: ``unsubscribe_subscriptions(sub)`` - invoke everything, get ε back

A ``CompositeSubscription`` is itself a disposer, so composites nest freely.
Invoking one twice is harmless: the contained disposers are detached before
they run, so each runs at most once.

Example:
    sub = init_subscriptions()
    sub = add_subscription(sub, obs.subscribe(on_change))
    sub = add_subscription(sub, view.subscribe_size(on_size))
    ...
    sub = unsubscribe_subscriptions(sub)
"""

from typing import Callable, List, Optional

Disposer = Callable[[], None]


def noop() -> None:
    """Disposer that does nothing."""


class CompositeSubscription:
    """
    Ordered collection of disposers, run in insertion order.

    Insertion order matters to the view: a materialized child registers the
    subscription to its own children before its removal handler, so a
    subtree always unwinds bottom-up.
    """

    __slots__ = ("_disposers",)

    def __init__(self, *disposers: Optional[Disposer]):
        self._disposers: List[Disposer] = []
        for disposer in disposers:
            self.add(disposer)

    def add(self, disposer: Optional[Disposer]) -> "CompositeSubscription":
        if disposer is not None and disposer is not noop:
            self._disposers.append(disposer)
        return self

    def unsubscribe(self) -> None:
        disposers, self._disposers = self._disposers, []
        for disposer in disposers:
            disposer()

    __call__ = unsubscribe

    def __len__(self) -> int:
        return len(self._disposers)

    def __repr__(self) -> str:
        return f"CompositeSubscription({len(self._disposers)} disposers)"


def init_subscriptions() -> CompositeSubscription:
    return CompositeSubscription()


def add_subscription(
    sub: Optional[CompositeSubscription], disposer: Optional[Disposer]
) -> CompositeSubscription:
    if sub is None:
        sub = CompositeSubscription()
    return sub.add(disposer)


def unsubscribe_subscriptions(
    sub: Optional[CompositeSubscription],
) -> CompositeSubscription:
    if sub is not None:
        sub.unsubscribe()
    return CompositeSubscription()
