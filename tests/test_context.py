"""Tests for the derivable cancellation context."""

import threading

from cmdgroup.context import Context
from cmdgroup.errors import Cancelled


def test_new_context_is_active():
    ctx = Context()
    assert not ctx.cancelled()
    assert ctx.cause is None
    assert ctx.wait(0.01) is False


def test_cancel_records_first_cause():
    ctx = Context()
    first = RuntimeError("first")

    assert ctx.cancel(first) is True
    assert ctx.cancel(RuntimeError("second")) is False

    assert ctx.cancelled()
    assert ctx.cause is first
    assert ctx.wait(0) is True


def test_default_cause_is_cancelled():
    ctx = Context()
    ctx.cancel()
    assert isinstance(ctx.cause, Cancelled)


def test_cancel_propagates_to_derived():
    root = Context()
    child = root.derive()
    grandchild = child.derive()
    cause = RuntimeError("stop")

    root.cancel(cause)

    assert child.cancelled()
    assert grandchild.cancelled()
    assert grandchild.cause is cause


def test_derived_cancel_does_not_reach_parent():
    root = Context()
    child = root.derive()
    sibling = root.derive()

    child.cancel(RuntimeError("child only"))

    assert not root.cancelled()
    assert not sibling.cancelled()


def test_derive_from_cancelled_parent():
    root = Context()
    cause = RuntimeError("already")
    root.cancel(cause)

    child = root.derive()

    assert child.cancelled()
    assert child.cause is cause


def test_wait_wakes_on_cancel():
    ctx = Context()
    woke = []

    def waiter():
        woke.append(ctx.wait(5))

    thread = threading.Thread(target=waiter)
    thread.start()
    ctx.cancel()
    thread.join(timeout=5)

    assert woke == [True]
