from fetchlib.context import Context, background, with_cancel, with_timeout
from fetchlib.errors import Cancelled, DeadlineExceeded


def test_cancel_propagates_to_children():
    parent, cancel = with_cancel(background())
    child, _ = with_cancel(parent)
    assert not child.done()
    cancel()
    assert isinstance(child.error(), Cancelled)
    late, _ = with_cancel(parent)
    assert late.done()


def test_child_cancel_leaves_parent_running():
    parent = background()
    child, cancel = with_cancel(parent)
    cancel()
    assert child.done()
    assert parent.error() is None


def test_deadline():
    clock = [100.0]
    root = Context(now=lambda: clock[0])
    ctx, _ = with_timeout(root, 5)
    assert ctx.remaining() == 5
    clock[0] += 5
    assert isinstance(ctx.error(), DeadlineExceeded)
    child, _ = with_cancel(ctx)
    assert isinstance(child.error(), DeadlineExceeded)


def test_wait_wakes_on_cancel():
    ctx, cancel = with_cancel()
    assert not ctx.wait(0.01)
    cancel()
    assert ctx.wait(10)


def test_cancelled_child_is_dropped_by_parent():
    parent = background()
    for _ in range(50):
        _, cancel = with_cancel(parent)
        cancel()
    assert parent._children == []
    assert parent.error() is None


def test_cancelled_parent_does_not_keep_late_children():
    parent, cancel = with_cancel(background())
    cancel()
    late, _ = with_cancel(parent)
    assert late.done()
    assert parent._children == []
