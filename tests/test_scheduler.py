from __future__ import annotations

from scheduler import TickScheduler


def test_callbacks_run_in_due_order():
    s = TickScheduler()
    ran = []
    s.schedule(500, lambda: ran.append("b"))
    s.schedule(100, lambda: ran.append("a"))
    s.schedule(500, lambda: ran.append("c"))

    assert s.advance(99) == 0
    assert s.advance(1) == 1
    assert s.advance(400) == 2
    assert ran == ["a", "b", "c"]


def test_cancel_prevents_callback():
    s = TickScheduler()
    ran = []
    handle = s.schedule(10, lambda: ran.append(1))
    assert s.cancel(handle)
    assert not s.cancel(handle)
    s.advance(100)
    assert ran == []


def test_chained_callbacks_within_one_advance():
    s = TickScheduler()
    times = []

    def step():
        times.append(s.now_ms)
        if len(times) < 3:
            s.schedule(500, step)

    s.schedule(100, step)
    s.advance(5000)
    assert times == [100, 600, 1100]
    assert s.now_ms == 5000


def test_cancel_all():
    s = TickScheduler()
    ran = []
    s.schedule(0, lambda: ran.append(1))
    s.schedule(5, lambda: ran.append(2))
    s.cancel_all()
    assert s.pending() == 0
    s.advance(10)
    assert ran == []
