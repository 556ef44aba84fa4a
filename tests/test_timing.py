from timing import Scheduler


def test_timer_fires_once_at_deadline(scheduler, clock):
    fired = []
    t = scheduler.timer(lambda: fired.append(clock()), "t")
    t.start(3)

    clock.advance(2.5)
    assert scheduler.fire_due() == 0
    clock.advance(0.5)
    assert scheduler.fire_due() == 1
    assert fired == [1003.0]
    assert not t.pending
    clock.advance(10)
    assert scheduler.fire_due() == 0


def test_restart_moves_the_deadline(scheduler, clock):
    fired = []
    t = scheduler.timer(lambda: fired.append(True))
    t.start(3)
    clock.advance(2)
    t.start(3)
    clock.advance(2)
    scheduler.fire_due()
    assert fired == []
    clock.advance(1)
    scheduler.fire_due()
    assert fired == [True]


def test_cancel(scheduler, clock):
    fired = []
    t = scheduler.timer(lambda: fired.append(True))
    t.start(1)
    t.cancel()
    clock.advance(5)
    scheduler.fire_due()
    assert fired == []


def test_due_timers_fire_earliest_first(scheduler, clock):
    order = []
    a = scheduler.timer(lambda: order.append("a"))
    b = scheduler.timer(lambda: order.append("b"))
    b.start(1)
    a.start(2)
    clock.advance(5)
    scheduler.fire_due()
    assert order == ["b", "a"]


def test_callback_can_cancel_a_later_timer(scheduler, clock):
    order = []
    b = scheduler.timer(lambda: order.append("b"))
    a = scheduler.timer(lambda: (order.append("a"), b.cancel()))
    a.start(1)
    b.start(2)
    clock.advance(5)
    scheduler.fire_due()
    assert order == ["a"]


def test_closed_scheduler_is_inert(clock):
    fired = []
    scheduler = Scheduler(clock)
    t = scheduler.timer(lambda: fired.append(True))
    t.start(1)
    scheduler.close()

    clock.advance(5)
    assert scheduler.fire_due() == 0
    t.fire()                 # a leaked handle firing late
    t.start(1)
    assert not t.pending
    assert fired == []
