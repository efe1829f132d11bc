import threading

from sage_core.infrastructure.scheduling.main_loop import InlineScheduler, MainLoopScheduler


def test_inline_scheduler_runs_immediately():
    calls = []
    InlineScheduler().schedule(lambda: calls.append(1))
    assert calls == [1]


def test_main_loop_preserves_order_across_threads():
    scheduler = MainLoopScheduler()
    calls = []

    def producer():
        for i in range(50):
            scheduler.schedule(lambda i=i: calls.append(i))

    t = threading.Thread(target=producer)
    t.start()
    t.join()
    assert calls == []
    assert scheduler.pending() == 50
    assert scheduler.run_pending() == 50
    assert calls == list(range(50))


def test_run_until_waits_for_predicate():
    scheduler = MainLoopScheduler()
    done = []
    timer = threading.Timer(0.05, lambda: scheduler.schedule(lambda: done.append(True)))
    timer.start()
    assert scheduler.run_until(lambda: bool(done), timeout=2)
    assert done == [True]


def test_run_until_times_out():
    scheduler = MainLoopScheduler()
    assert scheduler.run_until(lambda: False, timeout=0.05) is False
