from image_crop_tool.scheduler import ImmediateScheduler, ScheduledCall


def test_scheduled_call_runs_once():
    calls = []
    call = ScheduledCall(calls.append, (1,))
    call.run()
    call.run()
    assert calls == [1]
    assert call.done


def test_cancelled_call_never_runs():
    calls = []
    call = ScheduledCall(calls.append, (1,))
    call.cancel()
    call.run()
    assert calls == []


def test_frames_wait_for_flush():
    scheduler = ImmediateScheduler()
    calls = []
    scheduler.schedule_on_next_frame(lambda: calls.append("a"))
    cancelled = scheduler.schedule_on_next_frame(lambda: calls.append("b"))
    cancelled.cancel()

    assert scheduler.pending == 1
    scheduler.flush()
    assert calls == ["a"]
    assert scheduler.pending == 0


def test_debounce_keeps_last_call():
    scheduler = ImmediateScheduler()
    calls = []
    debounced = scheduler.debounce(calls.append, 100)
    other = scheduler.debounce(calls.append, 50)

    for i in range(5):
        debounced(i)
    other("x")

    assert scheduler.pending == 2
    scheduler.flush()
    assert calls == [4, "x"]
    assert scheduler.debounce_delays == [100, 50]


def test_auto_flush_runs_immediately():
    scheduler = ImmediateScheduler(auto_flush=True)
    calls = []
    scheduler.schedule_on_next_frame(lambda: calls.append("frame"))
    scheduler.debounce(calls.append, 100)("resize")
    assert calls == ["frame", "resize"]
    assert scheduler.pending == 0
