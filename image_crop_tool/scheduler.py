"""
Deferred-call scheduling for pointer and resize handling.

The editor never reacts to raw input synchronously: pointer moves are
coalesced to one update per display frame and container resizes are
debounced.  Both go through a ``Scheduler`` so the geometry code can run
under a real event loop (``crop_widget.QtScheduler``) or be driven by hand
in tests (``ImmediateScheduler``).

This module is Qt-free.
"""


class ScheduledCall:
    """Handle for a deferred callable; ``cancel()`` prevents it from running."""

    def __init__(self, fn, args=(), kwargs=None):
        self._fn = fn
        self._args = args
        self._kwargs = kwargs or {}
        self.cancelled = False
        self.done = False

    def cancel(self):
        self.cancelled = True

    def run(self):
        if self.cancelled or self.done:
            return
        self.done = True
        self._fn(*self._args, **self._kwargs)


class Scheduler:
    """Interface for frame coalescing and debouncing."""

    def schedule_on_next_frame(self, fn) -> ScheduledCall:
        raise NotImplementedError

    def debounce(self, fn, ms: int):
        """Return a callable that runs *fn* once calls stop for *ms* milliseconds."""
        raise NotImplementedError


class ImmediateScheduler(Scheduler):
    """Synchronous scheduler for tests and headless use.

    Frame callbacks and debounced calls are queued until ``flush()``; with
    ``auto_flush=True`` they run as soon as they are scheduled.  For each
    debounced callable only the most recent invocation survives a flush.
    """

    def __init__(self, auto_flush: bool = False):
        self.auto_flush = auto_flush
        self._frames: list[ScheduledCall] = []
        self._debounced: dict[int, ScheduledCall] = {}
        self.debounce_delays: list[int] = []

    @property
    def pending(self) -> int:
        live = [c for c in self._frames if not c.cancelled]
        return len(live) + len(self._debounced)

    def schedule_on_next_frame(self, fn) -> ScheduledCall:
        call = ScheduledCall(fn)
        if self.auto_flush:
            call.run()
        else:
            self._frames.append(call)
        return call

    def debounce(self, fn, ms: int):
        key = len(self.debounce_delays)
        self.debounce_delays.append(ms)

        def trigger(*args, **kwargs):
            call = ScheduledCall(fn, args, kwargs)
            if self.auto_flush:
                call.run()
                return
            previous = self._debounced.get(key)
            if previous is not None:
                previous.cancel()
            self._debounced[key] = call

        return trigger

    def flush(self):
        frames, self._frames = self._frames, []
        for call in frames:
            call.run()
        debounced, self._debounced = self._debounced, {}
        for call in debounced.values():
            call.run()
