"""
Deferred callbacks for SciCal
Single-shot timers used to recover from the error display
"""
import threading


class ThreadingScheduler:
    """Runs callbacks on a background threading.Timer.

    Suitable for headless use. Callbacks fire on the timer thread, so the
    editor takes its own lock around recovery. GUI front-ends should pass a scheduler that
    fires on their own event loop instead (see gui.TkScheduler).
    """

    def call_later(self, delay, callback):
        """Schedule `callback` once after `delay` seconds; returns a handle with cancel()"""
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer
