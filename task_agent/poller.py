import threading
import time


def run_forever(tick, interval: float, stop_event: threading.Event | None = None,
                max_cycles: int | None = None) -> int:
    """Call ``tick()`` then wait ``interval`` seconds, until stopped.

    The wait starts after the tick returns, so the cycle period is at least
    ``interval`` plus the tick's own run time. A stop request is only honoured
    between ticks. Returns the number of completed cycles.
    """
    if stop_event is None:
        stop_event = threading.Event()
    cycles = 0
    while not stop_event.is_set():
        started = time.monotonic()
        try:
            tick()
        except Exception as e:
            print(f"[loop] tick error: {e}")
            print()
        cycles += 1
        if max_cycles is not None and cycles >= max_cycles:
            break
        elapsed = time.monotonic() - started
        if elapsed > interval:
            print(f"[loop] cycle took {elapsed:.1f}s (interval {interval}s)")
        if stop_event.wait(interval):
            break
    return cycles
