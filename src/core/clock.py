import asyncio
import time


class Clock:
    """
    Time source for probe bookkeeping: monotonic milliseconds for durations and
    the running event loop for deadline scheduling.
    """

    def now_ms(self) -> float:
        return time.monotonic() * 1000.0

    def elapsed_ms(self, started_at: float) -> int:
        return max(0, int(round(self.now_ms() - started_at)))

    def call_later(self, delay_seconds: float, callback, *args) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(delay_seconds, callback, *args)
