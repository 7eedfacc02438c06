import asyncio
from typing import Any, Callable

from ..core.ports import Scheduler


class AsyncioScheduler(Scheduler):
    """Timers on an asyncio loop; handles expose ``cancel()``."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self.loop = loop

    def call_later(self, delay: float, callback: Callable[[], Any]) -> asyncio.TimerHandle:
        loop = self.loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)
