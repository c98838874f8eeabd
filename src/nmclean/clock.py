"""Tick clock for the UI loop."""

import threading
import time
from typing import Callable, Optional

from loguru import logger

from nmclean.events import ChannelClosed, Event, EventChannel, Tick

InputPoller = Callable[[float], Optional[Event]]


class Clock:
    """
    Emit a Tick every ``tick_rate`` seconds on its own thread.

    If ``poll_input`` is given it is called with the time left until the
    next tick and may return a terminal event (key, resize) to forward, so
    input and ticks share one event stream. Without a poller the thread
    just waits for the next tick.
    """

    def __init__(
        self,
        channel: EventChannel,
        tick_rate: float = 0.25,
        poll_input: InputPoller | None = None,
    ):
        self.channel = channel
        self.tick_rate = tick_rate
        self.poll_input = poll_input
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> "Clock":
        self._thread = threading.Thread(target=self.run, name="nmclean-clock", daemon=True)
        self._thread.start()
        return self

    def stop(self) -> None:
        self._stop.set()

    def run(self) -> None:
        last_tick = time.monotonic()
        try:
            while not self._stop.is_set():
                timeout = max(0.0, self.tick_rate - (time.monotonic() - last_tick))

                if self.poll_input is not None:
                    event = self.poll_input(timeout)
                    if event is not None:
                        self.channel.send(event)
                else:
                    self._stop.wait(timeout)

                if time.monotonic() - last_tick >= self.tick_rate:
                    self.channel.send(Tick())
                    last_tick = time.monotonic()
        except ChannelClosed:
            logger.debug("Clock stopped: channel closed")
