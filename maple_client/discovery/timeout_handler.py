"""Fixed discovery window timing.

A discovery session listens for a bounded period measured from the moment
it starts. Received datagrams never extend the window.
"""

import asyncio
import time
from typing import Optional


class DiscoveryWindow:
    """Tracks the listening window of one discovery session."""

    def __init__(self, timeout: float):
        """Initialize the window.

        Args:
            timeout: Window length in seconds. Negative values are treated as 0.
        """
        self.timeout = max(0.0, timeout)
        self._start_time: Optional[float] = None

    @property
    def started(self) -> bool:
        return self._start_time is not None

    @property
    def elapsed(self) -> float:
        """Seconds elapsed since start."""
        if self._start_time is None:
            return 0.0
        return time.monotonic() - self._start_time

    @property
    def remaining(self) -> float:
        """Seconds remaining before the window closes."""
        return max(0.0, self.timeout - self.elapsed)

    @property
    def is_expired(self) -> bool:
        """Whether the window has closed."""
        return self.started and self.elapsed >= self.timeout

    def start(self) -> None:
        """Start the window timer."""
        self._start_time = time.monotonic()

    async def wait(self) -> None:
        """Sleep until the window closes, starting it if needed."""
        if not self.started:
            self.start()
        await asyncio.sleep(self.remaining)
