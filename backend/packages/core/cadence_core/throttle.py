"""
Outbound request throttling.

Feed hosts are small and rate limit aggressively, so every batch loop asks
a ``RequestThrottle`` before it touches the network instead of sleeping
inline.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from urllib.parse import urlparse

from cadence_core import get_logger

logger = get_logger(__name__)


@dataclass
class ThrottleConfig:
    """Throttle policy."""

    min_interval_seconds: float = 0.2
    slow_hosts: tuple[str, ...] = ()
    slow_host_delay_seconds: float = 0.5


class RequestThrottle:
    """
    Minimum-interval gate between outbound requests.

    ``wait(url)`` returns once at least ``min_interval_seconds`` have passed
    since the previous call returned. Requests to a slow host (or any of its
    subdomains) get an extra fixed delay first.

    Args:
        config: Throttle policy.
        clock: Monotonic time source.
        sleep: Awaitable sleep, replaceable in tests.
    """

    def __init__(
        self,
        config: ThrottleConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config or ThrottleConfig()
        self._clock = clock
        self._sleep = sleep
        self._last_request: float | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        min_interval_seconds: float,
        slow_hosts: Iterable[str] = (),
        slow_host_delay_seconds: float = 0.5,
    ) -> "RequestThrottle":
        return cls(
            ThrottleConfig(
                min_interval_seconds=min_interval_seconds,
                slow_hosts=tuple(host.lower() for host in slow_hosts),
                slow_host_delay_seconds=slow_host_delay_seconds,
            )
        )

    def is_slow_host(self, url: str) -> bool:
        host = (urlparse(url).hostname or "").lower()
        return any(host == slow or host.endswith(f".{slow}") for slow in self.config.slow_hosts)

    def host_delay(self, url: str | None) -> float:
        """Fixed pre-request delay for ``url``'s host, zero for normal hosts."""
        if url and self.is_slow_host(url):
            return self.config.slow_host_delay_seconds
        return 0.0

    async def wait(self, url: str | None = None) -> float:
        """
        Block until the next request may go out.

        Args:
            url: Target URL, used for the slow-host delay.

        Returns:
            Total seconds slept.
        """
        async with self._lock:
            slept = 0.0
            if self._last_request is not None:
                remaining = self.config.min_interval_seconds - (self._clock() - self._last_request)
                if remaining > 0:
                    await self._sleep(remaining)
                    slept += remaining

            delay = self.host_delay(url)
            if delay > 0:
                logger.debug("Delaying request to slow host", extra={"url": url, "delay": delay})
                await self._sleep(delay)
                slept += delay

            self._last_request = self._clock()
            return slept

    def reset(self) -> None:
        self._last_request = None
