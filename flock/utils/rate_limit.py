# flock/utils/rate_limit.py

import time
import random
import logging
from typing import Callable, Dict, Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

class HostBudget:
    __slots__ = ('count', 'last')

    def __init__(self):
        self.count = 0
        self.last: Optional[float] = None

class RateLimiter:
    """
    Spaces out requests per provider host.

    Each host gets a randomized gap between calls and, every burst_size
    calls, a longer pause. ISBNdb, OpenLibrary and Google Books are paced
    independently, so a slow provider never throttles the others.
    """

    def __init__(self,
                 min_delay: float = 0.2,
                 max_delay: float = 0.5,
                 burst_size: int = 50,
                 min_burst_delay: float = 2.0,
                 max_burst_delay: float = 4.0,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self.min_delay = min_delay
        self.max_delay = max_delay
        self.burst_size = burst_size
        self.min_burst_delay = min_burst_delay
        self.max_burst_delay = max_burst_delay
        self.clock = clock
        self.sleep = sleep
        self.hosts: Dict[str, HostBudget] = {}

    def wait(self, url: str) -> float:
        """Block until a request to url's host is allowed. Returns seconds slept."""
        host = urlparse(url).netloc or url
        budget = self.hosts.setdefault(host, HostBudget())

        slept = 0.0
        if budget.last is not None:
            if budget.count >= self.burst_size:
                slept = random.uniform(self.min_burst_delay, self.max_burst_delay)
                logger.info(f"{budget.count} requests to {host}, pausing {slept:.1f}s")
                budget.count = 0
            else:
                gap = random.uniform(self.min_delay, self.max_delay)
                slept = max(0.0, gap - (self.clock() - budget.last))
            if slept:
                self.sleep(slept)

        budget.count += 1
        budget.last = self.clock()
        return slept
