"""
Randomized pacing between outbound actions.

Contact actions are spaced by a random whole number of seconds so the
cadence looks human and stays under upstream throttling. Page fetches get
their own, shorter delay. Both the clock and the random source can be
swapped out so runs are reproducible in tests.
"""

import logging
import random
import time
from typing import Callable, Optional

from leadflow.automation.config import AUTOMATION_CONFIG, RunConfig

logger = logging.getLogger(__name__)


class Pacer:
    """Samples and applies delays. Holds no resources."""

    def __init__(
        self,
        min_delay: int,
        max_delay: int,
        page_delay_range: Optional[tuple[int, int]] = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ):
        if max_delay < min_delay:
            raise ValueError(f"max_delay ({max_delay}) must be >= min_delay ({min_delay})")

        if page_delay_range is None:
            page_delay_range = (
                AUTOMATION_CONFIG['PAGE_DELAY_MIN_SECONDS'],
                AUTOMATION_CONFIG['PAGE_DELAY_MAX_SECONDS'],
            )
        if page_delay_range[1] < page_delay_range[0]:
            raise ValueError(f"Invalid page delay range: {page_delay_range}")

        self.min_delay = min_delay
        self.max_delay = max_delay
        self.page_delay_range = page_delay_range
        self.sleep = sleep
        self.rng = rng or random.Random()

    @classmethod
    def for_run(
        cls,
        run_config: RunConfig,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ) -> 'Pacer':
        return cls(
            run_config.min_delay_seconds,
            run_config.max_delay_seconds,
            sleep=sleep,
            rng=rng,
        )

    def delay_between_actions(self) -> int:
        """Seconds to wait between two contact actions (inclusive range)."""
        return self.rng.randint(self.min_delay, self.max_delay)

    def delay_between_pages(self) -> int:
        """Seconds to wait before fetching the next page."""
        low, high = self.page_delay_range
        return self.rng.randint(low, high)

    def pause_between_actions(self) -> int:
        delay = self.delay_between_actions()
        logger.info("Waiting %d seconds before next request...", delay)
        self.sleep(delay)
        return delay

    def pause_between_pages(self) -> int:
        delay = self.delay_between_pages()
        logger.info("Page completed, waiting %d seconds before next page...", delay)
        self.sleep(delay)
        return delay

    def wait(self, seconds: float) -> None:
        """Fixed wait, used for fetch retry backoff."""
        if seconds > 0:
            logger.debug("Waiting %s seconds", seconds)
            self.sleep(seconds)
