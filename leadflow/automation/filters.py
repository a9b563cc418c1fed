"""
Candidate filtering.

Leads with a pending invitation have already been contacted, so they are
dropped before qualification and counted as skipped.
"""

import logging
from dataclasses import dataclass, field

from leadflow.models import Candidate, Page

logger = logging.getLogger(__name__)


@dataclass
class FilterResult:
    available: list[Candidate] = field(default_factory=list)
    skipped_count: int = 0


def filter_candidates(page: Page) -> FilterResult:
    """Split a page into candidates to process and a count of skipped ones."""
    available = []
    skipped = 0

    for candidate in page.candidates:
        if candidate.pending_invitation:
            skipped += 1
            logger.debug("Skipped: %s - invitation already pending", candidate.full_name)
        else:
            available.append(candidate)

    logger.info(
        "Found %d people, %d available for outreach",
        len(page.candidates), len(available)
    )

    return FilterResult(available=available, skipped_count=skipped)
