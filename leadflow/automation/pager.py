"""Batch window calculation for lead list pagination."""

from leadflow import config
from leadflow.automation.config import RunConfig
from leadflow.models import RunState, Window


def next_window(state: RunState, run_config: RunConfig, page_cap: int = config.PAGE_CAP) -> Window:
    """
    Compute the next page request.

    The size is whatever work remains, capped at what the directory will
    return in one page. The loop must stop before no work remains.
    """
    size = min(page_cap, run_config.total_leads - state.processed)
    if size <= 0:
        raise ValueError(
            f"No work remaining ({state.processed}/{run_config.total_leads} processed)"
        )
    return Window(offset=state.cursor, size=size)
