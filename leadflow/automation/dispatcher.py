"""
Contact actions for qualified candidates.

Handles:
- Sending the connection request with the composed message
- Dry-run mode
- Optional removal of unqualified candidates from the lead list
"""

import logging
from typing import Callable, Optional

from leadflow.models import Candidate
from leadflow.directory import DirectoryError

logger = logging.getLogger(__name__)


class DispatchResult:
    """Result of a contact attempt."""
    def __init__(
        self,
        success: bool,
        message: str = "",
        error: Optional[str] = None,
        status_code: Optional[int] = None,
        ack: Optional[dict] = None,
    ):
        self.success = success
        self.message = message
        self.error = error
        self.status_code = status_code
        self.ack = ack

    def __repr__(self) -> str:
        if self.success:
            return f"<DispatchResult ok: {self.message}>"
        return f"<DispatchResult failed ({self.status_code}): {self.error}>"


def dispatch(directory, candidate: Candidate, message: str, dry_run: bool = False) -> DispatchResult:
    """
    Send a connection request to one candidate.

    Never raises; failures come back as an unsuccessful DispatchResult.
    """
    if dry_run:
        logger.info("[DRY RUN] Would send invitation to %s", candidate.full_name)
        return DispatchResult(
            success=True,
            message=f"[DRY RUN] Would send to {candidate.full_name}",
        )

    try:
        ack = directory.contact(candidate.contact_ref, message)
    except DirectoryError as e:
        error = e.describe()
        logger.error("Failed to send invitation to %s: %s", candidate.full_name, error)
        if e.is_rate_limited:
            logger.warning("Directory is rate limiting contact requests")
        return DispatchResult(
            success=False,
            message="Directory error",
            error=error,
            status_code=e.status_code,
        )
    except Exception as e:
        logger.error("Unexpected error sending invitation to %s: %s", candidate.full_name, e)
        return DispatchResult(
            success=False,
            message="Unexpected error",
            error=str(e) or "Unknown error",
        )

    logger.info("Sent invitation to %s", candidate.full_name)
    return DispatchResult(
        success=True,
        message=f"Sent to {candidate.full_name}",
        ack=ack,
    )


def make_removal_hook(directory, lead_list_id: str) -> Callable[[Candidate], bool]:
    """
    Build a hook that removes an unqualified candidate from the lead list.

    The hook returns True on success; failures are logged and swallowed so
    a removal problem never affects the run's counters.
    """
    def remove_unqualified(candidate: Candidate) -> bool:
        try:
            directory.remove(lead_list_id, candidate.entity_urn)
        except DirectoryError as e:
            logger.error(
                "Failed to remove %s from lead list: %s",
                candidate.full_name, e.describe()
            )
            return False
        logger.info("Removed %s from lead list", candidate.full_name)
        return True

    return remove_unqualified
