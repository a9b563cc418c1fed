"""
Records that flow through an automation run.

Candidates and pages come from the lead directory and are read-only.
RunState is owned by the runner for the lifetime of a run and is
finalized into a RunResult when the loop ends.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

_PERSON_ID_RE = re.compile(r"urn:li:fs_salesProfile:\(([^,]+),")

# Element fields the oracle gets to see
PROFILE_FIELDS = (
    'firstName',
    'lastName',
    'headline',
    'summary',
    'geoRegion',
    'degree',
    'currentPositions',
    'spotlightBadges',
    'seniorityV2s',
)

OUTCOME_COMPLETED = 'completed'
OUTCOME_ABORTED = 'aborted'
OUTCOME_CANCELLED = 'cancelled'
OUTCOME_INVALID = 'invalid'


def extract_person_id(entity_urn: str) -> str:
    """Pull the member id out of a sales profile URN ('' if it doesn't match)."""
    match = _PERSON_ID_RE.search(entity_urn or "")
    return match.group(1) if match else ""


@dataclass(frozen=True)
class Candidate:
    """One lead from a lead list page."""
    person_id: str
    entity_urn: str
    full_name: str = ""
    pending_invitation: bool = False
    profile: dict = field(default_factory=dict)

    @classmethod
    def from_element(cls, element: dict) -> 'Candidate':
        entity_urn = element.get('entityUrn', '') or ''
        person_id = element.get('personId') or extract_person_id(entity_urn)
        profile = {k: element[k] for k in PROFILE_FIELDS if k in element}
        return cls(
            person_id=person_id,
            entity_urn=entity_urn,
            full_name=element.get('fullName', '') or '',
            pending_invitation=bool(element.get('pendingInvitation', False)),
            profile=profile,
        )

    @property
    def contact_ref(self) -> str:
        """Reference the contact action expects (bare member id)."""
        return self.person_id or extract_person_id(self.entity_urn)

    def prompt_data(self) -> dict:
        """Profile attributes in the shape the qualification prompt uses."""
        return {
            'fullName': self.full_name,
            'currentPositions': self.profile.get('currentPositions', []),
            'connectionDegree': self.profile.get('degree'),
            'spotlightBadges': self.profile.get('spotlightBadges', []),
            'summary': self.profile.get('summary'),
            'headline': self.profile.get('headline'),
            'seniorityV2s': self.profile.get('seniorityV2s', []),
        }


@dataclass
class Page:
    """One batch of candidates as returned by the directory."""
    candidates: list[Candidate] = field(default_factory=list)
    start: int = 0
    total: Optional[int] = None

    def __len__(self) -> int:
        return len(self.candidates)

    def is_short(self, requested: int) -> bool:
        """A page smaller than requested means upstream has no more data."""
        return len(self.candidates) < requested


@dataclass(frozen=True)
class QualificationResult:
    qualified: bool
    message: str = ""


@dataclass(frozen=True)
class Window:
    """Offset and size of the next page request."""
    offset: int
    size: int


@dataclass
class RunState:
    """Counters and cursor of a run in progress."""
    cursor: int = 0
    processed: int = 0
    sent: int = 0
    skipped: int = 0
    unqualified: int = 0
    pages_fetched: int = 0
    errors: list[dict] = field(default_factory=list)

    def record_error(self, person_id: str, error: str) -> None:
        self.errors.append({'personId': person_id, 'error': error})


@dataclass(frozen=True)
class RunOutcome:
    """How the loop ended."""
    status: str = OUTCOME_COMPLETED
    reason: str = ""

    @classmethod
    def completed(cls) -> 'RunOutcome':
        return cls(OUTCOME_COMPLETED)

    @classmethod
    def aborted(cls, reason: str) -> 'RunOutcome':
        return cls(OUTCOME_ABORTED, reason)

    @classmethod
    def cancelled(cls) -> 'RunOutcome':
        return cls(OUTCOME_CANCELLED, "Cancelled")


@dataclass
class RunResult:
    """Final report of a run."""
    success: bool
    message: str
    processed: int = 0
    sent: int = 0
    skipped: int = 0
    unqualified: int = 0
    errors: list[dict] = field(default_factory=list)
    outcome: str = OUTCOME_COMPLETED
    abort_reason: str = ""
    cursor: int = 0

    @classmethod
    def from_state(cls, state: RunState, outcome: RunOutcome, message: str) -> 'RunResult':
        return cls(
            success=True,
            message=message,
            processed=state.processed,
            sent=state.sent,
            skipped=state.skipped,
            unqualified=state.unqualified,
            errors=list(state.errors),
            outcome=outcome.status,
            abort_reason=outcome.reason if outcome.status == OUTCOME_ABORTED else "",
            cursor=state.cursor,
        )

    @classmethod
    def failure(cls, message: str, error: str) -> 'RunResult':
        """Result for a run that never started."""
        return cls(
            success=False,
            message=message,
            errors=[{'personId': '', 'error': error}],
            outcome=OUTCOME_INVALID,
        )

    def to_dict(self) -> dict:
        return {
            'success': self.success,
            'message': self.message,
            'processedLeads': self.processed,
            'sentInvitations': self.sent,
            'skippedLeads': self.skipped,
            'unqualifiedLeads': self.unqualified,
            'errors': list(self.errors),
            'outcome': self.outcome,
            'abortReason': self.abort_reason,
            'cursor': self.cursor,
        }
