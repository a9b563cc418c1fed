"""
Qualification of candidates for outreach.

One oracle call per candidate decides whether to contact them and returns
the message to send. Whatever the oracle hands back is normalized here,
and any failure leaves this module as a QualificationError.
"""

import logging
from collections.abc import Mapping

from leadflow.automation.config import RunConfig
from leadflow.automation.errors import QualificationError
from leadflow.models import Candidate, QualificationResult

logger = logging.getLogger(__name__)

_MESSAGE_KEYS = ('message', 'outreachMessage', 'outreach_message')


def _field(payload, name: str):
    if isinstance(payload, Mapping):
        return payload.get(name)
    return getattr(payload, name, None)


def normalize_result(payload) -> QualificationResult:
    """
    Coerce an oracle payload into a QualificationResult.

    Missing 'qualified' means not qualified and a missing message means an
    empty one. Unqualified results never carry a message.
    """
    if payload is None:
        return QualificationResult(qualified=False, message="")

    raw = _field(payload, 'qualified')
    if isinstance(raw, str):
        qualified = raw.strip().lower() == 'true'
    else:
        qualified = bool(raw)

    message = ""
    for key in _MESSAGE_KEYS:
        value = _field(payload, key)
        if value:
            message = str(value).strip()
            break

    if not qualified:
        message = ""

    return QualificationResult(qualified=qualified, message=message)


def qualify(oracle, run_config: RunConfig, candidate: Candidate) -> QualificationResult:
    """
    Ask the oracle whether to contact a candidate and what to say.

    Raises:
        QualificationError: if the oracle call fails for any reason
    """
    try:
        payload = oracle.generate(
            run_config.message_template,
            candidate,
            run_config.target_industries,
            run_config.exclude_industries,
        )
    except Exception as e:
        logger.error("Qualification failed for %s: %s", candidate.full_name, e)
        raise QualificationError(candidate.person_id, str(e) or "Unknown error") from e

    result = normalize_result(payload)

    if result.qualified and not result.message:
        logger.warning("%s qualified but no message was composed", candidate.full_name)

    return result
