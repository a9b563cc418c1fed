"""
Configuration for automation runs.

Environment variables supply the defaults; each run is described by an
immutable RunConfig built from a request body or CLI flags.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, Optional

from dotenv import load_dotenv

from leadflow.automation.errors import ValidationError

load_dotenv()


def _get_bool(key: str, default: bool = False) -> bool:
    """Get a boolean from environment."""
    val = os.getenv(key, str(default)).lower()
    return val in ('true', '1', 'yes', 'on')


def _get_int(key: str, default: int) -> int:
    """Get an integer from environment."""
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


AUTOMATION_CONFIG = {
    # Delay between contact actions within a page (seconds, inclusive range)
    'MIN_DELAY_SECONDS': _get_int('AUTOMATION_MIN_DELAY', 10),
    'MAX_DELAY_SECONDS': _get_int('AUTOMATION_MAX_DELAY', 10),

    # Delay between page fetches
    'PAGE_DELAY_MIN_SECONDS': _get_int('AUTOMATION_PAGE_DELAY_MIN', 2),
    'PAGE_DELAY_MAX_SECONDS': _get_int('AUTOMATION_PAGE_DELAY_MAX', 5),

    # Search retries before a run is aborted (0 = abort on first failure)
    'FETCH_RETRIES': _get_int('AUTOMATION_FETCH_RETRIES', 0),
    'FETCH_RETRY_BACKOFF_SECONDS': _get_int('AUTOMATION_FETCH_BACKOFF', 5),

    # Remove unqualified candidates from the lead list
    'REMOVE_UNQUALIFIED': _get_bool('AUTOMATION_REMOVE_UNQUALIFIED', False),

    # Dry run mode (qualify but don't contact)
    'DRY_RUN': _get_bool('AUTOMATION_DRY_RUN', False),
}


def validate_config() -> list[str]:
    """Validate environment defaults and return list of errors."""
    errors = []

    if AUTOMATION_CONFIG['MIN_DELAY_SECONDS'] < 1:
        errors.append("AUTOMATION_MIN_DELAY must be at least 1")

    if AUTOMATION_CONFIG['MAX_DELAY_SECONDS'] < AUTOMATION_CONFIG['MIN_DELAY_SECONDS']:
        errors.append("AUTOMATION_MAX_DELAY must be >= AUTOMATION_MIN_DELAY")

    if AUTOMATION_CONFIG['PAGE_DELAY_MIN_SECONDS'] < 0:
        errors.append("AUTOMATION_PAGE_DELAY_MIN must not be negative")

    if AUTOMATION_CONFIG['PAGE_DELAY_MAX_SECONDS'] < AUTOMATION_CONFIG['PAGE_DELAY_MIN_SECONDS']:
        errors.append("AUTOMATION_PAGE_DELAY_MAX must be >= AUTOMATION_PAGE_DELAY_MIN")

    if AUTOMATION_CONFIG['FETCH_RETRIES'] < 0:
        errors.append("AUTOMATION_FETCH_RETRIES must not be negative")

    return errors


# Request-body keys as sent by API clients
_CAMEL_CASE_KEYS = {
    'totalLeads': 'total_leads',
    'messageTemplate': 'message_template',
    'leadListId': 'lead_list_id',
    'initialStartCount': 'initial_start_count',
    'minDelay': 'min_delay_seconds',
    'maxDelay': 'max_delay_seconds',
    'minDelaySeconds': 'min_delay_seconds',
    'maxDelaySeconds': 'max_delay_seconds',
    'targetIndustries': 'target_industries',
    'excludeIndustries': 'exclude_industries',
    'fetchRetries': 'fetch_retries',
    'fetchRetryBackoffSeconds': 'fetch_retry_backoff_seconds',
    'removeUnqualified': 'remove_unqualified',
    'dryRun': 'dry_run',
}


@dataclass(frozen=True)
class RunConfig:
    """Parameters of one automation run. Immutable once built."""
    total_leads: int
    message_template: str
    lead_list_id: str
    initial_start_count: int = 0
    min_delay_seconds: int = 10
    max_delay_seconds: int = 10
    target_industries: Optional[str] = None
    exclude_industries: Optional[str] = None
    fetch_retries: int = 0
    fetch_retry_backoff_seconds: int = 5
    remove_unqualified: bool = False
    dry_run: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'RunConfig':
        """
        Build a config from a request body.

        Accepts camelCase keys (totalLeads, minDelay, ...) and snake_case
        field names. Omitted optional fields take the environment defaults.
        Raises ValidationError if required fields are missing or invalid.
        """
        if not isinstance(data, Mapping):
            raise ValidationError({"request": ["Request body must be an object"]})

        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {
            'min_delay_seconds': AUTOMATION_CONFIG['MIN_DELAY_SECONDS'],
            'max_delay_seconds': AUTOMATION_CONFIG['MAX_DELAY_SECONDS'],
            'fetch_retries': AUTOMATION_CONFIG['FETCH_RETRIES'],
            'fetch_retry_backoff_seconds': AUTOMATION_CONFIG['FETCH_RETRY_BACKOFF_SECONDS'],
            'remove_unqualified': AUTOMATION_CONFIG['REMOVE_UNQUALIFIED'],
            'dry_run': AUTOMATION_CONFIG['DRY_RUN'],
        }
        for key, value in data.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name in known and value is not None:
                values[name] = value

        missing = {}
        for name in ('total_leads', 'message_template', 'lead_list_id'):
            if name not in values:
                missing[name] = [f"{name} is required"]
        if missing:
            raise ValidationError(missing)

        config = cls(**values)
        config.validate()
        return config

    def validate(self) -> None:
        """Raise ValidationError listing every invalid field."""
        errors: dict[str, list[str]] = {}

        def add(name: str, message: str) -> None:
            errors.setdefault(name, []).append(message)

        int_fields = (
            'total_leads',
            'initial_start_count',
            'min_delay_seconds',
            'max_delay_seconds',
            'fetch_retries',
            'fetch_retry_backoff_seconds',
        )
        for name in int_fields:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                add(name, f"{name} must be an integer")

        if errors:
            raise ValidationError(errors)

        if self.total_leads < 1:
            add('total_leads', "Total leads must be at least 1")
        if not isinstance(self.message_template, str) or not self.message_template.strip():
            add('message_template', "Message template is required")
        if not isinstance(self.lead_list_id, str) or not self.lead_list_id.strip():
            add('lead_list_id', "Lead list ID is required")
        for name in ('target_industries', 'exclude_industries'):
            if getattr(self, name) is not None and not isinstance(getattr(self, name), str):
                add(name, f"{name} must be a string")
        if self.initial_start_count < 0:
            add('initial_start_count', "Initial start count must not be negative")
        if self.min_delay_seconds < 1:
            add('min_delay_seconds', "Min delay must be at least 1 second")
        if self.max_delay_seconds < 1:
            add('max_delay_seconds', "Max delay must be at least 1 second")
        if self.max_delay_seconds < self.min_delay_seconds:
            add('max_delay_seconds', "Max delay must be greater than or equal to min delay")
        if self.fetch_retries < 0:
            add('fetch_retries', "Fetch retries must not be negative")
        if self.fetch_retry_backoff_seconds < 0:
            add('fetch_retry_backoff_seconds', "Fetch retry backoff must not be negative")

        if errors:
            raise ValidationError(errors)
