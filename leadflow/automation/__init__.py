"""
Outreach automation over a paginated lead list.

This package handles:
- Paging through a lead list in capped batches
- Skipping leads that already have a pending invitation
- Qualifying each lead and composing its message
- Sending connection requests with randomized pacing
- Aggregating run counters and per-lead errors
"""

from leadflow.automation.config import AUTOMATION_CONFIG, RunConfig
from leadflow.automation.errors import (
    AutomationError,
    BatchFetchError,
    ConfigurationError,
    PerItemError,
    QualificationError,
    ValidationError,
)
from leadflow.automation.pacer import Pacer
from leadflow.automation.runner import AutomationRunner, run_automation
from leadflow.automation.summary import generate_report_text

__all__ = [
    'AUTOMATION_CONFIG',
    'RunConfig',
    'AutomationError',
    'BatchFetchError',
    'ConfigurationError',
    'PerItemError',
    'QualificationError',
    'ValidationError',
    'Pacer',
    'AutomationRunner',
    'run_automation',
    'generate_report_text',
]
