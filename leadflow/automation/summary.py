"""
Human-readable run summaries.

The one-line message goes into every RunResult; the report is what the
CLI prints after a run.
"""

from leadflow.models import (
    OUTCOME_ABORTED,
    OUTCOME_CANCELLED,
    RunOutcome,
    RunResult,
    RunState,
)


def summary_message(state: RunState, outcome: RunOutcome) -> str:
    """One-line summary for the result message."""
    counts = (
        f"Processed {state.processed} leads, sent {state.sent} invitations, "
        f"skipped {state.skipped} leads, unqualified {state.unqualified} leads."
    )
    if outcome.status == OUTCOME_ABORTED:
        return f"Automation stopped early ({outcome.reason}). {counts}"
    if outcome.status == OUTCOME_CANCELLED:
        return f"Automation cancelled. {counts}"
    return f"Automation completed successfully. {counts}"


def generate_report_text(result: RunResult, max_errors: int = 10) -> str:
    """
    Generate plain-text report of a run.

    Args:
        result: Finished run
        max_errors: How many error entries to list before truncating

    Returns:
        Plain text report
    """
    status = "OK" if result.success else "FAILED"
    lines = [
        f"📊 AUTOMATION RUN - {status} ({result.outcome})",
        "=" * 50,
        "",
        result.message,
        "",
        "COUNTERS",
        "-" * 30,
        f"• Processed: {result.processed}",
        f"• Invitations sent: {result.sent}",
        f"• Skipped (pending invitation): {result.skipped}",
        f"• Unqualified: {result.unqualified}",
        f"• Errors: {len(result.errors)}",
        f"• Next start offset: {result.cursor}",
    ]

    if result.abort_reason:
        lines.append(f"• Stop reason: {result.abort_reason}")

    if result.errors:
        lines.append("")
        lines.append("ERRORS")
        lines.append("-" * 30)
        for entry in result.errors[:max_errors]:
            person = entry.get('personId') or '(run)'
            lines.append(f"• {person}: {entry.get('error', '')}")
        if len(result.errors) > max_errors:
            lines.append(f"• ... and {len(result.errors) - max_errors} more")

    return "\n".join(lines)
