"""
Automation runner - main orchestration module.

Coordinates, one page at a time:
- Pagination through the lead list
- Skipping candidates with pending invitations
- Qualification and message composition
- Paced, strictly serial contact actions
- Run counters and per-candidate errors
"""

import logging
import threading
from typing import Callable, Optional, Union

from leadflow import config
from leadflow.automation.config import RunConfig, validate_config
from leadflow.automation.dispatcher import dispatch, make_removal_hook
from leadflow.automation.errors import (
    BatchFetchError,
    ConfigurationError,
    QualificationError,
    ValidationError,
)
from leadflow.automation.filters import filter_candidates
from leadflow.automation.pacer import Pacer
from leadflow.automation.pager import next_window
from leadflow.automation.qualifier import qualify
from leadflow.automation.summary import summary_message
from leadflow.directory import SalesNavigatorDirectory
from leadflow.models import (
    Candidate,
    Page,
    RunOutcome,
    RunResult,
    RunState,
    Window,
)

logger = logging.getLogger(__name__)


class AutomationRunner:
    """
    Drives one outreach run over a lead list.

    Usage:
        runner = AutomationRunner(run_config, directory, oracle)
        result = runner.run()

    The directory must provide search(offset, size, lead_list_id) -> Page,
    contact(ref, message) and remove(lead_list_id, ref). The oracle must
    provide generate(template, candidate, target, exclude).
    """

    def __init__(
        self,
        run_config: RunConfig,
        directory,
        oracle,
        pacer: Optional[Pacer] = None,
        removal_hook: Optional[Callable[[Candidate], bool]] = None,
        cancel_event: Optional[threading.Event] = None,
        page_cap: int = config.PAGE_CAP,
    ):
        self.run_config = run_config
        self.page_cap = page_cap
        self.directory = directory
        self.oracle = oracle
        self.pacer = pacer or Pacer.for_run(run_config)
        self.cancel_event = cancel_event
        self._contacted_on_page = False

        if removal_hook is None and run_config.remove_unqualified:
            removal_hook = make_removal_hook(directory, run_config.lead_list_id)
        self.removal_hook = removal_hook

    def run(self) -> RunResult:
        """Run the loop to completion, abort or cancellation."""
        cfg = self.run_config
        logger.info(
            "Starting automation: total_leads=%d, lead_list_id=%s, start=%d, delay=%d-%ds%s",
            cfg.total_leads, cfg.lead_list_id, cfg.initial_start_count,
            cfg.min_delay_seconds, cfg.max_delay_seconds,
            " (dry run)" if cfg.dry_run else "",
        )

        state = RunState(cursor=cfg.initial_start_count)
        outcome = self._loop(state)

        message = summary_message(state, outcome)
        logger.info(message)
        logger.debug("Fetched %d pages, next start offset %d", state.pages_fetched, state.cursor)
        return RunResult.from_state(state, outcome, message)

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _loop(self, state: RunState) -> RunOutcome:
        cfg = self.run_config

        while True:
            if self._cancelled():
                logger.info("Cancellation requested, stopping before next page")
                return RunOutcome.cancelled()

            window = next_window(state, cfg, self.page_cap)
            logger.info("Fetching batch: start=%d, count=%d", window.offset, window.size)

            try:
                page = self._fetch(window)
            except BatchFetchError as e:
                logger.error("Error in batch processing, stopping automation: %s", e)
                return RunOutcome.aborted(str(e))

            state.pages_fetched += 1

            if not page.candidates:
                logger.info("No more leads found, ending automation")
                return RunOutcome.completed()

            filtered = filter_candidates(page)
            state.skipped += filtered.skipped_count

            if not self._process_page(state, filtered.available):
                logger.info("Cancellation requested, stopping mid-page")
                return RunOutcome.cancelled()

            state.cursor += window.size

            if state.processed >= cfg.total_leads:
                logger.info("Reached target number of leads, stopping automation")
                return RunOutcome.completed()

            if page.is_short(window.size):
                logger.info("Short page (%d < %d), no more leads upstream", len(page), window.size)
                return RunOutcome.completed()

            if self._cancelled():
                logger.info("Cancellation requested, stopping before next page")
                return RunOutcome.cancelled()

            self.pacer.pause_between_pages()

    def _fetch(self, window: Window) -> Page:
        """Search the directory, retrying as configured before giving up."""
        cfg = self.run_config
        attempts = cfg.fetch_retries + 1
        last_error = None

        for attempt in range(1, attempts + 1):
            try:
                return self.directory.search(window.offset, window.size, cfg.lead_list_id)
            except Exception as e:
                last_error = e
                logger.warning(
                    "Lead search failed (attempt %d/%d) at start=%d: %s",
                    attempt, attempts, window.offset, e
                )
                if attempt < attempts:
                    self.pacer.wait(cfg.fetch_retry_backoff_seconds * attempt)

        raise BatchFetchError(
            window.offset,
            window.size,
            f"Lead search failed at start={window.offset}: {last_error}",
            attempts=attempts,
        )

    def _process_page(self, state: RunState, available: list[Candidate]) -> bool:
        """
        Qualify and contact the available candidates of one page, in order.

        Returns False if the run was cancelled part way through.
        """
        cfg = self.run_config
        self._contacted_on_page = False

        for candidate in available:
            if state.processed >= cfg.total_leads:
                logger.info("Reached target number of leads, stopping automation")
                break

            if self._cancelled():
                return False

            self._process_candidate(state, candidate)
            state.processed += 1

        return True

    def _process_candidate(self, state: RunState, candidate: Candidate) -> None:
        """Qualify one candidate and contact them if qualified."""
        logger.info("Processing %s (%s)", candidate.full_name, candidate.person_id)

        try:
            result = qualify(self.oracle, self.run_config, candidate)
        except QualificationError as e:
            state.record_error(e.person_id or candidate.person_id, str(e))
            return

        if not result.qualified:
            logger.info("%s is not qualified for outreach", candidate.full_name)
            state.unqualified += 1
            self._remove(candidate)
            return

        logger.info(
            "%s is qualified. Generated message: \"%s\"",
            candidate.full_name, result.message
        )

        # Pace only between two contact attempts on the same page
        if self._contacted_on_page and not self.run_config.dry_run:
            self.pacer.pause_between_actions()
        self._contacted_on_page = True

        sent = dispatch(self.directory, candidate, result.message, dry_run=self.run_config.dry_run)
        if sent.success:
            state.sent += 1
        else:
            state.record_error(candidate.person_id, sent.error or sent.message)

    def _remove(self, candidate: Candidate) -> None:
        if self.removal_hook is None:
            return
        try:
            self.removal_hook(candidate)
        except Exception as e:
            logger.error("Removal hook failed for %s: %s", candidate.full_name, e)


def run_automation(
    run_config: Union[RunConfig, dict],
    directory=None,
    oracle=None,
    pacer: Optional[Pacer] = None,
    cancel_event: Optional[threading.Event] = None,
) -> RunResult:
    """
    Run the full outreach automation.

    This is the main entry point for callers (CLI, HTTP layer).

    Args:
        run_config: RunConfig, or a request body accepted by RunConfig.from_dict
        directory: Lead directory (defaults to SalesNavigatorDirectory)
        oracle: Qualification oracle (defaults to GeminiOracle)
        pacer: Pacer (defaults to one built from the run config)
        cancel_event: Set it to stop the run between candidates

    Returns:
        RunResult. Invalid parameters and missing configuration produce an
        unsuccessful result with zero counters instead of raising.
    """
    try:
        if not isinstance(run_config, RunConfig):
            run_config = RunConfig.from_dict(run_config)
        run_config.validate()

        errors = validate_config()
        if errors:
            raise ConfigurationError("; ".join(errors))

        if oracle is None:
            from leadflow.oracle import create_gemini_oracle
            oracle = create_gemini_oracle()

        if directory is None:
            directory = SalesNavigatorDirectory()

    except ValidationError as e:
        logger.error("Invalid automation parameters: %s", e)
        return RunResult.failure("Invalid request parameters", e.summary())
    except ConfigurationError as e:
        logger.error("Automation not configured: %s", e)
        return RunResult.failure(f"Configuration error: {e}", str(e))

    runner = AutomationRunner(
        run_config,
        directory,
        oracle,
        pacer=pacer,
        cancel_event=cancel_event,
    )
    return runner.run()
