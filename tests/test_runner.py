import threading
from dataclasses import replace

from leadflow import config
from leadflow.automation.runner import AutomationRunner, run_automation
from leadflow.models import OUTCOME_ABORTED, OUTCOME_CANCELLED, OUTCOME_COMPLETED
from tests.fakes import FakeDirectory, FakeOracle, make_candidates


def _kinds(events, kind):
    return [e for e in events if e[0] == kind]


def test_all_qualified_run_sends_to_everyone(run_config, pacer, events):
    directory = FakeDirectory(make_candidates(10), events=events)
    runner = AutomationRunner(run_config, directory, FakeOracle(), pacer=pacer)

    result = runner.run()

    assert result.success is True
    assert result.outcome == OUTCOME_COMPLETED
    assert (result.processed, result.sent, result.skipped, result.unqualified) == (10, 10, 0, 0)
    assert result.errors == []
    assert result.cursor == 10
    assert directory.search_calls == [(0, 10, run_config.lead_list_id)]
    assert result.message == (
        "Automation completed successfully. Processed 10 leads, sent 10 invitations, "
        "skipped 0 leads, unqualified 0 leads."
    )


def test_no_pause_after_last_contact(run_config, pacer, events):
    directory = FakeDirectory(make_candidates(10), events=events)
    AutomationRunner(run_config, directory, FakeOracle(), pacer=pacer).run()

    assert events[-1][0] == 'contact'
    assert len(_kinds(events, 'action_pause')) == 9
    assert _kinds(events, 'page_pause') == []
    for _, delay in _kinds(events, 'action_pause'):
        assert 1 <= delay <= 3


def test_pauses_only_sit_between_contacts(run_config, pacer, events):
    directory = FakeDirectory(make_candidates(10), events=events)
    AutomationRunner(run_config, directory, FakeOracle(), pacer=pacer).run()

    kinds = [e[0] for e in events if e[0] in ('contact', 'action_pause')]
    for before, after in zip(kinds, kinds[1:]):
        assert (before, after) in (('contact', 'action_pause'), ('action_pause', 'contact'))


def test_pending_invitations_are_skipped_and_backfilled(run_config, pacer, events):
    directory = FakeDirectory(make_candidates(13, pending={0, 1, 2}), events=events)
    oracle = FakeOracle()

    result = AutomationRunner(run_config, directory, oracle, pacer=pacer).run()

    assert result.skipped == 3
    assert result.processed == 10
    assert result.sent == 10
    assert directory.search_calls == [
        (0, 10, run_config.lead_list_id),
        (10, 3, run_config.lead_list_id),
    ]
    contacted = [ref for ref, _ in directory.contacts]
    assert "ACwAA0000" not in contacted
    assert contacted[-1] == "ACwAA0012"
    assert len(oracle.calls) == 10


def test_page_pause_between_pages(run_config, pacer, events):
    directory = FakeDirectory(make_candidates(13, pending={0, 1, 2}), events=events)
    AutomationRunner(run_config, directory, FakeOracle(), pacer=pacer).run()

    searches = [i for i, e in enumerate(events) if e[0] == 'search']
    page_pauses = [i for i, e in enumerate(events) if e[0] == 'page_pause']
    assert len(page_pauses) == 1
    assert searches[0] < page_pauses[0] < searches[1]
    assert 2 <= events[page_pauses[0]][1] <= 5


def test_windows_respect_target_and_cap(run_config, pacer):
    cfg = replace(run_config, total_leads=25)
    directory = FakeDirectory(make_candidates(100))

    result = AutomationRunner(cfg, directory, FakeOracle(), pacer=pacer, page_cap=10).run()

    assert result.processed == 25
    assert [(o, s) for o, s, _ in directory.search_calls] == [(0, 10), (10, 10), (20, 5)]
    offsets = [o for o, _, _ in directory.search_calls]
    assert offsets == sorted(set(offsets))
    assert result.cursor == 25


def test_initial_start_count_sets_first_offset(run_config, pacer):
    cfg = replace(run_config, total_leads=3, initial_start_count=5)
    directory = FakeDirectory(make_candidates(20))

    result = AutomationRunner(cfg, directory, FakeOracle(), pacer=pacer).run()

    assert directory.search_calls == [(5, 3, cfg.lead_list_id)]
    assert [ref for ref, _ in directory.contacts] == ["ACwAA0005", "ACwAA0006", "ACwAA0007"]
    assert result.cursor == 8


def test_contact_failure_is_isolated(run_config, pacer):
    directory = FakeDirectory(make_candidates(10), failing_refs={"ACwAA0004"})

    result = AutomationRunner(run_config, directory, FakeOracle(), pacer=pacer).run()

    assert result.processed == 10
    assert result.sent == 9
    assert result.errors == [
        {'personId': "ACwAA0004", 'error': "Rate limited - Too many connection requests sent"},
    ]
    assert len(directory.contacts) == 10


def test_qualification_failure_is_isolated(run_config, pacer, events):
    directory = FakeDirectory(make_candidates(10), events=events)
    oracle = FakeOracle(failing_ids={"ACwAA0003"})

    result = AutomationRunner(run_config, directory, oracle, pacer=pacer).run()

    assert result.processed == 10
    assert result.sent == 9
    assert len(result.errors) == 1
    assert result.errors[0]['personId'] == "ACwAA0003"
    assert "model overloaded" in result.errors[0]['error']
    assert "ACwAA0003" not in [ref for ref, _ in directory.contacts]
    assert len(_kinds(events, 'action_pause')) == 8


def test_unqualified_candidates_are_not_contacted(run_config, pacer, events):
    directory = FakeDirectory(make_candidates(10), events=events)
    oracle = FakeOracle(decide=lambda c: {'qualified': False, 'outreachMessage': ''})

    result = AutomationRunner(run_config, directory, oracle, pacer=pacer).run()

    assert result.unqualified == 10
    assert result.sent == 0
    assert result.processed == 10
    assert directory.contacts == []
    assert directory.removed == []
    assert _kinds(events, 'action_pause') == []


def test_unqualified_candidates_removed_when_enabled(run_config, pacer):
    cfg = replace(run_config, remove_unqualified=True)
    directory = FakeDirectory(make_candidates(4))
    oracle = FakeOracle(decide=lambda c: {'qualified': c.person_id.endswith('1')})

    result = AutomationRunner(cfg, directory, oracle, pacer=pacer).run()

    assert result.unqualified == 3
    assert [urn for _, urn in directory.removed] == [
        directory.candidates[i].entity_urn for i in (0, 2, 3)
    ]
    assert all(list_id == cfg.lead_list_id for list_id, _ in directory.removed)


def test_failing_removal_hook_does_not_stop_run(run_config, pacer):
    def broken_hook(candidate):
        raise RuntimeError("list is locked")

    directory = FakeDirectory(make_candidates(10))
    oracle = FakeOracle(decide=lambda c: {'qualified': False})

    result = AutomationRunner(
        run_config, directory, oracle, pacer=pacer, removal_hook=broken_hook
    ).run()

    assert result.unqualified == 10
    assert result.errors == []


def test_short_page_ends_run(run_config, pacer):
    cfg = replace(run_config, total_leads=50)
    directory = FakeDirectory(make_candidates(10))

    result = AutomationRunner(cfg, directory, FakeOracle(), pacer=pacer, page_cap=25).run()

    assert result.outcome == OUTCOME_COMPLETED
    assert result.processed == 10
    assert len(directory.search_calls) == 1


def test_empty_page_ends_run(run_config, pacer):
    cfg = replace(run_config, initial_start_count=40)
    directory = FakeDirectory(make_candidates(10))

    result = AutomationRunner(cfg, directory, FakeOracle(), pacer=pacer).run()

    assert result.success is True
    assert result.outcome == OUTCOME_COMPLETED
    assert result.processed == 0
    assert result.cursor == 40


def test_all_pending_page_moves_on(run_config, pacer):
    cfg = replace(run_config, total_leads=5)
    directory = FakeDirectory(make_candidates(8, pending={0, 1, 2, 3, 4}))

    result = AutomationRunner(cfg, directory, FakeOracle(), pacer=pacer).run()

    assert [(o, s) for o, s, _ in directory.search_calls] == [(0, 5), (5, 5)]
    assert result.skipped == 5
    assert result.processed == 3


def test_fetch_failure_aborts_with_partial_counters(run_config, pacer):
    cfg = replace(run_config, total_leads=30)
    directory = FakeDirectory(
        make_candidates(30),
        search_failures=[None, RuntimeError("connection reset")],
    )

    result = AutomationRunner(cfg, directory, FakeOracle(), pacer=pacer, page_cap=10).run()

    assert result.success is True
    assert result.outcome == OUTCOME_ABORTED
    assert "connection reset" in result.abort_reason
    assert result.processed == 10
    assert result.sent == 10
    assert result.cursor == 10
    assert result.errors == []
    assert result.message.startswith("Automation stopped early")


def test_fetch_retries_before_aborting(run_config, pacer, events):
    cfg = replace(run_config, fetch_retries=2, fetch_retry_backoff_seconds=5)
    directory = FakeDirectory(
        make_candidates(10),
        events=events,
        search_failures=[RuntimeError("502"), RuntimeError("502"), None],
    )

    result = AutomationRunner(cfg, directory, FakeOracle(), pacer=pacer).run()

    assert result.outcome == OUTCOME_COMPLETED
    assert result.sent == 10
    assert len(directory.search_calls) == 3
    assert _kinds(events, 'wait') == [('wait', 5), ('wait', 10)]


def test_fetch_retries_exhausted(run_config, pacer):
    cfg = replace(run_config, fetch_retries=1)
    directory = FakeDirectory(
        make_candidates(10),
        search_failures=[RuntimeError("502"), RuntimeError("503")],
    )

    result = AutomationRunner(cfg, directory, FakeOracle(), pacer=pacer).run()

    assert result.outcome == OUTCOME_ABORTED
    assert "503" in result.abort_reason
    assert len(directory.search_calls) == 2
    assert result.processed == 0


def test_dry_run_contacts_nobody(run_config, pacer, events):
    cfg = replace(run_config, dry_run=True)
    directory = FakeDirectory(make_candidates(10), events=events)

    result = AutomationRunner(cfg, directory, FakeOracle(), pacer=pacer).run()

    assert result.sent == 10
    assert directory.contacts == []
    assert _kinds(events, 'action_pause') == []


def test_cancel_before_start(run_config, pacer):
    cancel = threading.Event()
    cancel.set()
    directory = FakeDirectory(make_candidates(10))

    result = AutomationRunner(
        run_config, directory, FakeOracle(), pacer=pacer, cancel_event=cancel
    ).run()

    assert result.outcome == OUTCOME_CANCELLED
    assert directory.search_calls == []
    assert result.processed == 0


def test_cancel_mid_page_keeps_cursor(run_config, pacer):
    cancel = threading.Event()

    def decide(candidate):
        if candidate.person_id == "ACwAA0002":
            cancel.set()
        return {'qualified': True, 'outreachMessage': "Hello"}

    directory = FakeDirectory(make_candidates(10))

    result = AutomationRunner(
        run_config, directory, FakeOracle(decide=decide), pacer=pacer, cancel_event=cancel
    ).run()

    assert result.outcome == OUTCOME_CANCELLED
    assert result.processed == 3
    assert result.sent == 3
    assert result.cursor == 0
    assert result.message.startswith("Automation cancelled.")


def test_run_automation_rejects_invalid_request(pacer):
    directory = FakeDirectory(make_candidates(10))

    result = run_automation(
        {'totalLeads': 0, 'messageTemplate': "Hi", 'leadListId': "123"},
        directory=directory,
        oracle=FakeOracle(),
        pacer=pacer,
    )

    assert result.success is False
    assert result.message == "Invalid request parameters"
    assert result.errors == [{'personId': '', 'error': "Total leads must be at least 1"}]
    assert result.processed == 0
    assert directory.search_calls == []


def test_run_automation_accepts_request_body(pacer):
    directory = FakeDirectory(make_candidates(5))

    result = run_automation(
        {
            'totalLeads': 5,
            'messageTemplate': "Hi {{firstName}}",
            'leadListId': "123",
            'minDelay': 1,
            'maxDelay': 2,
        },
        directory=directory,
        oracle=FakeOracle(),
        pacer=pacer,
    )

    assert result.success is True
    assert result.to_dict()['sentInvitations'] == 5
    assert directory.search_calls == [(0, 5, "123")]


def test_pending_invitations_with_exhausted_list(run_config, pacer):
    directory = FakeDirectory(make_candidates(10, pending={2, 5, 7}))

    result = AutomationRunner(run_config, directory, FakeOracle(), pacer=pacer).run()

    assert result.outcome == OUTCOME_COMPLETED
    assert result.skipped == 3
    assert result.processed == 7
    assert result.sent == 7
    assert [(o, s) for o, s, _ in directory.search_calls] == [(0, 10), (10, 3)]


def test_run_automation_without_oracle_credentials(monkeypatch, pacer):
    monkeypatch.setattr(config, "GEMINI_API_KEY", "")
    directory = FakeDirectory(make_candidates(5))

    result = run_automation(
        {'totalLeads': 5, 'messageTemplate': "Hi", 'leadListId': "123"},
        directory=directory,
        pacer=pacer,
    )

    assert result.success is False
    assert result.message.startswith("Configuration error")
    assert "GEMINI_API_KEY" in result.errors[0]['error']
    assert result.errors[0]['personId'] == ''
    assert directory.search_calls == []


def test_no_pause_when_page_ends_with_unqualified(run_config, pacer, events):
    cfg = replace(run_config, total_leads=2)
    directory = FakeDirectory(make_candidates(2), events=events)
    oracle = FakeOracle(decide=lambda c: {
        'qualified': c.person_id == "ACwAA0000",
        'outreachMessage': "Hi",
    })

    result = AutomationRunner(cfg, directory, oracle, pacer=pacer).run()

    assert (result.sent, result.unqualified) == (1, 1)
    assert _kinds(events, 'action_pause') == []
    assert events[-1] == ('contact', "ACwAA0000")


def test_pause_sits_right_before_next_contact(run_config, pacer, events):
    cfg = replace(run_config, total_leads=4)
    directory = FakeDirectory(make_candidates(4), events=events)
    oracle = FakeOracle(decide=lambda c: {
        'qualified': c.person_id in ("ACwAA0000", "ACwAA0002"),
        'outreachMessage': "Hi",
    })

    AutomationRunner(cfg, directory, oracle, pacer=pacer).run()

    kinds = [e[0] for e in events]
    assert kinds == ['search', 'contact', 'action_pause', 'contact']


def test_run_automation_rejects_non_object_body(pacer):
    directory = FakeDirectory(make_candidates(5))

    result = run_automation(["totalLeads", 5], directory=directory, oracle=FakeOracle(), pacer=pacer)

    assert result.success is False
    assert result.message == "Invalid request parameters"
    assert result.errors == [{'personId': '', 'error': "Request body must be an object"}]
    assert result.outcome == 'invalid'
    assert directory.search_calls == []
