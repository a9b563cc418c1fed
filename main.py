#!/usr/bin/env python3
"""
Leadflow
========

Personalized outreach over a Sales Navigator lead list. Walks the list page
by page, asks Gemini whether each lead is worth contacting and what to say,
and sends paced connection requests.

Usage:
    python main.py run --lead-list 7371658687360155648 --total 50 \\
        --template "Hi {{firstName}}, ..."            # Run the automation
    python main.py run --config request.json          # Run from a request body
    python main.py run --config request.json --dry-run  # Qualify without sending
    python main.py search --lead-list <id> --start 0 --count 25
    python main.py connect <member_id> "message"      # Single connection request
    python main.py remove --lead-list <id> <entity_urn>
"""

import argparse
import json
import logging
import sys

from leadflow import config
from leadflow.automation import generate_report_text, run_automation
from leadflow.directory import DirectoryError, SalesNavigatorDirectory


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Quieten noisy libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


def build_request(args) -> dict:
    """Merge a JSON request file with command-line overrides."""
    request = {}
    if args.config:
        with open(args.config, "r", encoding="utf-8") as f:
            request = json.load(f)
        if not isinstance(request, dict):
            raise ValueError("request file must contain a JSON object")

    overrides = {
        'totalLeads': args.total,
        'messageTemplate': args.template,
        'leadListId': args.lead_list,
        'initialStartCount': args.start,
        'minDelay': args.min_delay,
        'maxDelay': args.max_delay,
        'targetIndustries': args.target_industries,
        'excludeIndustries': args.exclude_industries,
        'fetchRetries': args.fetch_retries,
    }
    request.update({k: v for k, v in overrides.items() if v is not None})

    if args.remove_unqualified:
        request['removeUnqualified'] = True
    if args.dry_run:
        request['dryRun'] = True

    return request


def cmd_run(args) -> int:
    """Run the automation."""
    logger = logging.getLogger("main")

    try:
        request = build_request(args)
    except (IOError, ValueError) as e:
        print(f"\n✗ Could not read request file: {e}\n")
        return 2

    if request.get('dryRun'):
        print("\n🔍 DRY RUN MODE - No invitations will be sent\n")

    result = run_automation(request)

    print()
    print(generate_report_text(result))
    print()

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2)
        logger.info("Result saved to %s", args.output)

    return 0 if result.success else 1


def cmd_search(args) -> int:
    """Print one page of a lead list."""
    directory = SalesNavigatorDirectory()
    try:
        page = directory.search(args.start, args.count, args.lead_list)
    except DirectoryError as e:
        print(f"\n✗ Search failed ({e.status_code or 'no status'}): {e}\n")
        return 1

    total = page.total if page.total is not None else "?"
    print(f"\nLeads {args.start}-{args.start + len(page) - 1} of {total}:")
    print("-" * 80)
    for candidate in page.candidates:
        status = "⏳" if candidate.pending_invitation else "  "
        headline = (candidate.profile.get('headline') or '')[:45]
        print(f"{status} {candidate.person_id[:20]:<20} | {candidate.full_name[:25]:<25} | {headline}")
    print("-" * 80)
    print()
    return 0


def cmd_connect(args) -> int:
    """Send a single connection request."""
    directory = SalesNavigatorDirectory()
    try:
        directory.contact(args.member, args.message)
    except DirectoryError as e:
        print(f"\n✗ {e.describe()}\n")
        return 1
    print(f"\n✓ Connection request sent to {args.member}\n")
    return 0


def cmd_remove(args) -> int:
    """Remove a lead from a lead list."""
    directory = SalesNavigatorDirectory()
    try:
        directory.remove(args.lead_list, args.entity_urn)
    except DirectoryError as e:
        print(f"\n✗ Could not remove lead: {e}\n")
        return 1
    print(f"\n✓ Removed {args.entity_urn} from lead list {args.lead_list}\n")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Leadflow - AI-qualified outreach over a lead list",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # run
    run_parser = subparsers.add_parser('run', help='Run the outreach automation')
    run_parser.add_argument('--config', '-c', help='JSON request body file')
    run_parser.add_argument('--lead-list', help='Lead list ID')
    run_parser.add_argument('--total', type=int, help='Number of leads to process')
    run_parser.add_argument('--template', help='Message template')
    run_parser.add_argument('--start', type=int, help='Initial start offset')
    run_parser.add_argument('--min-delay', type=int, help='Min seconds between requests')
    run_parser.add_argument('--max-delay', type=int, help='Max seconds between requests')
    run_parser.add_argument('--target-industries', help='Industries to target')
    run_parser.add_argument('--exclude-industries', help='Industries to exclude')
    run_parser.add_argument('--fetch-retries', type=int, help='Search retries before stopping')
    run_parser.add_argument('--remove-unqualified', action='store_true',
                            help='Remove unqualified leads from the list')
    run_parser.add_argument('--dry-run', action='store_true', help='Qualify without sending')
    run_parser.add_argument('--output', '-o', help='Write the JSON result to this file')

    # search
    search_parser = subparsers.add_parser('search', help='Show one page of a lead list')
    search_parser.add_argument('--lead-list', required=True, help='Lead list ID')
    search_parser.add_argument('--start', type=int, default=0, help='Start offset')
    search_parser.add_argument('--count', type=int, default=config.DEFAULT_SEARCH_COUNT,
                               choices=range(1, config.PAGE_CAP + 1), metavar='1-100',
                               help='Page size')

    # connect
    connect_parser = subparsers.add_parser('connect', help='Send one connection request')
    connect_parser.add_argument('member', help='Member ID')
    connect_parser.add_argument('message', help='Connection note')

    # remove
    remove_parser = subparsers.add_parser('remove', help='Remove a lead from a lead list')
    remove_parser.add_argument('--lead-list', required=True, help='Lead list ID')
    remove_parser.add_argument('entity_urn', help='Entity URN of the lead')

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if not args.command:
        parser.print_help()
        return 0

    # Command dispatch
    commands = {
        'run': cmd_run,
        'search': cmd_search,
        'connect': cmd_connect,
        'remove': cmd_remove,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
