"""
Reclassification review commands
"""

import argparse
import logging

from ecod_curation.cli.base import (
    add_page_arguments, build_context, format_table, page_footer, print_result
)
from ecod_curation.db.repositories import ReclassificationFilters
from ecod_curation.db.repositories.reclassification_repository import STATUS_FILTERS
from ecod_curation.models.reclassification import ConfidenceLevel
from ecod_curation.services import ReclassificationService
from ecod_curation.utils.export import export_csv

logger = logging.getLogger("ecod_curation.cli.reclass")

COMMANDS = {
    'list': 'List clusters flagged for reclassification',
    'approve': 'Approve a reclassification',
    'reject': 'Reject a reclassification',
}

LIST_COLUMNS = ['cluster_id', 'cluster_number', 'cluster_set_name', 'current_t_group',
                'proposed_t_group', 'confidence', 'status', 'structure_consistency',
                'reviewed_by']


def setup_parser(parser: argparse.ArgumentParser) -> None:
    """Set up the argument parser for reclassification commands"""
    subparsers = parser.add_subparsers(dest='command', help='Reclassification command')
    subparsers.required = True

    list_parser = subparsers.add_parser('list', help=COMMANDS['list'])
    list_parser.add_argument('--status', choices=STATUS_FILTERS, default='pending',
                             help='Review status to list')
    list_parser.add_argument('--confidence', choices=[c.value for c in ConfidenceLevel],
                             help='Only candidates in this confidence bucket')
    list_parser.add_argument('--cluster-set-id', type=int, help='Only clusters of this set')
    list_parser.add_argument('--summary', action='store_true',
                             help='Include counts by confidence and t-group')
    list_parser.add_argument('--csv', type=str, help='Also write the page to this CSV file')
    add_page_arguments(list_parser)

    for name in ('approve', 'reject'):
        decision_parser = subparsers.add_parser(name, help=COMMANDS[name])
        decision_parser.add_argument('cluster_id', type=int, help='Cluster ID')
        decision_parser.add_argument('--user', required=True, help='Curator user id')
        decision_parser.add_argument('--notes', type=str, help='Replacement analysis notes')
        if name == 'approve':
            decision_parser.add_argument('--new-t-group', type=str,
                                         help='New t-group for the representative domain')


def run_command(args: argparse.Namespace) -> int:
    """Run the specified reclassification command"""
    service = ReclassificationService(build_context(args))

    if args.command == 'list':
        return _list_candidates(args, service)
    elif args.command in ('approve', 'reject'):
        outcome = service.decide(
            cluster_id=args.cluster_id,
            status='approved' if args.command == 'approve' else 'rejected',
            user_id=args.user,
            notes=args.notes,
            new_t_group=getattr(args, 'new_t_group', None)
        )
        print_result(args, outcome.to_dict(), _format_outcome)
        return 0
    else:
        logger.error(f"Unknown command: {args.command}")
        return 1


def _list_candidates(args: argparse.Namespace, service: ReclassificationService) -> int:
    filters = ReclassificationFilters(status=args.status, confidence=args.confidence,
                                      cluster_set_id=args.cluster_set_id)
    page = service.list_candidates(filters, service.page_request(args.page, args.page_size))

    if args.csv:
        export_csv(page.items, args.csv, LIST_COLUMNS)

    data = page.to_dict(key='reclassifications')
    if args.summary:
        data['summary'] = service.get_summary().to_dict()

    print_result(args, data, _format_list)
    return 0


def _format_list(data) -> str:
    lines = [format_table(data['reclassifications'], LIST_COLUMNS), page_footer(data)]
    summary = data.get('summary')
    if summary:
        counts = ", ".join(f"{level}: {count}" for level, count in summary['by_confidence'].items())
        lines.extend(["", f"By confidence: {counts}", "",
                      format_table(summary['by_tgroup'], ['t_group', 'name', 'count'])])
    return "\n".join(lines)


def _format_outcome(data) -> str:
    text = f"{data['message']} for cluster {data['cluster_id']} by {data['user_id']}"
    if data.get('updated_domain_id') is not None:
        text += (f"\nRepresentative domain {data['updated_domain_id']} moved from "
                 f"{data.get('previous_t_group') or '-'}")
    return text
