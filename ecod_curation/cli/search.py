"""
Domain search command
"""

import argparse
import logging

from ecod_curation.cli.base import (
    add_page_arguments, build_context, format_table, page_footer, print_result
)
from ecod_curation.services import DashboardService

logger = logging.getLogger("ecod_curation.cli.search")

COMMANDS = {
    'search': 'Search domains by id, accession, t-group or species',
}

HIT_COLUMNS = ['domain_id', 'unp_acc', 'range', 't_group', 't_group_name', 'species',
               'primary_cluster_id']


def setup_parser(parser: argparse.ArgumentParser) -> None:
    """Set up the argument parser for the search command"""
    parser.add_argument('text', nargs='?', default='', help='Text to search for')
    parser.add_argument('--t-group', type=str, help='Only domains in this t-group')
    parser.add_argument('--tax-id', type=int, help='Only domains from this taxon')
    add_page_arguments(parser)


def run_command(args: argparse.Namespace) -> int:
    """Run the domain search"""
    service = DashboardService(build_context(args))
    results = service.search(args.text, t_group=args.t_group, tax_id=args.tax_id,
                             page=service.page_request(args.page, args.page_size))
    print_result(args, results.to_dict(), _format_results)
    return 0


def _format_results(data) -> str:
    facets = ", ".join(f"{row['name']} ({row['count']})" for row in data['facets']['t_groups'])
    return "\n".join([
        format_table(data['domains'], HIT_COLUMNS),
        page_footer(data),
        "",
        f"T-groups: {facets or '-'}",
    ])
