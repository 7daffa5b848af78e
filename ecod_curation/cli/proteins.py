"""
Protein commands
"""

import argparse
import logging

from ecod_curation.cli.base import build_context, format_table, format_value, print_result
from ecod_curation.services import DashboardService

logger = logging.getLogger("ecod_curation.cli.proteins")

COMMANDS = {
    'domains': 'Show a protein and its domains',
}

DOMAIN_COLUMNS = ['domain_id', 'range', 't_group', 't_group_name', 'judge', 'dpam_prob',
                  'has_structure', 'primary_cluster_id']


def setup_parser(parser: argparse.ArgumentParser) -> None:
    """Set up the argument parser for protein commands"""
    subparsers = parser.add_subparsers(dest='command', help='Protein command')
    subparsers.required = True

    domains_parser = subparsers.add_parser('domains', help=COMMANDS['domains'])
    domains_parser.add_argument('identifier', type=str,
                                help='UniProt accession or structure source id')


def run_command(args: argparse.Namespace) -> int:
    """Run the specified protein command"""
    service = DashboardService(build_context(args))

    if args.command == 'domains':
        data = service.get_protein_domains(args.identifier).to_dict()
        print_result(args, data, _format_protein)
        return 0

    logger.error(f"Unknown command: {args.command}")
    return 1


def _format_protein(data) -> str:
    protein = data['protein'] or {}
    structure = data['structure'] or {}
    lines = [
        f"Protein {protein.get('unp_acc') or data['identifier']}",
        f"  Source id:        {protein.get('source_id') or '-'}",
        f"  Length:           {protein.get('sequence_length') or '-'}",
        f"  Species:          {protein.get('species') or '-'}",
        f"  Structure:        {structure.get('source') or '-'}"
        f" (confidence {format_value(structure.get('confidence_score'))})",
        "",
        f"Domains ({data['count']}):",
        format_table(data['domains'], DOMAIN_COLUMNS),
    ]
    return "\n".join(lines)
