"""
Cluster set commands
"""

import argparse
import logging

from ecod_curation.cli.base import build_context, format_table, format_value, print_result
from ecod_curation.services import ClusterService

logger = logging.getLogger("ecod_curation.cli.clustersets")

COMMANDS = {
    'list': 'List cluster sets with summary statistics',
    'show': 'Show one cluster set with its distributions',
}

LIST_COLUMNS = ['id', 'name', 'method', 'sequence_identity', 'clusters_count',
                'domains_count', 'taxonomic_coverage', 'flagged_clusters']


def setup_parser(parser: argparse.ArgumentParser) -> None:
    """Set up the argument parser for cluster set commands"""
    subparsers = parser.add_subparsers(dest='command', help='Cluster set command')
    subparsers.required = True

    subparsers.add_parser('list', help=COMMANDS['list'])

    show_parser = subparsers.add_parser('show', help=COMMANDS['show'])
    show_parser.add_argument('cluster_set_id', type=int, help='Cluster set ID')


def run_command(args: argparse.Namespace) -> int:
    """Run the specified cluster set command"""
    service = ClusterService(build_context(args))

    if args.command == 'list':
        data = [cluster_set.to_dict() for cluster_set in service.list_cluster_sets()]
        print_result(args, data, lambda rows: format_table(rows, LIST_COLUMNS))
        return 0
    elif args.command == 'show':
        data = service.get_cluster_set(args.cluster_set_id).to_dict()
        print_result(args, data, _format_cluster_set)
        return 0
    else:
        logger.error(f"Unknown command: {args.command}")
        return 1


def _format_cluster_set(data) -> str:
    lines = [
        f"Cluster set {data['id']}: {data['name']}",
        f"  Method:              {format_value(data['method'])}",
        f"  Sequence identity:   {format_value(data['sequence_identity'])}",
        f"  Clusters:            {data['clusters_count']}",
        f"  Domains:             {data['domains_count']}",
        f"  Avg cluster size:    {format_value(data['avg_cluster_size'])}",
        f"  Taxonomic coverage:  {format_value(data['taxonomic_coverage'])}",
        f"  Flagged clusters:    {data['flagged_clusters']}",
        "",
        "Size distribution:",
        format_table(data['size_distribution'], ['range', 'count']),
        "",
        "Top t-groups:",
        format_table(data['tgroup_distribution'], ['t_group', 'name', 'cluster_count', 'domain_count']),
    ]
    return "\n".join(lines)
