"""
Cluster commands
"""

import argparse
import logging
import os

from ecod_curation.analysis.msa import alignment_window, parse_alignment
from ecod_curation.cli.base import (
    add_page_arguments, build_context, format_table, format_value, page_footer, print_result
)
from ecod_curation.db.repositories import ClusterFilters
from ecod_curation.services import ClusterService
from ecod_curation.utils.export import export_cluster_json, export_csv

logger = logging.getLogger("ecod_curation.cli.clusters")

COMMANDS = {
    'list': 'List clusters',
    'show': 'Show cluster details',
    'members': 'List cluster members',
    'validate': 'Show the validation report of a cluster',
    'msa': 'Show the alignment of a cluster',
    'export': 'Export a cluster to JSON or its members to CSV',
}

LIST_COLUMNS = ['id', 'cluster_number', 'cluster_set_name', 'size',
                'taxonomic_diversity', 'structure_consistency', 'requires_new_classification']

MEMBER_COLUMNS = ['domain_id', 'unp_acc', 'range', 't_group', 't_group_name',
                  'sequence_identity', 'alignment_coverage', 'is_representative', 'species']


def setup_parser(parser: argparse.ArgumentParser) -> None:
    """Set up the argument parser for cluster commands"""
    subparsers = parser.add_subparsers(dest='command', help='Cluster command')
    subparsers.required = True

    list_parser = subparsers.add_parser('list', help=COMMANDS['list'])
    list_parser.add_argument('--cluster-set-id', type=int, help='Only clusters of this set')
    list_parser.add_argument('--t-group', type=str, help='Only clusters containing this t-group')
    list_parser.add_argument('--tax-id', type=int, help='Only clusters containing this taxon')
    list_parser.add_argument('--csv', type=str, help='Also write the page to this CSV file')
    add_page_arguments(list_parser)

    show_parser = subparsers.add_parser('show', help=COMMANDS['show'])
    show_parser.add_argument('cluster_id', type=int, help='Cluster ID')

    members_parser = subparsers.add_parser('members', help=COMMANDS['members'])
    members_parser.add_argument('cluster_id', type=int, help='Cluster ID')
    add_page_arguments(members_parser)

    validate_parser = subparsers.add_parser('validate', help=COMMANDS['validate'])
    validate_parser.add_argument('cluster_id', type=int, help='Cluster ID')

    msa_parser = subparsers.add_parser('msa', help=COMMANDS['msa'])
    msa_parser.add_argument('cluster_id', type=int, help='Cluster ID')
    msa_parser.add_argument('--start', type=int, default=0,
                            help='First alignment column to show (0-based)')
    msa_parser.add_argument('--width', type=int, default=80,
                            help='Number of alignment columns to show')

    export_parser = subparsers.add_parser('export', help=COMMANDS['export'])
    export_parser.add_argument('cluster_id', type=int, help='Cluster ID')
    export_parser.add_argument('--format', choices=('json', 'csv'), default='json',
                               help='json: full cluster detail; csv: member table')
    export_parser.add_argument('--output-dir', type=str,
                               help='Output directory (default from config)')


def run_command(args: argparse.Namespace) -> int:
    """Run the specified cluster command"""
    context = build_context(args)
    service = ClusterService(context)

    if args.command == 'list':
        return _list_clusters(args, service)
    elif args.command == 'show':
        data = service.get_cluster(args.cluster_id).to_dict()
        print_result(args, data, _format_detail)
        return 0
    elif args.command == 'members':
        page = service.page_request(args.page, args.page_size)
        data = service.get_members(args.cluster_id, page).to_dict(
            lambda member: member.to_flat_dict(), key='members')
        print_result(args, data, lambda d: format_table(d['members'], MEMBER_COLUMNS)
                     + "\n" + page_footer(d))
        return 0
    elif args.command == 'validate':
        data = service.get_validation(args.cluster_id).to_dict()
        print_result(args, data, _format_validation)
        return 0
    elif args.command == 'msa':
        return _show_msa(args, service)
    elif args.command == 'export':
        output_dir = args.output_dir or context.config.get('export.output_dir', './exports')
        return _export_cluster(args, service, output_dir)
    else:
        logger.error(f"Unknown command: {args.command}")
        return 1


def _list_clusters(args: argparse.Namespace, service: ClusterService) -> int:
    filters = ClusterFilters(cluster_set_id=args.cluster_set_id,
                             t_group=args.t_group, tax_id=args.tax_id)
    result = service.list_clusters(filters, service.page_request(args.page, args.page_size))

    if args.csv:
        export_csv(result.items, args.csv, LIST_COLUMNS)

    data = result.to_dict(key='clusters')
    print_result(args, data, lambda d: format_table(d['clusters'], LIST_COLUMNS)
                 + "\n" + page_footer(d))
    return 0


def _show_msa(args: argparse.Namespace, service: ClusterService) -> int:
    data = service.get_msa(args.cluster_id)

    if getattr(args, 'json', False):
        print_result(args, data)
        return 0

    summary = data['summary']
    sequences = parse_alignment(data['msa']['alignment_data'])
    window = alignment_window(sequences, args.start, args.width)
    width = max((len(s.identifier) for s in window), default=0)

    lines = [
        f"Alignment length: {summary['alignment_length']}  "
        f"Sequences: {summary['num_sequences']}  "
        f"Mean identity: {format_value(summary['avg_identity'])}",
        f"Conserved columns: {len(summary['conserved_positions'])}  "
        f"Gap columns: {len(summary['gap_positions'])}",
        f"Columns {args.start}-{args.start + args.width - 1}:",
        "",
    ]
    lines.extend(f"{s.identifier:<{width}}  {s.sequence}" for s in window)
    print("\n".join(lines))
    return 0


def _export_cluster(args: argparse.Namespace, service: ClusterService, output_dir: str) -> int:
    detail = service.get_cluster(args.cluster_id)

    if args.format == 'json':
        path = export_cluster_json(detail, output_dir)
    else:
        path = os.path.join(output_dir, f"cluster-{detail.cluster.cluster_number}-members.csv")
        export_csv(detail.members, path, MEMBER_COLUMNS)

    print_result(args, {'cluster_id': args.cluster_id, 'path': path},
                 lambda d: f"Exported cluster {d['cluster_id']} to {d['path']}")
    return 0


def _format_detail(data) -> str:
    cluster = data['cluster']
    cluster_set = data['cluster_set'] or {}
    analysis = data['analysis'] or {}
    representative = data['representative']
    taxonomy = data['taxonomy_distribution']

    lines = [
        f"Cluster {cluster['cluster_number']} (id {cluster['id']})",
        f"  Cluster set:            {cluster_set.get('name', '-')}",
        f"  Size:                   {data['size']}",
        f"  Representative:         "
        f"{representative['domain']['domain_id'] if representative else '-'}",
        f"  Structure consistency:  {format_value(analysis.get('structure_consistency'))}",
        f"  Taxonomic diversity:    {format_value(analysis.get('taxonomic_diversity'))}",
        f"  Experimental support:   {format_value(analysis.get('experimental_support_ratio'))}",
        f"  Flagged:                {'yes' if analysis.get('requires_new_classification') else 'no'}",
        f"  Families / phyla:       {taxonomy.get('distinct_families', 0)} / "
        f"{taxonomy.get('distinct_phyla', 0)}",
        f"  Superkingdoms:          {', '.join(taxonomy.get('superkingdoms') or []) or '-'}",
        "",
        "T-groups:",
        format_table(data['tgroup_distribution'], ['t_group', 'name', 'count']),
        "",
        "Top species:",
        format_table(data['species_distribution'], ['species', 'count']),
    ]
    return "\n".join(lines)


def _format_validation(data) -> str:
    assessment = data['classification_assessment']
    lines = [f"Cluster {data['cluster_id']}: {assessment['status']}", ""]
    for section in ('structural_validation', 'taxonomic_validation'):
        for name, value in data[section].items():
            lines.append(f"  {name:<24} {format_value(value):>6}  {assessment['tiers'].get(name, '')}")
    lines.extend(["", assessment['notes']])
    return "\n".join(lines)
