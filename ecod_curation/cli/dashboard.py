"""
Dashboard commands
"""

import argparse
import logging

from ecod_curation.cli.base import (
    add_page_arguments, build_context, format_table, format_value, iso_datetime,
    page_footer, print_result
)
from ecod_curation.db.repositories import ActivityFilters
from ecod_curation.models.dashboard import PriorityCategory
from ecod_curation.services import DashboardService
from ecod_curation.utils.export import export_csv

logger = logging.getLogger("ecod_curation.cli.dashboard")

COMMANDS = {
    'summary': 'Show cluster, domain and review counts',
    'taxonomy': 'Show clusters per superkingdom and the top t-groups',
    'priority': 'List clusters most in need of curation',
    'activity': 'Show recent curation activity',
    'quality': 'Show structure quality metrics',
    'classification': 'Show curation status, t-group consistency and cluster set comparison',
    'quality-stats': 'Show domain prediction quality distributions',
    'recent': 'List the most recently created clusters',
}

PRIORITY_COLUMNS = ['name', 'cluster_number', 'cluster_set_name', 'size', 'category',
                    'representative_domain', 't_group', 'structure_consistency',
                    'taxonomic_diversity']

ACTIVITY_COLUMNS = ['created_at', 'user_id', 'action', 'entity_type', 'entity_id']

QUALITY_AVERAGE_COLUMNS = ['name', 'avg_structure_consistency', 'avg_experimental_support',
                           'avg_plddt', 'avg_tgroup_homogeneity']

COMPARISON_COLUMNS = ['name', 'clusters', 'validated', 'needs_review', 'conflicts', 'unanalysed']

RECENT_COLUMNS = ['name', 'cluster_set_name', 'size', 'taxonomic_diversity',
                  'representative_domain', 'created_at']


def setup_parser(parser: argparse.ArgumentParser) -> None:
    """Set up the argument parser for dashboard commands"""
    subparsers = parser.add_subparsers(dest='command', help='Dashboard command')
    subparsers.required = True

    subparsers.add_parser('summary', help=COMMANDS['summary'])
    subparsers.add_parser('taxonomy', help=COMMANDS['taxonomy'])

    priority_parser = subparsers.add_parser('priority', help=COMMANDS['priority'])
    priority_parser.add_argument('--limit', type=int, default=10, help='Maximum clusters to show')
    priority_parser.add_argument('--category', default='all',
                                 choices=['all'] + [c.value for c in PriorityCategory],
                                 help='Only this category')
    priority_parser.add_argument('--include-singletons', action='store_true',
                                 help='Include single-member clusters')

    activity_parser = subparsers.add_parser('activity', help=COMMANDS['activity'])
    activity_parser.add_argument('--entity-type', type=str, help='Filter by entity type')
    activity_parser.add_argument('--entity-id', type=str, help='Filter by entity id')
    activity_parser.add_argument('--action', type=str, help='Filter by action')
    activity_parser.add_argument('--user', type=str, help='Filter by user id')
    activity_parser.add_argument('--from-date', type=iso_datetime, help='Earliest entry (ISO date)')
    activity_parser.add_argument('--to-date', type=iso_datetime, help='Latest entry (ISO date)')
    add_page_arguments(activity_parser)

    quality_parser = subparsers.add_parser('quality', help=COMMANDS['quality'])
    quality_parser.add_argument('--cluster-set-id', type=int, help='Only clusters of this set')
    quality_parser.add_argument('--csv', type=str, help='Write per-cluster rows to this CSV file')

    classification_parser = subparsers.add_parser('classification', help=COMMANDS['classification'])
    classification_parser.add_argument('--tgroup-limit', type=int, default=10,
                                       help='Number of t-groups to rank by consistency')
    classification_parser.add_argument('--min-clusters', type=int, default=5,
                                       help='Only rank t-groups found in more clusters than this')

    subparsers.add_parser('quality-stats', help=COMMANDS['quality-stats'])

    recent_parser = subparsers.add_parser('recent', help=COMMANDS['recent'])
    recent_parser.add_argument('--limit', type=int, default=4, help='Maximum clusters to show')


def run_command(args: argparse.Namespace) -> int:
    """Run the specified dashboard command"""
    service = DashboardService(build_context(args))

    if args.command == 'summary':
        print_result(args, service.get_summary().to_dict(), _format_summary)
    elif args.command == 'taxonomy':
        print_result(args, service.get_taxonomy_overview(), _format_taxonomy)
    elif args.command == 'priority':
        result = service.get_priority_clusters(limit=args.limit, category=args.category,
                                               exclude_singletons=not args.include_singletons)
        print_result(args, result.to_dict(), _format_priority)
    elif args.command == 'activity':
        filters = ActivityFilters(entity_type=args.entity_type, entity_id=args.entity_id,
                                  action=args.action, user_id=args.user,
                                  from_date=args.from_date, to_date=args.to_date)
        data = service.get_activity(filters, service.page_request(args.page, args.page_size))
        print_result(args, data, lambda d: format_table(d['logs'], ACTIVITY_COLUMNS)
                     + "\n" + page_footer(d))
    elif args.command == 'quality':
        return _show_quality(args, service)
    elif args.command == 'classification':
        overview = service.get_classification_overview(args.tgroup_limit, args.min_clusters)
        print_result(args, overview.to_dict(), _format_classification)
    elif args.command == 'quality-stats':
        print_result(args, service.get_domain_quality().to_dict(), _format_domain_quality)
    elif args.command == 'recent':
        clusters = [cluster.to_dict() for cluster in service.get_recent_clusters(args.limit)]
        print_result(args, clusters, lambda rows: format_table(rows, RECENT_COLUMNS))
    else:
        logger.error(f"Unknown command: {args.command}")
        return 1
    return 0


def _show_quality(args: argparse.Namespace, service: DashboardService) -> int:
    quality = service.get_structure_quality(args.cluster_set_id)
    frame = quality['quality_metrics']

    if args.csv:
        export_csv(frame, args.csv)

    data = {
        'quality_metrics': frame.astype(object).where(frame.notna(), None).to_dict('records'),
        'cluster_set_averages': quality['cluster_set_averages'],
        'overall': quality['overall'],
    }
    print_result(args, data, _format_quality)
    return 0


def _format_summary(data) -> str:
    return "\n".join([
        f"Total clusters:   {data['total_clusters']}",
        f"Total domains:    {data['total_domains']}",
        f"Needs review:     {data['needs_review']}",
    ])


def _format_taxonomy(data) -> str:
    return "\n".join([
        "Superkingdoms:",
        format_table(data['kingdoms'], ['kingdom', 'domains', 'clusters']),
        "",
        "Top t-groups:",
        format_table(data['top_tgroups'], ['tgroup', 'count']),
    ])


def _format_priority(data) -> str:
    totals = ", ".join(f"{name}: {count}" for name, count in data['totals'].items())
    return "\n".join([format_table(data['clusters'], PRIORITY_COLUMNS), "", f"Totals: {totals}"])


def _format_quality(data) -> str:
    overall = ", ".join(f"{name}: {format_value(value)}" for name, value in data['overall'].items())
    return "\n".join([
        f"Analysed clusters: {len(data['quality_metrics'])}",
        f"Overall means: {overall}",
        "",
        format_table(data['cluster_set_averages'], QUALITY_AVERAGE_COLUMNS),
    ])


def _format_classification(data) -> str:
    statuses = [{'status': row['status'], 'count': row['count'],
                 'percentage': format_value(row['percentage'], 1)}
                for row in data['status_distribution']]
    return "\n".join([
        f"Clusters: {data['total_clusters']}",
        format_table(statuses, ['status', 'count', 'percentage']),
        "",
        "Most consistent t-groups (%):",
        format_table(data['tgroup_consistency'], ['t_group', 'name', 'clusters', 'consistency']),
        "",
        "Cluster sets:",
        format_table(data['cluster_set_comparison'], COMPARISON_COLUMNS),
    ])


def _format_domain_quality(data) -> str:
    overall = data['overall']
    return "\n".join([
        f"Domains:                   {overall['total_domains']}",
        f"Mean DPAM probability:     {format_value(overall['avg_dpam_prob'])}",
        f"Mean HHsearch probability: {format_value(overall['avg_hh_prob'])}",
        f"High confidence fraction:  {format_value(overall['high_confidence_fraction'])}",
        f"DPAM/pLDDT correlation:    {format_value(overall.get('dpam_plddt_correlation'))}"
        f" over {overall.get('dpam_plddt_pairs', 0)} domains",
        "",
        "Judges:",
        format_table(data['judge_distribution'], ['judge', 'count', 'fraction']),
        "",
        "Confidence bands:",
        format_table(data['confidence_distribution'], ['band', 'count', 'fraction']),
        "",
        "DPAM probability:",
        format_table(data['dpam_histogram'], ['range', 'count']),
    ])
