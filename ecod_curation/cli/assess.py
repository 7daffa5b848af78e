"""
Score cluster metrics given on the command line
"""

import argparse
import logging

from ecod_curation.cli.base import build_context, print_result
from ecod_curation.models.metrics import OUT_OF_RANGE_POLICIES
from ecod_curation.models.validation import ClusterValidationInput
from ecod_curation.validation.scorer import ValidationScorer

logger = logging.getLogger("ecod_curation.cli.assess")

COMMANDS = {
    'assess': 'Assess a cluster from its four metrics (omitted metrics are unknown)',
}


def setup_parser(parser: argparse.ArgumentParser) -> None:
    """Set up the argument parser for the assess command"""
    parser.add_argument('--structure-consistency', type=float,
                        help='Structure consistency in [0, 1]')
    parser.add_argument('--experimental-support', type=float,
                        help='Fraction of members with experimental structures')
    parser.add_argument('--taxonomic-diversity', type=float,
                        help='Taxonomic diversity in [0, 1]')
    parser.add_argument('--tgroup-homogeneity', type=float,
                        help='Fraction of members in the dominant t-group')
    parser.add_argument('--out-of-range', choices=OUT_OF_RANGE_POLICIES,
                        help='Reject or clamp values outside [0, 1] (default from config)')


def run_command(args: argparse.Namespace) -> int:
    """Score the given metrics and print the assessment"""
    context = build_context(args)
    validation_config = context.config.get_section('validation')
    out_of_range = args.out_of_range or validation_config.get('out_of_range', 'reject')

    metrics = ClusterValidationInput.from_values(
        structure_consistency=args.structure_consistency,
        experimental_support=args.experimental_support,
        taxonomic_diversity=args.taxonomic_diversity,
        tgroup_homogeneity=args.tgroup_homogeneity,
        out_of_range=out_of_range
    )
    assessment = ValidationScorer.from_config(validation_config).assess(metrics)
    logger.info(f"Assessment: {assessment.status.value}")

    data = {'metrics': metrics.to_dict(), 'assessment': assessment.to_dict()}
    print_result(args, data, _format_assessment)
    return 0


def _format_assessment(data) -> str:
    assessment = data['assessment']
    lines = [f"Status: {assessment['status']}", ""]
    for name, value in data['metrics'].items():
        shown = '-' if value is None else f"{value:.2f}"
        lines.append(f"  {name:<24} {shown:>6}  {assessment['tiers'][name]}")
    lines.extend(["", assessment['notes']])
    return "\n".join(lines)
