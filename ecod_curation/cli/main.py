#!/usr/bin/env python3
"""
Entry point for the ecod-curation command
"""
import argparse
import logging
import sys
from typing import List, Optional

from ecod_curation import __version__
from ecod_curation.cli import COMMAND_GROUPS, load_group
from ecod_curation.config import ConfigManager
from ecod_curation.core.context import ApplicationContext
from ecod_curation.core.logging_config import LoggingManager
from ecod_curation.error_handlers import handle_exceptions


def build_parser() -> argparse.ArgumentParser:
    """Create the top-level parser with one subparser per command group"""
    parser = argparse.ArgumentParser(prog='ecod-curation',
                                     description='ECOD domain cluster curation toolkit')

    # Global options
    parser.add_argument('--config', type=str, help='Path to configuration file')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Increase verbosity (can be used multiple times)')
    parser.add_argument('--log-file', type=str,
                        help='Log to file in addition to stderr')
    parser.add_argument('--json', action='store_true',
                        help='Output results as JSON')
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest='group', help='Command group')
    subparsers.required = True

    for group, description in COMMAND_GROUPS.items():
        module = load_group(group)
        group_parser = subparsers.add_parser(group, help=description, description=description)
        module.setup_parser(group_parser)

    return parser


@handle_exceptions(exit_on_error=False)
def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # 0=WARNING, 1=INFO, 2+=DEBUG
    log_level = max(logging.DEBUG, logging.WARNING - args.verbose * 10)

    config_manager = ConfigManager(args.config)
    logger = LoggingManager.configure(
        log_file=args.log_file,
        component="ecod_curation",
        config=config_manager.config,
        level=log_level
    )
    logger.debug(f"Running {args.group} {getattr(args, 'command', '') or ''}".rstrip())

    config_manager.require_valid()
    args.context = ApplicationContext(config_manager=config_manager)

    return load_group(args.group).run_command(args)


if __name__ == "__main__":
    sys.exit(main())
