"""
Database management commands for the curation toolkit
"""

import argparse
import logging

from ecod_curation.cli.base import build_context, print_result
from ecod_curation.db.migration_manager import MigrationManager

logger = logging.getLogger("ecod_curation.cli.db")

COMMANDS = {
    'test': 'Check the database connection and schema',
    'migrate': 'Create or update the curation tables',
}


def setup_parser(parser: argparse.ArgumentParser) -> None:
    """Set up the argument parser for database commands"""
    subparsers = parser.add_subparsers(dest='command', help='Database command')
    subparsers.required = True

    subparsers.add_parser('test', help=COMMANDS['test'])

    migrate_parser = subparsers.add_parser('migrate', help=COMMANDS['migrate'])
    migrate_parser.add_argument('--migrations-dir', type=str,
                                help='Directory containing migration files (default: bundled)')
    migrate_parser.add_argument('--dry-run', action='store_true',
                                help='List pending migrations without applying them')


def run_command(args: argparse.Namespace) -> int:
    """Run the specified database command"""
    context = build_context(args)

    if args.command == 'test':
        return _test_connection(args, context.db)
    elif args.command == 'migrate':
        return _run_migrations(args, context.db)
    else:
        logger.error(f"Unknown command: {args.command}")
        return 1


def _test_connection(args: argparse.Namespace, db) -> int:
    connected = db.test_connection()
    data = {
        'connected': connected,
        'schema': db.schema,
        'schema_exists': db.schema_exists() if connected else False,
    }
    print_result(args, data, lambda d: (
        f"Connection: {'ok' if d['connected'] else 'FAILED'}\n"
        f"Schema {d['schema']}: {'present' if d['schema_exists'] else 'missing'}"
    ))
    return 0 if connected and data['schema_exists'] else 1


def _run_migrations(args: argparse.Namespace, db) -> int:
    manager = MigrationManager(db, args.migrations_dir)

    if args.dry_run:
        pending = manager.pending_migrations()
        print_result(args, {'pending': pending},
                     lambda d: "\n".join(d['pending']) or "No pending migrations")
        return 0

    applied = manager.apply_migrations()
    logger.info(f"Applied {len(applied)} migrations")
    print_result(args, {'applied': applied},
                 lambda d: f"Applied {len(d['applied'])} migrations"
                 + "".join(f"\n  {name}" for name in d['applied']))
    return 0
